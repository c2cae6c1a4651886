"""
Flask web application for the NeuroGlympse care-model revenue predictor.

Single-file app using render_template_string.  Run via ``python main.py``
which starts the dev server on localhost:5000.

The unlocked email lives in the Flask session (a signed cookie), so the
gate state stays on the client like the rest of the visitor's data.
"""

from __future__ import annotations

import io

from flask import Flask, redirect, render_template_string, request, send_file, session, url_for

import config as cfg
from cli import compute_display_data, fmt, pct
from export import projection_csv
from gate import EmailGate, InvalidEmailError
from notifier import EmailJSNotifier
from projection import AdvancedRtmBreakdown, FunnelConfig, parse_form, project
from storage import MappingStore
import report

app = Flask(__name__)
app.config["SECRET_KEY"] = cfg.SECRET_KEY
app.config["NOTIFY_IN_BACKGROUND"] = True

notifier = EmailJSNotifier()


def _gate() -> EmailGate:
    return EmailGate(
        MappingStore(session),
        notifier,
        background=app.config["NOTIFY_IN_BACKGROUND"],
    )


def num(val: float) -> str:
    """Render a form value exactly, without a trailing '.0'."""
    text = repr(float(val))
    return text[:-2] if text.endswith(".0") else text


# ═══════════════════════════════════════════════════════════════════
# HTML Template
# ═══════════════════════════════════════════════════════════════════

HTML_TEMPLATE = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>NeuroGlympse Care Model - Revenue Predictor</title>
<link rel="preconnect" href="https://fonts.googleapis.com">
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap" rel="stylesheet">
<style>
  *{margin:0;padding:0;box-sizing:border-box}

  :root{
    --bg-deep:#0f0a1f;
    --bg-surface:rgba(30,27,58,0.6);
    --bg-input:rgba(12,10,26,0.85);
    --border-subtle:rgba(139,92,246,0.15);
    --text-primary:#f1f5f9;
    --text-secondary:#a5b4c8;
    --text-muted:#64748b;
    --indigo:#818cf8;
    --indigo-deep:#6366f1;
    --violet:#8b5cf6;
    --purple:#a855f7;
    --red:#f87171;
    --radius-lg:18px;
    --radius-md:10px;
  }

  body{
    background:var(--bg-deep);color:var(--text-primary);
    font-family:'Inter',system-ui,-apple-system,sans-serif;
    line-height:1.6;min-height:100vh;
  }
  .bg-glow{
    position:fixed;inset:0;z-index:0;pointer-events:none;
    background:
      radial-gradient(ellipse 60% 45% at 85% 10%,rgba(168,85,247,0.16) 0%,transparent 70%),
      radial-gradient(ellipse 60% 45% at 10% 90%,rgba(99,102,241,0.14) 0%,transparent 70%);
  }
  .container{max-width:1040px;margin:0 auto;padding:2rem 1.5rem;position:relative;z-index:1}

  /* ── hero ── */
  .hero{padding:1rem 0 2rem}
  .hero h1{
    font-size:clamp(1.5rem,4vw,2.3rem);font-weight:800;letter-spacing:-.03em;line-height:1.2;
    background:linear-gradient(135deg,#e2e8f0 0%,#a78bfa 60%,#818cf8 100%);
    -webkit-background-clip:text;-webkit-text-fill-color:transparent;background-clip:text;
  }
  .hero-sub{color:var(--text-secondary);margin-top:.5rem;font-size:.92rem}

  /* ── cards ── */
  .card{
    background:var(--bg-surface);backdrop-filter:blur(20px);
    border:1px solid var(--border-subtle);border-radius:var(--radius-lg);
    padding:1.6rem;margin-bottom:1.3rem;
  }
  .step{font-size:.72rem;text-transform:uppercase;letter-spacing:.08em;color:var(--text-muted)}
  h2{font-size:1.1rem;font-weight:700;margin-bottom:1rem}
  h3{font-size:.9rem;font-weight:700;margin:1rem 0 .6rem;color:var(--indigo)}

  /* ── form ── */
  .form-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(230px,1fr));gap:.9rem 1.4rem}
  .form-group{display:flex;flex-direction:column}
  .form-group label{font-size:.78rem;color:var(--text-secondary);margin-bottom:.3rem;font-weight:500}
  .form-group input{
    background:var(--bg-input);border:1px solid rgba(71,85,105,.35);border-radius:var(--radius-md);
    color:var(--text-primary);padding:.55rem .8rem;font-size:.88rem;font-family:inherit;
  }
  .form-group input:focus{outline:none;border-color:var(--violet);box-shadow:0 0 0 3px rgba(139,92,246,.15)}
  .hint{font-size:.72rem;color:var(--text-muted);margin-top:.25rem}
  .toggle{display:flex;align-items:center;gap:.5rem;font-size:.85rem;color:var(--text-secondary)}
  .range-row{display:flex;align-items:center;gap:.8rem}
  .range-row input[type=range]{flex:1;accent-color:var(--violet)}
  .range-val{min-width:3rem;text-align:right;font-weight:600;font-variant-numeric:tabular-nums}

  /* ── buttons ── */
  .btn{
    display:inline-flex;align-items:center;justify-content:center;gap:.5rem;
    padding:.7rem 1.6rem;border:none;border-radius:var(--radius-md);
    font-size:.92rem;font-weight:600;cursor:pointer;font-family:inherit;
  }
  .btn-primary{background:linear-gradient(135deg,var(--indigo-deep),var(--purple));color:#fff}
  .btn-secondary{background:rgba(148,163,184,.12);color:var(--text-primary);border:1px solid rgba(148,163,184,.2)}

  /* ── summary ── */
  .kpis{display:grid;grid-template-columns:repeat(auto-fill,minmax(210px,1fr));gap:1rem;margin-bottom:1.2rem}
  .kpi{background:rgba(12,10,26,.5);border:1px solid var(--border-subtle);border-radius:var(--radius-md);padding:1rem}
  .kpi-label{font-size:.75rem;color:var(--text-muted)}
  .kpi-value{font-size:1.35rem;font-weight:800;font-variant-numeric:tabular-nums}
  .stat-row{display:flex;justify-content:space-between;padding:.45rem 0;border-bottom:1px solid rgba(51,65,85,.3)}
  .stat-row:last-child{border-bottom:none;font-weight:700}
  .stat-label{color:var(--text-secondary);font-size:.86rem}
  .stat-value{font-weight:600;font-size:.86rem;font-variant-numeric:tabular-nums}
  .neg{color:var(--red)}

  /* ── table ── */
  .table-wrap{overflow-x:auto;border-radius:var(--radius-md);border:1px solid rgba(51,65,85,.25)}
  .m-table{width:100%;border-collapse:collapse;font-size:.82rem;font-variant-numeric:tabular-nums}
  .m-table th{text-align:right;padding:.55rem .7rem;background:rgba(15,23,42,.45);color:var(--text-secondary);font-size:.72rem;text-transform:uppercase}
  .m-table td{text-align:right;padding:.45rem .7rem;border-bottom:1px solid rgba(51,65,85,.15)}
  .m-table th:first-child,.m-table td:first-child{text-align:left}

  .chart-img{width:100%;border-radius:var(--radius-md)}
  .assumptions p{color:var(--text-secondary);font-size:.86rem;margin-bottom:.5rem}

  /* ── gate ── */
  .gate{min-height:90vh;display:flex;align-items:center;justify-content:center}
  .gate .card{max-width:440px;width:100%;padding:2.4rem;text-align:center}
  .gate input{
    width:100%;background:rgba(255,255,255,.08);border:1px solid rgba(255,255,255,.2);
    border-radius:12px;color:#fff;padding:.9rem 1rem;font-size:1rem;margin:1.4rem 0 1rem;font-family:inherit;
  }
  .gate .btn{width:100%;padding:.95rem}
  .error{color:var(--red);font-size:.85rem;margin-bottom:.8rem}
  .fine{color:var(--text-muted);font-size:.75rem;margin-top:1.2rem}

  .footer{text-align:center;padding:1rem 0 2rem;color:var(--text-muted);font-size:.78rem}
  @media(max-width:640px){.container{padding:1rem}.card{padding:1.2rem}}
</style>
</head>
<body>
<div class="bg-glow"></div>
<div class="container">

{% if not unlocked %}
<!-- ═══════════════════════════════════════════════════════════ -->
<!-- EMAIL GATE                                                  -->
<!-- ═══════════════════════════════════════════════════════════ -->
<div class="gate">
  <div class="card">
    <div class="hero" style="padding:0">
      <h1>NeuroGlympse Care Model</h1>
      <p class="hero-sub">Access our interactive revenue predictor by entering your email below</p>
    </div>
    <form method="POST" action="{{ url_for('unlock') }}" novalidate>
      <input type="email" name="email" placeholder="Enter your work email" value="{{ email or '' }}" autofocus>
      {% if error %}<p class="error">{{ error }}</p>{% endif %}
      <button type="submit" class="btn btn-primary">Access Revenue Predictor &rarr;</button>
    </form>
    <p class="fine">By continuing, you agree to receive communications from NeuroGlympse</p>
  </div>
</div>

{% else %}
<!-- ═══════════════════════════════════════════════════════════ -->
<!-- CALCULATOR                                                  -->
<!-- ═══════════════════════════════════════════════════════════ -->
<header class="hero">
  <h1>NeuroGlympse Care Model - Revenue Predictor</h1>
  <p class="hero-sub">Start with new patients, apply a testing rate, then attach downstream services (Reads / RTM / G0552) to the tested cohort.</p>
</header>

<form method="POST" action="{{ url_for('index') }}" id="roi-form">

<!-- Step 1: Intake -->
<div class="card">
  <div class="step">Step 1</div>
  <h2>Patient Intake</h2>
  <div class="form-grid">
    <div class="form-group">
      <label>New patients per month</label>
      <input type="number" step="any" name="new_patients_per_month" value="{{ num(c.new_patients_per_month) }}">
    </div>
    <div class="form-group">
      <label>Testing rate (% of new patients)</label>
      <input type="number" step="any" name="testing_rate_pct" value="{{ num(c.testing_rate_pct) }}">
      <span class="hint">Downstream services (Reads / RTM / G0552) attach to the tested cohort.</span>
    </div>
    <div class="form-group">
      <label class="toggle"><input type="checkbox" name="include_growth" {{ 'checked' if c.include_growth }}> Optional growth</label>
      <span class="hint">Increase new patients each month by a % (compounding).</span>
    </div>
    <div class="form-group">
      <label>Monthly growth (%)</label>
      <input type="number" step="any" name="monthly_growth_pct" value="{{ num(c.monthly_growth_pct) }}">
    </div>
  </div>
</div>

<!-- Step 2: Services -->
<div class="card">
  <div class="step">Step 2</div>
  <h2>Services &amp; Economics</h2>

  <h3>Neuro Reads</h3>
  <div class="form-grid">
    <div class="form-group">
      <label>Read rate (% of tested)</label>
      <input type="number" step="any" name="neuro_read_rate_pct" value="{{ num(c.neuro_read_rate_pct) }}">
    </div>
    <div class="form-group">
      <label>Reads per patient</label>
      <input type="number" step="any" name="neuro_reads_per_patient" value="{{ num(c.neuro_reads_per_patient) }}">
    </div>
    <div class="form-group">
      <label>Reimbursement per read ($)</label>
      <input type="number" step="any" name="neuro_read_reimbursement" value="{{ num(c.neuro_read_reimbursement) }}">
    </div>
  </div>

  <h3>Remote Therapeutic Monitoring</h3>
  <div class="form-grid">
    <div class="form-group">
      <label>RTM enrollment rate (% of tested)</label>
      <input type="number" step="any" name="rtm_eligible_pct" value="{{ num(c.rtm_eligible_pct) }}">
    </div>
    <div class="form-group">
      <label>Avg months monitored per patient</label>
      <input type="number" step="any" name="avg_months_monitored" value="{{ num(c.avg_months_monitored) }}">
    </div>
    <div class="form-group">
      <label class="toggle"><input type="radio" name="rtm_mode" value="simple" {{ 'checked' if not a.use_per_code_breakdown }}> Simple (Episode Total)</label>
      <label class="toggle"><input type="radio" name="rtm_mode" value="advanced" {{ 'checked' if a.use_per_code_breakdown }}> Advanced (Per Code)</label>
    </div>
    {% if not a.use_per_code_breakdown %}
    <div class="form-group">
      <label>Total RTM revenue per patient episode ($)</label>
      <input type="number" step="any" name="rtm_total_per_episode" value="{{ num(c.rtm_total_per_episode) }}">
      <span class="hint">Combined 98975/98976/98980/98981 total. Edit as needed.</span>
    </div>
    {% else %}
    <input type="hidden" name="rtm_total_per_episode" value="{{ num(c.rtm_total_per_episode) }}">
    <div class="form-group"><label>98975 (init)</label><input type="number" step="any" name="cpt_98975" value="{{ num(a.cpt_98975) }}"></div>
    <div class="form-group"><label>98976 / mo</label><input type="number" step="any" name="cpt_98976" value="{{ num(a.cpt_98976) }}"></div>
    <div class="form-group"><label>98980 (per visit)</label><input type="number" step="any" name="cpt_98980" value="{{ num(a.cpt_98980) }}"></div>
    <div class="form-group"><label>98981 (additional per visit)</label><input type="number" step="any" name="cpt_98981" value="{{ num(a.cpt_98981) }}"></div>
    <div class="form-group"><label># 98980 visits / mo</label><input type="number" step="any" name="visits_98980_per_month" value="{{ num(a.visits_98980_per_month) }}"></div>
    <div class="form-group"><label># 98981 visits / mo</label><input type="number" step="any" name="visits_98981_per_month" value="{{ num(a.visits_98981_per_month) }}"></div>
    {% endif %}
  </div>
  <p class="hint">RTM per episode: {{ fmt(d.rtm_per_episode, 2) }}</p>

  <h3>G0552</h3>
  <div class="form-grid">
    <div class="form-group">
      <label class="toggle"><input type="checkbox" name="include_g0552" {{ 'checked' if c.include_g0552 }}> Include G0552</label>
    </div>
    <div class="form-group">
      <label>Eligibility (% of tested)</label>
      <input type="number" step="any" name="g0552_eligible_pct" value="{{ num(c.g0552_eligible_pct) }}">
    </div>
    <div class="form-group">
      <label>Reimbursement ($)</label>
      <input type="number" step="any" name="g0552_reimbursement" value="{{ num(c.g0552_reimbursement) }}">
    </div>
    <div class="form-group">
      <label>Deposit/cost ($)</label>
      <input type="number" step="any" name="g0552_cost" value="{{ num(c.g0552_cost) }}">
    </div>
  </div>

  <h3>Modifiers</h3>
  <div class="form-grid">
    <div class="form-group">
      <label>Payer mix haircut (%)</label>
      <div class="range-row">
        <input type="range" name="payer_mix_discount_pct" min="{{ discount_range[0] }}" max="{{ discount_range[1] }}" step="1" value="{{ num(c.payer_mix_discount_pct) }}">
        <span class="range-val">{{ pct(c.payer_mix_discount_pct) }}</span>
      </div>
    </div>
    <div class="form-group">
      <label>Partner share (%)</label>
      <div class="range-row">
        <input type="range" name="partner_share_pct" min="{{ share_range[0] }}" max="{{ share_range[1] }}" step="1" value="{{ num(c.partner_share_pct) }}">
        <span class="range-val">{{ pct(c.partner_share_pct) }}</span>
      </div>
    </div>
  </div>
</div>

<!-- Step 3: Summary -->
<div class="card">
  <div class="step">Step 3</div>
  <div style="display:flex;justify-content:space-between;align-items:center;gap:1rem">
    <h2>Financial Summary</h2>
    <button type="submit" class="btn btn-secondary" formaction="{{ url_for('export') }}">Export CSV</button>
  </div>
  <div class="kpis">
    <div class="kpi"><div class="kpi-label">Annual Gross (All)</div><div class="kpi-value">{{ fmt(d.gross_total) }}</div></div>
    <div class="kpi"><div class="kpi-label">Annual Partner Share (Net after G0552 cost)</div><div class="kpi-value">{{ fmt(d.partner_net_after_cost) }}</div></div>
    <div class="kpi"><div class="kpi-label">Monthly Partner Share (Avg)</div><div class="kpi-value">{{ fmt(d.monthly_net_avg) }}</div></div>
    <div class="kpi">
      <div class="kpi-label">New vs Tested / Year</div>
      <div class="stat-row"><span class="stat-label">New</span><span class="stat-value">{{ '{:,}'.format(d.patients_per_year) }}</span></div>
      <div class="stat-row"><span class="stat-label">Tested</span><span class="stat-value">{{ '{:,}'.format(d.tested_per_year) }}</span></div>
    </div>
  </div>
  {% for label, value in d.gross_rows %}
  <div class="stat-row"><span class="stat-label">{{ label }}</span><span class="stat-value">{{ fmt(value) }}</span></div>
  {% endfor %}
</div>

</form>

<div class="card">
  <h2>12-Month Partner Share Projection</h2>
  {% for img in charts %}
  <img class="chart-img" src="data:image/png;base64,{{ img }}" alt="12-Month Partner Share Projection">
  {% endfor %}
  <div class="table-wrap" style="margin-top:1rem">
    <table class="m-table">
      <thead><tr><th>Month</th><th>New pts</th><th>RTM (Net)</th><th>Reads (Net)</th><th>G0552 (Net)</th><th>G0552 Cost (-)</th><th>Total (Net)</th></tr></thead>
      <tbody>
      {% for m in d.months %}
        <tr>
          <td>{{ m.month }}</td>
          <td>{{ '%.1f'|format(m.new_patients) }}</td>
          <td>{{ fmt(m.rtm) }}</td>
          <td>{{ fmt(m.reads) }}</td>
          <td>{{ fmt(m.g0552) }}</td>
          <td class="{{ 'neg' if m.cost < 0 }}">{{ fmt(m.cost) }}</td>
          <td>{{ fmt(m.net) }}</td>
        </tr>
      {% endfor %}
      </tbody>
    </table>
  </div>
</div>

<div class="card assumptions">
  <h2>Assumptions</h2>
  {% for note in d.assumptions %}<p>&bull; {{ note }}</p>{% endfor %}
</div>

<div class="footer">Signed in as {{ email }}</div>
{% endif %}
</div>

<script>
/* Recompute on every change */
(function(){
  var form=document.getElementById('roi-form');
  if(!form) return;
  form.addEventListener('change',function(){ form.submit(); });
})();
</script>
</body>
</html>
"""


def _render_gate(email: str = "", error: str = "", status: int = 200):
    return render_template_string(
        HTML_TEMPLATE,
        unlocked=False,
        email=email,
        error=error,
    ), status


def _render_calculator(config: FunnelConfig, advanced: AdvancedRtmBreakdown, email: str):
    projection = project(config, advanced)
    d = compute_display_data(config, advanced, projection)
    charts = report.get_web_charts(projection)
    return render_template_string(
        HTML_TEMPLATE,
        unlocked=True,
        email=email,
        c=config,
        a=advanced,
        d=d,
        charts=charts,
        discount_range=cfg.PAYER_MIX_DISCOUNT_RANGE,
        share_range=cfg.PARTNER_SHARE_RANGE,
        fmt=fmt,
        pct=pct,
        num=num,
    )


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════

@app.route("/", methods=["GET", "POST"])
def index():
    email = _gate().unlocked_email()
    if email is None:
        if request.method == "POST":
            return redirect(url_for("index"))
        return _render_gate()

    if request.method == "GET":
        return _render_calculator(FunnelConfig(), AdvancedRtmBreakdown(), email)

    # POST — recompute from the submitted form
    config, advanced = parse_form(request.form.to_dict())
    return _render_calculator(config, advanced, email)


@app.route("/unlock", methods=["POST"])
def unlock():
    email = request.form.get("email", "")
    try:
        _gate().submit(email)
    except InvalidEmailError as e:
        return _render_gate(email=email, error=str(e), status=400)
    return redirect(url_for("index"))


@app.route("/export", methods=["POST"])
def export():
    if not _gate().is_unlocked:
        return redirect(url_for("index"))

    config, advanced = parse_form(request.form.to_dict())
    csv_text = projection_csv(project(config, advanced))
    return send_file(
        io.BytesIO(csv_text.encode("utf-8")),
        mimetype=cfg.CSV_MIMETYPE,
        as_attachment=True,
        download_name=cfg.CSV_FILENAME,
    )


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(debug: bool = True) -> None:
    """Start the Flask development server and open browser."""
    import webbrowser
    import threading

    url = f"http://localhost:{cfg.WEB_PORT}"
    print(f"Starting web app at {url}")
    threading.Timer(1.0, lambda: webbrowser.open(url)).start()
    app.run(host=cfg.WEB_HOST, port=cfg.WEB_PORT, debug=debug)


if __name__ == "__main__":
    run_web()
