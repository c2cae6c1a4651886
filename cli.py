"""
CLI interface and shared display-data computation for the
NeuroGlympse care-model revenue predictor.
"""

from __future__ import annotations

import math
import sys
from typing import Any, Dict, List, Optional

import config as cfg
from export import write_csv
from gate import EmailGate, InvalidEmailError, Unlock
from notifier import EmailJSNotifier
from projection import AdvancedRtmBreakdown, FunnelConfig, Projection, project
from storage import JsonFileStore
import report


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt(val: float, decimals: int = 0) -> str:
    """Format number as $X,XXX (negatives as -$X,XXX)."""
    sign = "-" if val < 0 else ""
    return f"{sign}${abs(val):,.{decimals}f}"


def pct(val: float, decimals: int = 0) -> str:
    return f"{val:.{decimals}f}%"


# ═══════════════════════════════════════════════════════════════════
# Input collection (CLI)
# ═══════════════════════════════════════════════════════════════════

def _strip_currency(s: str) -> str:
    """Remove currency symbols, commas, spaces."""
    return s.replace("$", "").replace(",", "").replace(" ", "")


def _prompt_float(
    label: str,
    default: Any,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        if not raw:
            return float(default)
        try:
            val = float(_strip_currency(raw).replace("%", ""))
            if min_val is not None and val < min_val:
                print(f"    Must be at least {min_val}")
                continue
            if max_val is not None and val > max_val:
                print(f"    Must be at most {max_val}")
                continue
            return val
        except ValueError:
            print("    Invalid number, try again.")


def _prompt_choice(label: str, options: list[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip().lower()
        if not raw:
            return default
        if raw in options:
            return raw
        print(f"    Choose from: {opts}")


def collect_email(gate: EmailGate) -> Unlock:
    """Prompt until the gate accepts an address."""
    print("\n  Access our interactive revenue predictor by entering your email.\n")
    while True:
        raw = input("  Work email: ")
        try:
            return gate.submit(raw)
        except InvalidEmailError as e:
            print(f"    {e}")


def collect_inputs() -> tuple[FunnelConfig, AdvancedRtmBreakdown]:
    """Prompt the user for every funnel assumption."""
    print("\n  Enter your assumptions (press Enter for defaults):\n")

    print("  Step 1 - Patient Intake")
    new_patients = _prompt_float("New patients per month", cfg.NEW_PATIENTS_PER_MONTH, 0)
    testing = _prompt_float("Testing rate (% of new patients)", cfg.TESTING_RATE_PCT, 0, 100)
    growth_on = _prompt_choice("Optional growth?", ["yes", "no"],
                               "yes" if cfg.INCLUDE_GROWTH else "no") == "yes"
    growth = cfg.MONTHLY_GROWTH_PCT
    if growth_on:
        growth = _prompt_float("Monthly growth %", cfg.MONTHLY_GROWTH_PCT, 0)

    print("\n  Step 2 - Services")
    read_rate = _prompt_float("Read rate (% of tested)", cfg.NEURO_READ_RATE_PCT, 0, 100)
    reads_per = _prompt_float("Reads per patient", cfg.NEURO_READS_PER_PATIENT, 0)
    read_reimb = _prompt_float("Reimbursement per read ($)", cfg.NEURO_READ_REIMBURSEMENT, 0)
    rtm_rate = _prompt_float("RTM enrollment rate (% of tested)", cfg.RTM_ELIGIBLE_PCT, 0, 100)
    months = _prompt_float("Avg months monitored per patient", cfg.AVG_MONTHS_MONITORED, 0)

    advanced = AdvancedRtmBreakdown()
    rtm_mode = _prompt_choice("RTM pricing", ["simple", "advanced"], "simple")
    rtm_total = cfg.RTM_TOTAL_PER_EPISODE
    if rtm_mode == "advanced":
        advanced = AdvancedRtmBreakdown(
            use_per_code_breakdown=True,
            cpt_98975=_prompt_float("98975 (init)", cfg.CPT_98975, 0),
            cpt_98976=_prompt_float("98976 / mo", cfg.CPT_98976, 0),
            cpt_98980=_prompt_float("98980 (per visit)", cfg.CPT_98980, 0),
            cpt_98981=_prompt_float("98981 (additional per visit)", cfg.CPT_98981, 0),
            visits_98980_per_month=_prompt_float("# 98980 visits / mo",
                                                 cfg.VISITS_98980_PER_MONTH, 0),
            visits_98981_per_month=_prompt_float("# 98981 visits / mo",
                                                 cfg.VISITS_98981_PER_MONTH, 0),
        )
    else:
        rtm_total = _prompt_float("Total RTM revenue per patient episode ($)",
                                  cfg.RTM_TOTAL_PER_EPISODE, 0)

    include_g0552 = _prompt_choice("Include G0552?", ["yes", "no"],
                                   "yes" if cfg.INCLUDE_G0552 else "no") == "yes"
    g_rate, g_reimb, g_cost = cfg.G0552_ELIGIBLE_PCT, cfg.G0552_REIMBURSEMENT, cfg.G0552_COST
    if include_g0552:
        g_rate = _prompt_float("G0552 eligibility (% of tested)", cfg.G0552_ELIGIBLE_PCT, 0, 100)
        g_reimb = _prompt_float("G0552 reimbursement ($)", cfg.G0552_REIMBURSEMENT, 0)
        g_cost = _prompt_float("G0552 deposit/cost ($)", cfg.G0552_COST, 0)

    lo, hi = cfg.PAYER_MIX_DISCOUNT_RANGE
    discount = _prompt_float("Payer mix haircut (%)", cfg.PAYER_MIX_DISCOUNT_PCT, lo, hi)
    lo, hi = cfg.PARTNER_SHARE_RANGE
    share = _prompt_float("Partner share (%)", cfg.PARTNER_SHARE_PCT, lo, hi)

    config = FunnelConfig(
        new_patients_per_month=new_patients,
        testing_rate_pct=testing,
        neuro_read_rate_pct=read_rate,
        neuro_reads_per_patient=reads_per,
        neuro_read_reimbursement=read_reimb,
        rtm_eligible_pct=rtm_rate,
        rtm_total_per_episode=rtm_total,
        include_g0552=include_g0552,
        g0552_eligible_pct=g_rate,
        g0552_reimbursement=g_reimb,
        g0552_cost=g_cost,
        partner_share_pct=share,
        payer_mix_discount_pct=discount,
        include_growth=growth_on,
        monthly_growth_pct=growth,
        avg_months_monitored=months,
    )
    return config, advanced


# ═══════════════════════════════════════════════════════════════════
# Shared display-data computation (used by CLI and web app)
# ═══════════════════════════════════════════════════════════════════

def _count(val: float) -> float:
    """Whole-patient count for display; non-finite values pass through."""
    return round(val) if math.isfinite(val) else val


def compute_display_data(
    config: FunnelConfig,
    advanced: AdvancedRtmBreakdown,
    projection: Projection,
) -> Dict[str, Any]:
    """Extract every metric needed for the summary sections."""
    gross_rows = [
        ("RTM Gross", projection.gross_rtm),
        ("Neuro Reads Gross", projection.gross_reads),
    ]
    if config.include_g0552:
        gross_rows.append(("G0552 Gross", projection.gross_g0552))
        gross_rows.append(("G0552 Deposit/Cost (Expense)", projection.one_time_cost))
    gross_rows.append(("Total Gross", projection.gross_total))

    return {
        # Headline figures
        "gross_total": projection.gross_total,
        "partner_net": projection.partner_net,
        "partner_net_after_cost": projection.partner_net_after_cost,
        "monthly_net_avg": projection.monthly_net_avg,
        # New vs tested
        "patients_per_year": _count(projection.patients_per_year),
        "tested_per_year": _count(projection.tested_patients_per_year),
        # Breakdown
        "gross_rows": gross_rows,
        "include_g0552": config.include_g0552,
        "one_time_cost": projection.one_time_cost,
        # RTM episode
        "rtm_mode": "advanced" if advanced.use_per_code_breakdown else "simple",
        "rtm_per_episode": projection.rtm_per_episode,
        "rtm_per_month": advanced.per_month,
        # Modifiers
        "payer_factor": config.payer_factor,
        "partner_share_pct": config.partner_share_pct,
        "growth": config.monthly_growth_pct if config.include_growth else None,
        # Series
        "months": projection.months,
        "assumptions": cfg.ASSUMPTIONS,
    }


# ═══════════════════════════════════════════════════════════════════
# Box-drawing CLI output
# ═══════════════════════════════════════════════════════════════════

W = 78  # box width (characters)
H = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{H * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{H * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 42) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{H * (W - 2)}╝"


def _wrap(text: str, width: int) -> List[str]:
    lines, line = [], ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            lines.append(line)
            line = word
    if line:
        lines.append(line)
    return lines


def _print_section(title: str, rows: List[str]) -> None:
    """Print a titled box with content rows."""
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())
    print()


# ═══════════════════════════════════════════════════════════════════
# CLI Section Printers
# ═══════════════════════════════════════════════════════════════════

def _print_summary(d: Dict[str, Any]) -> None:
    rows = [
        _box_row("Annual Gross (All)", fmt(d["gross_total"])),
        _box_row("Annual Partner Share (Net after G0552 cost)", fmt(d["partner_net_after_cost"])),
        _box_row("Monthly Partner Share (Avg)", fmt(d["monthly_net_avg"])),
        _box_line(),
        _box_row("New patients / year", f"{d['patients_per_year']:,}"),
        _box_row("Tested patients / year", f"{d['tested_per_year']:,}"),
        _box_line(),
    ]
    for label, value in d["gross_rows"]:
        rows.append(_box_row(label, fmt(value)))
    rows.append(_box_line())
    mode = "per code" if d["rtm_mode"] == "advanced" else "episode total"
    rows.append(_box_row(f"RTM per episode ({mode})", fmt(d["rtm_per_episode"], 2)))
    _print_section("FINANCIAL SUMMARY", rows)


def _print_months(d: Dict[str, Any]) -> None:
    h = f"{'Month':<6}{'RTM':>11}{'Reads':>11}{'G0552':>11}{'Cost':>11}{'Net':>12}"
    rows = [_box_line(h), _box_line("─" * (W - 6))]
    for m in d["months"]:
        rows.append(_box_line(
            f"{m.month:<6}{fmt(m.rtm):>11}{fmt(m.reads):>11}"
            f"{fmt(m.g0552):>11}{fmt(m.cost):>11}{fmt(m.net):>12}"
        ))
    if d["growth"] is not None:
        rows.append(_box_line())
        rows.append(_box_line(f"New-patient adds grow {pct(d['growth'], 1)} per month."))
    _print_section("12-MONTH PARTNER SHARE PROJECTION", rows)


def _print_assumptions(d: Dict[str, Any]) -> None:
    rows = []
    for note in d["assumptions"]:
        for i, line in enumerate(_wrap(note, W - 8)):
            rows.append(_box_line(("- " if i == 0 else "  ") + line))
    _print_section("ASSUMPTIONS", rows)


def _print_exports(csv_path: str, chart_path: Optional[str]) -> None:
    rows = [_box_line(f"CSV saved to:   {csv_path}")]
    if chart_path:
        rows.append(_box_line(f"Chart saved to: {chart_path}"))
    _print_section("EXPORT", rows)


# ═══════════════════════════════════════════════════════════════════
# Main CLI entry point
# ═══════════════════════════════════════════════════════════════════

def run_cli(store_path: str = cfg.CLI_STORE_PATH) -> None:
    """Run the full CLI workflow."""
    # Ensure box-drawing characters render on Windows
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  NeuroGlympse Care Model - Revenue Predictor")
    print("=" * W)

    gate = EmailGate(JsonFileStore(store_path), EmailJSNotifier())
    email = gate.unlocked_email()
    unlock = None
    if email is None:
        unlock = collect_email(gate)
        email = unlock.email
    print(f"\n  Unlocked for {email}")

    config, advanced = collect_inputs()
    projection = project(config, advanced)
    d = compute_display_data(config, advanced, projection)

    print()
    _print_summary(d)
    _print_months(d)
    _print_assumptions(d)

    csv_path = write_csv(projection, cfg.CSV_FILENAME)
    chart_path = report.save_chart(projection, cfg.CHART_PATH)
    _print_exports(csv_path, chart_path)

    # Give the access-request email a chance to leave before the process exits
    if unlock is not None and unlock.delivery is not None:
        unlock.delivery.join(timeout=cfg.NOTIFY_JOIN_TIMEOUT)


if __name__ == "__main__":
    run_cli()
