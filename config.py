"""
Constants for the NeuroGlympse care-model revenue predictor.

All monetary values in USD. Percentages are stored as whole numbers
(e.g. 60 means 60%) exactly as entered on the form.
"""

import os

# ── Funnel defaults ──────────────────────────────────────────────────
NEW_PATIENTS_PER_MONTH = 10
TESTING_RATE_PCT = 100

NEURO_READ_RATE_PCT = 60
NEURO_READS_PER_PATIENT = 1
NEURO_READ_REIMBURSEMENT = 1980

RTM_ELIGIBLE_PCT = 100
RTM_TOTAL_PER_EPISODE = 1705.51     # combined 98975/98976/98980/98981
AVG_MONTHS_MONITORED = 6

INCLUDE_G0552 = True
G0552_ELIGIBLE_PCT = 100
G0552_REIMBURSEMENT = 7350           # one-time
G0552_COST = 1000                    # deposit / cost per patient

PARTNER_SHARE_PCT = 50
PAYER_MIX_DISCOUNT_PCT = 10

INCLUDE_GROWTH = True
MONTHLY_GROWTH_PCT = 5

# UI range hints only; the projection does not clamp.
PAYER_MIX_DISCOUNT_RANGE = (0, 50)
PARTNER_SHARE_RANGE = (0, 100)

# ── RTM per-code breakdown (advanced mode) ──────────────────────────
CPT_98975 = 75      # initial set-up / education
CPT_98976 = 55      # device supply, per month
CPT_98980 = 55      # treatment management, first 20 min per month
CPT_98981 = 45      # each additional 20 min
VISITS_98980_PER_MONTH = 1
VISITS_98981_PER_MONTH = 1

PROJECTION_MONTHS = 12

# Larger form values coerce to 0; keeps every projected product finite.
MAX_INPUT_MAGNITUDE = 1e12

# ── Email gate ──────────────────────────────────────────────────────
STORAGE_KEY = "proforma_user_email"
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"
EMAILJS_SERVICE_ID = os.environ.get("EMAILJS_SERVICE_ID", "service_a9eb9hn")
EMAILJS_TEMPLATE_ID = os.environ.get("EMAILJS_TEMPLATE_ID", "template_6m7afq9")
EMAILJS_PUBLIC_KEY = os.environ.get("EMAILJS_PUBLIC_KEY", "FjHVT1Qy6pEksfIJQ")
EMAILJS_TIMEOUT = 10                # seconds
NOTIFY_JOIN_TIMEOUT = 5             # seconds the CLI waits before exiting

NOTIFY_FROM_NAME = "Proforma User"
NOTIFY_TO_NAME = "NeuroGlympse Sales"
NOTIFY_MESSAGE = "New proforma access request from: {email}"

# ── CSV export ──────────────────────────────────────────────────────
CSV_FILENAME = "neuroglympse_roi_projection.csv"
CSV_MIMETYPE = "text/csv; charset=utf-8"
CSV_HEADER = [
    "Month",
    "RTM (Net)",
    "Reads (Net)",
    "G0552 (Net)",
    "G0552 Cost (-)",
    "Total (Net)",
]

# ── Web / CLI ───────────────────────────────────────────────────────
SECRET_KEY = os.environ.get("ROI_SECRET_KEY", "dev-key-change-this")
WEB_HOST = "127.0.0.1"
WEB_PORT = 5000
CLI_STORE_PATH = os.path.join(os.path.expanduser("~"), ".neuroglympse_roi.json")
CHART_PATH = "neuroglympse_roi_projection.png"

ASSUMPTIONS = [
    "Funnel logic: Testing is applied to a % of new patients; Reads / RTM / "
    "G0552 are applied to the tested cohort using their attach rates.",
    "\"Payer mix haircut\" conservatively reduces reimbursements to account "
    "for Medicare or lower-paying plans.",
    "\"Partner share\" applies your split on gross revenue. In this model, the "
    "G0552 deposit/cost (if enabled) is treated as an expense against partner share.",
    "RTM simple mode uses a single episode total. Advanced mode computes an "
    "episode total from code-level inputs and your average months monitored.",
    "Monthly projection assumes new enrollments each month; when growth is "
    "enabled, new-patient adds increase by the specified % each month.",
]
