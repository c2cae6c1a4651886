import os
import sys

import pytest

# Make the flat top-level modules importable regardless of where pytest is run from.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from notifier import NotificationError  # noqa: E402
from projection import FunnelConfig  # noqa: E402


class RecordingNotifier:
    """Stands in for EmailJSNotifier; records every address it is asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, email):
        self.sent.append(email)
        if self.fail:
            raise NotificationError("service unavailable")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def example_config():
    """10 patients/mo, no haircut, no growth, G0552 on at 100%."""
    return FunnelConfig(
        new_patients_per_month=10,
        testing_rate_pct=100,
        neuro_read_rate_pct=60,
        neuro_reads_per_patient=1,
        neuro_read_reimbursement=1980,
        rtm_eligible_pct=100,
        rtm_total_per_episode=1705.51,
        include_g0552=True,
        g0552_eligible_pct=100,
        g0552_reimbursement=7350,
        g0552_cost=1000,
        partner_share_pct=50,
        payer_mix_discount_pct=0,
        include_growth=False,
        monthly_growth_pct=5,
        avg_months_monitored=6,
    )


@pytest.fixture
def example_form():
    return {
        "new_patients_per_month": "10",
        "testing_rate_pct": "100",
        "neuro_read_rate_pct": "60",
        "neuro_reads_per_patient": "1",
        "neuro_read_reimbursement": "1980",
        "rtm_eligible_pct": "100",
        "rtm_total_per_episode": "1705.51",
        "avg_months_monitored": "6",
        "rtm_mode": "simple",
        "include_g0552": "on",
        "g0552_eligible_pct": "100",
        "g0552_reimbursement": "7350",
        "g0552_cost": "1000",
        "payer_mix_discount_pct": "0",
        "partner_share_pct": "50",
        "monthly_growth_pct": "5",
    }
