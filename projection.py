"""
Revenue projection engine for the NeuroGlympse care model.

Starts from new patients per month, applies a testing rate, then attaches
downstream services (Neuro Reads / RTM / G0552) to the tested cohort.
Produces annual aggregates plus a 12-month partner-share series.

The projection is a pure function of its inputs and is recomputed in full
after every change; nothing derived here is ever stored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

import config as cfg


# ─── Input Coercion ──────────────────────────────────────────────────

def coerce_number(value: Any) -> float:
    """Coerce form input to a float.

    Empty, non-numeric, non-finite or out-of-range input becomes 0, so every
    product in ``project`` stays finite.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        text = str(value).strip().replace(",", "").replace("$", "").replace("%", "")
        if not text:
            return 0.0
        try:
            num = float(text)
        except ValueError:
            return 0.0
    if not math.isfinite(num) or abs(num) > cfg.MAX_INPUT_MAGNITUDE:
        return 0.0
    return num


def coerce_flag(value: Any) -> bool:
    """Checkbox semantics: present and truthy-looking means on."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("on", "true", "1", "yes")


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass
class FunnelConfig:
    """Percentages and dollar amounts driving the funnel."""

    new_patients_per_month: float = cfg.NEW_PATIENTS_PER_MONTH
    testing_rate_pct: float = cfg.TESTING_RATE_PCT

    neuro_read_rate_pct: float = cfg.NEURO_READ_RATE_PCT           # % of tested
    neuro_reads_per_patient: float = cfg.NEURO_READS_PER_PATIENT
    neuro_read_reimbursement: float = cfg.NEURO_READ_REIMBURSEMENT  # $ per read

    rtm_eligible_pct: float = cfg.RTM_ELIGIBLE_PCT                   # % of tested
    rtm_total_per_episode: float = cfg.RTM_TOTAL_PER_EPISODE         # simple mode

    include_g0552: bool = cfg.INCLUDE_G0552
    g0552_eligible_pct: float = cfg.G0552_ELIGIBLE_PCT               # % of tested
    g0552_reimbursement: float = cfg.G0552_REIMBURSEMENT             # one-time
    g0552_cost: float = cfg.G0552_COST                               # one-time expense

    partner_share_pct: float = cfg.PARTNER_SHARE_PCT
    payer_mix_discount_pct: float = cfg.PAYER_MIX_DISCOUNT_PCT

    include_growth: bool = cfg.INCLUDE_GROWTH
    monthly_growth_pct: float = cfg.MONTHLY_GROWTH_PCT

    avg_months_monitored: float = cfg.AVG_MONTHS_MONITORED

    @property
    def payer_factor(self) -> float:
        return 1 - self.payer_mix_discount_pct / 100

    @property
    def partner_share(self) -> float:
        return self.partner_share_pct / 100


@dataclass
class AdvancedRtmBreakdown:
    """Per-code RTM prices; an alternate source for the episode value."""

    use_per_code_breakdown: bool = False
    cpt_98975: float = cfg.CPT_98975    # init, once per episode
    cpt_98976: float = cfg.CPT_98976    # per month
    cpt_98980: float = cfg.CPT_98980    # per visit
    cpt_98981: float = cfg.CPT_98981    # additional, per visit
    visits_98980_per_month: float = cfg.VISITS_98980_PER_MONTH
    visits_98981_per_month: float = cfg.VISITS_98981_PER_MONTH

    @property
    def per_month(self) -> float:
        return (
            self.cpt_98976
            + self.cpt_98980 * self.visits_98980_per_month
            + self.cpt_98981 * self.visits_98981_per_month
        )


@dataclass
class MonthRow:
    """One month of the partner-share series. Amounts are net of partner share."""

    month: str            # 'M1' .. 'M12'
    new_patients: float
    rtm: float
    reads: float
    g0552: float
    cost: float           # one-time cost, negated (expense sign)
    net: float


@dataclass
class Projection:
    """Annual aggregates and the monthly series."""

    patients_per_year: float
    tested_patients_per_year: float
    rtm_patients_per_year: float
    neuro_read_count: float
    g0552_patients_per_year: float
    rtm_per_episode: float

    gross_rtm: float
    gross_reads: float
    gross_g0552: float
    gross_total: float

    partner_net: float
    one_time_cost: float
    partner_net_after_cost: float
    monthly_net_avg: float

    months: list[MonthRow] = field(default_factory=list)


# ─── RTM Episode Value ───────────────────────────────────────────────

def rtm_episode_value(
    config: FunnelConfig,
    advanced: Optional[AdvancedRtmBreakdown] = None,
) -> float:
    """Episode value: flat total, or init + monthly codes x months monitored."""
    if advanced is None or not advanced.use_per_code_breakdown:
        return config.rtm_total_per_episode
    return advanced.cpt_98975 + advanced.per_month * config.avg_months_monitored


# ─── Core Projection ─────────────────────────────────────────────────

def _monthly_new_patients(config: FunnelConfig, n_months: int) -> np.ndarray:
    """New-patient adds per month; growth compounds from month 2 onwards."""
    adds = []
    monthly_adds = config.new_patients_per_month
    for _ in range(n_months):
        adds.append(monthly_adds)
        if config.include_growth:
            monthly_adds = monthly_adds * (1 + config.monthly_growth_pct / 100)
    return np.array(adds, dtype=float)


def project(
    config: FunnelConfig,
    advanced: Optional[AdvancedRtmBreakdown] = None,
) -> Projection:
    """Compute annual aggregates and the 12-month series for ``config``."""
    rtm_per_episode = rtm_episode_value(config, advanced)
    payer_factor = config.payer_factor
    share = config.partner_share

    testing = config.testing_rate_pct / 100
    rtm_rate = config.rtm_eligible_pct / 100
    read_rate = config.neuro_read_rate_pct / 100
    g0552_rate = config.g0552_eligible_pct / 100

    # ── Annual path ───────────────────────────────────────────────
    patients_per_year = config.new_patients_per_month * 12
    tested_per_year = patients_per_year * testing

    rtm_patients = tested_per_year * rtm_rate
    read_count = tested_per_year * read_rate * config.neuro_reads_per_patient
    g0552_patients = tested_per_year * g0552_rate

    gross_rtm = rtm_patients * rtm_per_episode * payer_factor
    gross_reads = read_count * config.neuro_read_reimbursement * payer_factor
    if config.include_g0552:
        gross_g0552 = g0552_patients * config.g0552_reimbursement * payer_factor
        one_time_cost = g0552_patients * config.g0552_cost
    else:
        gross_g0552 = 0.0
        one_time_cost = 0.0

    gross_total = gross_rtm + gross_reads + gross_g0552
    partner_net = gross_total * share
    partner_net_after_cost = partner_net - one_time_cost

    # ── Monthly path ──────────────────────────────────────────────
    # Vectorised over months: shape (PROJECTION_MONTHS,)
    new_patients = _monthly_new_patients(config, cfg.PROJECTION_MONTHS)
    tested = new_patients * testing

    m_rtm = tested * rtm_rate * rtm_per_episode * payer_factor * share
    m_reads = (tested * read_rate * config.neuro_reads_per_patient
               * config.neuro_read_reimbursement * payer_factor * share)
    if config.include_g0552:
        m_g0552_patients = tested * g0552_rate
        m_g0552 = m_g0552_patients * config.g0552_reimbursement * payer_factor * share
        m_cost = m_g0552_patients * config.g0552_cost
    else:
        m_g0552 = np.zeros_like(tested)
        m_cost = np.zeros_like(tested)
    m_net = m_rtm + m_reads + m_g0552 - m_cost

    months = [
        MonthRow(
            month=f"M{i + 1}",
            new_patients=float(new_patients[i]),
            rtm=float(m_rtm[i]),
            reads=float(m_reads[i]),
            g0552=float(m_g0552[i]),
            cost=float(-m_cost[i]),
            net=float(m_net[i]),
        )
        for i in range(cfg.PROJECTION_MONTHS)
    ]

    return Projection(
        patients_per_year=patients_per_year,
        tested_patients_per_year=tested_per_year,
        rtm_patients_per_year=rtm_patients,
        neuro_read_count=read_count,
        g0552_patients_per_year=g0552_patients,
        rtm_per_episode=rtm_per_episode,
        gross_rtm=gross_rtm,
        gross_reads=gross_reads,
        gross_g0552=gross_g0552,
        gross_total=gross_total,
        partner_net=partner_net,
        one_time_cost=one_time_cost,
        partner_net_after_cost=partner_net_after_cost,
        monthly_net_avg=partner_net_after_cost / 12,
        months=months,
    )


# ─── Form Parsing ────────────────────────────────────────────────────

_NUMERIC_FIELDS = [
    "new_patients_per_month",
    "testing_rate_pct",
    "neuro_read_rate_pct",
    "neuro_reads_per_patient",
    "neuro_read_reimbursement",
    "rtm_eligible_pct",
    "rtm_total_per_episode",
    "g0552_eligible_pct",
    "g0552_reimbursement",
    "g0552_cost",
    "partner_share_pct",
    "payer_mix_discount_pct",
    "monthly_growth_pct",
    "avg_months_monitored",
]

_ADVANCED_NUMERIC_FIELDS = [
    "cpt_98975",
    "cpt_98976",
    "cpt_98980",
    "cpt_98981",
    "visits_98980_per_month",
    "visits_98981_per_month",
]


def parse_form(form: dict) -> tuple[FunnelConfig, AdvancedRtmBreakdown]:
    """Build the config records from submitted form fields.

    Missing numeric fields keep their defaults; present-but-empty or
    non-numeric fields coerce to zero. Toggles follow checkbox semantics.
    """
    config = FunnelConfig(
        include_g0552=coerce_flag(form.get("include_g0552")),
        include_growth=coerce_flag(form.get("include_growth")),
    )
    for name in _NUMERIC_FIELDS:
        if name in form:
            setattr(config, name, coerce_number(form[name]))

    advanced = AdvancedRtmBreakdown(
        use_per_code_breakdown=form.get("rtm_mode") == "advanced",
    )
    for name in _ADVANCED_NUMERIC_FIELDS:
        if name in form:
            setattr(advanced, name, coerce_number(form[name]))

    return config, advanced
