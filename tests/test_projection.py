"""Tests for the revenue projection engine."""

import math
from dataclasses import replace

import pytest

import config as cfg
from projection import (
    _ADVANCED_NUMERIC_FIELDS,
    _NUMERIC_FIELDS,
    AdvancedRtmBreakdown,
    FunnelConfig,
    coerce_flag,
    coerce_number,
    parse_form,
    project,
    rtm_episode_value,
)


def test_example_annual_figures(example_config):
    p = project(example_config)

    assert p.patients_per_year == 120
    assert p.tested_patients_per_year == 120
    assert p.gross_rtm == pytest.approx(120 * 1705.51)
    assert p.gross_reads == pytest.approx(72 * 1980)
    assert p.gross_g0552 == pytest.approx(120 * 7350)
    assert p.gross_total == pytest.approx(1_229_221.2)
    assert p.one_time_cost == pytest.approx(120_000)
    assert p.partner_net_after_cost == pytest.approx(494_610.6)
    assert p.monthly_net_avg == pytest.approx(494_610.6 / 12)


@pytest.mark.parametrize("include_g0552", [True, False])
@pytest.mark.parametrize("discount", [0, 10, 35])
def test_gross_total_is_sum_of_categories(example_config, include_g0552, discount):
    config = replace(example_config, include_g0552=include_g0552,
                     payer_mix_discount_pct=discount)
    p = project(config)

    assert p.gross_total == pytest.approx(p.gross_rtm + p.gross_reads + p.gross_g0552)
    assert p.partner_net_after_cost == pytest.approx(
        p.gross_total * config.partner_share_pct / 100 - p.one_time_cost
    )
    if not include_g0552:
        assert p.gross_g0552 == 0
        assert p.one_time_cost == 0


def test_disabling_g0552_leaves_other_services_alone(example_config):
    on = project(example_config)
    off = project(replace(example_config, include_g0552=False))

    assert off.gross_rtm == on.gross_rtm
    assert off.gross_reads == on.gross_reads
    assert off.gross_total == pytest.approx(on.gross_rtm + on.gross_reads)
    assert all(m.g0552 == 0 and m.cost == 0 for m in off.months)


def test_payer_haircut_scales_gross_uniformly(example_config):
    base = project(example_config)
    cut = project(replace(example_config, payer_mix_discount_pct=20))

    assert cut.gross_total == pytest.approx(base.gross_total * 0.8)
    # cost is not a reimbursement, so the haircut does not touch it
    assert cut.one_time_cost == base.one_time_cost


@pytest.mark.parametrize("field", ["testing_rate_pct", "new_patients_per_month"])
def test_zero_funnel_collapses_everything(example_config, field):
    p = project(replace(example_config, **{field: 0}))

    assert p.gross_total == 0
    assert p.partner_net_after_cost == 0
    assert all(m.net == 0 for m in p.months)


def test_zero_attach_rate_zeroes_only_that_service(example_config):
    p = project(replace(example_config, neuro_read_rate_pct=0))

    assert p.gross_reads == 0
    assert p.neuro_read_count == 0
    assert p.gross_rtm > 0


def test_reads_per_patient_multiplies_read_count(example_config):
    p = project(replace(example_config, neuro_reads_per_patient=2))
    assert p.neuro_read_count == pytest.approx(144)
    assert p.gross_reads == pytest.approx(144 * 1980)


def test_monthly_series_without_growth(example_config):
    p = project(example_config)

    assert len(p.months) == cfg.PROJECTION_MONTHS
    assert [m.month for m in p.months] == [f"M{i}" for i in range(1, 13)]
    assert all(m.new_patients == 10 for m in p.months)
    # flat series sums back to the annual net
    assert sum(m.net for m in p.months) == pytest.approx(p.partner_net_after_cost)


def test_monthly_row_is_net_of_partner_share(example_config):
    m1 = project(example_config).months[0]

    assert m1.rtm == pytest.approx(10 * 1705.51 * 0.5)
    assert m1.reads == pytest.approx(6 * 1980 * 0.5)
    assert m1.g0552 == pytest.approx(10 * 7350 * 0.5)
    assert m1.cost == pytest.approx(-10 * 1000)
    assert m1.net == pytest.approx(m1.rtm + m1.reads + m1.g0552 + m1.cost)


def test_growth_compounds_from_month_two(example_config):
    p = project(replace(example_config, include_growth=True, monthly_growth_pct=5))
    months = p.months

    assert months[0].new_patients == 10
    for prev, cur in zip(months, months[1:]):
        assert cur.new_patients == pytest.approx(prev.new_patients * 1.05)
    assert months[-1].new_patients == pytest.approx(10 * 1.05 ** 11)


def test_growth_does_not_change_annual_path(example_config):
    flat = project(example_config)
    grown = project(replace(example_config, include_growth=True))
    assert grown.gross_total == flat.gross_total


def test_advanced_breakdown_matches_equivalent_simple_total(example_config):
    advanced = AdvancedRtmBreakdown(
        use_per_code_breakdown=True,
        cpt_98975=75, cpt_98976=55, cpt_98980=55, cpt_98981=45,
        visits_98980_per_month=2, visits_98981_per_month=1,
    )
    episode = 75 + (55 + 55 * 2 + 45 * 1) * example_config.avg_months_monitored
    simple = replace(example_config, rtm_total_per_episode=episode)

    assert rtm_episode_value(example_config, advanced) == pytest.approx(episode)
    assert project(example_config, advanced).gross_rtm == pytest.approx(project(simple).gross_rtm)


def test_disabled_breakdown_uses_flat_total(example_config):
    advanced = AdvancedRtmBreakdown(use_per_code_breakdown=False, cpt_98975=9999)
    assert rtm_episode_value(example_config, advanced) == 1705.51


@pytest.mark.parametrize("raw, expected", [
    ("12.5", 12.5),
    (" 7 ", 7.0),
    ("$1,980", 1980.0),
    ("", 0.0),
    (None, 0.0),
    ("abc", 0.0),
    ("nan", 0.0),
    ("inf", 0.0),
    ("1e308", 0.0),
    (-2e12, 0.0),
    (1e12, 1e12),
    (3, 3.0),
])
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == expected


def test_coerce_flag():
    assert coerce_flag("on")
    assert coerce_flag(True)
    assert not coerce_flag(None)
    assert not coerce_flag("off")


def test_parse_form(example_form):
    config, advanced = parse_form(example_form)

    assert config.new_patients_per_month == 10
    assert config.rtm_total_per_episode == 1705.51
    assert config.include_g0552
    assert not config.include_growth   # unchecked box is absent
    assert not advanced.use_per_code_breakdown


def test_parse_form_coerces_blank_fields_to_zero(example_form):
    example_form["testing_rate_pct"] = ""
    example_form["neuro_read_reimbursement"] = "twelve"

    config, _ = parse_form(example_form)
    assert config.testing_rate_pct == 0
    assert config.neuro_read_reimbursement == 0
    assert project(config).gross_total == 0


def test_parse_form_missing_fields_keep_defaults():
    config, advanced = parse_form({"rtm_mode": "advanced", "cpt_98975": "100"})

    assert config.new_patients_per_month == cfg.NEW_PATIENTS_PER_MONTH
    assert advanced.use_per_code_breakdown
    assert advanced.cpt_98975 == 100
    assert advanced.cpt_98976 == cfg.CPT_98976


def test_defaults_match_shipped_constants():
    c = FunnelConfig()
    assert c.payer_factor == pytest.approx(0.9)
    assert c.partner_share == pytest.approx(0.5)
    assert c.include_growth and c.include_g0552


def test_largest_accepted_inputs_stay_finite():
    form = {name: "1e12" for name in _NUMERIC_FIELDS + _ADVANCED_NUMERIC_FIELDS}
    form.update(rtm_mode="advanced", include_g0552="on", include_growth="on")

    p = project(*parse_form(form))

    assert math.isfinite(p.gross_total)
    assert math.isfinite(p.partner_net_after_cost)
    assert all(math.isfinite(m.net) for m in p.months)
