"""Tests for formatting, shared display data and the terminal workflow."""

import pytest

import cli
import config as cfg
from projection import AdvancedRtmBreakdown, project
from storage import JsonFileStore


@pytest.mark.parametrize("val, decimals, expected", [
    (1_229_221.2, 0, "$1,229,221"),
    (1705.51, 2, "$1,705.51"),
    (-10_000, 0, "-$10,000"),
    (0, 0, "$0"),
])
def test_fmt(val, decimals, expected):
    assert cli.fmt(val, decimals) == expected


def test_pct():
    assert cli.pct(50) == "50%"
    assert cli.pct(5.5, 1) == "5.5%"


def test_display_data(example_config):
    advanced = AdvancedRtmBreakdown()
    d = cli.compute_display_data(example_config, advanced, project(example_config))

    assert d["gross_total"] == pytest.approx(1_229_221.2)
    assert d["partner_net_after_cost"] == pytest.approx(494_610.6)
    assert d["patients_per_year"] == 120
    assert d["tested_per_year"] == 120
    assert [label for label, _ in d["gross_rows"]] == [
        "RTM Gross",
        "Neuro Reads Gross",
        "G0552 Gross",
        "G0552 Deposit/Cost (Expense)",
        "Total Gross",
    ]
    assert d["rtm_mode"] == "simple"
    assert d["growth"] is None
    assert len(d["months"]) == 12


def test_display_data_hides_g0552_rows(example_config):
    example_config.include_g0552 = False
    d = cli.compute_display_data(example_config, AdvancedRtmBreakdown(),
                                 project(example_config))
    labels = [label for label, _ in d["gross_rows"]]
    assert "G0552 Gross" not in labels
    assert labels[-1] == "Total Gross"


def test_display_data_tolerates_non_finite_counts(example_config):
    example_config.new_patients_per_month = 1e308
    d = cli.compute_display_data(example_config, AdvancedRtmBreakdown(),
                                 project(example_config))

    assert d["patients_per_year"] == float("inf")
    assert cli.fmt(d["gross_total"]) == "$inf"


def _answers(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(it, ""))


def test_run_cli_with_defaults(tmp_path, monkeypatch, capsys, notifier):
    store = str(tmp_path / "store.json")
    JsonFileStore(store).set(cfg.STORAGE_KEY, "jane@clinic.com")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "EmailJSNotifier", lambda: notifier)
    _answers(monkeypatch, [])

    cli.run_cli(store_path=store)

    out = capsys.readouterr().out
    assert "Unlocked for jane@clinic.com" in out
    assert "FINANCIAL SUMMARY" in out
    assert "12-MONTH PARTNER SHARE PROJECTION" in out
    assert (tmp_path / cfg.CSV_FILENAME).exists()
    assert (tmp_path / cfg.CHART_PATH).exists()
    assert notifier.sent == []


def test_run_cli_gates_first(tmp_path, monkeypatch, capsys, notifier):
    store = str(tmp_path / "store.json")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "EmailJSNotifier", lambda: notifier)
    _answers(monkeypatch, ["not-an-email", "jane@clinic.com"])

    cli.run_cli(store_path=store)

    out = capsys.readouterr().out
    assert cfg.INVALID_EMAIL_MESSAGE in out
    assert JsonFileStore(store).get(cfg.STORAGE_KEY) == "jane@clinic.com"
    assert notifier.sent == ["jane@clinic.com"]
