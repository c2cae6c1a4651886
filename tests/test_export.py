"""Tests for the CSV export."""

import math
import re
from dataclasses import replace

import config as cfg
from export import build_csv, projection_csv, projection_rows, write_csv
from projection import parse_form, project

TWO_DP = re.compile(r"^-?\d+\.\d{2}$")


def test_header_plus_twelve_months(example_config):
    lines = projection_csv(project(example_config)).split("\n")

    assert len(lines) == 13
    assert lines[0] == "Month,RTM (Net),Reads (Net),G0552 (Net),G0552 Cost (-),Total (Net)"
    assert [l.split(",")[0] for l in lines[1:]] == [f"M{i}" for i in range(1, 13)]


def test_numeric_cells_have_two_decimals(example_config):
    config = replace(example_config, include_growth=True, monthly_growth_pct=7.3)
    for line in projection_csv(project(config)).split("\n")[1:]:
        cells = line.split(",")
        assert len(cells) == 6
        for cell in cells[1:]:
            assert TWO_DP.match(cell), cell
            float(cell)


def test_first_month_values(example_config):
    row = projection_rows(project(example_config))[1]
    assert row == ["M1", "8527.55", "5940.00", "36750.00", "-10000.00", "41217.55"]


def test_disabled_g0552_cost_is_plain_zero(example_config):
    rows = projection_rows(project(replace(example_config, include_g0552=False)))
    assert all(r[3] == "0.00" and r[4] == "0.00" for r in rows[1:])


def test_build_csv_joins_without_quoting():
    assert build_csv([["a", "b"], ["1.00", "2.00"]]) == "a,b\n1.00,2.00"


def test_write_csv(tmp_path, example_config):
    path = write_csv(project(example_config), str(tmp_path / cfg.CSV_FILENAME))
    with open(path, encoding="utf-8") as f:
        assert f.read().count("\n") == 12


def test_huge_input_still_writes_finite_cells(example_form):
    example_form["rtm_total_per_episode"] = "1e308"
    example_form["new_patients_per_month"] = "1e12"

    for line in projection_csv(project(*parse_form(example_form))).split("\n")[1:]:
        for cell in line.split(",")[1:]:
            assert TWO_DP.match(cell), cell
            assert math.isfinite(float(cell))
