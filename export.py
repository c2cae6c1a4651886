"""
CSV export of the 12-month partner-share projection.

Cells are plain numbers or short month labels, so fields are joined
without quoting.
"""

from __future__ import annotations

from typing import List

import config as cfg
from projection import Projection


def _fixed2(value: float) -> str:
    # + 0.0 turns -0.0 into 0.0
    return f"{value + 0.0:.2f}"


def projection_rows(projection: Projection) -> List[List[str]]:
    """Header row followed by one row per month."""
    rows = [list(cfg.CSV_HEADER)]
    for m in projection.months:
        rows.append([
            m.month,
            _fixed2(m.rtm),
            _fixed2(m.reads),
            _fixed2(m.g0552),
            _fixed2(m.cost),
            _fixed2(m.net),
        ])
    return rows


def build_csv(rows: List[List[str]]) -> str:
    return "\n".join(",".join(str(v) for v in r) for r in rows)


def projection_csv(projection: Projection) -> str:
    return build_csv(projection_rows(projection))


def write_csv(projection: Projection, path: str = cfg.CSV_FILENAME) -> str:
    """Write the export to ``path``. Returns the path."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(projection_csv(projection))
    return path
