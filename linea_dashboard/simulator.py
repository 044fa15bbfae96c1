"""
Simulated sheet export for demos and smoke runs.

Generates a CSV in the same shape as the real daily sheet: metric names in
column A, one column per day with D/M labels. All values are synthetic.
"""

from datetime import date, timedelta

import numpy as np
import pandas as pd

from .loaders.csv_matrix import serialize_matrix

# ---------------------------------------------------------------------------
# Typical daily parameters
# ---------------------------------------------------------------------------
_LINE_PARAMS = {
    "Linea TM": {"mean": 42, "std": 4},
    "Linea TT": {"mean": 38, "std": 5},
}
_HEADCOUNT = 120
_EMPLOYEE_IDS = np.arange(1001, 1001 + _HEADCOUNT)

_NOTES = [
    "",
    "Sin novedades",
    "Corte de luz, 20 min",
    'Reunión de seguridad, "5S"',
    "Mantenimiento preventivo, línea 2",
]


def generate_sheet_matrix(
    start: date | None = None,
    days: int = 14,
    seed: int = 42,
    blank_tail: int = 2,
) -> pd.DataFrame:
    """Build a synthetic Matrix.

    Parameters
    ----------
    start : First day column. Defaults to `days` days before today.
    days : Number of day columns.
    seed : RNG seed, for reproducible demos.
    blank_tail : Trailing day columns left empty (days not yet loaded).
    """
    rng = np.random.default_rng(seed)
    if start is None:
        start = date.today() - timedelta(days=days - blank_tail - 1)
    dates = [start + timedelta(days=i) for i in range(days)]

    header = ["Métrica"] + [f"{d.day:02d}/{d.month:02d}" for d in dates]
    rows = {name: [name] for name in (
        "Linea TM", "Linea TT", "Presentismo", "Horas extra",
        "Legajo inasistencias", "Observaciones",
    )}

    for i in range(days):
        filled = i < days - blank_tail
        for name, params in _LINE_PARAMS.items():
            value = max(0, int(round(rng.normal(params["mean"], params["std"]))))
            rows[name].append(str(value) if filled else "")

        n_absent = int(rng.poisson(3)) if filled else 0
        absent = rng.choice(_EMPLOYEE_IDS, size=n_absent, replace=False)
        presence = 100 * (_HEADCOUNT - n_absent) / _HEADCOUNT

        rows["Presentismo"].append(f"{presence:.1f}%" if filled else "")
        rows["Horas extra"].append(str(int(rng.integers(0, 12))) if filled else "")
        rows["Legajo inasistencias"].append(", ".join(str(x) for x in absent))
        rows["Observaciones"].append(_NOTES[int(rng.integers(0, len(_NOTES)))] if filled else "")

    return pd.DataFrame([header] + list(rows.values()), dtype=str)


def generate_sheet_csv(
    start: date | None = None,
    days: int = 14,
    seed: int = 42,
    blank_tail: int = 2,
) -> str:
    """Synthetic sheet export as CSV text (quoted where needed)."""
    return serialize_matrix(generate_sheet_matrix(start, days, seed, blank_tail))
