"""
Conversion of fetched DataFrames into plain record dicts
"""

import math
from typing import Any, Dict, List

import numpy as np
import pandas as pd

Record = Dict[str, Any]


def _to_python(value: Any) -> Any:
    """Normalize one cell to a plain Python value."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, pd.Timedelta):
        return None if pd.isna(value) else value.to_pytimedelta()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value is pd.NaT or value is pd.NA:
        return None
    return value


def frame_to_records(df: pd.DataFrame) -> List[Record]:
    """
    Convert a DataFrame to a list of records in row order.

    - NaN/NaT/NA/Inf become None
    - numpy scalars become Python scalars
    - pandas Timestamp/Timedelta become datetime/timedelta
    """
    columns = [str(c) for c in df.columns]
    return [
        {col: _to_python(cell) for col, cell in zip(columns, row)}
        for row in df.itertuples(index=False, name=None)
    ]
