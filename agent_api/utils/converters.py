"""Type conversion utilities for spreadsheet cells.

Price lists are maintained by hand, so numeric columns arrive as floats,
ints, blank cells (NaN once pandas has read them) or formatted strings such
as "$1,234.50". Everything that reads a cell goes through here.
"""

import math
import re
from typing import Any

_NUMBER_CLEANUP = re.compile(r"[^\d.\-]")


def is_blank(val: Any) -> bool:
    """True for None, empty/whitespace strings and NaN cells."""
    if val is None:
        return True
    if isinstance(val, float) and math.isnan(val):
        return True
    return isinstance(val, str) and not val.strip()


def safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert a cell value to float.

    Examples:
        >>> safe_float("3.14")
        3.14
        >>> safe_float("$1,234.50")
        1234.5
        >>> safe_float(None)
        0.0
        >>> safe_float("n/a", default=-1.0)
        -1.0
    """
    if is_blank(val):
        return default
    if isinstance(val, (int, float)):
        return float(val)
    cleaned = _NUMBER_CLEANUP.sub("", str(val))
    try:
        return float(cleaned)
    except ValueError:
        return default


def safe_int(val: Any, default: int = 0) -> int:
    """Safely convert a cell value to int.

    Examples:
        >>> safe_int("42")
        42
        >>> safe_int(3.7)
        3
        >>> safe_int("1,200")
        1200
    """
    if is_blank(val):
        return default
    return int(safe_float(val, default))


def cell_text(val: Any) -> str:
    """Render a cell as trimmed text; whole floats lose their ".0"."""
    if is_blank(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()
