from __future__ import annotations
import datetime as dt
import math
import re
from typing import Any, Optional

from django.utils.dateparse import parse_date, parse_datetime

# -------------------- lenient coercion -------------------
# Custom fields on the board are untyped user input: every helper here is total
# and returns None instead of raising.

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

def to_int(val: Any) -> Optional[int]:
    """5.9 -> 6, "5" -> 5, "8 pts" -> 8, "abc" -> None."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        if isinstance(val, float) and not math.isfinite(val):
            return None
        return int(math.floor(val + 0.5))
    if isinstance(val, str):
        m = _LEADING_INT_RE.match(val)
        return int(m.group(1)) if m else None
    return None

def to_date(val: Any) -> Optional[dt.date]:
    """Calendar date from a date, datetime, 'YYYY-MM-DD' or ISO-8601 string; else None."""
    if not val:
        return None
    if isinstance(val, dt.datetime):
        return val.date()
    if isinstance(val, dt.date):
        return val
    if not isinstance(val, str):
        return None
    s = val.strip()
    try:
        d = parse_date(s)
        if d is not None:
            return d
        ts = parse_datetime(s.replace("Z", "+00:00"))
    except ValueError:
        # well-formed but impossible, e.g. 2024-02-30
        return None
    return ts.date() if ts else None

def to_text(val: Any) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None
