# -*- coding: utf-8 -*-
"""Common utilities for the staffing engine."""
import math
import re

import pandas as pd

# 导入表格里常见的 "空值" 写法
EMPTY_MARKERS = {"", "-", "—", "null", "undefined", "无", "空", "n/a", "na", "none", "nan"}

_CLOCK_RE = re.compile(r"^\s*(\d{1,3})\s*[:：]\s*(\d{1,2})")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def is_blank(value):
    """Return True for missing cells and placeholder strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in EMPTY_MARKERS
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_text(value):
    """Trimmed string, or None when the cell is blank."""
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def to_number(value):
    """Best-effort numeric coercion. Returns None when nothing numeric is found."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_RE.search(str(value))
    if match is None:
        return None
    return float(match.group())


def parse_clock(value):
    """'4:28' -> (4, 28). None if the value is not a clock string."""
    if not isinstance(value, str):
        return None
    match = _CLOCK_RE.match(value)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def round_half_up(value):
    """Round like a spreadsheet does (0.5 -> 1), not banker's rounding."""
    return int(math.floor(value + 0.5))


def ceil_exact(value, tolerance=1e-9):
    """math.ceil that ignores float noise such as 5.000000000001."""
    return int(math.ceil(value - tolerance))
