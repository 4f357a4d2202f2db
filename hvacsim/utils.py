import datetime
import json
import re

import numpy as np
import pandas as pd

from .constants import KWH_PER_BTU, BTU_PER_KWH, FEET_PER_METER, CUBIC_METER_PER_CCF


def interpolate(x1, y1, x2, y2, x):
    """Straight line through (x1, y1) and (x2, y2), evaluated at x."""
    return y1 + ((x - x1) * (y2 - y1)) / (x2 - x1)


def clamp(a, min_value, max_value):
    return min(max_value, max(a, min_value))


def interpolate_clamped(x1, y1, x2, y2, x):
    """Like interpolate, but never leaves the range spanned by y1 and y2."""
    lo = min(y1, y2)
    hi = max(y1, y2)
    return clamp(interpolate(x1, y1, x2, y2, x), lo, hi)


class BreakpointTable:
    """
    Sorted (breakpoint, value) pairs with linear interpolation in between.

    Queries outside the table hold the boundary value. `contains` lets
    callers detect (and log) those boundary holds.
    """

    def __init__(self, pairs):
        pairs = sorted(pairs)
        if len(pairs) < 2:
            raise ValueError(f"A breakpoint table needs at least 2 rows, got {len(pairs)}")
        self.x = np.array([p[0] for p in pairs], dtype=float)
        self.y = np.array([p[1] for p in pairs], dtype=float)
        if np.any(np.diff(self.x) <= 0):
            raise ValueError("Breakpoints must be strictly increasing")

    def contains(self, x):
        return self.x[0] <= x <= self.x[-1]

    def __call__(self, x):
        return float(np.interp(x, self.x, self.y))


# --- Unit Conversions ---

def btus_to_kwh(btu):
    return btu * KWH_PER_BTU


def kw_to_btus_per_hour(kw):
    return kw * BTU_PER_KWH


def fahrenheit_to_celsius(temp_f):
    return (temp_f - 32.0) * 5.0 / 9.0


def celsius_to_fahrenheit(temp_c):
    return temp_c * 9.0 / 5.0 + 32.0


def meters_to_feet(meters):
    return meters * FEET_PER_METER


def feet_to_meters(feet):
    return feet / FEET_PER_METER


def cubic_meters_to_ccf(cubic_meters):
    return cubic_meters / CUBIC_METER_PER_CCF


# --- Time ---

def to_timestamp(value):
    """
    Coerces a datetime-like value into a timezone-aware pandas Timestamp.
    Naive values are rejected: every instant in the simulation must be
    unambiguous.
    """
    ts = pd.Timestamp(value)
    if ts.tz is None:
        raise ValueError(f"Expected a timezone-aware datetime, got naive value {value!r}")
    return ts


def timezone_name(ts):
    return str(ts.tz)


def local_time(year, month, day, hour=0, minute=0, tz="UTC"):
    """Builds a local wall-clock instant in the given IANA timezone."""
    return pd.Timestamp(datetime.datetime(year, month, day, hour, minute)).tz_localize(tz)


def start_of_month(ts):
    naive = ts.tz_localize(None)
    return pd.Timestamp(naive.year, naive.month, 1).tz_localize(ts.tz, nonexistent="shift_forward")


def add_months(ts, months):
    """Adds calendar months to a month-start instant, keeping its timezone."""
    naive = ts.tz_localize(None) + pd.DateOffset(months=months)
    return naive.tz_localize(ts.tz, nonexistent="shift_forward")


def load_json_with_comments(path):
    """Reads JSON, supporting C-style // comments for user annotations."""
    with open(path, 'r') as f:
        content = f.read()
    content = re.sub(r'(?m)^\s*//.*$|\s+//.*$', '', content)
    return json.loads(content)
