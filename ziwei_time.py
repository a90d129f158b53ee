"""
True solar time and double-hour (时辰) helpers.

Both functions are pure: a chart is cast on the solar hour of the birth
place, and Zi Wei Dou Shu counts that hour in twelve double-hours.
"""

import math
import sys
from datetime import datetime

from ziwei_models import CorrectedTime

MINUTES_PER_DAY = 1440
J2000 = 2451545.0


# ── Julian day ──

def parse_date(date_str: str):
    """Parse 'YYYY-MM-DD' (zero padding optional) into a date."""
    return datetime.strptime(date_str.strip(), "%Y-%m-%d").date()


def julian_day_number(year: int, month: int, day: int) -> int:
    """Julian Day Number of a proleptic Gregorian date (noon epoch)."""
    a = (14 - month) // 12
    y = year + 4800 - a
    m = month + 12 * a - 3
    return (
        day
        + (153 * m + 2) // 5
        + 365 * y
        + y // 4
        - y // 100
        + y // 400
        - 32045
    )


# ── Equation of time ──

def equation_of_time(jd: float) -> float:
    """Apparent minus mean solar time, in minutes, for a Julian day.

    Low-order solar position: mean longitude L, mean anomaly g and
    orbital eccentricity e as J2000 polynomials in Julian centuries.
    The true longitude adds the equation of centre in e (sin g, sin 2g
    and sin 3g terms); the equation of time is the mean longitude less
    the apparent right ascension, reduced to plus or minus 180 degrees.
    """
    t = (jd - J2000) / 36525

    L = (280.46646 + t * (36000.76983 + t * 0.0003032)) % 360
    g = (357.52911 + t * (35999.05029 - t * 0.0001537)) % 360
    e = 0.016708634 - t * (0.000042037 + t * 0.0000001267)

    # equation of centre, first three anomaly harmonics
    g_rad = math.radians(g)
    centre = math.degrees(
        (2 * e - e ** 3 / 4) * math.sin(g_rad)
        + 1.25 * e * e * math.sin(2 * g_rad)
        + 13 / 12 * e ** 3 * math.sin(3 * g_rad)
    )

    # nutation and aberration, degrees
    omega = math.radians(125.04 - 1934.136 * t)
    nutation = -0.00478 * math.sin(omega)
    apparent_longitude = math.radians(L + centre - 0.00569 + nutation)

    # mean obliquity of the ecliptic, degrees
    seconds = 21.448 - t * (46.815 + t * (0.00059 - t * 0.001813))
    obliquity = math.radians(23 + (26 + seconds / 60) / 60 + 0.00256 * math.cos(omega))

    right_ascension = math.degrees(
        math.atan2(
            math.cos(obliquity) * math.sin(apparent_longitude),
            math.cos(apparent_longitude),
        )
    )

    eot = L - 0.0057183 - right_ascension + nutation * math.cos(obliquity)
    eot = (eot + 180) % 360 - 180
    return 4 * eot


# ── True solar time ──

def convert_to_true_solar_time(
    hour: int,
    minute: int,
    longitude: float,
    date_str: str,
) -> CorrectedTime:
    """Convert a clock time at a longitude into true solar time for that date.

    Never raises. If anything in the computation fails (bad date, NaN
    longitude, ...) the original hour and minute are returned unchanged
    and a warning goes to stderr.

    Args:
        hour: Clock hour (0-23)
        minute: Clock minute (0-59)
        longitude: Geographic longitude in degrees (-180 to 180), east positive
        date_str: Calendar date, YYYY-MM-DD
    """
    try:
        date = parse_date(date_str)
        jd = julian_day_number(date.year, date.month, date.day)

        eot = equation_of_time(jd)
        longitude_correction = longitude * 4  # 4 minutes of time per degree

        minutes = (hour * 60 + minute + eot - longitude_correction) % MINUTES_PER_DAY
        if minutes >= MINUTES_PER_DAY:
            # float modulo can round up to the divisor
            minutes = 0.0

        return CorrectedTime(
            hour=int(math.floor(minutes / 60)),
            minute=int(math.floor(minutes % 60)),
        )
    except Exception as e:
        print(
            f"[ziwei] True solar time conversion failed, using clock time: {e}",
            file=sys.stderr,
        )
        return CorrectedTime(hour=hour, minute=minute)


# ── Double hours ──

def hour_to_time_index(hour) -> int:
    """Map a 24h clock hour to its double-hour index (0-11).

    子 (0) straddles midnight: 23:00-01:00. After that each index covers
    two hours starting at an odd hour: 1-3 → 1 (丑), 3-5 → 2 (寅), ...
    21-23 → 11 (亥). Out-of-range and fractional hours are coerced.
    """
    try:
        value = float(hour)
    except (TypeError, ValueError, OverflowError):
        value = 0.0
    if not math.isfinite(value):
        value = 0.0

    hour = max(0, min(23, int(math.floor(value))))
    if hour == 23 or hour == 0:
        return 0
    return (hour + 1) // 2
