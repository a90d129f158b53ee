"""
Tool registry for the Ziwei MCP server.

Describes the three callable tools (name, description, JSON input schema)
and turns raw `tools/call` arguments into a validated BirthSpec.
"""

import os
from datetime import datetime
from typing import Optional

from mcp import types

from ziwei_models import CALENDAR_KINDS, GENDERS, LANGUAGES, BirthSpec

# ── Config ──
DEFAULT_LANGUAGE = os.environ.get("ZIWEI_DEFAULT_LANGUAGE", "zh-CN")
# Beijing
DEFAULT_LONGITUDE = float(os.environ.get("ZIWEI_DEFAULT_LONGITUDE", "116.4074"))
DEFAULT_LATITUDE = float(os.environ.get("ZIWEI_DEFAULT_LATITUDE", "39.9042"))

GENDER_ALIASES = {"男": "male", "女": "female"}

WEEKDAYS_EN = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WEEKDAYS_CN = ("星期一", "星期二", "星期三", "星期四", "星期五", "星期六", "星期日")


class ToolError(Exception):
    """A tool call that was routable but could not be carried out."""


# ── Schemas ──

def _birth_properties() -> dict:
    return {
        "date": {
            "type": "string",
            "description": "Birth date, format: YYYY-MM-DD",
            "examples": ["2000-08-16", "1990-12-25", "1985-06-15"],
        },
        "hour": {
            "type": "integer",
            "description": "Birth hour on the clock (0-23)",
            "minimum": 0,
            "maximum": 23,
            "default": 0,
        },
        "gender": {
            "type": "string",
            "description": "Gender",
            "enum": list(GENDERS),
            "default": "male",
        },
        "calendarKind": {
            "type": "string",
            "description": "Calendar the date is given in",
            "enum": list(CALENDAR_KINDS),
            "default": "solar",
        },
        "isLeapMonth": {
            "type": "boolean",
            "description": "Whether the lunar month is a leap month (lunar dates only)",
            "default": False,
        },
        "language": {
            "type": "string",
            "description": "Output language",
            "enum": list(LANGUAGES),
            "default": DEFAULT_LANGUAGE,
        },
        "longitude": {
            "type": "number",
            "description": "Birth place longitude (-180 to 180), used for true solar time",
            "minimum": -180,
            "maximum": 180,
            "default": DEFAULT_LONGITUDE,
            "examples": [116.4074, -74.0060, 139.6917],
        },
        "latitude": {
            "type": "number",
            "description": "Birth place latitude (-90 to 90), used for true solar time",
            "minimum": -90,
            "maximum": 90,
            "default": DEFAULT_LATITUDE,
            "examples": [39.9042, 40.7128, 35.6762],
        },
    }


def _horoscope_properties() -> dict:
    properties = _birth_properties()
    properties["targetDate"] = {
        "type": "string",
        "description": "Date to project the chart onto, format: YYYY-MM-DD. Defaults to today",
        "examples": ["2024-12-31", "2025-06-15"],
    }
    return properties


TOOLS = (
    types.Tool(
        name="get_current_time",
        description="Get the current system time with a detailed breakdown of its fields",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="calculate_ziwei",
        description=(
            "Cast a Zi Wei Dou Shu chart for a birth date and hour. Returns the full "
            "chart (twelve palaces, stars, brightness). Longitude and latitude convert "
            "the clock hour to true solar time before casting"
        ),
        inputSchema={
            "type": "object",
            "properties": _birth_properties(),
            "required": ["date"],
        },
    ),
    types.Tool(
        name="get_horoscope",
        description=(
            "Get the horoscope (decadal, yearly, monthly ... periods) of a birth chart "
            "at a target date. Longitude and latitude convert the clock hour to true "
            "solar time before casting"
        ),
        inputSchema={
            "type": "object",
            "properties": _horoscope_properties(),
            "required": ["date"],
        },
    ),
)


def list_tools() -> list[types.Tool]:
    return list(TOOLS)


def get_tool(name) -> Optional[types.Tool]:
    for tool in TOOLS:
        if tool.name == name:
            return tool
    return None


# ── Argument validation ──

def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _choice(arguments: dict, key: str, choices, default, aliases=None) -> str:
    value = arguments.get(key)
    if value is None:
        return default
    if aliases and isinstance(value, str) and value in aliases:
        value = aliases[value]
    if value not in choices:
        raise ToolError(f"Error: '{key}' must be one of {', '.join(choices)}, got {value!r}")
    return value


def _coordinate(arguments: dict, key: str, limit: float, default: float) -> Optional[float]:
    # explicit null switches true solar time off
    if key not in arguments:
        return default
    value = arguments[key]
    if value is None:
        return None
    if not _is_number(value) or not -limit <= value <= limit:
        raise ToolError(f"Error: '{key}' must be a number between {-limit:g} and {limit:g}")
    return float(value)


def birth_spec_from_arguments(arguments) -> BirthSpec:
    """Validate `tools/call` arguments and apply the declared defaults.

    `birthday` and `type` are accepted as older spellings of `date` and
    `calendarKind`; 男/女 are accepted for gender.

    Raises:
        ToolError: A required field is missing or a value is outside its schema.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ToolError("Error: arguments must be an object")

    date = arguments.get("date") or arguments.get("birthday")
    if isinstance(date, str):
        date = date.strip()
    if not date:
        raise ToolError("Error: the 'date' argument is required (YYYY-MM-DD)")
    if not isinstance(date, str):
        raise ToolError("Error: 'date' must be a string in YYYY-MM-DD format")

    hour = arguments.get("hour")
    if hour is None:
        hour = 0
    if not _is_number(hour) or not 0 <= hour <= 23 or hour != int(hour):
        raise ToolError(f"Error: 'hour' must be an integer between 0 and 23, got {hour!r}")

    if "calendarKind" in arguments:
        calendar_kind = _choice(arguments, "calendarKind", CALENDAR_KINDS, "solar")
    else:
        calendar_kind = _choice(arguments, "type", CALENDAR_KINDS, "solar")

    is_leap_month = arguments.get("isLeapMonth")
    if is_leap_month is None:
        is_leap_month = False
    if not isinstance(is_leap_month, bool):
        raise ToolError("Error: 'isLeapMonth' must be a boolean")

    return BirthSpec(
        date=date,
        hour=int(hour),
        gender=_choice(arguments, "gender", GENDERS, "male", aliases=GENDER_ALIASES),
        calendar_kind=calendar_kind,
        is_leap_month=is_leap_month,
        language=_choice(arguments, "language", LANGUAGES, DEFAULT_LANGUAGE),
        longitude=_coordinate(arguments, "longitude", 180, DEFAULT_LONGITUDE),
        latitude=_coordinate(arguments, "latitude", 90, DEFAULT_LATITUDE),
    )


def target_date_from_arguments(arguments) -> Optional[str]:
    """Return the requested horoscope date, or None for today."""
    value = (arguments or {}).get("targetDate")
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ToolError("Error: 'targetDate' must be a string in YYYY-MM-DD format")
    return value.strip()


# ── get_current_time ──

def get_current_time(now: Optional[datetime] = None) -> dict:
    """Current local wall clock, broken into fields."""
    now = now or datetime.now().astimezone()
    return {
        "success": True,
        "data": {
            "year": now.year,
            "month": now.month,
            "day": now.day,
            "hour": now.hour,
            "minute": now.minute,
            "second": now.second,
            "datetime_str": now.strftime("%Y-%m-%d %H:%M:%S"),
            "weekday": WEEKDAYS_EN[now.weekday()],
            "weekday_cn": WEEKDAYS_CN[now.weekday()],
            "timestamp": int(now.timestamp()),
        },
    }
