"""
Chart engine adapter.

Casting the chart is the job of an external Zi Wei Dou Shu engine
(py-iztro by default). This module feeds it true-solar-time corrected
input and annotates whatever it returns with the request parameters.
"""

from collections.abc import Mapping
from datetime import date as date_cls
from typing import Any, Optional, Protocol

from ziwei_models import BirthSpec
from ziwei_time import convert_to_true_solar_time, hour_to_time_index, parse_date


class ChartError(Exception):
    """The engine could not produce a chart or horoscope."""


class Chart(Protocol):
    def horoscope(self, target_date: str) -> Any: ...


class ChartEngine(Protocol):
    """The two casting entry points of an astrology engine."""

    def by_solar(
        self, date: str, time_index: int, gender: str, fix_leap: bool, language: str
    ) -> Optional[Chart]: ...

    def by_lunar(
        self,
        date: str,
        time_index: int,
        gender: str,
        is_leap_month: bool,
        fix_leap: bool,
        language: str,
    ) -> Optional[Chart]: ...


# ── py-iztro ──

class IztroEngine:
    """ChartEngine backed by py-iztro's Astro.

    ``Astro.by_lunar`` has no leap-month argument, so lunar charts go
    through the underlying iztro ``astro.byLunar`` and are wrapped the
    same way py-iztro wraps its own results.
    """

    GENDER_NAMES = {"male": "男", "female": "女"}

    def __init__(self):
        try:
            from py_iztro import Astro, AstrolabeModel
        except ImportError as e:
            raise ChartError("py-iztro is not installed (pip install py-iztro)") from e
        self._astro = Astro()
        self._astrolabe = AstrolabeModel

    def by_solar(self, date, time_index, gender, fix_leap, language):
        return self._astro.by_solar(
            date, time_index, self.GENDER_NAMES[gender], fix_leap, language
        )

    def by_lunar(self, date, time_index, gender, is_leap_month, fix_leap, language):
        result = self._astro._astro.byLunar(
            date, time_index, self.GENDER_NAMES[gender], is_leap_month, fix_leap, language
        )
        return self._astrolabe.from_js_astro_obj(result)


_engine = None


def get_engine() -> ChartEngine:
    """Get or create the process-wide py-iztro engine."""
    global _engine
    if _engine is None:
        _engine = IztroEngine()
    return _engine


# ── Adapter ──

def _as_mapping(value) -> dict:
    """Shallow dict copy of an engine structure (mapping or pydantic model)."""
    if isinstance(value, Mapping):
        return dict(value)
    if hasattr(value, "model_dump"):
        try:
            return value.model_dump(mode="json", by_alias=True)
        except Exception as e:
            raise ChartError(f"Could not serialize engine result: {e}") from e
    raise ChartError(f"Unsupported engine result: {type(value).__name__}")


def _cast(spec: BirthSpec, engine: Optional[ChartEngine]):
    """Correct the birth hour, pick the double hour and cast the chart.

    Returns (chart, request_params).
    """
    actual_hour = spec.hour
    if spec.has_coordinates:
        actual_hour = convert_to_true_solar_time(spec.hour, 0, spec.longitude, spec.date).hour
    time_index = hour_to_time_index(actual_hour)

    try:
        engine = engine or get_engine()
        if spec.calendar_kind == "solar":
            chart = engine.by_solar(spec.date, time_index, spec.gender, True, spec.language)
        else:
            chart = engine.by_lunar(
                spec.date, time_index, spec.gender, spec.is_leap_month, True, spec.language
            )
    except ChartError:
        raise
    except Exception as e:
        raise ChartError(str(e) or type(e).__name__) from e

    if not chart:
        raise ChartError("Chart could not be constructed")

    request_params = {
        "date": spec.date,
        "originalHour": spec.hour,
        "actualHour": actual_hour,
        "timeIndex": time_index,
        "gender": spec.gender,
        "calendarKind": spec.calendar_kind,
        "isLeapMonth": spec.is_leap_month,
        "language": spec.language,
        "longitude": spec.longitude,
        "latitude": spec.latitude,
        # coordinates supplied, not "correction succeeded"
        "trueSolarTimeUsed": spec.has_coordinates,
    }
    return chart, request_params


def build_chart(spec: BirthSpec, engine: Optional[ChartEngine] = None) -> dict:
    """Cast the natal chart for a birth spec.

    Raises:
        ChartError: The engine returned nothing or raised.
    """
    chart, request_params = _cast(spec, engine)
    result = _as_mapping(chart)
    result["requestParams"] = request_params
    return result


def build_horoscope(
    spec: BirthSpec,
    target_date: Optional[str] = None,
    engine: Optional[ChartEngine] = None,
    today: Optional[date_cls] = None,
) -> dict:
    """Cast the chart, then project it onto target_date (today when omitted).

    Raises:
        ChartError: Bad target date, or the engine returned nothing or raised.
    """
    if target_date:
        try:
            target = parse_date(target_date)
        except ValueError as e:
            raise ChartError(f"Invalid targetDate {target_date!r}, expected YYYY-MM-DD") from e
    else:
        target = today or date_cls.today()

    chart, request_params = _cast(spec, engine)
    try:
        horoscope = chart.horoscope(target.isoformat())
    except Exception as e:
        raise ChartError(str(e) or type(e).__name__) from e
    if not horoscope:
        raise ChartError("Horoscope could not be constructed")

    result = _as_mapping(horoscope)
    request_params["targetDate"] = target.isoformat()
    result["requestParams"] = request_params
    return result
