"""Pytest configuration: project root on sys.path and a stub chart engine.

The stub stands in for py-iztro so the protocol and adapter tests run
without the real engine.
"""

import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


class StubChart(dict):
    """A fixed astrolabe fixture that records horoscope lookups."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.horoscope_calls = []

    def horoscope(self, target_date):
        self.horoscope_calls.append(target_date)
        return {"solarDate": target_date, "decadal": {"index": 2, "name": "大限"}}


class StubEngine:
    """Deterministic ChartEngine returning StubChart fixtures."""

    def __init__(self, chart=None, error=None):
        self.chart = chart
        self.error = error
        self.calls = []

    def _make(self, kind, date, time_index):
        if self.error is not None:
            raise self.error
        if self.chart is not None:
            return self.chart
        return StubChart(
            solarDate=date,
            time=time_index,
            sign="狮子座",
            palaces=[{"name": f"palace-{i}", "majorStars": []} for i in range(12)],
        )

    def by_solar(self, date, time_index, gender, fix_leap, language):
        self.calls.append(("solar", date, time_index, gender, fix_leap, language))
        return self._make("solar", date, time_index)

    def by_lunar(self, date, time_index, gender, is_leap_month, fix_leap, language):
        self.calls.append(
            ("lunar", date, time_index, gender, is_leap_month, fix_leap, language)
        )
        return self._make("lunar", date, time_index)


@pytest.fixture
def engine():
    return StubEngine()
