"""Request-scoped values passed between the registry, the adapter and the time helpers."""

from dataclasses import dataclass
from typing import Optional

GENDERS = ("male", "female")
CALENDAR_KINDS = ("solar", "lunar")
LANGUAGES = ("zh-CN", "zh-TW", "en-US", "ja-JP", "ko-KR", "vi-VN")


@dataclass(frozen=True)
class CorrectedTime:
    """Clock time after true solar time correction."""

    hour: int  # 0-23
    minute: int  # 0-59


@dataclass(frozen=True)
class BirthSpec:
    """Validated birth data for one chart request."""

    date: str  # "YYYY-MM-DD", solar or lunar depending on calendar_kind
    hour: int  # Clock hour of birth, 0-23
    gender: str  # "male" | "female"
    calendar_kind: str = "solar"  # "solar" | "lunar"
    is_leap_month: bool = False  # Only meaningful for lunar dates
    language: str = "zh-CN"
    longitude: Optional[float] = None  # Degrees, east positive
    latitude: Optional[float] = None  # Degrees, north positive

    @property
    def has_coordinates(self) -> bool:
        return self.longitude is not None and self.latitude is not None
