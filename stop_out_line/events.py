"""Chart events delivered serially to the indicator."""

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class TimerTick:
    pass


@dataclass(frozen=True)
class BarUpdate:
    index: int
    is_last_bar: bool = True


@dataclass(frozen=True)
class ScrollChanged:
    first_visible_bar_index: int


@dataclass(frozen=True)
class ZoomChanged:
    pass


@dataclass(frozen=True)
class KeyDown:
    key: str
    shift: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyDown":
        # Only a JSON true counts as Shift.
        return cls(key=str(data["key"]).upper(), shift=data.get("shift") is True)


ChartEvent = Union[TimerTick, BarUpdate, ScrollChanged, ZoomChanged, KeyDown]
