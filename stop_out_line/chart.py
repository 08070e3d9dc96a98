"""In-process model of the host chart's drawing objects and viewport."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Union

from .models import HorizontalAlignment, LineStyle, VerticalAlignment

logger = logging.getLogger(__name__)


@dataclass
class HorizontalLine:
    name: str
    y: Decimal
    color: str
    thickness: int
    line_style: LineStyle
    is_hidden: bool = False
    is_interactive: bool = True


@dataclass
class ChartText:
    name: str
    text: str
    time: datetime
    y: Decimal
    color: str
    font_size: int = 10
    vertical_alignment: VerticalAlignment = VerticalAlignment.CENTER
    horizontal_alignment: HorizontalAlignment = HorizontalAlignment.LEFT
    is_hidden: bool = False
    is_interactive: bool = True


ChartObject = Union[HorizontalLine, ChartText]


class Chart:
    """Named drawing objects plus the bars and viewport they are placed against."""

    def __init__(self, bar_open_times: Optional[List[datetime]] = None, first_visible_bar_index: int = 0):
        self.objects: Dict[str, ChartObject] = {}
        self.bar_open_times: List[datetime] = list(bar_open_times or [])
        self.first_visible_bar_index = first_visible_bar_index

    @property
    def bars_count(self) -> int:
        return len(self.bar_open_times)

    def find_object(self, name: str) -> Optional[ChartObject]:
        return self.objects.get(name)

    def draw_horizontal_line(
        self,
        name: str,
        y: Decimal,
        color: str,
        thickness: int,
        line_style: LineStyle,
    ) -> HorizontalLine:
        """Create a horizontal line, replacing any object with the same name."""
        line = HorizontalLine(name=name, y=y, color=color, thickness=thickness, line_style=line_style)
        self.objects[name] = line
        logger.debug(f"Drew line {name} at {y}")
        return line

    def draw_text(self, name: str, text: str, time: datetime, y: Decimal, color: str) -> ChartText:
        """Create a text object, replacing any object with the same name."""
        label = ChartText(name=name, text=text, time=time, y=y, color=color)
        self.objects[name] = label
        logger.debug(f"Drew text {name} '{text}' at {time.isoformat()}")
        return label

    def remove_object(self, name: str) -> None:
        if self.objects.pop(name, None) is not None:
            logger.debug(f"Removed {name}")

    def set_bars(self, open_times: List[datetime]) -> None:
        self.bar_open_times = list(open_times)

    def scroll_to(self, first_visible_bar_index: int) -> bool:
        """Move the viewport. Returns True if the first visible bar changed."""
        if first_visible_bar_index == self.first_visible_bar_index:
            return False
        self.first_visible_bar_index = first_visible_bar_index
        return True
