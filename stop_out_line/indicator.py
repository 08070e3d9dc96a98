"""Stop-Out Line indicator - keeps the stop-out level drawn on the chart.

Reacts to host events (timer, bars, scroll, zoom, keyboard) and owns the
last computed stop-out price as its session state.
"""

import logging
from decimal import Decimal
from typing import Optional

from .calculator import StopOutCalculator, stop_out_calculator
from .chart import Chart, ChartText, HorizontalLine
from .config import Settings, settings as default_settings
from .events import BarUpdate, ChartEvent, KeyDown, ScrollChanged, TimerTick, ZoomChanged
from .models import HorizontalAlignment, HostSnapshot, VerticalAlignment

logger = logging.getLogger(__name__)


class StopOutIndicator:
    """Draws a horizontal line and price label at the stop-out level.

    Shift+S hides or shows both objects without touching the computed price.
    """

    LINE_OBJECT_NAME = "StopOutPriceLine"
    LABEL_OBJECT_NAME = "StopOutPriceLabel"
    LABEL_FONT_SIZE = 12
    HOTKEY = "S"

    def __init__(
        self,
        chart: Chart,
        calculator: Optional[StopOutCalculator] = None,
        config: Optional[Settings] = None,
    ):
        self.chart = chart
        self.calculator = calculator or stop_out_calculator
        self.config = config or default_settings
        self.snapshot: Optional[HostSnapshot] = None
        self.stop_out_price = Decimal("0")

    def initialize(self):
        """Run the first calculation. The service starts the timer."""
        logger.info(
            f"Stop-out indicator initialized (update every {self.config.update_frequency_ms}ms, "
            f"label {'on' if self.config.show_label else 'off'})"
        )
        self.calculate_stop_out_price()

    def update_snapshot(self, snapshot: HostSnapshot):
        self.snapshot = snapshot

    def handle(self, event: ChartEvent):
        """Dispatch a host event to its handler."""
        if isinstance(event, TimerTick):
            self.on_timer()
        elif isinstance(event, BarUpdate):
            self.on_bar(event.index, event.is_last_bar)
        elif isinstance(event, ScrollChanged):
            self.on_scroll_changed()
        elif isinstance(event, ZoomChanged):
            self.on_zoom_changed()
        elif isinstance(event, KeyDown):
            self.on_key_down(event.key, event.shift)
        else:
            logger.warning(f"Ignoring unknown chart event: {event!r}")

    def on_bar(self, index: int, is_last_bar: bool):
        # Calculate on new ticks only.
        if is_last_bar:
            self.calculate_stop_out_price()

    def on_timer(self):
        self.calculate_stop_out_price()

    def on_scroll_changed(self):
        self.update_label_position()

    def on_zoom_changed(self):
        self.update_label_position()

    def on_key_down(self, key: str, shift: bool):
        """Toggle line and label visibility on Shift+S."""
        if not (shift and key.upper() == self.HOTKEY):
            return

        line = self.chart.find_object(self.LINE_OBJECT_NAME)
        if not isinstance(line, HorizontalLine):
            return
        label = self.chart.find_object(self.LABEL_OBJECT_NAME)

        line.is_hidden = not line.is_hidden
        if isinstance(label, ChartText):
            label.is_hidden = line.is_hidden

        logger.info(f"Stop-out line {'hidden' if line.is_hidden else 'shown'}")

    def calculate_stop_out_price(self):
        """Recalculate the stop-out price from the latest host snapshot."""
        if self.snapshot is None:
            logger.debug("No host data yet, skipping calculation")
            return

        result = self.calculator.compute(
            self.snapshot.account,
            self.snapshot.positions,
            self.snapshot.symbol,
        )
        logger.debug(f"Stop-out result: {result.to_dict()}")

        if not result.has_position:
            if self.stop_out_price != 0:
                logger.info(f"No open position ({result.reason.value}), removing stop-out line")
            self.delete_line_and_label()
            return

        if result.price != self.stop_out_price:
            logger.info(
                f"{self.snapshot.symbol.name}: stop-out level "
                f"{self.snapshot.symbol.format_price(result.price)} "
                f"(net {result.direction.value} {abs(result.net_volume)})"
            )
        self.stop_out_price = result.price

        self.draw_stop_out_line()

    def draw_stop_out_line(self):
        """Create or move the horizontal line."""
        if self.stop_out_price <= 0:
            # A non-positive level cannot be drawn; do not leave a stale one.
            self.chart.remove_object(self.LINE_OBJECT_NAME)
            self.chart.remove_object(self.LABEL_OBJECT_NAME)
            return

        line = self.chart.find_object(self.LINE_OBJECT_NAME)
        if not isinstance(line, HorizontalLine):
            line = self.chart.draw_horizontal_line(
                self.LINE_OBJECT_NAME,
                self.stop_out_price,
                self.config.line_color,
                self.config.line_width,
                self.config.line_style,
            )
            line.is_interactive = False
        else:
            line.y = self.stop_out_price
            line.color = self.config.line_color
            line.line_style = self.config.line_style
            line.thickness = self.config.line_width

        if self.config.show_label:
            self.update_label_position()

    def update_label_position(self):
        """Keep the label on the leftmost visible bar, at the stop-out level."""
        if self.stop_out_price <= 0 or not self.config.show_label or self.chart.bars_count == 0:
            return
        if self.snapshot is None:
            return

        label_text = self.config.line_label + self.snapshot.symbol.format_price(self.stop_out_price)

        label_bar = self.chart.first_visible_bar_index
        if label_bar < 0:
            label_bar = 0
        if label_bar >= self.chart.bars_count:
            label_bar = self.chart.bars_count - 1

        label_time = self.chart.bar_open_times[label_bar]
        label = self.chart.find_object(self.LABEL_OBJECT_NAME)
        if not isinstance(label, ChartText):
            label = self.chart.draw_text(
                self.LABEL_OBJECT_NAME,
                label_text,
                label_time,
                self.stop_out_price,
                self.config.line_color,
            )
            label.font_size = self.LABEL_FONT_SIZE
            label.vertical_alignment = VerticalAlignment.TOP  # Text sits above the line
            label.horizontal_alignment = HorizontalAlignment.RIGHT
            label.is_interactive = False
        else:
            label.text = label_text
            label.y = self.stop_out_price
            label.time = label_time

    def delete_line_and_label(self):
        self.chart.remove_object(self.LINE_OBJECT_NAME)
        self.chart.remove_object(self.LABEL_OBJECT_NAME)
        self.stop_out_price = Decimal("0")
