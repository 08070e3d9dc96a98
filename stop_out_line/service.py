"""Stop-Out Line service - single-threaded timer loop around the indicator.

Each tick pulls the latest host state from Redis, turns viewport, bar and
keyboard changes into chart events, and dispatches them to the indicator in
order.
"""

import logging
import time
from collections import deque
from typing import Deque, Optional

from .chart import Chart
from .config import Settings, settings as default_settings
from .events import BarUpdate, ChartEvent, ScrollChanged, TimerTick
from .indicator import StopOutIndicator
from .models import HostSnapshot
from .redis_client import RedisClient

logger = logging.getLogger(__name__)


class StopOutLineService:
    """Runs the stop-out indicator against live host state."""

    # Number of consecutive loop errors before logging at CRITICAL.
    _ERROR_ALERT_THRESHOLD = 5

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.redis = RedisClient(self.config)
        self.chart = Chart()
        self.indicator = StopOutIndicator(self.chart, config=self.config)
        self._events: Deque[ChartEvent] = deque()
        self._running = False

    def start(self):
        """Connect to the host feed and start the timer loop."""
        logger.info("Starting Stop-Out Line")

        self.redis.connect()
        self._refresh_host_state()
        self.indicator.initialize()

        self._running = True
        self._run_timer_loop()

    def stop(self):
        """Stop the loop and release the Redis connection.

        Safe to call multiple times; the signal handler and ``main()`` may
        both invoke it.
        """
        if not self._running and self.redis.client is None:
            return  # already stopped
        logger.info("Stopping Stop-Out Line...")
        self._running = False
        self.redis.close()
        logger.info("Stop-Out Line shutdown complete")

    def post(self, event: ChartEvent):
        """Queue a chart event for the next dispatch."""
        self._events.append(event)

    def run_once(self):
        """One timer tick: refresh host state, then dispatch queued events."""
        self._refresh_host_state()
        self.post(TimerTick())
        self._dispatch_events()

    def _run_timer_loop(self):
        logger.info(f"Starting timer loop (interval: {self.config.update_frequency_ms}ms)")

        consecutive_errors = 0

        while self._running:
            try:
                self.run_once()

                if consecutive_errors > 0:
                    logger.info(f"Timer loop recovered after {consecutive_errors} consecutive error(s)")
                consecutive_errors = 0

            except Exception as e:
                consecutive_errors += 1
                logger.error(
                    f"Error in timer loop (consecutive: {consecutive_errors}): {e}",
                    exc_info=True,
                )

                if consecutive_errors == self._ERROR_ALERT_THRESHOLD:
                    logger.critical(
                        f"Stop-Out Line: {consecutive_errors} consecutive update failures. "
                        f"The stop-out level on the chart may be STALE. Last error: {e}"
                    )

            time.sleep(self.config.update_interval_seconds)

    def _refresh_host_state(self):
        """Pull host state and post the events it implies."""
        snapshot = self.redis.get_snapshot()
        if snapshot is None:
            logger.debug("No host snapshot available, keeping previous state")
        else:
            self.indicator.update_snapshot(snapshot)
            self._apply_chart_state(snapshot)

        for key_event in self.redis.pop_key_events():
            self.post(key_event)

    def _apply_chart_state(self, snapshot: HostSnapshot):
        """Update bars and viewport, posting scroll and new-bar events."""
        if not snapshot.has_chart_state:
            logger.debug("No chart state available, keeping previous bars and viewport")
            return

        previous_count = self.chart.bars_count
        self.chart.set_bars(snapshot.bar_open_times)
        if self.chart.scroll_to(snapshot.first_visible_bar_index):
            self.post(ScrollChanged(snapshot.first_visible_bar_index))
        if self.chart.bars_count > previous_count:
            self.post(BarUpdate(index=self.chart.bars_count - 1, is_last_bar=True))

    def _dispatch_events(self):
        while self._events:
            self.indicator.handle(self._events.popleft())
