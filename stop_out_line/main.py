"""Stop-Out Line - Entry Point.

Draws the broker stop-out level for the net position on the chart's
instrument and keeps it current:
1. Recalculates on every timer tick and every new bar
2. Keeps the price label on the leftmost visible bar while scrolling/zooming
3. Shift+S hides or shows the line
"""

import logging
import signal
import sys

from .config import settings
from .service import StopOutLineService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)

# Global service instance for signal handling
service: StopOutLineService = None


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info(f"Received signal {signum}, shutting down...")
    if service:
        service.stop()
    sys.exit(0)


def main():
    """Main entry point."""
    global service

    logger.info("=" * 60)
    logger.info("STOP-OUT LINE")
    logger.info("=" * 60)

    # Log configuration
    logger.info(f"Redis: {settings.redis_host}:{settings.redis_port}/{settings.redis_db}")
    logger.info(f"Key prefix: {settings.redis_key_prefix}")
    logger.info(f"Update frequency: {settings.update_frequency_ms}ms")
    logger.info(
        f"Line: {settings.line_color}, width {settings.line_width}, {settings.line_style.value}"
    )
    logger.info(f"Show label: {settings.show_label} (prefix '{settings.line_label}')")

    # Setup signal handlers
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    service = StopOutLineService()

    try:
        service.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if service:
            service.stop()


if __name__ == "__main__":
    main()
