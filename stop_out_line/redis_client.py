"""Redis client for accessing trading host state published by the terminal bridge."""

import json
import logging
from datetime import datetime
from typing import List, Optional

import redis

from .config import Settings, settings as default_settings
from .events import KeyDown
from .models import AccountSnapshot, HostSnapshot, Position, SymbolInfo

logger = logging.getLogger(__name__)


class RedisClient:
    """Client for reading account, positions, quotes and chart state from Redis."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.client: Optional[redis.Redis] = None

    def connect(self):
        """Establish Redis connection."""
        try:
            self.client = redis.Redis(
                host=self.config.redis_host,
                port=self.config.redis_port,
                db=self.config.redis_db,
                decode_responses=True,
            )
            # Test connection
            self.client.ping()
            logger.info("Connected to Redis")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    def close(self):
        """Close Redis connection."""
        if self.client:
            self.client.close()
            self.client = None

    def get_account(self) -> Optional[AccountSnapshot]:
        """Get equity, used margin and stop-out level."""
        try:
            data_str = self.client.get(self.config.account_key)
            if not data_str:
                return None
            return AccountSnapshot.from_dict(json.loads(data_str))
        except Exception as e:
            logger.error(f"Failed to get account state: {e}")
            return None

    def get_symbol(self) -> Optional[SymbolInfo]:
        """Get quote and pip metadata of the chart's instrument."""
        try:
            data_str = self.client.get(self.config.symbol_key)
            if not data_str:
                return None
            return SymbolInfo.from_dict(json.loads(data_str))
        except Exception as e:
            logger.error(f"Failed to get symbol info: {e}")
            return None

    def get_positions(self) -> Optional[List[Position]]:
        """Get all open positions.

        Returns:
            List of positions across all instruments, or None if Redis could
            not be read. Entries that fail to parse are skipped.
        """
        try:
            # HGETALL returns all field-value pairs in the hash
            raw_positions = self.client.hgetall(self.config.positions_key)
        except Exception as e:
            logger.error(f"Failed to get positions from Redis: {e}")
            return None

        positions = []
        for position_id, data_str in raw_positions.items():
            try:
                positions.append(Position.from_dict(json.loads(data_str), position_id=position_id))
            except (json.JSONDecodeError, KeyError, ValueError, ArithmeticError) as e:
                logger.warning(f"Failed to parse position data for {position_id}: {e}")

        return positions

    def get_chart_state(self) -> Optional[dict]:
        """Get bar open times and the first visible bar index.

        Returns:
            Dict with ``bar_open_times`` (datetimes) and
            ``first_visible_bar_index``, or None if not published
        """
        try:
            data_str = self.client.get(self.config.chart_key)
            if not data_str:
                return None
            data = json.loads(data_str)
            return {
                "bar_open_times": [datetime.fromisoformat(t) for t in data.get("bar_open_times", [])],
                "first_visible_bar_index": int(data.get("first_visible_bar_index", 0)),
            }
        except Exception as e:
            logger.error(f"Failed to get chart state: {e}")
            return None

    def pop_key_events(self, limit: int = 100) -> List[KeyDown]:
        """Consume queued keyboard events, oldest first."""
        events = []
        try:
            for _ in range(limit):
                data_str = self.client.lpop(self.config.keys_key)
                if data_str is None:
                    break
                try:
                    events.append(KeyDown.from_dict(json.loads(data_str)))
                except (json.JSONDecodeError, KeyError) as e:
                    logger.warning(f"Failed to parse key event '{data_str}': {e}")
        except Exception as e:
            logger.error(f"Failed to get key events from Redis: {e}")
        return events

    def get_snapshot(self) -> Optional[HostSnapshot]:
        """Read the full host state in one pass.

        Returns None when account, symbol or positions cannot be read. An
        unreadable positions hash must not look like a flat account.
        Without chart state the snapshot's bar fields stay None.
        """
        account = self.get_account()
        symbol = self.get_symbol()
        if account is None or symbol is None:
            return None

        positions = self.get_positions()
        if positions is None:
            return None

        snapshot = HostSnapshot(
            account=account,
            symbol=symbol,
            positions=positions,
        )

        chart_state = self.get_chart_state()
        if chart_state:
            snapshot.bar_open_times = chart_state["bar_open_times"]
            snapshot.first_visible_bar_index = chart_state["first_visible_bar_index"]

        return snapshot
