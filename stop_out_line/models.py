"""Data models for Stop-Out Line."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any, List


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class NoPositionReason(str, Enum):
    ZERO_MARGIN = "zero_margin"
    FLAT_NET_VOLUME = "flat_net_volume"


class LineStyle(str, Enum):
    SOLID = "solid"
    DOTS = "dots"
    DOTS_RARE = "dots_rare"
    DOTS_VERY_RARE = "dots_very_rare"
    LINES_DOTS = "lines_dots"
    LINES = "lines"


class VerticalAlignment(str, Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class HorizontalAlignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class AccountSnapshot:
    """Account state as reported by the trading host."""
    equity: Decimal
    margin: Decimal
    stop_out_level: Decimal  # Broker's stop-out level in %.

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountSnapshot":
        return cls(
            equity=_decimal(data["equity"]),
            margin=_decimal(data["margin"]),
            stop_out_level=_decimal(data["stop_out_level"]),
        )

    @property
    def equity_at_stop_out(self) -> Decimal:
        """Equity at which the broker starts closing positions."""
        return (self.stop_out_level / 100) * self.margin


@dataclass(frozen=True)
class Position:
    """Open position from the trading host."""
    symbol_name: str
    trade_type: TradeType
    volume_in_units: Decimal
    position_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], position_id: Optional[str] = None) -> "Position":
        return cls(
            symbol_name=data["symbol"],
            trade_type=TradeType(str(data["trade_type"]).lower()),
            volume_in_units=_decimal(data["volume"]),
            position_id=position_id or data.get("id"),
        )

    @property
    def signed_volume(self) -> Decimal:
        """Volume counted positive for buys and negative for sells."""
        if self.trade_type == TradeType.BUY:
            return self.volume_in_units
        return -self.volume_in_units


@dataclass(frozen=True)
class SymbolInfo:
    """Quote and contract metadata of the chart's instrument."""
    name: str
    bid: Decimal
    ask: Decimal
    pip_size: Decimal
    pip_value: Decimal  # Per unit of volume, in account currency.
    digits: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SymbolInfo":
        return cls(
            name=data["name"],
            bid=_decimal(data["bid"]),
            ask=_decimal(data["ask"]),
            pip_size=_decimal(data["pip_size"]),
            pip_value=_decimal(data["pip_value"]),
            digits=int(data["digits"]),
        )

    @property
    def spread(self) -> Decimal:
        return self.ask - self.bid

    def format_price(self, price: Decimal) -> str:
        """Format a price with the instrument's number of decimals."""
        return f"{price:.{self.digits}f}"


@dataclass(frozen=True)
class StopOutResult:
    """Outcome of a stop-out calculation.

    Either a price rounded to the instrument's digits, or no position
    (``price`` is None and ``reason`` says why).
    """
    price: Optional[Decimal] = None
    reason: Optional[NoPositionReason] = None
    direction: Optional[Direction] = None
    net_volume: Decimal = Decimal("0")

    @classmethod
    def no_position(cls, reason: NoPositionReason) -> "StopOutResult":
        return cls(reason=reason)

    @classmethod
    def at(cls, price: Decimal, direction: Direction, net_volume: Decimal) -> "StopOutResult":
        return cls(price=price, direction=direction, net_volume=net_volume)

    @property
    def has_position(self) -> bool:
        return self.price is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": str(self.price) if self.price is not None else None,
            "reason": self.reason.value if self.reason else None,
            "direction": self.direction.value if self.direction else None,
            "net_volume": str(self.net_volume),
        }


@dataclass
class HostSnapshot:
    """Everything read from the host in one pass.

    Bar fields are None when the host published no chart state.
    """
    account: AccountSnapshot
    symbol: SymbolInfo
    positions: List[Position] = field(default_factory=list)
    bar_open_times: Optional[List[datetime]] = None
    first_visible_bar_index: Optional[int] = None

    @property
    def has_chart_state(self) -> bool:
        return self.bar_open_times is not None and self.first_visible_bar_index is not None
