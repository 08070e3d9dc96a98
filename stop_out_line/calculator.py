"""Stop-Out Calculator - Price at which the broker liquidates the net position."""

import logging
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Iterable

from .models import (
    AccountSnapshot,
    Direction,
    NoPositionReason,
    Position,
    StopOutResult,
    SymbolInfo,
)

logger = logging.getLogger(__name__)


class StopOutCalculator:
    """Calculates the stop-out price for the net position on one instrument.

    Key rules:
    - Equity at stop-out = stop-out level % of used margin
    - The distance to stop-out is the remaining loss budget in pips
    - Long positions close at Bid, short positions close at Ask
    """

    def compute(
        self,
        account: AccountSnapshot,
        positions: Iterable[Position],
        symbol: SymbolInfo,
    ) -> StopOutResult:
        """Calculate the stop-out price.

        Args:
            account: Equity, used margin and broker stop-out level
            positions: Open positions; only those on ``symbol`` are counted
            symbol: Quote and pip metadata of the chart's instrument

        Returns:
            StopOutResult with the price rounded to ``symbol.digits``, or a
            no-position result when there is nothing to liquidate
        """
        # No margin used means no open positions at all.
        if account.margin == 0:
            return StopOutResult.no_position(NoPositionReason.ZERO_MARGIN)

        net_volume = self.net_volume(positions, symbol.name)
        if net_volume == 0:
            return StopOutResult.no_position(NoPositionReason.FLAT_NET_VOLUME)

        direction = Direction.LONG if net_volume > 0 else Direction.SHORT
        position_volume = abs(net_volume)

        # Maximum loss before the broker starts closing positions
        max_loss = account.equity - account.equity_at_stop_out

        # Net long is closed at Bid, net short at Ask
        current_price = symbol.bid if direction == Direction.LONG else symbol.ask

        pip_value = symbol.pip_value * position_volume

        price_movement = Decimal("0")
        if pip_value > 0:
            price_movement = (max_loss / pip_value) * symbol.pip_size

        if direction == Direction.LONG:
            stop_out_price = current_price - price_movement
        else:
            # Shorts close at Ask, so stop-out happens when Bid reaches the
            # expected Ask level less the spread.
            stop_out_price = current_price + price_movement - symbol.spread

        stop_out_price = self.normalize(stop_out_price, symbol.digits)

        logger.debug(
            f"{symbol.name}: net {direction.value} {position_volume}, "
            f"max loss {max_loss}, movement {price_movement} -> {stop_out_price}"
        )

        return StopOutResult.at(stop_out_price, direction, net_volume)

    @staticmethod
    def net_volume(positions: Iterable[Position], symbol_name: str) -> Decimal:
        """Signed volume sum of the positions on one instrument."""
        return sum(
            (p.signed_volume for p in positions if p.symbol_name == symbol_name),
            Decimal("0"),
        )

    @staticmethod
    def normalize(price: Decimal, digits: int) -> Decimal:
        """Round a price to the instrument's number of decimals."""
        return price.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_EVEN)


# Singleton instance
stop_out_calculator = StopOutCalculator()
