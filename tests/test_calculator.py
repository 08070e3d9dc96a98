"""Tests for Stop-Out Calculator."""

import pytest
from decimal import Decimal

from stop_out_line.calculator import StopOutCalculator
from stop_out_line.models import (
    AccountSnapshot,
    Direction,
    NoPositionReason,
    Position,
    SymbolInfo,
    TradeType,
)


def _account(equity="1000", margin="200", stop_out_level="50") -> AccountSnapshot:
    return AccountSnapshot(
        equity=Decimal(equity),
        margin=Decimal(margin),
        stop_out_level=Decimal(stop_out_level),
    )


def _eurusd(pip_value="0.0001") -> SymbolInfo:
    return SymbolInfo(
        name="EURUSD",
        bid=Decimal("1.10000"),
        ask=Decimal("1.10020"),
        pip_size=Decimal("0.0001"),
        pip_value=Decimal(pip_value),
        digits=5,
    )


def _buy(volume, symbol="EURUSD") -> Position:
    return Position(symbol_name=symbol, trade_type=TradeType.BUY, volume_in_units=Decimal(volume))


def _sell(volume, symbol="EURUSD") -> Position:
    return Position(symbol_name=symbol, trade_type=TradeType.SELL, volume_in_units=Decimal(volume))


class TestStopOutCalculator:
    """Test cases for the stop-out formula."""

    def setup_method(self):
        """Set up test fixtures."""
        self.calculator = StopOutCalculator()

    def test_long_position(self):
        """Net long stop-out sits below Bid."""
        result = self.calculator.compute(_account(), [_buy("10000")], _eurusd())

        # Equity at stop-out = 50% * $200 = $100
        # Max loss = $1,000 - $100 = $900
        # Pip value = $0.0001 * 10,000 = $1 per pip
        # Movement = 900 pips = 0.09
        # Stop-out = 1.10000 - 0.09 = 1.01000

        assert result.has_position
        assert result.price == Decimal("1.01000")
        assert result.direction == Direction.LONG
        assert result.net_volume == Decimal("10000")
        assert result.price < _eurusd().bid

    def test_short_position_uses_ask_minus_spread(self):
        """Net short stop-out is measured from Ask and corrected by the spread."""
        result = self.calculator.compute(_account(), [_sell("10000")], _eurusd())

        # Stop-out = Ask + movement - spread = 1.10020 + 0.09 - 0.00020 = 1.19000

        assert result.price == Decimal("1.19000")
        assert result.direction == Direction.SHORT
        assert result.net_volume == Decimal("-10000")

    def test_zero_margin_is_no_position(self):
        result = self.calculator.compute(_account(margin="0"), [_buy("10000")], _eurusd())

        assert not result.has_position
        assert result.price is None
        assert result.reason == NoPositionReason.ZERO_MARGIN

    def test_hedged_positions_are_no_position(self):
        result = self.calculator.compute(
            _account(),
            [_buy("10000"), _sell("10000")],
            _eurusd(),
        )

        assert not result.has_position
        assert result.reason == NoPositionReason.FLAT_NET_VOLUME

    def test_no_positions_on_symbol_is_no_position(self):
        """Margin used by another instrument does not produce a line here."""
        result = self.calculator.compute(_account(), [_buy("10000", symbol="GBPUSD")], _eurusd())

        assert result.reason == NoPositionReason.FLAT_NET_VOLUME

    def test_other_symbols_are_ignored(self):
        result = self.calculator.compute(
            _account(),
            [_buy("10000"), _sell("50000", symbol="GBPUSD")],
            _eurusd(),
        )

        assert result.price == Decimal("1.01000")

    def test_net_volume_across_positions(self):
        """30k long and 20k short net to 10k long."""
        result = self.calculator.compute(
            _account(),
            [_buy("30000"), _sell("20000")],
            _eurusd(),
        )

        assert result.direction == Direction.LONG
        assert result.net_volume == Decimal("10000")
        assert result.price == Decimal("1.01000")

    def test_rounds_to_symbol_digits(self):
        """5-digit pair rounds to exactly 5 decimals."""
        result = self.calculator.compute(
            _account(margin="150", stop_out_level="100"),
            [_buy("30000")],
            _eurusd(),
        )

        # Max loss = $1,000 - $150 = $850
        # Pip value = $3 per pip -> 283.33 pips = 0.0283333...
        # Stop-out = 1.10000 - 0.0283333... = 1.0716666... -> 1.07167

        assert result.price == Decimal("1.07167")
        assert result.price.as_tuple().exponent == -5

    def test_rounds_to_three_digits_for_jpy_pair(self):
        symbol = SymbolInfo(
            name="USDJPY",
            bid=Decimal("150.000"),
            ask=Decimal("150.020"),
            pip_size=Decimal("0.01"),
            pip_value=Decimal("0.00007"),
            digits=3,
        )
        result = self.calculator.compute(_account(), [_buy("100000", symbol="USDJPY")], symbol)

        # Pip value = $7 per pip -> 900 / 7 = 128.57 pips = 1.2857...
        # Stop-out = 150.000 - 1.2857... = 148.714285... -> 148.714

        assert result.price == Decimal("148.714")
        assert result.price.as_tuple().exponent == -3

    def test_zero_pip_value_means_no_movement(self):
        """Guard against division by zero: the level falls back to the close price."""
        long_result = self.calculator.compute(_account(), [_buy("10000")], _eurusd(pip_value="0"))
        short_result = self.calculator.compute(_account(), [_sell("10000")], _eurusd(pip_value="0"))

        assert long_result.price == Decimal("1.10000")
        # Ask - spread = Bid
        assert short_result.price == Decimal("1.10000")

    def test_equity_below_stop_out_puts_long_level_above_bid(self):
        """Already past the stop-out equity: the level is on the other side of the market."""
        result = self.calculator.compute(_account(equity="90"), [_buy("10000")], _eurusd())

        # Max loss = $90 - $100 = -$10 -> -10 pips
        assert result.price == Decimal("1.10100")

    def test_larger_position_is_closer_to_market(self):
        small = self.calculator.compute(_account(), [_buy("10000")], _eurusd())
        large = self.calculator.compute(_account(), [_buy("20000")], _eurusd())

        assert large.price == Decimal("1.05500")
        assert small.price < large.price < _eurusd().bid

    def test_compute_is_idempotent(self):
        positions = [_buy("30000"), _sell("5000")]
        first = self.calculator.compute(_account(), positions, _eurusd())
        second = self.calculator.compute(_account(), positions, _eurusd())

        assert first == second

    def test_accepts_generator_of_positions(self):
        result = self.calculator.compute(
            _account(),
            (p for p in [_buy("10000")]),
            _eurusd(),
        )

        assert result.price == Decimal("1.01000")


class TestStopOutCalculatorHelpers:
    """Helper method tests."""

    def test_net_volume_sums_signed_volumes(self):
        positions = [_buy("1000"), _sell("3000"), _buy("500", symbol="GBPUSD")]

        assert StopOutCalculator.net_volume(positions, "EURUSD") == Decimal("-2000")

    def test_net_volume_of_empty_list_is_zero(self):
        assert StopOutCalculator.net_volume([], "EURUSD") == Decimal("0")

    def test_normalize_rounds_half_to_even(self):
        assert StopOutCalculator.normalize(Decimal("1.125"), 2) == Decimal("1.12")
        assert StopOutCalculator.normalize(Decimal("1.135"), 2) == Decimal("1.14")

    def test_normalize_to_whole_units(self):
        assert StopOutCalculator.normalize(Decimal("2031.6"), 0) == Decimal("2032")

    def test_result_to_dict(self):
        result = StopOutCalculator().compute(_account(), [_sell("10000")], _eurusd())

        assert result.to_dict() == {
            "price": "1.19000",
            "reason": None,
            "direction": "short",
            "net_volume": "-10000",
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
