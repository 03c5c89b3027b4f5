"""Tests for linear bonding curve quotes."""

import math

import pytest

from src.parsers.launchpad.decoder import decode_launch_account
from src.pricing.bonding_curve import (
    BASE_PRICE,
    BASE_PRICE_INCREASE,
    MIN_CURVE_VALUE,
    BondingCurveState,
    CurveParameters,
    TradeSide,
    curve_summary,
    quote_buy,
    quote_sell,
    sol_for_tokens,
    spot_price,
    tokens_for_sol,
    validate_trade,
)
from src.pricing.exceptions import InvalidCurveInputError, PricingError
from tests.test_parsers.launch_builder import build_launch_data

MILLION = 1_000_000.0


def _fresh(total: float = MILLION, sold: float = 0.0) -> BondingCurveState:
    return BondingCurveState(total_supply=total, tokens_sold=sold, decimals=6)


class TestCurveParameters:
    def test_unscaled_below_reference_supply(self) -> None:
        params = CurveParameters.for_supply(MILLION)
        assert params.base_price == BASE_PRICE
        assert params.slope == BASE_PRICE_INCREASE

    def test_scaled_above_reference_supply(self) -> None:
        params = CurveParameters.for_supply(1e12)
        assert params.base_price == pytest.approx(BASE_PRICE / 1_000)
        assert params.slope == pytest.approx(BASE_PRICE_INCREASE / 1_000)

    def test_floor_for_huge_supply(self) -> None:
        params = CurveParameters.for_supply(1e20)
        assert params.base_price == MIN_CURVE_VALUE
        assert params.slope == MIN_CURVE_VALUE

    def test_zero_supply_treated_as_one(self) -> None:
        assert CurveParameters.for_supply(0).base_price == BASE_PRICE

    @pytest.mark.parametrize("base_price,slope", [(0, 1e-9), (1e-9, -1), (math.nan, 1e-9)])
    def test_non_positive_rejected(self, base_price: float, slope: float) -> None:
        with pytest.raises(InvalidCurveInputError):
            CurveParameters(base_price=base_price, slope=slope)


class TestCurveState:
    def test_sold_above_total_rejected(self) -> None:
        with pytest.raises(InvalidCurveInputError):
            _fresh(total=100, sold=101)

    def test_negative_supply_rejected(self) -> None:
        with pytest.raises(ValueError):
            _fresh(total=-1)

    def test_infinite_supply_rejected(self) -> None:
        with pytest.raises(PricingError):
            _fresh(total=math.inf)

    def test_from_raw(self) -> None:
        state = BondingCurveState.from_raw(1_000_000_000_000, 250_000_000_000, 6)
        assert state.total_supply == MILLION
        assert state.tokens_sold == 250_000.0
        assert state.available == 750_000.0
        assert state.progress_pct == pytest.approx(25.0)

    def test_from_launch_record(self) -> None:
        record = decode_launch_account(build_launch_data()).record
        state = BondingCurveState.from_launch_record(record, decimals=9)
        assert state.total_supply == MILLION
        assert state.tokens_sold == 250_000.0

    def test_from_legacy_record_starts_empty(self) -> None:
        record = decode_launch_account(build_launch_data("legacy"), schema="legacy").record
        state = BondingCurveState.from_launch_record(record, decimals=9)
        assert state.tokens_sold == 0.0


class TestSpotPrice:
    def test_starts_at_base_price(self) -> None:
        assert spot_price(_fresh()) == BASE_PRICE

    def test_linear_in_tokens_sold(self) -> None:
        params = CurveParameters(base_price=0.001, slope=1e-8)
        state = _fresh()
        assert spot_price(state, 500_000, params) == pytest.approx(0.001 + 0.005)

    def test_monotonic(self) -> None:
        state = _fresh()
        prices = [spot_price(state, x) for x in (0, 1, 1_000, 500_000, MILLION)]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)

    def test_negative_position_rejected(self) -> None:
        with pytest.raises(InvalidCurveInputError):
            spot_price(_fresh(), -1)


class TestBuySellMath:
    def test_one_sol_round_trip(self) -> None:
        state = _fresh()
        tokens = tokens_for_sol(1.0, state)
        assert 44_000 < tokens < 45_000

        returned = sol_for_tokens(tokens, state.with_tokens_sold(tokens))
        assert returned == pytest.approx(1.0, rel=1e-9)

    def test_round_trip_mid_curve(self) -> None:
        state = _fresh(sold=300_000)
        tokens = tokens_for_sol(2.5, state)
        after = state.with_tokens_sold(state.tokens_sold + tokens)
        assert sol_for_tokens(tokens, after) == pytest.approx(2.5, rel=1e-9)

    def test_tiny_buy_high_on_curve(self) -> None:
        # p(x0) = 0.5 SOL/token; 1e-6 SOL buys ~2e-6 tokens
        state = _fresh(total=1e9, sold=5e8)
        tokens = tokens_for_sol(1e-6, state)
        assert tokens == pytest.approx(1e-6 / spot_price(state), rel=1e-6)
        assert tokens > 0

    def test_zero_sol(self) -> None:
        assert tokens_for_sol(0, _fresh()) == 0.0

    def test_sold_out_curve(self) -> None:
        assert tokens_for_sol(5.0, _fresh(total=100, sold=100)) == 0.0

    def test_buy_capped_at_available(self) -> None:
        assert tokens_for_sol(1_000.0, _fresh(total=1_000)) == 1_000

    def test_sell_clamped_to_tokens_sold(self) -> None:
        state = _fresh(sold=100)
        assert sol_for_tokens(500, state) == sol_for_tokens(100, state)

    def test_sell_is_trapezoid(self) -> None:
        params = CurveParameters(base_price=1.0, slope=0.5)
        state = _fresh(sold=10)
        # from x=10 (p=6) down to x=6 (p=4): 4 tokens * mean(6, 4)
        assert sol_for_tokens(4, state, params) == pytest.approx(20.0)

    @pytest.mark.parametrize("amount", [-1.0, math.nan, math.inf])
    def test_invalid_amounts(self, amount: float) -> None:
        with pytest.raises(InvalidCurveInputError):
            tokens_for_sol(amount, _fresh())
        with pytest.raises(InvalidCurveInputError):
            sol_for_tokens(amount, _fresh(sold=10))


class TestQuotes:
    def test_small_buy_is_valid(self) -> None:
        params = CurveParameters(base_price=0.001, slope=1e-12)
        quote = quote_buy(_fresh(total=1e9), 1.0, params)

        assert quote.side == TradeSide.BUY
        assert quote.output_amount == pytest.approx(1_000, rel=1e-3)
        assert quote.current_price == 0.001
        assert quote.post_trade_price > quote.current_price
        assert 0 < quote.price_impact_pct < 1
        assert quote.is_valid

    def test_steep_buy_flags_price_impact(self) -> None:
        quote = quote_buy(_fresh(), 1.0)
        assert quote.output_amount > 0
        assert not quote.is_valid
        assert "Price impact" in quote.validation_message

    def test_buy_exhausting_supply_is_flagged(self) -> None:
        params = CurveParameters(base_price=1.0, slope=1e-6)
        quote = quote_buy(_fresh(total=1_000), 10_000.0, params)
        assert quote.output_amount == 1_000
        assert quote.validation_message == "Buy exhausts the remaining curve supply"

    def test_zero_buy_has_no_output(self) -> None:
        quote = quote_buy(_fresh(), 0.0)
        assert quote.output_amount == 0.0
        assert not quote.is_valid

    def test_sell_quote(self) -> None:
        params = CurveParameters(base_price=1.0, slope=0.5)
        quote = quote_sell(_fresh(sold=10), 4, params)
        assert quote.side == TradeSide.SELL
        assert quote.output_amount == pytest.approx(20.0)
        assert quote.average_price == pytest.approx(5.0)
        assert quote.post_trade_price == pytest.approx(4.0)
        assert quote.price_impact_pct == pytest.approx(-100 / 3)
        assert quote.is_valid

    def test_oversized_sell_clamped_with_message(self) -> None:
        params = CurveParameters(base_price=1.0, slope=0.5)
        quote = quote_sell(_fresh(sold=10), 25, params)
        assert quote.input_amount == 25
        assert quote.output_amount == pytest.approx(sol_for_tokens(10, _fresh(sold=10), params))
        assert "Cannot sell" in quote.validation_message

    def test_impact_limit_configurable(self) -> None:
        # Lifting the impact limit leaves the small-buy divergence check
        quote = quote_buy(_fresh(), 1.0, max_price_impact_pct=math.inf)
        assert "diverges" in quote.validation_message


class TestValidateTrade:
    def test_sane_trade(self) -> None:
        assert validate_trade(TradeSide.BUY, 0.5, 100, 0.005, 0.005, 0.1) is None

    def test_no_output(self) -> None:
        assert validate_trade(TradeSide.BUY, 0.5, 0, 0.005, 0.005, 0.0) is not None

    def test_nan_impact(self) -> None:
        assert validate_trade(TradeSide.SELL, 1, 1, 1, 1, math.nan) is not None

    def test_average_price_divergence_on_small_buy(self) -> None:
        message = validate_trade(TradeSide.BUY, 0.5, 10, 0.001, 0.05, 10.0)
        assert message is not None
        assert "diverges" in message


def test_curve_summary() -> None:
    params = CurveParameters(base_price=1.0, slope=0.5)
    summary = curve_summary(_fresh(total=100, sold=20), params)
    assert summary.initial_price == 1.0
    assert summary.current_price == pytest.approx(11.0)
    assert summary.price_at_50pct == pytest.approx(26.0)
    assert summary.price_at_100pct == pytest.approx(51.0)
    # 80 remaining tokens from p=11 to p=51
    assert summary.sol_to_complete == pytest.approx(80 * 31.0)
