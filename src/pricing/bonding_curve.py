"""Linear bonding curve quotes for instant launches.

Price as a function of tokens sold (human units, decimals applied):

    P(x) = p0 + k * x

Buying with S SOL from x0 integrates P from x0 to x1:

    S = p0 * (x1 - x0) + k/2 * (x1^2 - x0^2)
    k * x1^2 + 2 * p0 * x1 - C = 0,   C = 2S + k * x0^2 + 2 * p0 * x0

Selling t tokens integrates back from x0 to x0 - t, which for a straight
line is t times the mean of the two end prices.

Default p0 and k are the launchpad program's own constants, scaled down
for supplies above the reference supply so large launches do not start at
an absurd market cap.
"""

import dataclasses
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from src.pricing.exceptions import InvalidCurveInputError

if TYPE_CHECKING:
    from src.parsers.launchpad.models import LaunchRecord

BASE_PRICE = 1e-9  # SOL per token at x = 0, unscaled
BASE_PRICE_INCREASE = 1e-9  # SOL per token per token sold, unscaled
MIN_CURVE_VALUE = 1e-13
REFERENCE_SUPPLY = 1_000_000_000.0

MAX_PRICE_IMPACT_PCT = 200.0
MAX_AVG_PRICE_DIVERGENCE = 2.0  # |avg - spot| / spot allowed for small buys
SMALL_TRADE_SOL = 1.0


class CurveType(str, Enum):
    LINEAR = "linear"


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


def _require_amount(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise InvalidCurveInputError(
            f"{name} must be a finite non-negative number, got {value}"
        )


@dataclass(frozen=True)
class BondingCurveState:
    """Curve position in human token units (raw amount / 10**decimals)."""

    total_supply: float
    tokens_sold: float
    decimals: int = 6
    curve_type: CurveType = CurveType.LINEAR

    def __post_init__(self) -> None:
        _require_amount("total_supply", self.total_supply)
        _require_amount("tokens_sold", self.tokens_sold)
        if self.tokens_sold > self.total_supply:
            raise InvalidCurveInputError(
                f"tokens_sold {self.tokens_sold} exceeds total_supply {self.total_supply}"
            )
        if not 0 <= self.decimals <= 18:
            raise InvalidCurveInputError(f"decimals must be 0-18, got {self.decimals}")
        if self.curve_type != CurveType.LINEAR:
            raise InvalidCurveInputError(f"Unsupported curve type: {self.curve_type}")

    @property
    def available(self) -> float:
        return self.total_supply - self.tokens_sold

    @property
    def progress_pct(self) -> float:
        if self.total_supply <= 0:
            return 0.0
        return self.tokens_sold / self.total_supply * 100

    def with_tokens_sold(self, tokens_sold: float) -> "BondingCurveState":
        return dataclasses.replace(self, tokens_sold=tokens_sold)

    @classmethod
    def from_raw(
        cls, total_supply_raw: int, tokens_sold_raw: int, decimals: int
    ) -> "BondingCurveState":
        """Build from on-chain integer amounts."""
        scale = 10**decimals
        return cls(
            total_supply=total_supply_raw / scale,
            tokens_sold=tokens_sold_raw / scale,
            decimals=decimals,
        )

    @classmethod
    def from_launch_record(
        cls, record: "LaunchRecord", decimals: int = 9
    ) -> "BondingCurveState":
        """Build from a decoded LaunchRecord (legacy records have no tokens_sold)."""
        return cls.from_raw(record.total_supply, record.tokens_sold or 0, decimals)


@dataclass(frozen=True)
class CurveParameters:
    base_price: float  # p0
    slope: float  # k

    def __post_init__(self) -> None:
        for name, value in (("base_price", self.base_price), ("slope", self.slope)):
            if not math.isfinite(value) or value <= 0:
                raise InvalidCurveInputError(f"{name} must be positive, got {value}")

    @classmethod
    def for_supply(
        cls, total_supply: float, reference_supply: float = REFERENCE_SUPPLY
    ) -> "CurveParameters":
        """Program constants, scaled by reference_supply / total_supply (capped at 1)."""
        scale = min(reference_supply / max(total_supply, 1.0), 1.0)
        return cls(
            base_price=max(BASE_PRICE * scale, MIN_CURVE_VALUE),
            slope=max(BASE_PRICE_INCREASE * scale, MIN_CURVE_VALUE),
        )


@dataclass(frozen=True)
class TradeQuote:
    side: TradeSide
    input_amount: float
    output_amount: float  # tokens for a buy, SOL for a sell
    price_impact_pct: float
    average_price: float
    current_price: float
    post_trade_price: float
    validation_message: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.validation_message is None


@dataclass(frozen=True)
class CurveSummary:
    initial_price: float
    slope: float
    current_price: float
    price_at_50pct: float
    price_at_100pct: float
    sol_to_complete: float  # SOL needed to buy every remaining token


def _params(state: BondingCurveState, params: CurveParameters | None) -> CurveParameters:
    return params or CurveParameters.for_supply(state.total_supply)


def spot_price(
    state: BondingCurveState,
    tokens_sold: float | None = None,
    params: CurveParameters | None = None,
) -> float:
    """P(x) at `tokens_sold` (defaults to the state's position)."""
    p = _params(state, params)
    x = state.tokens_sold if tokens_sold is None else tokens_sold
    _require_amount("tokens_sold", x)
    return p.base_price + p.slope * x


def tokens_for_sol(
    sol_amount: float,
    state: BondingCurveState,
    params: CurveParameters | None = None,
) -> float:
    """Tokens bought with `sol_amount` SOL, capped at the unsold supply."""
    _require_amount("sol_amount", sol_amount)
    if sol_amount == 0 or state.available <= 0:
        return 0.0

    p = _params(state, params)
    x0 = state.tokens_sold
    c = 2 * sol_amount + p.slope * x0 * x0 + 2 * p.base_price * x0
    discriminant = (2 * p.base_price) ** 2 + 4 * p.slope * c
    if not math.isfinite(discriminant) or discriminant < 0:
        logger.debug(f"[CURVE] Invalid discriminant {discriminant} for {sol_amount} SOL")
        return 0.0

    # x1 - x0 for the positive root, written without subtracting two large numbers
    sqrt_d = math.sqrt(discriminant)
    price_now = p.base_price + p.slope * x0
    tokens = 4 * sol_amount / (2 * price_now + sqrt_d)
    if not math.isfinite(tokens):
        return 0.0
    return min(max(tokens, 0.0), state.available)


def sol_for_tokens(
    token_amount: float,
    state: BondingCurveState,
    params: CurveParameters | None = None,
) -> float:
    """SOL returned for selling `token_amount`; at most tokens_sold can be sold."""
    _require_amount("token_amount", token_amount)
    p = _params(state, params)
    sold = min(token_amount, state.tokens_sold)
    price_before = p.base_price + p.slope * state.tokens_sold
    price_after = p.base_price + p.slope * (state.tokens_sold - sold)
    return max(sold * (price_before + price_after) / 2, 0.0)


def _impact_pct(current: float, post: float) -> float:
    return (post - current) / current * 100 if current > 0 else 0.0


def validate_trade(
    side: TradeSide,
    input_amount: float,
    output_amount: float,
    current_price: float,
    average_price: float,
    price_impact_pct: float,
    *,
    max_price_impact_pct: float = MAX_PRICE_IMPACT_PCT,
) -> str | None:
    """Advisory check for a computed quote. Returns a message, or None if sane."""
    if not math.isfinite(output_amount) or output_amount <= 0:
        return f"Trade of {input_amount} produces no output"

    if not math.isfinite(price_impact_pct) or abs(price_impact_pct) > max_price_impact_pct:
        return (
            f"Price impact {price_impact_pct:.0f}% exceeds "
            f"{max_price_impact_pct:.0f}% limit"
        )

    if side == TradeSide.BUY and input_amount <= SMALL_TRADE_SOL and current_price > 0:
        divergence = abs(average_price - current_price) / current_price
        if divergence > MAX_AVG_PRICE_DIVERGENCE:
            return (
                f"Average price {average_price:.3e} diverges {divergence * 100:.0f}% "
                f"from spot {current_price:.3e}"
            )
    return None


def quote_buy(
    state: BondingCurveState,
    sol_amount: float,
    params: CurveParameters | None = None,
    *,
    max_price_impact_pct: float = MAX_PRICE_IMPACT_PCT,
) -> TradeQuote:
    """Quote spending `sol_amount` SOL at the state's curve position."""
    p = _params(state, params)
    current = spot_price(state, params=p)
    tokens = tokens_for_sol(sol_amount, state, p)

    if tokens <= 0:
        return TradeQuote(
            side=TradeSide.BUY,
            input_amount=sol_amount,
            output_amount=0.0,
            price_impact_pct=0.0,
            average_price=current,
            current_price=current,
            post_trade_price=current,
            validation_message=f"Trade of {sol_amount} produces no output",
        )

    post = spot_price(state, state.tokens_sold + tokens, p)
    impact = _impact_pct(current, post)
    average = sol_amount / tokens
    message = validate_trade(
        TradeSide.BUY,
        sol_amount,
        tokens,
        current,
        average,
        impact,
        max_price_impact_pct=max_price_impact_pct,
    )
    if tokens >= state.available and message is None:
        message = "Buy exhausts the remaining curve supply"

    logger.debug(
        f"[CURVE] Buy {sol_amount} SOL -> {tokens:.6g} tokens, "
        f"impact {impact:.2f}%{f' ({message})' if message else ''}"
    )
    return TradeQuote(
        side=TradeSide.BUY,
        input_amount=sol_amount,
        output_amount=tokens,
        price_impact_pct=impact,
        average_price=average,
        current_price=current,
        post_trade_price=post,
        validation_message=message,
    )


def quote_sell(
    state: BondingCurveState,
    token_amount: float,
    params: CurveParameters | None = None,
    *,
    max_price_impact_pct: float = MAX_PRICE_IMPACT_PCT,
) -> TradeQuote:
    """Quote selling `token_amount` tokens back into the curve."""
    _require_amount("token_amount", token_amount)
    p = _params(state, params)
    current = spot_price(state, params=p)
    sold = min(token_amount, state.tokens_sold)
    sol = sol_for_tokens(sold, state, p)
    post = spot_price(state, state.tokens_sold - sold, p)
    impact = _impact_pct(current, post)
    average = sol / sold if sold > 0 else current

    message = validate_trade(
        TradeSide.SELL,
        sold,
        sol,
        current,
        average,
        impact,
        max_price_impact_pct=max_price_impact_pct,
    )
    if token_amount > state.tokens_sold:
        message = (
            f"Cannot sell {token_amount} tokens, only {state.tokens_sold} sold; "
            f"quoted {sold}"
        )

    logger.debug(
        f"[CURVE] Sell {sold:.6g} tokens -> {sol:.9f} SOL, "
        f"impact {impact:.2f}%{f' ({message})' if message else ''}"
    )
    return TradeQuote(
        side=TradeSide.SELL,
        input_amount=token_amount,
        output_amount=sol,
        price_impact_pct=impact,
        average_price=average,
        current_price=current,
        post_trade_price=post,
        validation_message=message,
    )


def curve_summary(
    state: BondingCurveState, params: CurveParameters | None = None
) -> CurveSummary:
    p = _params(state, params)
    current = spot_price(state, params=p)
    final = spot_price(state, state.total_supply, p)
    return CurveSummary(
        initial_price=p.base_price,
        slope=p.slope,
        current_price=current,
        price_at_50pct=spot_price(state, state.total_supply * 0.5, p),
        price_at_100pct=final,
        sol_to_complete=state.available * (current + final) / 2,
    )
