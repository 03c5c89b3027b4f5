"""Virtual vs real token supply.

Mint amounts are u64 raw units (supply * 10**decimals). A user may ask for
a supply whose raw units do not fit; we then mint a smaller "real" supply
and keep a scale factor so the UI can keep showing the requested
("virtual") number.

All arithmetic is integer; the scale factor carries 6 decimal places of
fixed-point precision like the on-chain converter.
"""

import math
from dataclasses import dataclass

from loguru import logger

from src.pricing.exceptions import InvalidSupplyInputError, SupplyOverflowError

U64_MAX = 18_446_744_073_709_551_615
MAX_DECIMALS = 9
SCALE_PRECISION = 1_000_000


@dataclass(frozen=True)
class SupplyConversionResult:
    virtual_supply: int  # what the user entered
    real_supply: int  # what gets minted
    scale_factor: float  # 1.0 when unscaled
    was_scaled: bool
    raw_units: int  # real_supply * 10**decimals, always <= the fixed-width max

    def to_virtual(self, real_amount: float) -> float:
        """Map an amount of real tokens to the virtual units shown to users."""
        return real_amount * self.scale_factor


def _check_decimals(decimals: int) -> None:
    if not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidSupplyInputError(
            f"Decimals must be between 0 and {MAX_DECIMALS}, got {decimals}"
        )


def get_max_safe_supply(decimals: int, max_raw_units: int = U64_MAX) -> int:
    """Largest whole-token supply whose raw units fit in `max_raw_units`."""
    _check_decimals(decimals)
    return max_raw_units // 10**decimals


def convert_to_real_supply(
    virtual_supply: int,
    decimals: int,
    *,
    max_raw_units: int = U64_MAX,
) -> SupplyConversionResult:
    """Convert a requested supply to one whose raw units fit the mint's integer width.

    Raises:
        InvalidSupplyInputError: supply <= 0, inf/nan, or decimals outside 0-9.
        SupplyOverflowError: not even one whole token fits in max_raw_units.
    """
    if isinstance(virtual_supply, float):
        if not math.isfinite(virtual_supply):
            raise InvalidSupplyInputError(
                f"Virtual supply must be finite, got {virtual_supply}"
            )
        virtual_supply = int(virtual_supply)
    if virtual_supply <= 0:
        raise InvalidSupplyInputError(
            f"Virtual supply must be greater than 0, got {virtual_supply}"
        )
    _check_decimals(decimals)

    multiplier = 10**decimals
    virtual_raw = virtual_supply * multiplier
    if virtual_raw <= max_raw_units:
        return SupplyConversionResult(
            virtual_supply=virtual_supply,
            real_supply=virtual_supply,
            scale_factor=1.0,
            was_scaled=False,
            raw_units=virtual_raw,
        )

    scale_micros = virtual_raw * SCALE_PRECISION // max_raw_units
    real_supply = virtual_supply * SCALE_PRECISION // scale_micros
    real_raw = real_supply * multiplier

    if real_raw > max_raw_units or real_supply == 0:
        # Truncated scale factor can leave real_raw just over the limit
        real_supply = get_max_safe_supply(decimals, max_raw_units)
        if real_supply == 0:
            raise SupplyOverflowError(
                f"No whole token fits in {max_raw_units} raw units at {decimals} decimals"
            )
        real_raw = real_supply * multiplier
        scale_factor = virtual_supply / real_supply
    else:
        scale_factor = scale_micros / SCALE_PRECISION

    logger.debug(
        f"[SUPPLY] Scaled {virtual_supply} -> {real_supply} "
        f"(x{scale_factor:.6f}, {decimals} decimals)"
    )
    return SupplyConversionResult(
        virtual_supply=virtual_supply,
        real_supply=real_supply,
        scale_factor=scale_factor,
        was_scaled=True,
        raw_units=real_raw,
    )


_SUFFIXES = (
    (10**15, "Q"),
    (10**12, "T"),
    (10**9, "B"),
    (10**6, "M"),
    (10**3, "K"),
)


def format_supply(supply: float) -> str:
    """Compact display form, e.g. 1_500_000_000_000 -> "1.50T"."""
    for threshold, suffix in _SUFFIXES:
        if supply >= threshold:
            return f"{supply / threshold:.2f}{suffix}"
    return f"{supply:,}"
