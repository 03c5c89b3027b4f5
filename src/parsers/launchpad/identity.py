"""Recover the launched token mint from a LaunchData key list.

Where the mint lives depends on the client that created the launch:
  - instant launches store it in keys[2] (the slot older clients used for WSOL)
  - some launches store it elsewhere in keys
  - otherwise the listing field is the best remaining guess

Strategies run in that order and the first accepted candidate wins. The
offline variant accepts on shape alone, so it is best-effort. The online
variant also requires the candidate to be owned by the SPL Token or
Token-2022 program.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import base58
from loguru import logger

from src.parsers.launchpad.constants import (
    CONTENT_HASH_PREFIXES,
    KEY_TOKEN_SLOT,
    NULL_ADDRESS,
    PUBKEY_LENGTH,
    TOKEN_OWNER_PROGRAMS,
    WSOL_MINT,
)

OwnerLookup = Callable[[str], Awaitable[str | None]]

SOURCE_TOKEN_SLOT = "token_slot"
SOURCE_KEY_SCAN = "key_scan"
SOURCE_LISTING = "listing"


@dataclass(frozen=True)
class TokenIdentity:
    """Resolved mint plus the strategy that produced it."""

    mint: str
    source: str

    @property
    def verified_shape(self) -> bool:
        """False when we fell back to the listing field."""
        return self.source != SOURCE_LISTING


def is_mint_candidate(key: str | None) -> bool:
    """Shape filter: a 32-byte base58 key that is not a hash, WSOL or the null key."""
    if not key or key.startswith(CONTENT_HASH_PREFIXES):
        return False
    if key in (WSOL_MINT, NULL_ADDRESS):
        return False
    try:
        raw = base58.b58decode(key)
    except ValueError:
        return False
    return len(raw) == PUBKEY_LENGTH


def _token_slot_candidates(keys: Sequence[str]) -> list[str]:
    return [keys[KEY_TOKEN_SLOT]] if len(keys) > KEY_TOKEN_SLOT else []


def _key_scan_candidates(keys: Sequence[str]) -> list[str]:
    return list(keys)


CANDIDATE_STRATEGIES: tuple[tuple[str, Callable[[Sequence[str]], list[str]]], ...] = (
    (SOURCE_TOKEN_SLOT, _token_slot_candidates),
    (SOURCE_KEY_SCAN, _key_scan_candidates),
)


def resolve_token_identity(keys: Sequence[str], listing: str) -> TokenIdentity:
    """Offline resolution: first well-shaped candidate, else `listing`."""
    for source, candidates in CANDIDATE_STRATEGIES:
        for key in candidates(keys):
            if is_mint_candidate(key):
                return TokenIdentity(mint=key, source=source)

    logger.debug(f"[IDENTITY] No mint-shaped key in {len(keys)} keys, using listing")
    return TokenIdentity(mint=listing, source=SOURCE_LISTING)


async def resolve_token_identity_online(
    keys: Sequence[str],
    listing: str,
    owner_lookup: OwnerLookup,
) -> TokenIdentity:
    """Like resolve_token_identity, but a candidate must be a token-program account.

    Args:
        keys: LaunchRecord.keys.
        listing: LaunchRecord.listing, the last-resort answer.
        owner_lookup: Returns the owning program of an address (None if the
            account is missing or the lookup failed).
    """
    checked: dict[str, bool] = {}
    for source, candidates in CANDIDATE_STRATEGIES:
        for key in candidates(keys):
            if not is_mint_candidate(key):
                continue
            if key not in checked:
                owner = await owner_lookup(key)
                checked[key] = owner in TOKEN_OWNER_PROGRAMS
            if checked[key]:
                return TokenIdentity(mint=key, source=source)

    logger.debug(
        f"[IDENTITY] None of {len(checked)} candidates is a token mint, using listing"
    )
    return TokenIdentity(mint=listing, source=SOURCE_LISTING)
