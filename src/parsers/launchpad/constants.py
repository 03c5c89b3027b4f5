"""Launchpad program constants and account layout tags."""

from enum import Enum, IntEnum

# Deployed launchpad program (owner of every LaunchData account)
LAUNCHPAD_PROGRAM_ID = "J3Qr5TAMocTrPXrJbjH86jLQ3bCXJaS4hFgaE54zT2jg"

# Owners accepted by the online identity check
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
TOKEN_OWNER_PROGRAMS = frozenset({TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID})

# Wrapped SOL: the quote asset, never the launched token
WSOL_MINT = "So11111111111111111111111111111111111111112"

# Pubkey::default() rendered base58 (32 zero bytes)
NULL_ADDRESS = "11111111111111111111111111111111"

# IPFS CIDv0 / CIDv1 prefixes that show up in keys written by old clients
CONTENT_HASH_PREFIXES = ("Qm", "baf")

PUBKEY_LENGTH = 32

# Sanity ceiling for any length-prefixed field (strings, byte vectors)
MAX_FIELD_LENGTH = 10 * 1024

# Conventional positions inside LaunchData.strings / LaunchData.keys
STRING_NAME = 0
STRING_SYMBOL = 1
STRING_URI = 2
STRING_ICON = 3
STRING_BANNER = 4
STRING_CATEGORY_TAG = 6

KEY_SELLER = 0
KEY_TEAM_WALLET = 1
KEY_TOKEN_SLOT = 2


class AccountType(IntEnum):
    """Leading byte of every account owned by the launchpad program."""

    LAUNCH = 0
    PROGRAM = 1
    USER = 2
    JOIN = 3


# Program (1) is accepted because some live launch accounts carry a corrupted type byte
ACCEPTED_ACCOUNT_TYPES = frozenset({AccountType.LAUNCH, AccountType.PROGRAM})


class LaunchMeta(IntEnum):
    """LaunchMeta enum discriminant."""

    RAFFLE = 0
    FCFS = 1
    IDO = 2


class PluginKind(IntEnum):
    """LaunchPlugin enum discriminant."""

    WHITELIST_TOKEN = 0


class SchemaVersion(str, Enum):
    """Observed LaunchData layouts.

    LEGACY: listing as String, distribution Vec<u64>, keys Vec<String>,
    trailer creator/upvotes/downvotes/is_tradable.
    CURRENT: listing as Pubkey, distribution Vec<u8>, keys Vec<Pubkey>,
    trailer is_tradable/tokens_sold/is_graduated/graduation_threshold.
    """

    CURRENT = "current"
    LEGACY = "legacy"


class LaunchCategory(str, Enum):
    RAFFLE = "raffle"
    INSTANT = "instant"
    IDO = "ido"


class LaunchStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    ENDED = "ended"
