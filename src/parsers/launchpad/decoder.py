"""Decode launchpad LaunchData accounts (Borsh, variable length).

Field order (both layouts):
  account_type      u8            AccountType
  launch_meta       u8 + payload  LaunchMeta (IDO: f64 + u64)
  plugins           Vec<LaunchPlugin>
  last_interaction  i64
  num_interactions  u16
  page_name         String
  listing           String (legacy) | Pubkey (current)
  total_supply      u64
  num_mints         u32
  ticket_price      u64
  minimum_liquidity u64
  launch_date       u64
  end_date          u64
  tickets_sold      u32
  ticket_claimed    u32
  mints_won         u32
  buffer1, buffer2  u64
  buffer3           u64 (legacy) | u32 (current)
  distribution      Vec<u64> (legacy) | Vec<u8> (current)
  flags             Vec<u8>
  strings           Vec<String>
  keys              Vec<String> (legacy) | Vec<Pubkey> (current)
  tail              legacy:  creator Pubkey, upvotes u32, downvotes u32, is_tradable u8
                    current: is_tradable u8, tokens_sold u64, is_graduated u8,
                             graduation_threshold u64

The data carries no version tag. By default both layouts are tried and a
buffer that fits both is rejected as ambiguous; callers that know which
layout their deployment writes can pin it with `schema`.
"""

import base64
import binascii
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pydantic import ValidationError

from src.parsers.launchpad.classifier import classify_category
from src.parsers.launchpad.constants import (
    ACCEPTED_ACCOUNT_TYPES,
    MAX_FIELD_LENGTH,
    PUBKEY_LENGTH,
    AccountType,
    LaunchMeta,
    PluginKind,
    SchemaVersion,
)
from src.parsers.launchpad.cursor import FieldCursor
from src.parsers.launchpad.exceptions import (
    AmbiguousSchemaError,
    InvalidRecordError,
    LaunchDecodeError,
    UninitializedAccountError,
    UnknownVariantError,
    UnrecognizedAccountTypeError,
)
from src.parsers.launchpad.models import LaunchRecord, WhitelistTokenPlugin

# Payload bytes following each LaunchMeta discriminant
LAUNCH_META_PAYLOAD_WIDTHS: dict[int, int] = {
    LaunchMeta.RAFFLE: 0,
    LaunchMeta.FCFS: 0,
    LaunchMeta.IDO: 16,  # token_fraction_distributed f64 + tokens_distributed u64
}


def _read_whitelist_token(cursor: FieldCursor) -> WhitelistTokenPlugin:
    return WhitelistTokenPlugin(
        token=cursor.read_pubkey(),
        quantity=cursor.read_u64(),
        phase_end=cursor.read_u64(),
    )


# Only variants listed here can be skipped; anything else stops decoding
PLUGIN_READERS: dict[int, Callable[[FieldCursor], WhitelistTokenPlugin]] = {
    PluginKind.WHITELIST_TOKEN: _read_whitelist_token,
}


def _read_legacy_tail(cursor: FieldCursor) -> dict[str, Any]:
    return {
        "creator": cursor.read_pubkey(),
        "upvotes": cursor.read_u32(),
        "downvotes": cursor.read_u32(),
        "is_tradable": cursor.read_bool(),
    }


def _read_current_tail(cursor: FieldCursor) -> dict[str, Any]:
    return {
        "is_tradable": cursor.read_bool(),
        "tokens_sold": cursor.read_u64(),
        "is_graduated": cursor.read_bool(),
        "graduation_threshold": cursor.read_u64(),
    }


@dataclass(frozen=True)
class _Layout:
    version: SchemaVersion
    read_listing: Callable[[FieldCursor], str]
    read_buffer3: Callable[[FieldCursor], int]
    read_distribution_item: Callable[[FieldCursor], int]
    distribution_width: int
    read_key: Callable[[FieldCursor], str]
    key_min_width: int
    read_tail: Callable[[FieldCursor], dict[str, Any]]


LAYOUTS: dict[SchemaVersion, _Layout] = {
    SchemaVersion.LEGACY: _Layout(
        version=SchemaVersion.LEGACY,
        read_listing=FieldCursor.read_string,
        read_buffer3=FieldCursor.read_u64,
        read_distribution_item=FieldCursor.read_u64,
        distribution_width=8,
        read_key=FieldCursor.read_string,
        key_min_width=4,
        read_tail=_read_legacy_tail,
    ),
    SchemaVersion.CURRENT: _Layout(
        version=SchemaVersion.CURRENT,
        read_listing=FieldCursor.read_pubkey,
        read_buffer3=FieldCursor.read_u32,
        read_distribution_item=FieldCursor.read_u8,
        distribution_width=1,
        read_key=FieldCursor.read_pubkey,
        key_min_width=PUBKEY_LENGTH,
        read_tail=_read_current_tail,
    ),
}


@dataclass(frozen=True)
class LaunchDecodeResult:
    """Outcome of decoding one buffer: exactly one of record / error is set."""

    address: str | None = None
    record: LaunchRecord | None = None
    error: LaunchDecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass
class LaunchBatch:
    records: list[LaunchRecord] = field(default_factory=list)
    failures: list[LaunchDecodeResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records) + len(self.failures)


def _read_launch_meta(cursor: FieldCursor) -> LaunchMeta:
    offset = cursor.offset
    discriminant = cursor.read_u8()
    width = LAUNCH_META_PAYLOAD_WIDTHS.get(discriminant)
    if width is None:
        raise UnknownVariantError("LaunchMeta", discriminant, offset)
    cursor.read_fixed_bytes(width)
    return LaunchMeta(discriminant)


def _read_plugins(cursor: FieldCursor) -> list[WhitelistTokenPlugin]:
    count = cursor.read_vec_count(1)
    plugins = []
    for _ in range(count):
        offset = cursor.offset
        discriminant = cursor.read_u8()
        reader = PLUGIN_READERS.get(discriminant)
        if reader is None:
            raise UnknownVariantError("LaunchPlugin", discriminant, offset)
        plugins.append(reader(cursor))
    return plugins


def _read_vec(
    cursor: FieldCursor, read_item: Callable[[FieldCursor], Any], min_width: int
) -> list[Any]:
    count = cursor.read_vec_count(min_width)
    return [read_item(cursor) for _ in range(count)]


def _decode_with_layout(
    data: bytes,
    layout: _Layout,
    address: str | None,
    max_field_length: int,
) -> tuple[LaunchRecord, FieldCursor]:
    """Decode `data` with one layout. Raises LaunchDecodeError on any failure."""
    cursor = FieldCursor(data, max_field_length=max_field_length)

    account_type = cursor.read_u8()
    if account_type not in ACCEPTED_ACCOUNT_TYPES:
        raise UnrecognizedAccountTypeError(account_type)

    launch_meta = _read_launch_meta(cursor)
    plugins = _read_plugins(cursor)

    fields: dict[str, Any] = {
        "last_interaction": cursor.read_i64(),
        "num_interactions": cursor.read_u16(),
        "page_name": cursor.read_string(),
        "listing": layout.read_listing(cursor),
        "total_supply": cursor.read_u64(),
        "num_mints": cursor.read_u32(),
        "ticket_price": cursor.read_u64(),
        "minimum_liquidity": cursor.read_u64(),
        "launch_date": cursor.read_u64(),
        "end_date": cursor.read_u64(),
        "tickets_sold": cursor.read_u32(),
        "tickets_claimed": cursor.read_u32(),
        "mints_won": cursor.read_u32(),
        "buffer1": cursor.read_u64(),
        "buffer2": cursor.read_u64(),
        "buffer3": layout.read_buffer3(cursor),
    }
    fields["distribution"] = _read_vec(
        cursor, layout.read_distribution_item, layout.distribution_width
    )
    fields["flags"] = list(cursor.read_length_prefixed_bytes())
    fields["strings"] = _read_vec(cursor, FieldCursor.read_string, 4)
    fields["keys"] = _read_vec(cursor, layout.read_key, layout.key_min_width)
    fields.update(layout.read_tail(cursor))

    category = classify_category(fields["strings"], fields["flags"], launch_meta)

    try:
        record = LaunchRecord(
            address=address,
            schema_version=layout.version,
            account_type=AccountType(account_type),
            launch_meta=launch_meta,
            category=category,
            plugins=plugins,
            **fields,
        )
    except ValidationError as e:
        raise InvalidRecordError(
            f"Decoded fields violate record invariants: {e.errors()[0]['msg']}",
            cursor.offset,
        ) from e
    return record, cursor


def _decode_inferred(
    data: bytes, address: str | None, max_field_length: int
) -> LaunchRecord:
    fits: list[LaunchRecord] = []
    failures: list[LaunchDecodeError] = []
    for layout in LAYOUTS.values():
        try:
            record, cursor = _decode_with_layout(data, layout, address, max_field_length)
        except LaunchDecodeError as e:
            failures.append(e)
            continue
        if cursor.rest_is_zero():
            fits.append(record)
        else:
            failures.append(
                InvalidRecordError(
                    f"{cursor.remaining} non-zero trailing bytes after "
                    f"{layout.version.value} layout",
                    cursor.offset,
                )
            )

    if len(fits) == 1:
        return fits[0]
    if len(fits) > 1:
        raise AmbiguousSchemaError(
            "Buffer fits both legacy and current layouts; pin the schema explicitly"
        )
    # Report the layout that got furthest, it is the likelier intended one
    raise max(failures, key=lambda e: -1 if e.offset is None else e.offset)


def decode_launch_account(
    data: bytes,
    *,
    address: str | None = None,
    schema: SchemaVersion | None = None,
    max_field_length: int = MAX_FIELD_LENGTH,
) -> LaunchDecodeResult:
    """Decode one LaunchData buffer.

    Never raises on bad data: failures are returned as a typed error on the
    result so a batch scan can skip the record and continue.

    Args:
        data: Raw account bytes.
        address: Account address, carried onto the record and into logs.
        schema: Layout to decode with; None infers it from the buffer shape.
        max_field_length: Sanity ceiling for length-prefixed fields.
    """
    label = (address or "<unknown>")[:12]
    try:
        if not any(data):
            raise UninitializedAccountError("Account data is empty or all zeros", 0)
        if schema is None:
            record = _decode_inferred(data, address, max_field_length)
        else:
            record, _ = _decode_with_layout(
                data, LAYOUTS[SchemaVersion(schema)], address, max_field_length
            )
    except LaunchDecodeError as e:
        logger.debug(f"[LAUNCH] Skipping {label} ({len(data)} bytes): {e}")
        return LaunchDecodeResult(address=address, error=e)

    return LaunchDecodeResult(address=address, record=record)


def decode_launch_account_b64(
    address: str,
    data_b64: str,
    *,
    schema: SchemaVersion | None = None,
    max_field_length: int = MAX_FIELD_LENGTH,
) -> LaunchDecodeResult:
    """Decode base64-encoded account data as returned by Solana RPC."""
    try:
        data = base64.b64decode(data_b64, validate=True)
    except (binascii.Error, ValueError):
        logger.debug(f"[LAUNCH] Failed to base64-decode account data for {address[:12]}")
        return LaunchDecodeResult(
            address=address, error=LaunchDecodeError("Account data is not valid base64")
        )
    return decode_launch_account(
        data, address=address, schema=schema, max_field_length=max_field_length
    )


def decode_launch_accounts(
    accounts: Iterable[tuple[str, bytes]],
    *,
    schema: SchemaVersion | None = None,
    max_field_length: int = MAX_FIELD_LENGTH,
) -> LaunchBatch:
    """Decode many (address, data) pairs; failed records are logged and skipped."""
    batch = LaunchBatch()
    for address, data in accounts:
        result = decode_launch_account(
            data, address=address, schema=schema, max_field_length=max_field_length
        )
        if result.record is not None:
            batch.records.append(result.record)
        else:
            batch.failures.append(result)

    if batch.failures:
        logger.warning(
            f"[LAUNCH] Decoded {len(batch.records)}/{batch.total} launch accounts, "
            f"skipped {len(batch.failures)}"
        )
    else:
        logger.info(f"[LAUNCH] Decoded {len(batch.records)} launch accounts")
    return batch
