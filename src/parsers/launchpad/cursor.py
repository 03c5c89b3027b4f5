"""Bounds-checked sequential reader over a Borsh-encoded account buffer.

Borsh wire rules used by the launchpad program:
  integers      little-endian, fixed width
  bool          u8 (0 = false, anything else = true)
  String        u32 length + UTF-8 bytes
  Vec<T>        u32 count + elements
  Pubkey        32 raw bytes
"""

import struct

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from src.parsers.launchpad.constants import MAX_FIELD_LENGTH, PUBKEY_LENGTH
from src.parsers.launchpad.exceptions import (
    BufferTooShortError,
    CorruptLengthPrefixError,
)

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")


class FieldCursor:
    """Reads typed fields from an immutable buffer, advancing an offset.

    Every read raises BufferTooShortError before touching bytes past the
    end of the buffer. Length-prefixed reads raise CorruptLengthPrefixError
    when the declared length is larger than what is left or larger than
    `max_field_length`.
    """

    def __init__(
        self, data: bytes, offset: int = 0, *, max_field_length: int = MAX_FIELD_LENGTH
    ) -> None:
        self._data = bytes(data)
        self._offset = offset
        self._max_field_length = max_field_length

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def rest_is_zero(self) -> bool:
        """True when every unread byte is zero padding."""
        return not any(self._data[self._offset :])

    def _take(self, width: int) -> bytes:
        if width < 0 or width > self.remaining:
            raise BufferTooShortError(self._offset, width, len(self._data))
        chunk = self._data[self._offset : self._offset + width]
        self._offset += width
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self._take(fmt.size))[0]

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def read_fixed_bytes(self, width: int) -> bytes:
        return self._take(width)

    def read_pubkey(self) -> str:
        """Read a 32-byte key and render it base58."""
        return str(Pubkey.from_bytes(self._take(PUBKEY_LENGTH)))

    def _read_length(self) -> int:
        prefix_offset = self._offset
        length = self.read_u32()
        limit = min(self.remaining, self._max_field_length)
        if length > limit:
            raise CorruptLengthPrefixError(
                f"Declared length {length} at offset {prefix_offset} exceeds "
                f"limit {limit} (buffer length {len(self._data)})",
                prefix_offset,
            )
        return length

    def read_length_prefixed_bytes(self) -> bytes:
        return self._take(self._read_length())

    def read_string(self) -> str:
        start = self._offset
        raw = self.read_length_prefixed_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptLengthPrefixError(
                f"String at offset {start} is not valid UTF-8: {e.reason}", start
            ) from e

    def read_vec_count(self, element_width: int) -> int:
        """Read a Vec<T> count and check the elements can fit.

        `element_width` is the minimum encoded size of one element; it turns
        an absurd count into a CorruptLengthPrefixError instead of a long
        loop that fails at the end.
        """
        prefix_offset = self._offset
        count = self.read_u32()
        if count * element_width > self.remaining:
            raise CorruptLengthPrefixError(
                f"Vector count {count} at offset {prefix_offset} needs at least "
                f"{count * element_width} bytes, {self.remaining} left",
                prefix_offset,
            )
        return count
