class LaunchDecodeError(Exception):
    """Base class for a LaunchData buffer that could not be decoded.

    `offset` is the cursor position where decoding stopped (None when the
    failure is not tied to a position).
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class BufferTooShortError(LaunchDecodeError):
    def __init__(self, offset: int, width: int, length: int) -> None:
        super().__init__(
            f"Cannot read {width} bytes at offset {offset} (buffer length {length})",
            offset,
        )
        self.width = width
        self.length = length


class CorruptLengthPrefixError(LaunchDecodeError):
    pass


class UninitializedAccountError(LaunchDecodeError):
    pass


class UnrecognizedAccountTypeError(LaunchDecodeError):
    def __init__(self, account_type: int) -> None:
        super().__init__(f"Not a launch account (type={account_type})", 0)
        self.account_type = account_type


class UnknownVariantError(LaunchDecodeError):
    """Enum discriminant without a known payload width; the cursor cannot skip it."""

    def __init__(self, enum_name: str, discriminant: int, offset: int) -> None:
        super().__init__(
            f"Unknown {enum_name} variant {discriminant} at offset {offset}", offset
        )
        self.enum_name = enum_name
        self.discriminant = discriminant


class AmbiguousSchemaError(LaunchDecodeError):
    pass


class InvalidRecordError(LaunchDecodeError):
    pass
