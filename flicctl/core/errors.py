"""Domain-specific errors for flicctl."""


class FlicctlError(Exception):
    """Base error for flicctl."""


class AddressError(FlicctlError):
    """Base address error."""


class MalformedAddress(AddressError):
    """Raised when a Bluetooth address string is not canonical colon-hex."""


class CodecError(FlicctlError):
    """Base error for record encoding/decoding. Recoverable at the frame boundary."""


class UnknownOpcode(CodecError):
    """Raised when strict decoding meets an opcode outside the known event set."""

    def __init__(self, opcode: int, raw: bytes = b"") -> None:
        super().__init__(f"Unknown event opcode {opcode}")
        self.opcode = opcode
        self.raw = raw


class TruncatedRecord(CodecError):
    """Raised when a record is shorter than its header or declared tail requires."""


class BoundsViolation(CodecError):
    """Raised when a declared length field exceeds the field's fixed capacity."""


class InvalidTelemetry(CodecError):
    """Raised when a reported measurement is outside the range the protocol allows."""


class EncodeError(CodecError):
    """Raised when a command field does not fit its wire width."""


class FramingError(FlicctlError):
    """Base framing error."""


class RecordTooLarge(FramingError):
    """Raised when a length prefix exceeds the configured maximum record size."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(f"Record of {length} bytes exceeds maximum of {limit} bytes")
        self.length = length
        self.limit = limit


class TransportError(FlicctlError):
    """Base transport error. Always fatal to the current connection."""


class TransportConnectError(TransportError):
    """Raised on TCP connect failures."""


class TransportWriteError(TransportError):
    """Raised when a frame cannot be written completely."""


class TransportReadError(TransportError):
    """Raised when reading from the server fails."""


class ConnectionClosed(TransportReadError):
    """Raised when the server shut the connection down in an orderly way."""


class SessionError(FlicctlError):
    """Base error for identifier bookkeeping misuse by the caller."""


class DuplicateId(SessionError):
    """Raised when allocating an identifier that is already tracked."""


class UnknownId(SessionError):
    """Raised when releasing or addressing an identifier that is not tracked."""


class ConfigError(FlicctlError):
    """Raised when reading the config file fails."""


class ConfigValidationError(ConfigError):
    """Raised when the config file does not conform to schema or semantics."""
