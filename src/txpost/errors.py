"""Errors raised when building or decoding payloads and envelopes."""


class TxpostError(ValueError):
    """Base class for txpost errors."""


class InvalidStructure(TxpostError):
    """A field failed structural validation."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Invalid param: {field}")


class MalformedEncoding(TxpostError):
    """Input bytes are not exactly one well-formed CBOR map."""
