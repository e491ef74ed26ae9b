"""CBOR transaction payloads and signed envelopes."""

__version__ = "0.1.0"

# Errors
from txpost.errors import InvalidStructure, MalformedEncoding, TxpostError

# Payloads
from txpost.payload import Batch, DataShape, Payload, Single

# Envelopes
from txpost.envelope import Envelope

# Configuration
from txpost.config import Config

__all__ = [
    # Version
    "__version__",
    # Errors
    "TxpostError",
    "InvalidStructure",
    "MalformedEncoding",
    # Payloads
    "Payload",
    "Single",
    "Batch",
    "DataShape",
    # Envelopes
    "Envelope",
    # Config
    "Config",
]
