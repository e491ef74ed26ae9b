"""CBOR encoding and strict decoding.

Maps are written in insertion order rather than RFC 8949 canonical order,
so callers control the byte layout by building their dicts in a fixed key
order. Decoding accepts exactly one top-level map.
"""

import io
import logging

import cbor2

from txpost.errors import MalformedEncoding

logger = logging.getLogger(__name__)


def encode_map(data: dict) -> bytes:
    """Encode a dict as a CBOR map, preserving key order.

    Args:
        data: Map to encode

    Returns:
        CBOR bytes
    """
    return cbor2.dumps(data)


def decode_map(data: bytes) -> dict:
    """Decode exactly one CBOR map from data.

    Args:
        data: CBOR bytes

    Returns:
        Decoded map

    Raises:
        MalformedEncoding: If data is not valid CBOR, holds trailing bytes
            after the first item, or the item is not a map
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise MalformedEncoding(f"Expected bytes, got {type(data).__name__}")

    data = bytes(data)
    fp = io.BytesIO(data)
    try:
        item = cbor2.CBORDecoder(fp).decode()
    except cbor2.CBORDecodeError as e:
        logger.debug("CBOR decode failed: %s", e)
        raise MalformedEncoding(f"Invalid CBOR: {e}") from e

    remaining = len(data) - fp.tell()
    if remaining:
        raise MalformedEncoding(f"Remaining bytes: {remaining} after first item")

    if not isinstance(item, dict):
        raise MalformedEncoding(f"Expected CBOR map, got {type(item).__name__}")
    return item
