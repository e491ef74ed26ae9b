"""secp256k1 ECDSA helpers for envelope signing.

Signatures are DER-encoded ECDSA signatures over the SHA-256 digest of the
signed bytes. Public keys are 33-byte compressed points.

The parse functions return None instead of raising, so callers can treat
malformed key material as a plain verification failure.
"""

import hashlib
from typing import Optional, Tuple

from coincurve import PrivateKey, PublicKey
from coincurve.ecdsa import der_to_cdata

# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def digest(data: bytes) -> bytes:
    """SHA-256 digest of data."""
    return hashlib.sha256(data).digest()


def sign_digest(message_hash: bytes, private_key: PrivateKey) -> bytes:
    """Sign a 32-byte digest, returning a DER-encoded signature."""
    return private_key.sign(message_hash, hasher=None)


def public_key_bytes(private_key: PrivateKey) -> bytes:
    """Compressed public key for a private key."""
    return private_key.public_key.format(compressed=True)


def parse_public_key(data: bytes) -> Optional[PublicKey]:
    """Parse a serialized public key.

    Returns:
        PublicKey, or None if data is not a valid curve point
    """
    try:
        return PublicKey(bytes(data))
    except (ValueError, TypeError):
        return None


def parse_signature(data: bytes) -> Optional[bytes]:
    """Check that data is a parseable DER signature.

    High-S signatures are rewritten to their low-S form, since
    libsecp256k1 only verifies the latter.

    Returns:
        The low-S signature bytes, or None if they cannot be parsed
    """
    try:
        der_to_cdata(bytes(data))
    except (ValueError, TypeError):
        return None
    return normalize_signature(bytes(data))


def decode_der(signature: bytes) -> Optional[Tuple[int, int]]:
    """Split a DER signature into its (r, s) integers.

    Returns:
        (r, s), or None if signature is not a plain two-integer sequence
    """
    if len(signature) < 8 or signature[0] != 0x30 or signature[1] != len(signature) - 2:
        return None
    if signature[2] != 0x02:
        return None
    r_end = 4 + signature[3]
    if r_end + 2 > len(signature) or signature[r_end] != 0x02:
        return None
    if r_end + 2 + signature[r_end + 1] != len(signature):
        return None
    r = int.from_bytes(signature[4:r_end], "big")
    s = int.from_bytes(signature[r_end + 2:], "big")
    return r, s


def _der_integer(value: int) -> bytes:
    body = value.to_bytes((value.bit_length() + 7) // 8 or 1, "big")
    if body[0] & 0x80:
        body = b"\x00" + body
    return b"\x02" + bytes([len(body)]) + body


def encode_der(r: int, s: int) -> bytes:
    """Encode (r, s) as a DER signature."""
    body = _der_integer(r) + _der_integer(s)
    return b"\x30" + bytes([len(body)]) + body


def normalize_signature(signature: bytes) -> bytes:
    """Return the low-S form of a DER signature."""
    values = decode_der(signature)
    if values is None:
        return signature
    r, s = values
    if s <= CURVE_ORDER // 2:
        return signature
    return encode_der(r, CURVE_ORDER - s)


def verify_digest(message_hash: bytes, signature: bytes, public_key: PublicKey) -> bool:
    """Verify a DER signature over a 32-byte digest."""
    return public_key.verify(signature, message_hash, hasher=None)


def private_key_from_hex(hex_key: str) -> PrivateKey:
    """Load a private key from a 32-byte hex secret.

    Raises:
        ValueError: If hex_key is not a valid secret
    """
    secret = bytes.fromhex(hex_key)
    if len(secret) != 32:
        raise ValueError(f"Private key must be 32 bytes, got {len(secret)}")
    return PrivateKey(secret)
