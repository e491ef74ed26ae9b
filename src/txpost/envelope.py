"""Signed CBOR transaction envelopes.

The envelope format:

    {"payload": <bytes>, "pubkey": <bytes>, "signature": <bytes>}

- payload: CBOR-encoded Payload, treated as an opaque blob
- pubkey: 33-byte compressed secp256k1 public key (optional)
- signature: DER-encoded ECDSA signature over SHA-256(payload) (optional)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from coincurve import PrivateKey

from txpost import crypto
from txpost.codec import decode_map, encode_map
from txpost.errors import InvalidStructure
from txpost.payload import Payload

logger = logging.getLogger(__name__)

_BYTES_TYPES = (bytes, bytearray, memoryview)


@dataclass(frozen=True)
class Envelope:
    """Encoded payload plus optional signer public key and signature.

    Fields are read-only; sign() is the only operation that replaces them.
    Unhashable, since sign() changes the field values.
    """

    __hash__ = None

    payload: bytes
    pubkey: Optional[bytes] = None
    signature: Optional[bytes] = None

    def __post_init__(self):
        if not isinstance(self.payload, _BYTES_TYPES) or not self.payload:
            raise InvalidStructure("payload")
        if self.pubkey is not None and not isinstance(self.pubkey, _BYTES_TYPES):
            raise InvalidStructure("pubkey")
        if self.signature is not None and not isinstance(self.signature, _BYTES_TYPES):
            raise InvalidStructure("signature")

        object.__setattr__(self, "payload", bytes(self.payload))
        object.__setattr__(self, "pubkey", bytes(self.pubkey) if self.pubkey else None)
        object.__setattr__(self, "signature", bytes(self.signature) if self.signature else None)

    @classmethod
    def decode(cls, data: bytes) -> "Envelope":
        """Decode a CBOR envelope.

        Raises:
            MalformedEncoding: If data is not exactly one CBOR map
            InvalidStructure: If a field has the wrong type
        """
        params = decode_map(data)
        return cls(
            payload=params.get("payload"),
            pubkey=params.get("pubkey"),
            signature=params.get("signature"),
        )

    @property
    def is_signed(self) -> bool:
        return self.pubkey is not None and self.signature is not None

    def decode_payload(self) -> Payload:
        """Decode the wrapped payload bytes into a new Payload."""
        return Payload.decode(self.payload)

    def to_dict(self) -> dict:
        """Canonical map form: payload, pubkey, signature; absent keys omitted."""
        result = {"payload": self.payload}
        if self.pubkey:
            result["pubkey"] = self.pubkey
        if self.signature:
            result["signature"] = self.signature
        return result

    def encode(self) -> bytes:
        """Encode as CBOR bytes."""
        return encode_map(self.to_dict())

    def sign(self, private_key: PrivateKey) -> None:
        """Sign the payload bytes, replacing any existing pubkey and signature."""
        message_hash = crypto.digest(self.payload)
        object.__setattr__(self, "signature", crypto.sign_digest(message_hash, private_key))
        object.__setattr__(self, "pubkey", crypto.public_key_bytes(private_key))

    def verify(self) -> bool:
        """Check the signature against the payload bytes and pubkey.

        Returns False, never raises, when either field is missing or cannot
        be parsed.
        """
        if not self.is_signed:
            return False

        public_key = crypto.parse_public_key(self.pubkey)
        if public_key is None:
            logger.debug("Unparseable public key (%d bytes)", len(self.pubkey))
            return False

        signature = crypto.parse_signature(self.signature)
        if signature is None:
            logger.debug("Unparseable signature (%d bytes)", len(self.signature))
            return False

        verified = crypto.verify_digest(crypto.digest(self.payload), signature, public_key)
        logger.debug("Signature verification %s", "passed" if verified else "failed")
        return verified
