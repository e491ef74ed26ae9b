"""MCP server for building, signing and verifying CBOR transaction envelopes.

All tools are offline. Byte values cross the tool boundary as hex strings.
Nothing is broadcast or stored.
"""

import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from txpost.config import Config, load_config
from txpost.crypto import private_key_from_hex
from txpost.envelope import Envelope
from txpost.payload import Payload

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    """Convert decoded CBOR values into JSON-friendly ones (bytes become hex)."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _describe_payload(payload: Payload) -> dict:
    transactions = []
    for entry in payload.entries:
        item = {"rawtx_hex": entry["rawtx"].hex()}
        item.update({k: _jsonable(v) for k, v in entry.items() if k != "rawtx"})
        transactions.append(item)
    return {
        "is_batch": payload.is_batch,
        "count": len(transactions),
        "transactions": transactions,
        "meta": _jsonable(payload.meta) if payload.meta else None,
    }


def _describe_envelope(envelope: Envelope) -> dict:
    return {
        "envelope_hex": envelope.encode().hex(),
        "payload_hex": envelope.payload.hex(),
        "pubkey_hex": envelope.pubkey.hex() if envelope.pubkey else None,
        "signature_hex": envelope.signature.hex() if envelope.signature else None,
        "signed": envelope.is_signed,
    }


def create_server(config: Optional[Config] = None) -> FastMCP:
    """Create and configure the MCP server with all tools.

    Args:
        config: Optional configuration. If not provided, uses defaults.

    Returns:
        Configured FastMCP server instance.
    """
    if config is None:
        config = Config()

    mcp = FastMCP(config.server_name)

    # Store config on server for access by tools
    mcp._config = config

    def from_hex(value: str, name: str) -> bytes:
        """Decode a hex tool argument, enforcing the size limit."""
        try:
            data = bytes.fromhex(value)
        except (ValueError, TypeError):
            raise ValueError(f"Invalid hex string for {name}") from None
        if len(data) > config.max_data_size:
            raise ValueError(
                f"{name} too large: {len(data)} bytes (max {config.max_data_size})"
            )
        return data

    # =========================================================================
    # Payloads
    # =========================================================================

    @mcp.tool()
    def build_payload(rawtx_hex: str, meta: Optional[dict] = None) -> dict:
        """Build a CBOR payload carrying a single raw transaction.

        Args:
            rawtx_hex: Raw transaction as hex string
            meta: Optional metadata map

        Returns:
            Dictionary with 'payload_hex' and 'size'.
        """
        try:
            rawtx = from_hex(rawtx_hex, "rawtx")
            payload = Payload.build(data={"rawtx": rawtx}, meta=meta)
        except ValueError as e:
            return {"error": str(e)}

        encoded = payload.encode()
        return {"payload_hex": encoded.hex(), "size": len(encoded)}

    @mcp.tool()
    def build_batch_payload(rawtx_hexes: list[str], meta: Optional[dict] = None) -> dict:
        """Build a CBOR payload carrying several raw transactions.

        Args:
            rawtx_hexes: Raw transactions as hex strings, in order
            meta: Optional metadata map

        Returns:
            Dictionary with 'payload_hex', 'size' and 'count'.
        """
        try:
            entries = [{"rawtx": from_hex(h, "rawtx")} for h in rawtx_hexes]
            payload = Payload.build(data=entries, meta=meta)
        except ValueError as e:
            return {"error": str(e)}

        encoded = payload.encode()
        return {
            "payload_hex": encoded.hex(),
            "size": len(encoded),
            "count": len(payload.entries),
        }

    @mcp.tool()
    def parse_payload(payload_hex: str) -> dict:
        """Decode a CBOR payload.

        Args:
            payload_hex: CBOR payload as hex string

        Returns:
            Dictionary with 'is_batch', 'count', 'transactions' and 'meta'.
        """
        try:
            payload = Payload.decode(from_hex(payload_hex, "payload"))
        except ValueError as e:
            return {"error": str(e)}
        return _describe_payload(payload)

    # =========================================================================
    # Envelopes
    # =========================================================================

    @mcp.tool()
    def build_envelope(payload_hex: str, private_key_hex: Optional[str] = None) -> dict:
        """Wrap an encoded payload in an envelope, optionally signing it.

        Args:
            payload_hex: CBOR payload as hex string
            private_key_hex: Optional 32-byte secp256k1 secret as hex

        Returns:
            Dictionary with the encoded envelope and its fields.
        """
        try:
            envelope = Envelope(payload=from_hex(payload_hex, "payload"))
            if private_key_hex:
                envelope.sign(private_key_from_hex(private_key_hex))
        except ValueError as e:
            return {"error": str(e)}
        return _describe_envelope(envelope)

    @mcp.tool()
    def sign_envelope(envelope_hex: str, private_key_hex: str) -> dict:
        """Sign an envelope, replacing any existing signature.

        Args:
            envelope_hex: CBOR envelope as hex string
            private_key_hex: 32-byte secp256k1 secret as hex

        Returns:
            Dictionary with the signed envelope and its fields.
        """
        try:
            envelope = Envelope.decode(from_hex(envelope_hex, "envelope"))
            envelope.sign(private_key_from_hex(private_key_hex))
        except ValueError as e:
            return {"error": str(e)}
        return _describe_envelope(envelope)

    @mcp.tool()
    def verify_envelope(envelope_hex: str) -> dict:
        """Verify an envelope's signature against its payload.

        Args:
            envelope_hex: CBOR envelope as hex string

        Returns:
            Dictionary with 'verified' and the signer 'pubkey_hex'.
        """
        try:
            envelope = Envelope.decode(from_hex(envelope_hex, "envelope"))
        except ValueError as e:
            return {"error": str(e)}

        return {
            "verified": envelope.verify(),
            "signed": envelope.is_signed,
            "pubkey_hex": envelope.pubkey.hex() if envelope.pubkey else None,
        }

    @mcp.tool()
    def open_envelope(envelope_hex: str) -> dict:
        """Verify an envelope and decode its payload.

        Unverified envelopes are refused unless signatures are optional
        in the server configuration.

        Args:
            envelope_hex: CBOR envelope as hex string

        Returns:
            Dictionary with 'verified', 'pubkey_hex' and the decoded payload.
        """
        try:
            envelope = Envelope.decode(from_hex(envelope_hex, "envelope"))
        except ValueError as e:
            return {"error": str(e)}

        verified = envelope.verify()
        if not verified and config.require_signature:
            logger.info("Refusing to open unverified envelope")
            return {"error": "Envelope signature did not verify", "verified": False}

        try:
            payload = envelope.decode_payload()
        except ValueError as e:
            return {"error": str(e), "verified": verified}

        result = {
            "verified": verified,
            "pubkey_hex": envelope.pubkey.hex() if envelope.pubkey else None,
        }
        result.update(_describe_payload(payload))
        return result

    return mcp


def main():
    """Entry point for the MCP server."""
    from pathlib import Path

    # Try to load config from standard locations
    config_paths = [
        Path("txpost.toml"),
        Path.home() / ".config" / "txpost" / "config.toml",
    ]

    config = None
    for path in config_paths:
        if path.exists():
            config = load_config(path)
            break

    if config is None:
        config = Config()

    logging.basicConfig(level=config.log_level)

    server = create_server(config)
    server.run()


if __name__ == "__main__":
    main()
