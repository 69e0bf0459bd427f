# jsonsigner/core/encoding.py
import base64
import binascii
import hashlib

import bech32


def b64_encode(data: bytes) -> str:
    """Encode bytes to standard padded base64, as protojson does for bytes fields."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(s: str) -> bytes:
    """Decode standard base64; raises ValueError on malformed input."""
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError(f"invalid base64 {s!r}: {e}") from e


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def ripemd160(data: bytes) -> bytes:
    h = hashlib.new("ripemd160")
    h.update(data)
    return h.digest()


def hash160(data: bytes) -> bytes:
    """SHA256 followed by RIPEMD160 (secp256k1 account addresses)."""
    return ripemd160(sha256(data))


def bech32_encode(hrp: str, payload: bytes) -> str:
    """Bech32-encode raw address bytes under the given human-readable prefix."""
    return bech32.bech32_encode(hrp, bech32.convertbits(payload, 8, 5))
