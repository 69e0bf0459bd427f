# jsonsigner/crypto/der.py
"""
secp256k1 signature format conversion.

Hardware signers return ASN.1 DER signatures; Cosmos verifiers expect the
fixed 64-byte R||S form with S in the lower half of the curve order.
"""

from typing import Tuple

from ecdsa import SECP256k1
from ecdsa.der import UnexpectedDER
from ecdsa.util import sigdecode_der, sigencode_der, sigencode_string, sigdecode_string

from jsonsigner.errors import InvalidSignatureEncoding

ORDER = SECP256k1.order
HALF_ORDER = ORDER >> 1


def normalize_s(s: int) -> int:
    return ORDER - s if s > HALF_ORDER else s


def der_to_compact(der: bytes) -> bytes:
    """DER signature -> 64-byte R||S with low S, both left-padded to 32 bytes."""
    try:
        r, s = sigdecode_der(der, ORDER)
    except (UnexpectedDER, ValueError) as e:
        raise InvalidSignatureEncoding(f"malformed DER signature: {e}") from e
    if not (0 < r < ORDER and 0 < s < ORDER):
        raise InvalidSignatureEncoding("signature component out of range")
    return sigencode_string(r, normalize_s(s), ORDER)


def compact_to_rs(sig: bytes) -> Tuple[int, int]:
    if len(sig) != 64:
        raise InvalidSignatureEncoding(f"compact signature must be 64 bytes, got {len(sig)}")
    return sigdecode_string(sig, ORDER)


def compact_to_der(sig: bytes) -> bytes:
    r, s = compact_to_rs(sig)
    return sigencode_der(r, s, ORDER)
