# jsonsigner/crypto/keys.py
"""
Cosmos key types: secp256k1 and ed25519 key pairs plus the legacy
multisig threshold public key.

Each class knows its protobuf type URL, its amino concrete name and its
amino binary form. Signatures are the raw 64-byte forms Cosmos verifiers
expect.
"""

from dataclasses import dataclass
from typing import Dict, Tuple, Type

import coincurve
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from jsonsigner.amino.codec import encode_byte_slice, encode_uvarint, name_prefix
from jsonsigner.core.encoding import b64_decode, b64_encode, bech32_encode, hash160, sha256
from jsonsigner.crypto.der import HALF_ORDER, compact_to_der, compact_to_rs, der_to_compact
from jsonsigner.errors import InvalidSignatureEncoding, UnsupportedKeyType


class PubKey:
    type_url = ""
    amino_name = ""
    algo = ""

    def address(self) -> bytes:
        raise NotImplementedError

    def bech32_address(self, prefix: str = "cosmos") -> str:
        return bech32_encode(prefix, self.address())

    def amino_bytes(self) -> bytes:
        raise NotImplementedError

    def proto_json(self) -> dict:
        raise NotImplementedError

    def verify_signature(self, msg: bytes, sig: bytes) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Secp256k1PubKey(PubKey):
    key: bytes

    type_url = "/cosmos.crypto.secp256k1.PubKey"
    amino_name = "tendermint/PubKeySecp256k1"
    algo = "secp256k1"

    def __post_init__(self):
        if len(self.key) != 33:
            raise ValueError(f"secp256k1 public key must be 33 bytes compressed, got {len(self.key)}")

    def address(self) -> bytes:
        return hash160(self.key)

    def amino_bytes(self) -> bytes:
        return name_prefix(self.amino_name) + encode_byte_slice(self.key)

    def proto_json(self) -> dict:
        return {"@type": self.type_url, "key": b64_encode(self.key)}

    def verify_signature(self, msg: bytes, sig: bytes) -> bool:
        try:
            _, s = compact_to_rs(sig)
        except InvalidSignatureEncoding:
            return False
        if s > HALF_ORDER:
            return False
        return coincurve.PublicKey(self.key).verify(compact_to_der(sig), msg)


@dataclass(frozen=True)
class Ed25519PubKey(PubKey):
    key: bytes

    type_url = "/cosmos.crypto.ed25519.PubKey"
    amino_name = "tendermint/PubKeyEd25519"
    algo = "ed25519"

    def __post_init__(self):
        if len(self.key) != 32:
            raise ValueError(f"ed25519 public key must be 32 bytes, got {len(self.key)}")

    def address(self) -> bytes:
        return sha256(self.key)[:20]

    def amino_bytes(self) -> bytes:
        return name_prefix(self.amino_name) + encode_byte_slice(self.key)

    def proto_json(self) -> dict:
        return {"@type": self.type_url, "key": b64_encode(self.key)}

    def verify_signature(self, msg: bytes, sig: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(self.key).verify(sig, msg)
        except InvalidSignature:
            return False
        return True


@dataclass(frozen=True)
class MultisigPubKey(PubKey):
    """Threshold multisig key. Listed and migrated, never used for signing."""
    threshold: int
    public_keys: Tuple[PubKey, ...]

    type_url = "/cosmos.crypto.multisig.LegacyAminoPubKey"
    amino_name = "tendermint/PubKeyMultisigThreshold"
    algo = "multi"

    def address(self) -> bytes:
        return sha256(self.amino_bytes())[:20]

    def amino_bytes(self) -> bytes:
        body = b"\x08" + encode_uvarint(self.threshold)
        for pk in self.public_keys:
            body += b"\x12" + encode_byte_slice(pk.amino_bytes())
        return name_prefix(self.amino_name) + body

    def proto_json(self) -> dict:
        return {
            "@type": self.type_url,
            "threshold": self.threshold,
            "public_keys": [pk.proto_json() for pk in self.public_keys],
        }

    def verify_signature(self, msg: bytes, sig: bytes) -> bool:
        raise NotImplementedError("multisig signatures are not supported")


class PrivKey:
    type_url = ""
    amino_name = ""
    algo = ""

    def pub_key(self) -> PubKey:
        raise NotImplementedError

    def sign(self, msg: bytes) -> bytes:
        raise NotImplementedError

    def amino_bytes(self) -> bytes:
        return name_prefix(self.amino_name) + encode_byte_slice(self.key)


@dataclass(frozen=True)
class Secp256k1PrivKey(PrivKey):
    key: bytes

    type_url = "/cosmos.crypto.secp256k1.PrivKey"
    amino_name = "tendermint/PrivKeySecp256k1"
    algo = "secp256k1"

    def __post_init__(self):
        if len(self.key) != 32:
            raise ValueError(f"secp256k1 private key must be 32 bytes, got {len(self.key)}")

    def pub_key(self) -> Secp256k1PubKey:
        return Secp256k1PubKey(coincurve.PrivateKey(self.key).public_key.format(compressed=True))

    def sign(self, msg: bytes) -> bytes:
        """RFC 6979 ECDSA over sha256(msg), returned as 64-byte low-S R||S."""
        der = coincurve.PrivateKey(self.key).sign(msg)
        return der_to_compact(der)


@dataclass(frozen=True)
class Ed25519PrivKey(PrivKey):
    """64-byte key: 32-byte seed followed by the public key."""
    key: bytes

    type_url = "/cosmos.crypto.ed25519.PrivKey"
    amino_name = "tendermint/PrivKeyEd25519"
    algo = "ed25519"

    def __post_init__(self):
        if len(self.key) != 64:
            raise ValueError(f"ed25519 private key must be 64 bytes, got {len(self.key)}")

    @classmethod
    def from_seed(cls, seed: bytes) -> "Ed25519PrivKey":
        pub = Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes_raw()
        return cls(seed + pub)

    @classmethod
    def from_secret(cls, secret: bytes) -> "Ed25519PrivKey":
        """Deterministic key whose seed is sha256(secret)."""
        return cls.from_seed(sha256(secret))

    def pub_key(self) -> Ed25519PubKey:
        return Ed25519PubKey(self.key[32:])

    def sign(self, msg: bytes) -> bytes:
        return Ed25519PrivateKey.from_private_bytes(self.key[:32]).sign(msg)


PUBKEY_TYPES: Dict[str, Type[PubKey]] = {
    cls.type_url: cls for cls in (Secp256k1PubKey, Ed25519PubKey, MultisigPubKey)
}
PRIVKEY_TYPES: Dict[str, Type[PrivKey]] = {
    cls.type_url: cls for cls in (Secp256k1PrivKey, Ed25519PrivKey)
}

# amino 4-byte prefix -> class, for the single-key types stored as byte slices
AMINO_PUBKEYS: Dict[bytes, Type[PubKey]] = {
    name_prefix(cls.amino_name): cls for cls in (Secp256k1PubKey, Ed25519PubKey)
}
AMINO_PRIVKEYS: Dict[bytes, Type[PrivKey]] = {
    name_prefix(cls.amino_name): cls for cls in (Secp256k1PrivKey, Ed25519PrivKey)
}


def pub_key_from_json(d: dict) -> PubKey:
    """Inverse of PubKey.proto_json."""
    type_url = d.get("@type", "")
    cls = PUBKEY_TYPES.get(type_url)
    if cls is None:
        raise UnsupportedKeyType(f"unsupported public key type {type_url!r}")
    if cls is MultisigPubKey:
        return MultisigPubKey(
            threshold=int(d.get("threshold", 0)),
            public_keys=tuple(pub_key_from_json(pk) for pk in d.get("public_keys") or []),
        )
    return cls(b64_decode(d.get("key", "")))
