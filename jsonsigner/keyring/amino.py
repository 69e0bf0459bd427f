# jsonsigner/keyring/amino.py
"""
Amino binary codec for LegacyInfo keyring items.

Stored form: uvarint(total length) || 4-byte concrete prefix || struct body.
Public and private keys inside are themselves prefixed amino values.
"""

from google.protobuf.message import DecodeError as ProtoDecodeError

from jsonsigner.amino.codec import decode_byte_slice, encode_byte_slice, encode_uvarint, name_prefix, strip_length_prefix
from jsonsigner.crypto.keys import AMINO_PRIVKEYS, AMINO_PUBKEYS, PrivKey, PubKey
from jsonsigner.errors import UnsupportedKeyType
from jsonsigner.keyring.proto import bip44_from_proto, bip44_to_proto, message_class, parse_exact
from jsonsigner.keyring.records import LegacyInfo, LegacyLedgerInfo, LegacyLocalInfo, LegacyOfflineInfo

LOCAL_INFO = "crypto/keys/localInfo"
LEDGER_INFO = "crypto/keys/ledgerInfo"
OFFLINE_INFO = "crypto/keys/offlineInfo"

_BODIES = {
    name_prefix(LOCAL_INFO): "jsonsigner.legacy.LocalInfo",
    name_prefix(LEDGER_INFO): "jsonsigner.legacy.LedgerInfo",
    name_prefix(OFFLINE_INFO): "jsonsigner.legacy.OfflineInfo",
}


def _split_prefixed(data: bytes) -> tuple:
    if len(data) < 4:
        raise ValueError("amino value shorter than its type prefix")
    return data[:4], data[4:]


def unmarshal_pub_key(data: bytes) -> PubKey:
    prefix, rest = _split_prefixed(data)
    cls = AMINO_PUBKEYS.get(prefix)
    if cls is None:
        raise UnsupportedKeyType(f"unknown amino public key prefix {prefix.hex()}")
    key, end = decode_byte_slice(rest)
    if end != len(rest):
        raise ValueError("trailing bytes after amino public key")
    return cls(key)


def marshal_pub_key(pub_key: PubKey) -> bytes:
    return pub_key.amino_bytes()


def unmarshal_priv_key(data: bytes) -> PrivKey:
    """Decode a private key armor (bare amino encoding)."""
    prefix, rest = _split_prefixed(data)
    cls = AMINO_PRIVKEYS.get(prefix)
    if cls is None:
        raise UnsupportedKeyType(f"unknown amino private key prefix {prefix.hex()}")
    key, end = decode_byte_slice(rest)
    if end != len(rest):
        raise ValueError("trailing bytes after amino private key")
    return cls(key)


def marshal_priv_key(priv_key: PrivKey) -> bytes:
    return name_prefix(priv_key.amino_name) + encode_byte_slice(priv_key.key)


def decode_legacy_info(data: bytes) -> LegacyInfo:
    prefix, body = _split_prefixed(strip_length_prefix(data))
    full_name = _BODIES.get(prefix)
    if full_name is None:
        raise ValueError(f"unknown LegacyInfo prefix {prefix.hex()}")
    try:
        msg = parse_exact(full_name, body)
    except ProtoDecodeError as e:
        raise ValueError(f"malformed LegacyInfo body: {e}") from e
    if not msg.pub_key:
        raise ValueError("LegacyInfo has no public key")
    pub_key = unmarshal_pub_key(msg.pub_key)

    if full_name.endswith("LocalInfo"):
        return LegacyLocalInfo(msg.name, pub_key, msg.priv_key_armor, msg.algo)
    if full_name.endswith("LedgerInfo"):
        return LegacyLedgerInfo(msg.name, pub_key, bip44_from_proto(msg.path), msg.algo)
    return LegacyOfflineInfo(msg.name, pub_key, msg.algo)


def encode_legacy_info(info: LegacyInfo) -> bytes:
    if isinstance(info, LegacyLocalInfo):
        msg = message_class("jsonsigner.legacy.LocalInfo")()
        msg.priv_key_armor = info.priv_key_armor
        prefix = name_prefix(LOCAL_INFO)
    elif isinstance(info, LegacyLedgerInfo):
        msg = message_class("jsonsigner.legacy.LedgerInfo")()
        bip44_to_proto(info.path, msg.path)
        msg.path.SetInParent()
        prefix = name_prefix(LEDGER_INFO)
    elif isinstance(info, LegacyOfflineInfo):
        msg = message_class("jsonsigner.legacy.OfflineInfo")()
        prefix = name_prefix(OFFLINE_INFO)
    else:
        raise TypeError(f"unknown LegacyInfo variant {type(info).__name__}")
    msg.name = info.name
    msg.pub_key = marshal_pub_key(info.pub_key)
    msg.algo = info.algo
    payload = prefix + msg.SerializeToString(deterministic=True)
    return encode_uvarint(len(payload)) + payload
