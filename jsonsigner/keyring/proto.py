# jsonsigner/keyring/proto.py
"""
Protobuf schema for keyring items, built at import time into a private
DescriptorPool, plus the Record <-> ProtoRecord codec.

The amino LegacyInfo structs share the protobuf wire layout, so their
message types live in the same pool (package jsonsigner.legacy).
"""

import logging
from typing import Dict, List, Optional, Tuple

from google.protobuf import any_pb2, descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError as ProtoDecodeError
from google.protobuf.message import Message

from jsonsigner.crypto.keys import (
    PRIVKEY_TYPES,
    PUBKEY_TYPES,
    MultisigPubKey,
    PrivKey,
    PubKey,
)
from jsonsigner.errors import UnsupportedKeyType
from jsonsigner.keyring.records import (
    BIP44Params,
    LedgerItem,
    LocalItem,
    MultiItem,
    OfflineItem,
    ProtoRecord,
)

logger = logging.getLogger(__name__)

_F = descriptor_pb2.FieldDescriptorProto

ANY_FILE = "google/protobuf/any.proto"
HD_FILE = "cosmos/crypto/hd/v1/hd.proto"


def _field(name: str, number: int, ftype: int, type_name: Optional[str] = None,
           repeated: bool = False, oneof_index: Optional[int] = None) -> _F:
    f = _F(
        name=name,
        number=number,
        type=ftype,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name:
        f.type_name = type_name
    if oneof_index is not None:
        f.oneof_index = oneof_index
    return f


def _message(name: str, *fields: _F) -> descriptor_pb2.DescriptorProto:
    return descriptor_pb2.DescriptorProto(name=name, field=list(fields))


def _file(name: str, package: str, messages: List[descriptor_pb2.DescriptorProto],
          deps: Tuple[str, ...] = ()) -> descriptor_pb2.FileDescriptorProto:
    return descriptor_pb2.FileDescriptorProto(
        name=name, package=package, syntax="proto3", dependency=list(deps), message_type=messages,
    )


def _key_file(algo: str) -> descriptor_pb2.FileDescriptorProto:
    return _file(
        f"cosmos/crypto/{algo}/keys.proto",
        f"cosmos.crypto.{algo}",
        [
            _message("PubKey", _field("key", 1, _F.TYPE_BYTES)),
            _message("PrivKey", _field("key", 1, _F.TYPE_BYTES)),
        ],
    )


def _record_file() -> descriptor_pb2.FileDescriptorProto:
    record = _message(
        "Record",
        _field("name", 1, _F.TYPE_STRING),
        _field("pub_key", 2, _F.TYPE_MESSAGE, ".google.protobuf.Any"),
        _field("local", 3, _F.TYPE_MESSAGE, ".cosmos.crypto.keyring.v1.Record.Local", oneof_index=0),
        _field("ledger", 4, _F.TYPE_MESSAGE, ".cosmos.crypto.keyring.v1.Record.Ledger", oneof_index=0),
        _field("multi", 5, _F.TYPE_MESSAGE, ".cosmos.crypto.keyring.v1.Record.Multi", oneof_index=0),
        _field("offline", 6, _F.TYPE_MESSAGE, ".cosmos.crypto.keyring.v1.Record.Offline", oneof_index=0),
    )
    record.oneof_decl.add(name="item")
    record.nested_type.extend([
        _message("Local", _field("priv_key", 1, _F.TYPE_MESSAGE, ".google.protobuf.Any")),
        _message("Ledger", _field("path", 1, _F.TYPE_MESSAGE, ".cosmos.crypto.hd.v1.BIP44Params")),
        _message("Multi"),
        _message("Offline"),
    ])
    return _file(
        "cosmos/crypto/keyring/v1/record.proto",
        "cosmos.crypto.keyring.v1",
        [record],
        deps=(ANY_FILE, HD_FILE),
    )


def _build_pool() -> descriptor_pool.DescriptorPool:
    pool = descriptor_pool.DescriptorPool()

    any_file = descriptor_pb2.FileDescriptorProto()
    any_pb2.DESCRIPTOR.CopyToProto(any_file)
    pool.Add(any_file)

    pool.Add(_file(HD_FILE, "cosmos.crypto.hd.v1", [
        _message(
            "BIP44Params",
            _field("purpose", 1, _F.TYPE_UINT32),
            _field("coin_type", 2, _F.TYPE_UINT32),
            _field("account", 3, _F.TYPE_UINT32),
            _field("change", 4, _F.TYPE_BOOL),
            _field("address_index", 5, _F.TYPE_UINT32),
        ),
    ]))
    pool.Add(_key_file("secp256k1"))
    pool.Add(_key_file("ed25519"))
    pool.Add(_file("cosmos/crypto/multisig/keys.proto", "cosmos.crypto.multisig", [
        _message(
            "LegacyAminoPubKey",
            _field("threshold", 1, _F.TYPE_UINT32),
            _field("public_keys", 2, _F.TYPE_MESSAGE, ".google.protobuf.Any", repeated=True),
        ),
    ], deps=(ANY_FILE,)))
    pool.Add(_record_file())

    # amino LegacyInfo bodies; pub_key holds the prefixed amino encoding
    pool.Add(_file("jsonsigner/legacy_info.proto", "jsonsigner.legacy", [
        _message(
            "LocalInfo",
            _field("name", 1, _F.TYPE_STRING),
            _field("pub_key", 2, _F.TYPE_BYTES),
            _field("priv_key_armor", 3, _F.TYPE_BYTES),
            _field("algo", 4, _F.TYPE_STRING),
        ),
        _message(
            "LedgerInfo",
            _field("name", 1, _F.TYPE_STRING),
            _field("pub_key", 2, _F.TYPE_BYTES),
            _field("path", 3, _F.TYPE_MESSAGE, ".cosmos.crypto.hd.v1.BIP44Params"),
            _field("algo", 4, _F.TYPE_STRING),
        ),
        _message(
            "OfflineInfo",
            _field("name", 1, _F.TYPE_STRING),
            _field("pub_key", 2, _F.TYPE_BYTES),
            _field("algo", 3, _F.TYPE_STRING),
        ),
    ], deps=(HD_FILE,)))
    return pool


_POOL = _build_pool()
_CLASSES: Dict[str, type] = {}


def message_class(full_name: str) -> type:
    cls = _CLASSES.get(full_name)
    if cls is None:
        cls = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(full_name))
        _CLASSES[full_name] = cls
    return cls


def parse_exact(full_name: str, data: bytes) -> Message:
    """Parse `data` and insist it re-serializes to the same bytes with no unknown fields."""
    msg = message_class(full_name)()
    msg.ParseFromString(data)
    clean = message_class(full_name)()
    clean.CopyFrom(msg)
    clean.DiscardUnknownFields()
    if clean.SerializeToString(deterministic=True) != data:
        raise ProtoDecodeError(f"bytes are not a canonical {full_name}")
    return clean


# key <-> Any

def _type_name(type_url: str) -> str:
    return type_url.rsplit("/", 1)[-1]


def pub_key_from_any(type_url: str, value: bytes) -> PubKey:
    cls = PUBKEY_TYPES.get(type_url)
    if cls is None:
        raise UnsupportedKeyType(f"unsupported public key type {type_url!r}")
    msg = message_class(_type_name(type_url))()
    msg.ParseFromString(value)
    if cls is MultisigPubKey:
        return MultisigPubKey(
            threshold=msg.threshold,
            public_keys=tuple(pub_key_from_any(a.type_url, a.value) for a in msg.public_keys),
        )
    return cls(msg.key)


def pub_key_to_any(pub_key: PubKey) -> Tuple[str, bytes]:
    msg = message_class(_type_name(pub_key.type_url))()
    if isinstance(pub_key, MultisigPubKey):
        msg.threshold = pub_key.threshold
        for pk in pub_key.public_keys:
            url, value = pub_key_to_any(pk)
            msg.public_keys.add(type_url=url, value=value)
    else:
        msg.key = pub_key.key
    return pub_key.type_url, msg.SerializeToString(deterministic=True)


def priv_key_from_any(type_url: str, value: bytes) -> PrivKey:
    cls = PRIVKEY_TYPES.get(type_url)
    if cls is None:
        raise UnsupportedKeyType(f"cannot use {type_url!r} as a private key")
    msg = message_class(_type_name(type_url))()
    try:
        msg.ParseFromString(value)
    except ProtoDecodeError as e:
        raise ValueError(f"malformed {type_url} private key: {e}") from e
    return cls(msg.key)


def priv_key_to_any(priv_key: PrivKey) -> Tuple[str, bytes]:
    msg = message_class(_type_name(priv_key.type_url))()
    msg.key = priv_key.key
    return priv_key.type_url, msg.SerializeToString(deterministic=True)


def bip44_from_proto(msg: Message) -> BIP44Params:
    return BIP44Params(
        purpose=msg.purpose,
        coin_type=msg.coin_type,
        account=msg.account,
        change=msg.change,
        address_index=msg.address_index,
    )


def bip44_to_proto(path: BIP44Params, msg: Message) -> None:
    msg.purpose = path.purpose
    msg.coin_type = path.coin_type
    msg.account = path.account
    msg.change = path.change
    msg.address_index = path.address_index


# Record codec

RECORD = "cosmos.crypto.keyring.v1.Record"


def decode_record(data: bytes) -> ProtoRecord:
    msg = parse_exact(RECORD, data)
    which = msg.WhichOneof("item")
    if which is None:
        raise ProtoDecodeError("record has no item set")
    if not msg.HasField("pub_key"):
        raise ProtoDecodeError("record has no public key")
    pub_key = pub_key_from_any(msg.pub_key.type_url, msg.pub_key.value)

    if which == "local":
        priv = msg.local.priv_key
        item = LocalItem(priv.type_url, priv.value) if msg.local.HasField("priv_key") else LocalItem()
    elif which == "ledger":
        item = LedgerItem(bip44_from_proto(msg.ledger.path))
    elif which == "multi":
        item = MultiItem()
    else:
        item = OfflineItem()
    return ProtoRecord(name=msg.name, pub_key=pub_key, item=item)


def encode_record(record: ProtoRecord) -> bytes:
    msg = message_class(RECORD)()
    msg.name = record.name
    url, value = pub_key_to_any(record.pub_key)
    msg.pub_key.type_url = url
    msg.pub_key.value = value

    item = record.item
    if isinstance(item, LocalItem):
        msg.local.SetInParent()
        if item.has_priv_key:
            msg.local.priv_key.type_url = item.priv_key_type_url
            msg.local.priv_key.value = item.priv_key_value
    elif isinstance(item, LedgerItem):
        msg.ledger.SetInParent()
        bip44_to_proto(item.path, msg.ledger.path)
        msg.ledger.path.SetInParent()
    elif isinstance(item, MultiItem):
        msg.multi.SetInParent()
    elif isinstance(item, OfflineItem):
        msg.offline.SetInParent()
    else:
        raise TypeError(f"unknown record item {type(item).__name__}")
    return msg.SerializeToString(deterministic=True)


def new_local_record(name: str, priv_key: PrivKey) -> ProtoRecord:
    url, value = priv_key_to_any(priv_key)
    return ProtoRecord(name=name, pub_key=priv_key.pub_key(), item=LocalItem(url, value))
