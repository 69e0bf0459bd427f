# jsonsigner/keyring/key.py
"""
A named keyring entry in either encoding.

Loading tries the protobuf Record first and the amino LegacyInfo second;
a key never carries both.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from google.protobuf.message import DecodeError as ProtoDecodeError

from jsonsigner.crypto.keys import PrivKey, PubKey
from jsonsigner.errors import (
    DecodeError,
    PrivateKeyUnavailable,
    UnsupportedKeyType,
    UnsupportedRecordKind,
)
from jsonsigner.hardware.device import Discover, discover_devices, select_device, sign_with_device
from jsonsigner.keyring import amino, proto
from jsonsigner.keyring.records import (
    KeyType,
    LedgerItem,
    LegacyInfo,
    LegacyLedgerInfo,
    LegacyLocalInfo,
    LocalItem,
    ProtoRecord,
)

logger = logging.getLogger(__name__)

ENCODING_PROTO = "proto"
ENCODING_AMINO = "amino"

_DECODE_FAILURES = (ProtoDecodeError, ValueError, UnsupportedKeyType)


@dataclass(frozen=True)
class Key:
    name: str
    item: Union[ProtoRecord, LegacyInfo]

    @property
    def encoding(self) -> str:
        return ENCODING_PROTO if isinstance(self.item, ProtoRecord) else ENCODING_AMINO

    @property
    def key_type(self) -> KeyType:
        return self.item.key_type

    @property
    def pub_key(self) -> PubKey:
        return self.item.pub_key

    def to_bytes(self) -> bytes:
        if isinstance(self.item, ProtoRecord):
            return proto.encode_record(self.item)
        return amino.encode_legacy_info(self.item)

    def priv_key(self) -> PrivKey:
        item = self.item
        if isinstance(item, ProtoRecord):
            if not isinstance(item.item, LocalItem):
                raise PrivateKeyUnavailable(f"key {self.name} is a {item.key_type.value} key, only local keys hold a private key")
            if not item.item.has_priv_key:
                raise PrivateKeyUnavailable(f"key {self.name} has no private key stored")
            return proto.priv_key_from_any(item.item.priv_key_type_url, item.item.priv_key_value)
        if isinstance(item, LegacyLocalInfo):
            return amino.unmarshal_priv_key(item.priv_key_armor)
        raise PrivateKeyUnavailable(f"key {self.name} is a {item.key_type.value} key, only local keys hold a private key")

    def to_legacy_info(self) -> LegacyInfo:
        """Amino form of a protobuf key. Only local and ledger records convert."""
        record = self.item
        if not isinstance(record, ProtoRecord):
            raise UnsupportedRecordKind(f"key {self.name} is already amino encoded")
        if isinstance(record.item, LocalItem):
            priv = self.priv_key()
            pub = priv.pub_key()
            return LegacyLocalInfo(
                name=record.name,
                pub_key=pub,
                priv_key_armor=amino.marshal_priv_key(priv),
                algo=pub.algo,
            )
        if isinstance(record.item, LedgerItem):
            return LegacyLedgerInfo(
                name=record.name,
                pub_key=record.pub_key,
                path=record.item.path,
                algo=record.pub_key.algo,
            )
        raise UnsupportedRecordKind(
            f"key {self.name}: {record.key_type.value} records have no amino equivalent"
        )

    def sign(
        self,
        msg: bytes,
        discover: Optional[Discover] = None,
        device_index: Optional[int] = None,
    ) -> Tuple[bytes, PubKey]:
        """Sign `msg`; returns (signature, public key)."""
        key_type = self.key_type
        if key_type is KeyType.LOCAL:
            priv = self.priv_key()
            return priv.sign(msg), priv.pub_key()
        if key_type is KeyType.LEDGER:
            path = self.item.item.path if isinstance(self.item, ProtoRecord) else self.item.path
            devices = (discover or discover_devices)()
            device = select_device(devices, device_index)
            return sign_with_device(device, path, self.pub_key, msg), self.pub_key
        raise UnsupportedKeyType(f"cannot sign with {key_type.value} key {self.name}")


def load_key(name: str, raw: bytes) -> Key:
    try:
        return Key(name, proto.decode_record(raw))
    except _DECODE_FAILURES as e:
        proto_error = e
    try:
        return Key(name, amino.decode_legacy_info(raw))
    except _DECODE_FAILURES as e:
        amino_error = e
    logger.debug("key %s matched neither encoding", name)
    raise DecodeError(name, proto_error, amino_error)


def from_proto_record(record: ProtoRecord) -> Key:
    return Key(record.name, record)


def from_legacy_info(info: LegacyInfo) -> Key:
    return Key(info.name, info)
