# jsonsigner/keyring/records.py
"""
Value types for stored key material.

A stored key is either a protobuf `Record` (current keyring format) or one
of the amino `LegacyInfo` variants (older format). Both are closed sets of
frozen dataclasses; consumers dispatch with isinstance.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

from jsonsigner.crypto.keys import PubKey

HARDENED = 0x80000000


class KeyType(str, Enum):
    LOCAL = "local"
    LEDGER = "ledger"
    OFFLINE = "offline"
    MULTI = "multi"


@dataclass(frozen=True)
class BIP44Params:
    purpose: int = 44
    coin_type: int = 118
    account: int = 0
    change: bool = False
    address_index: int = 0

    def derivation_path(self) -> List[int]:
        """[purpose', coin_type', account', change, address_index] as uint32s."""
        return [
            self.purpose | HARDENED,
            self.coin_type | HARDENED,
            self.account | HARDENED,
            1 if self.change else 0,
            self.address_index,
        ]

    def __str__(self):
        change = 1 if self.change else 0
        return f"m/{self.purpose}'/{self.coin_type}'/{self.account}'/{change}/{self.address_index}"


# protobuf Record items

@dataclass(frozen=True)
class LocalItem:
    """Private key kept as its raw Any; decoded on demand."""
    priv_key_type_url: str = ""
    priv_key_value: bytes = b""

    @property
    def has_priv_key(self) -> bool:
        return bool(self.priv_key_type_url)


@dataclass(frozen=True)
class LedgerItem:
    path: BIP44Params


@dataclass(frozen=True)
class MultiItem:
    pass


@dataclass(frozen=True)
class OfflineItem:
    pass


RecordItem = Union[LocalItem, LedgerItem, MultiItem, OfflineItem]

_ITEM_TYPES = {
    LocalItem: KeyType.LOCAL,
    LedgerItem: KeyType.LEDGER,
    MultiItem: KeyType.MULTI,
    OfflineItem: KeyType.OFFLINE,
}


@dataclass(frozen=True)
class ProtoRecord:
    name: str
    pub_key: PubKey
    item: RecordItem

    @property
    def key_type(self) -> KeyType:
        return _ITEM_TYPES[type(self.item)]


# amino LegacyInfo variants

@dataclass(frozen=True)
class LegacyLocalInfo:
    name: str
    pub_key: PubKey
    priv_key_armor: bytes
    algo: str

    key_type = KeyType.LOCAL


@dataclass(frozen=True)
class LegacyLedgerInfo:
    name: str
    pub_key: PubKey
    path: BIP44Params
    algo: str

    key_type = KeyType.LEDGER


@dataclass(frozen=True)
class LegacyOfflineInfo:
    name: str
    pub_key: PubKey
    algo: str

    key_type = KeyType.OFFLINE


LegacyInfo = Union[LegacyLocalInfo, LegacyLedgerInfo, LegacyOfflineInfo]
