# tests/test_keys.py
import bech32
import pytest

from jsonsigner.amino.codec import (
    decode_byte_slice,
    decode_uvarint,
    encode_byte_slice,
    encode_uvarint,
    name_prefix,
    strip_length_prefix,
)
from jsonsigner.core.encoding import b64_encode, bech32_encode
from jsonsigner.crypto.keys import (
    Ed25519PrivKey,
    Ed25519PubKey,
    MultisigPubKey,
    Secp256k1PrivKey,
    Secp256k1PubKey,
    pub_key_from_json,
)
from jsonsigner.errors import (
    DecodeError,
    KeyNotFoundError,
    PrivateKeyUnavailable,
    UnsupportedKeyType,
    UnsupportedRecordKind,
)
from jsonsigner.keyring import amino, proto
from jsonsigner.keyring.key import ENCODING_AMINO, ENCODING_PROTO, Key, load_key
from jsonsigner.keyring.records import (
    BIP44Params,
    KeyType,
    LedgerItem,
    LegacyLedgerInfo,
    LegacyLocalInfo,
    LegacyOfflineInfo,
    LocalItem,
    MultiItem,
    OfflineItem,
    ProtoRecord,
)


@pytest.mark.parametrize("name, prefix", [
    ("tendermint/PubKeySecp256k1", "eb5ae987"),
    ("tendermint/PubKeyEd25519", "1624de64"),
    ("tendermint/PrivKeySecp256k1", "e1b0f79b"),
    ("tendermint/PrivKeyEd25519", "a3288910"),
    ("tendermint/PubKeyMultisigThreshold", "22c1f7e2"),
])
def test_amino_name_prefix(name, prefix):
    assert name_prefix(name).hex() == prefix


def test_uvarint():
    assert encode_uvarint(0) == b"\x00"
    assert encode_uvarint(300) == b"\xac\x02"
    assert decode_uvarint(b"\xac\x02rest") == (300, 2)
    with pytest.raises(ValueError):
        decode_uvarint(b"\x80")


def test_byte_slice():
    assert encode_byte_slice(b"abc") == b"\x03abc"
    assert decode_byte_slice(b"\x03abcd") == (b"abc", 4)
    with pytest.raises(ValueError):
        decode_byte_slice(b"\x05ab")


def test_strip_length_prefix():
    assert strip_length_prefix(b"\x02ab") == b"ab"
    with pytest.raises(ValueError):
        strip_length_prefix(b"\x03ab")


def test_pub_key_amino_bytes(ed_priv, secp_priv):
    assert ed_priv.pub_key().amino_bytes()[:5].hex() == "1624de6420"
    assert secp_priv.pub_key().amino_bytes()[:5].hex() == "eb5ae98721"
    assert amino.marshal_priv_key(secp_priv)[:5].hex() == "e1b0f79b20"
    assert amino.marshal_priv_key(ed_priv)[:5].hex() == "a328891040"


def test_amino_key_round_trip(ed_priv, secp_priv):
    for priv in (ed_priv, secp_priv):
        assert amino.unmarshal_pub_key(priv.pub_key().amino_bytes()) == priv.pub_key()
        assert amino.unmarshal_priv_key(amino.marshal_priv_key(priv)) == priv


def test_unmarshal_unknown_prefix():
    with pytest.raises(UnsupportedKeyType):
        amino.unmarshal_pub_key(b"\x00\x01\x02\x03\x01\x00")


def test_secp256k1_pub_key_compressed(secp_priv):
    pub = secp_priv.pub_key()
    assert len(pub.key) == 33
    assert pub.key[0] in (2, 3)
    assert pub.algo == "secp256k1"


def test_invalid_key_lengths():
    with pytest.raises(ValueError):
        Secp256k1PrivKey(b"\x01" * 31)
    with pytest.raises(ValueError):
        Ed25519PubKey(b"\x01" * 33)


def test_ed25519_from_secret_is_deterministic():
    a = Ed25519PrivKey.from_secret(b"secret")
    b = Ed25519PrivKey.from_secret(b"secret")
    assert a == b
    assert a.key[32:] == a.pub_key().key


def test_ed25519_address_and_bech32(ed_priv):
    pub = ed_priv.pub_key()
    addr = pub.bech32_address()
    assert addr.startswith("cosmos1")
    hrp, data = bech32.bech32_decode(addr)
    assert hrp == "cosmos"
    payload = bytes(bech32.convertbits(data, 5, 8, False))
    assert payload == pub.address()
    assert len(payload) == 20
    assert pub.bech32_address("osmo").startswith("osmo1")


def test_bech32_known_address():
    hrp, data = bech32.bech32_decode("cosmos1shzsqakdakzwhvy05cvjlt9acwf3hfjksy0ht5")
    payload = bytes(bech32.convertbits(data, 5, 8, False))
    assert bech32_encode(hrp, payload) == "cosmos1shzsqakdakzwhvy05cvjlt9acwf3hfjksy0ht5"


def test_pub_key_json(ed_priv):
    pub = ed_priv.pub_key()
    d = pub.proto_json()
    assert d == {"@type": "/cosmos.crypto.ed25519.PubKey", "key": b64_encode(pub.key)}
    assert pub_key_from_json(d) == pub
    with pytest.raises(UnsupportedKeyType):
        pub_key_from_json({"@type": "/cosmos.crypto.sr25519.PubKey", "key": ""})


def test_multisig_json_and_amino(ed_priv, secp_priv):
    multi = MultisigPubKey(2, (ed_priv.pub_key(), secp_priv.pub_key()))
    assert pub_key_from_json(multi.proto_json()) == multi
    raw = multi.amino_bytes()
    assert raw[:4].hex() == "22c1f7e2"
    assert raw[4:6] == b"\x08\x02"
    assert len(multi.address()) == 20


# protobuf records

def test_proto_record_round_trip(ed_priv):
    record = proto.new_local_record("alice", ed_priv)
    raw = proto.encode_record(record)
    decoded = proto.decode_record(raw)
    assert decoded == record
    assert decoded.key_type is KeyType.LOCAL


@pytest.mark.parametrize("item, key_type", [
    (LedgerItem(BIP44Params(account=3, address_index=5)), KeyType.LEDGER),
    (OfflineItem(), KeyType.OFFLINE),
    (MultiItem(), KeyType.MULTI),
])
def test_proto_record_items(secp_priv, item, key_type):
    record = ProtoRecord("k", secp_priv.pub_key(), item)
    decoded = proto.decode_record(proto.encode_record(record))
    assert decoded == record
    assert decoded.key_type is key_type


def test_proto_multisig_record(ed_priv, secp_priv):
    multi = MultisigPubKey(1, (ed_priv.pub_key(), secp_priv.pub_key()))
    record = ProtoRecord("m", multi, MultiItem())
    assert proto.decode_record(proto.encode_record(record)).pub_key == multi


def test_bip44_path():
    path = BIP44Params(account=1, change=True, address_index=2)
    assert str(path) == "m/44'/118'/1'/1/2"
    assert path.derivation_path() == [44 | 0x80000000, 118 | 0x80000000, 1 | 0x80000000, 1, 2]


# amino LegacyInfo

def test_legacy_local_info_round_trip(secp_priv):
    info = LegacyLocalInfo("bob", secp_priv.pub_key(), amino.marshal_priv_key(secp_priv), "secp256k1")
    raw = amino.encode_legacy_info(info)
    assert strip_length_prefix(raw)[:4] == name_prefix(amino.LOCAL_INFO)
    assert amino.decode_legacy_info(raw) == info


def test_legacy_ledger_and_offline_round_trip(secp_priv):
    ledger = LegacyLedgerInfo("l", secp_priv.pub_key(), BIP44Params(address_index=9), "secp256k1")
    offline = LegacyOfflineInfo("o", secp_priv.pub_key(), "secp256k1")
    for info in (ledger, offline):
        assert amino.decode_legacy_info(amino.encode_legacy_info(info)) == info


# Key

def test_load_key_proto(ed_priv):
    raw = proto.encode_record(proto.new_local_record("alice", ed_priv))
    key = load_key("alice", raw)
    assert key.encoding == ENCODING_PROTO
    assert key.key_type is KeyType.LOCAL
    assert key.priv_key() == ed_priv
    assert key.to_bytes() == raw


def test_load_key_amino(ed_priv):
    info = LegacyLocalInfo("alice", ed_priv.pub_key(), amino.marshal_priv_key(ed_priv), "ed25519")
    raw = amino.encode_legacy_info(info)
    key = load_key("alice", raw)
    assert key.encoding == ENCODING_AMINO
    assert key.priv_key() == ed_priv
    assert key.to_bytes() == raw


def test_load_key_garbage():
    with pytest.raises(DecodeError) as exc:
        load_key("broken", b"\x00\x01garbage")
    assert exc.value.name == "broken"
    assert exc.value.proto_error is not None
    assert exc.value.amino_error is not None
    assert "decodeProto=" in str(exc.value)
    assert "decodeAmino=" in str(exc.value)


# Byte layouts as written by Cosmos binaries, assembled field by field.
# Private key 1; its public key is the secp256k1 generator point.

PRIV_ONE = bytes(31) + b"\x01"
PUB_G = bytes.fromhex("0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")

PUB_ANY = b"\x12\x46" b"\x0a\x1f/cosmos.crypto.secp256k1.PubKey" b"\x12\x23\x0a\x21" + PUB_G

PROTO_LOCAL_RECORD = (
    b"\x0a\x05alice"
    + PUB_ANY
    + b"\x1a\x48\x0a\x46" b"\x0a\x20/cosmos.crypto.secp256k1.PrivKey" b"\x12\x22\x0a\x20"
    + PRIV_ONE
)

# m/44'/118'/0'/0/0; zero fields omitted
PROTO_LEDGER_RECORD = b"\x0a\x06ledger" + PUB_ANY + b"\x22\x06\x0a\x04\x08\x2c\x10\x76"

AMINO_LOCAL_INFO = (
    b"\x65"
    + name_prefix("crypto/keys/localInfo")
    + b"\x0a\x05alice"
    + b"\x12\x26\xeb\x5a\xe9\x87\x21" + PUB_G
    + b"\x1a\x25\xe1\xb0\xf7\x9b\x20" + PRIV_ONE
    + b"\x22\x09secp256k1"
)

AMINO_LEDGER_INFO = (
    b"\x45"
    + name_prefix("crypto/keys/ledgerInfo")
    + b"\x0a\x06ledger"
    + b"\x12\x26\xeb\x5a\xe9\x87\x21" + PUB_G
    + b"\x1a\x04\x08\x2c\x10\x76"
    + b"\x22\x09secp256k1"
)


def test_generator_key_pair():
    assert Secp256k1PrivKey(PRIV_ONE).pub_key() == Secp256k1PubKey(PUB_G)


@pytest.mark.parametrize(
    "name, raw, encoding, key_type",
    [
        ("alice", PROTO_LOCAL_RECORD, ENCODING_PROTO, KeyType.LOCAL),
        ("ledger", PROTO_LEDGER_RECORD, ENCODING_PROTO, KeyType.LEDGER),
        ("alice", AMINO_LOCAL_INFO, ENCODING_AMINO, KeyType.LOCAL),
        ("ledger", AMINO_LEDGER_INFO, ENCODING_AMINO, KeyType.LEDGER),
    ],
)
def test_load_known_key_bytes(name, raw, encoding, key_type):
    key = load_key(name, raw)
    assert key.encoding == encoding
    assert key.key_type is key_type
    assert key.pub_key() == Secp256k1PubKey(PUB_G)
    assert key.to_bytes() == raw


def test_known_local_key_bytes_hold_private_key():
    for raw in (PROTO_LOCAL_RECORD, AMINO_LOCAL_INFO):
        assert load_key("alice", raw).priv_key() == Secp256k1PrivKey(PRIV_ONE)


def test_known_ledger_key_bytes_hold_path():
    proto_key = load_key("ledger", PROTO_LEDGER_RECORD)
    assert proto_key.item.item.path == BIP44Params()
    assert load_key("ledger", AMINO_LEDGER_INFO).item.path == BIP44Params()


@pytest.mark.parametrize(
    "name, proto_raw, amino_raw",
    [("alice", PROTO_LOCAL_RECORD, AMINO_LOCAL_INFO), ("ledger", PROTO_LEDGER_RECORD, AMINO_LEDGER_INFO)],
)
def test_known_key_bytes_convert_to_amino(name, proto_raw, amino_raw):
    info = load_key(name, proto_raw).to_legacy_info()
    assert amino.encode_legacy_info(info) == amino_raw


def test_priv_key_unavailable(secp_priv):
    for item in (LedgerItem(BIP44Params()), OfflineItem(), MultiItem(), LocalItem()):
        key = Key("k", ProtoRecord("k", secp_priv.pub_key(), item))
        with pytest.raises(PrivateKeyUnavailable):
            key.priv_key()
    offline = Key("o", LegacyOfflineInfo("o", secp_priv.pub_key(), "secp256k1"))
    with pytest.raises(PrivateKeyUnavailable):
        offline.priv_key()


def test_to_legacy_info_local(ed_priv):
    key = Key("alice", proto.new_local_record("alice", ed_priv))
    info = key.to_legacy_info()
    assert isinstance(info, LegacyLocalInfo)
    assert info.name == "alice"
    assert info.algo == "ed25519"
    assert info.pub_key == ed_priv.pub_key()
    assert amino.unmarshal_priv_key(info.priv_key_armor) == ed_priv


def test_to_legacy_info_ledger(secp_priv):
    path = BIP44Params(account=2)
    key = Key("l", ProtoRecord("l", secp_priv.pub_key(), LedgerItem(path)))
    info = key.to_legacy_info()
    assert info == LegacyLedgerInfo("l", secp_priv.pub_key(), path, "secp256k1")


@pytest.mark.parametrize("item", [MultiItem(), OfflineItem()])
def test_to_legacy_info_unsupported(secp_priv, item):
    key = Key("x", ProtoRecord("x", secp_priv.pub_key(), item))
    with pytest.raises(UnsupportedRecordKind):
        key.to_legacy_info()


def test_to_legacy_info_already_amino(ed_priv):
    key = Key("a", LegacyLocalInfo("a", ed_priv.pub_key(), amino.marshal_priv_key(ed_priv), "ed25519"))
    with pytest.raises(UnsupportedRecordKind):
        key.to_legacy_info()


def test_key_not_found(memory_keyring):
    with pytest.raises(KeyNotFoundError) as exc:
        memory_keyring.get("ghost")
    assert str(exc.value) == "key 'ghost' not found"
