# tests/conftest.py
import copy

import pytest

from jsonsigner.core.types import Tx
from jsonsigner.crypto.keys import Ed25519PrivKey, Secp256k1PrivKey
from jsonsigner.keyring.keyring import Keyring

FROM_ADDRESS = "cosmos1shzsqakdakzwhvy05cvjlt9acwf3hfjksy0ht5"
TO_ADDRESS = "cosmos18lu8k4n7nmqhz2z3y9a5y39fzgapchfq6mvaeg"

SEND_TX = {
    "body": {
        "messages": [{
            "@type": "/cosmos.bank.v1beta1.MsgSend",
            "from_address": FROM_ADDRESS,
            "to_address": TO_ADDRESS,
            "amount": [{"denom": "token", "amount": "1000"}],
        }],
        "memo": "a memo",
        "timeout_height": "42",
        "extension_options": [],
        "non_critical_extension_options": [],
    },
    "auth_info": {
        "signer_infos": [],
        "fee": {
            "amount": [{"denom": "token", "amount": "10"}],
            "gas_limit": "200000",
            "payer": "",
            "granter": "",
        },
    },
    "signatures": [],
}

# ed25519 signature of SEND_TX for chain "chain-id", account 42, sequence 1
# by the key derived from the secret b"secret"
SEND_TX_SIGNATURE = "NsA6KJYcBaMI9edMV4H0vKHDiOBzu4J2e3xQc0WuIqPt6O0UeJ0zsBcw4X+o+ZkiPsEZ5kOVF8AzC4O4XHViDA=="


@pytest.fixture
def send_tx_dict() -> dict:
    return copy.deepcopy(SEND_TX)


@pytest.fixture
def send_tx() -> Tx:
    return Tx.from_dict(copy.deepcopy(SEND_TX))


@pytest.fixture
def ed_priv() -> Ed25519PrivKey:
    return Ed25519PrivKey.from_secret(b"secret")


@pytest.fixture
def secp_priv() -> Secp256k1PrivKey:
    return Secp256k1PrivKey(bytes(range(1, 33)))


@pytest.fixture
def memory_keyring() -> Keyring:
    kr = Keyring("memory:")
    yield kr
    kr.close()


@pytest.fixture
def send_tx_signature() -> str:
    return SEND_TX_SIGNATURE
