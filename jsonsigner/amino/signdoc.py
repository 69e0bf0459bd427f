# jsonsigner/amino/signdoc.py
"""
Legacy StdSignDoc assembly.

Every message is transformed and canonicalized on its own, then the whole
document is canonicalized again; verifiers rebuild the same bytes only if
key order matches at every level.
"""

import json
import re
from typing import Union

from jsonsigner.amino.registry import DEFAULT_REGISTRY, TypeRegistry
from jsonsigner.amino.transform import proto_to_amino_json
from jsonsigner.core.canon import canonical_json
from jsonsigner.core.types import Fee, SignDoc, Tx
from jsonsigner.errors import TxFormatError

UINT64_MAX = (1 << 64) - 1

# coin amounts are 256-bit integers on chain
MAX_AMOUNT_BITS = 256
_AMOUNT_RE = re.compile(r"[+-]?[0-9]+")


def parse_uint64(value: Union[int, str], what: str) -> int:
    if isinstance(value, bool):
        raise TxFormatError(f"invalid {what}: {value!r}")
    if isinstance(value, str):
        if value == "":
            return 0
        if not (value.isascii() and value.isdigit()):
            raise TxFormatError(f"invalid {what}: {value!r} is not an unsigned integer")
        value = int(value)
    if not isinstance(value, int) or not 0 <= value <= UINT64_MAX:
        raise TxFormatError(f"invalid {what}: {value!r} is out of range")
    return value


def parse_coin_amount(value: str, denom: str) -> str:
    """Validate a coin amount and return it in canonical decimal form."""
    if not isinstance(value, str) or not _AMOUNT_RE.fullmatch(value):
        raise TxFormatError(f"invalid fee amount {value!r} for {denom}: not an integer")
    amount = int(value)
    if amount < 0:
        raise TxFormatError(f"invalid fee amount {value!r} for {denom}: negative")
    if amount.bit_length() > MAX_AMOUNT_BITS:
        raise TxFormatError(f"invalid fee amount {value!r} for {denom}: exceeds {MAX_AMOUNT_BITS} bits")
    return str(amount)


def legacy_fee(fee: Fee) -> dict:
    """StdFee JSON: gas_limit becomes gas, empty payer and granter are omitted."""
    d = {
        "amount": [{"amount": parse_coin_amount(c.amount, c.denom), "denom": c.denom} for c in fee.amount],
        "gas": str(parse_uint64(fee.gas_limit, "gas limit")),
    }
    if fee.payer:
        d["payer"] = fee.payer
    if fee.granter:
        d["granter"] = fee.granter
    return d


def build_sign_doc(
    tx: Tx,
    chain_id: str,
    account: Union[int, str],
    sequence: Union[int, str],
    registry: TypeRegistry = DEFAULT_REGISTRY,
) -> SignDoc:
    msgs = tuple(canonical_json(proto_to_amino_json(m, registry)) for m in tx.body.messages)
    timeout = parse_uint64(tx.body.timeout_height, "timeout height")
    return SignDoc(
        account_number=str(parse_uint64(account, "account number")),
        chain_id=chain_id,
        fee=legacy_fee(tx.auth_info.fee),
        memo=tx.body.memo,
        msgs=msgs,
        sequence=str(parse_uint64(sequence, "sequence")),
        timeout_height=str(timeout) if timeout else None,
    )


def sign_doc_bytes(doc: SignDoc) -> bytes:
    d = {
        "account_number": doc.account_number,
        "chain_id": doc.chain_id,
        "fee": doc.fee,
        "memo": doc.memo,
        "msgs": [json.loads(m) for m in doc.msgs],
        "sequence": doc.sequence,
    }
    if doc.timeout_height is not None:
        d["timeout_height"] = doc.timeout_height
    return canonical_json(d)


def get_bytes_to_sign(
    tx: Tx,
    chain_id: str,
    account: Union[int, str],
    sequence: Union[int, str],
    registry: TypeRegistry = DEFAULT_REGISTRY,
) -> bytes:
    """Canonical sign-doc bytes for `tx` under the given chain and account."""
    return sign_doc_bytes(build_sign_doc(tx, chain_id, account, sequence, registry))
