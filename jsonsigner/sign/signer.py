# jsonsigner/sign/signer.py
"""
Sign protobuf-JSON transactions in SIGN_MODE_LEGACY_AMINO_JSON.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple, Union

from jsonsigner.amino.registry import DEFAULT_REGISTRY, TypeRegistry
from jsonsigner.amino.signdoc import get_bytes_to_sign, parse_uint64
from jsonsigner.core.encoding import b64_encode
from jsonsigner.core.types import SIGN_MODE_LEGACY_AMINO_JSON, SignerInfo, Tx
from jsonsigner.hardware.device import Discover
from jsonsigner.keyring.keyring import Keyring

logger = logging.getLogger(__name__)


def sign_tx(
    tx: Tx,
    keyring: Keyring,
    signer: str,
    chain_id: str,
    account: Union[int, str],
    sequence: Union[int, str],
    registry: TypeRegistry = DEFAULT_REGISTRY,
    discover: Optional[Discover] = None,
    device_index: Optional[int] = None,
) -> Tuple[Tx, bytes]:
    """
    Sign `tx` with key `signer`.

    Returns the signed transaction, with one signer info and one signature
    appended, and the exact bytes that were signed.
    """
    key = keyring.get(signer)
    bytes_to_sign = get_bytes_to_sign(tx, chain_id, account, sequence, registry)
    signature, pub_key = key.sign(bytes_to_sign, discover=discover, device_index=device_index)

    signer_info = SignerInfo(
        public_key=pub_key.proto_json(),
        sequence=str(parse_uint64(sequence, "sequence")),
        mode=SIGN_MODE_LEGACY_AMINO_JSON,
    )
    auth_info = replace(tx.auth_info, signer_infos=tx.auth_info.signer_infos + (signer_info,))
    signed = replace(tx, auth_info=auth_info, signatures=tx.signatures + (signature,))
    logger.debug("signed tx with %s at sequence %s", signer, signer_info.sequence)
    return signed, bytes_to_sign


def batch_sign_txs(
    txs: Sequence[Tx],
    keyring: Keyring,
    signer: str,
    chain_id: str,
    account: Union[int, str],
    sequence: Union[int, str],
    registry: TypeRegistry = DEFAULT_REGISTRY,
    discover: Optional[Discover] = None,
    device_index: Optional[int] = None,
) -> List[Tuple[Tx, bytes]]:
    """Sign in order; transaction i uses sequence + i."""
    base = parse_uint64(sequence, "sequence")
    results = []
    for i, tx in enumerate(txs):
        results.append(sign_tx(
            tx, keyring, signer, chain_id, account, base + i,
            registry=registry, discover=discover, device_index=device_index,
        ))
    logger.info("signed %d transaction(s) starting at sequence %d", len(results), base)
    return results


def signatures_data(tx: Tx) -> dict:
    """Signatures-only projection of a signed transaction."""
    entries = []
    for info, sig in zip(tx.auth_info.signer_infos, tx.signatures):
        entries.append({
            "public_key": info.public_key,
            "data": {"single": {"mode": info.mode, "signature": b64_encode(sig)}},
            "sequence": info.sequence,
        })
    return {"signatures": entries}
