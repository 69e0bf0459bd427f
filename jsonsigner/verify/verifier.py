# jsonsigner/verify/verifier.py
from dataclasses import dataclass
from typing import List, Optional, Union

from jsonsigner.amino.registry import DEFAULT_REGISTRY, TypeRegistry
from jsonsigner.amino.signdoc import get_bytes_to_sign
from jsonsigner.core.types import SIGN_MODE_LEGACY_AMINO_JSON, Tx
from jsonsigner.crypto.keys import MultisigPubKey, pub_key_from_json
from jsonsigner.errors import JsonSignerError


@dataclass
class VerificationFailure:
    index: int
    message: str
    category: str = "general"  # structure, mode, key, signature


@dataclass
class VerificationResult:
    is_valid: bool
    message: str = ""
    failures: List[VerificationFailure] = None

    def __post_init__(self):
        if self.failures is None:
            self.failures = []

    @property
    def first_failure(self) -> Optional[VerificationFailure]:
        return self.failures[0] if self.failures else None

    def fail(self, index: int, message: str, category: str) -> None:
        self.failures.append(VerificationFailure(index, message, category))
        self.is_valid = False

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "All signatures valid ✓"
        lines = [f"Verification FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


class TxVerifier:
    """
    Offline verifier for legacy amino JSON signatures.
    Rebuilds the sign bytes for every signer info and checks its signature.
    """

    def __init__(self, chain_id: str, account: Union[int, str], registry: TypeRegistry = DEFAULT_REGISTRY):
        if not chain_id:
            raise ValueError("chain_id is required")
        self.chain_id = chain_id
        self.account = account
        self.registry = registry

    def verify(self, tx: Tx) -> VerificationResult:
        infos = tx.auth_info.signer_infos
        if not infos and not tx.signatures:
            return VerificationResult(False, "Transaction is not signed",
                                      [VerificationFailure(-1, "no signer infos and no signatures", "structure")])

        result = VerificationResult(True)

        # 1. Shape
        if len(infos) != len(tx.signatures):
            result.fail(-1, f"{len(infos)} signer infos but {len(tx.signatures)} signatures", "structure")
            return result

        # 2. Per-signer checks
        for i, (info, sig) in enumerate(zip(infos, tx.signatures)):
            if info.mode != SIGN_MODE_LEGACY_AMINO_JSON:
                result.fail(i, f"unexpected sign mode {info.mode!r}", "mode")
                continue

            try:
                pub_key = pub_key_from_json(info.public_key)
            except (JsonSignerError, ValueError) as e:
                result.fail(i, f"Key loading failed: {e}", "key")
                continue
            if isinstance(pub_key, MultisigPubKey):
                result.fail(i, "multisig signatures are not supported", "key")
                continue

            try:
                sign_bytes = get_bytes_to_sign(tx, self.chain_id, self.account, info.sequence, self.registry)
            except JsonSignerError as e:
                result.fail(i, f"cannot rebuild sign bytes: {e}", "structure")
                continue

            if not pub_key.verify_signature(sign_bytes, sig):
                result.fail(i, "Invalid signature", "signature")

        result.message = "Valid signatures" if result.is_valid else f"Failed with {len(result.failures)} issues"
        return result

