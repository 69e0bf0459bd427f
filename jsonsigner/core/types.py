# jsonsigner/core/types.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from jsonsigner.core.encoding import b64_decode, b64_encode
from jsonsigner.errors import TxFormatError

SIGN_MODE_LEGACY_AMINO_JSON = "SIGN_MODE_LEGACY_AMINO_JSON"


@dataclass(frozen=True)
class Coin:
    denom: str
    amount: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Coin":
        return cls(denom=str(d.get("denom", "")), amount=str(d.get("amount", "")))

    def to_dict(self) -> dict:
        return {"denom": self.denom, "amount": self.amount}


@dataclass(frozen=True)
class Fee:
    amount: Tuple[Coin, ...] = ()
    gas_limit: str = ""
    payer: str = ""
    granter: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Fee":
        return cls(
            amount=tuple(Coin.from_dict(c) for c in d.get("amount") or []),
            gas_limit=str(d.get("gas_limit") or ""),
            payer=d.get("payer") or "",
            granter=d.get("granter") or "",
        )

    def to_dict(self) -> dict:
        # empty fields are left out, like the protojson output they came from
        d: Dict[str, Any] = {}
        if self.amount:
            d["amount"] = [c.to_dict() for c in self.amount]
        if self.gas_limit:
            d["gas_limit"] = self.gas_limit
        if self.payer:
            d["payer"] = self.payer
        if self.granter:
            d["granter"] = self.granter
        return d


@dataclass(frozen=True)
class SignerInfo:
    """Signer entry of auth_info: proto-JSON public key, sign mode and sequence."""
    public_key: Dict[str, Any]
    sequence: str
    mode: str = SIGN_MODE_LEGACY_AMINO_JSON

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SignerInfo":
        mode_info = d.get("mode_info") or {}
        single = mode_info.get("single") or {}
        return cls(
            public_key=d.get("public_key") or {},
            sequence=str(d.get("sequence") or "0"),
            mode=single.get("mode", ""),
        )

    def to_dict(self) -> dict:
        return {
            "public_key": self.public_key,
            "mode_info": {"single": {"mode": self.mode}},
            "sequence": self.sequence,
        }


@dataclass(frozen=True)
class AuthInfo:
    signer_infos: Tuple[SignerInfo, ...] = ()
    fee: Fee = field(default_factory=Fee)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AuthInfo":
        return cls(
            signer_infos=tuple(SignerInfo.from_dict(s) for s in d.get("signer_infos") or []),
            fee=Fee.from_dict(d.get("fee") or {}),
        )

    def to_dict(self) -> dict:
        return {
            "signer_infos": [s.to_dict() for s in self.signer_infos],
            "fee": self.fee.to_dict(),
        }


@dataclass(frozen=True)
class Body:
    """Transaction body. Messages stay as decoded proto-JSON trees."""
    messages: Tuple[Dict[str, Any], ...] = ()
    memo: str = ""
    timeout_height: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Body":
        messages = d.get("messages") or []
        if not isinstance(messages, list) or not all(isinstance(m, dict) for m in messages):
            raise TxFormatError("body.messages must be a list of objects")
        return cls(
            messages=tuple(messages),
            memo=d.get("memo") or "",
            timeout_height=str(d.get("timeout_height") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "messages": list(self.messages),
            "memo": self.memo,
            "timeout_height": self.timeout_height,
        }


@dataclass(frozen=True)
class Tx:
    """A protobuf-JSON transaction as produced by `tx ... --generate-only`."""
    body: Body = field(default_factory=Body)
    auth_info: AuthInfo = field(default_factory=AuthInfo)
    signatures: Tuple[bytes, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Tx":
        if not isinstance(d, dict):
            raise TxFormatError(f"transaction must be a JSON object, got {type(d).__name__}")
        try:
            signatures = tuple(b64_decode(s) for s in d.get("signatures") or [])
        except ValueError as e:
            raise TxFormatError(f"invalid signature encoding: {e}") from e
        return cls(
            body=Body.from_dict(d.get("body") or {}),
            auth_info=AuthInfo.from_dict(d.get("auth_info") or {}),
            signatures=signatures,
        )

    def to_dict(self) -> dict:
        return {
            "body": self.body.to_dict(),
            "auth_info": self.auth_info.to_dict(),
            "signatures": [b64_encode(s) for s in self.signatures],
        }


@dataclass(frozen=True)
class SignDoc:
    """Legacy StdSignDoc; msgs are already-canonical JSON byte strings."""
    account_number: str
    chain_id: str
    fee: Dict[str, Any]
    memo: str
    msgs: Tuple[bytes, ...]
    sequence: str
    timeout_height: Optional[str] = None
