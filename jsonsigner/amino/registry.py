# jsonsigner/amino/registry.py
"""
Mapping from protobuf type URLs to legacy amino JSON type descriptors.

The registry is immutable. `DEFAULT_REGISTRY` carries the built-in table;
callers that need more types derive a new registry with `extend` or
`load_type_map` and pass it down explicitly.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import yaml

from jsonsigner.errors import MissingTypeMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyTypeDescriptor:
    """How one protobuf message is rendered in legacy amino JSON."""
    name: str = ""
    field_renames: Mapping[str, str] = field(default_factory=dict)
    enums: Mapping[str, Mapping[str, int]] = field(default_factory=dict)
    inline_field: Optional[str] = None
    allow_empty: Optional[str] = None
    unregistered: bool = False

    def __post_init__(self):
        object.__setattr__(self, "field_renames", MappingProxyType(dict(self.field_renames)))
        object.__setattr__(
            self,
            "enums",
            MappingProxyType({k: MappingProxyType(dict(v)) for k, v in self.enums.items()}),
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LegacyTypeDescriptor":
        unknown = set(d) - {"name", "field_renames", "enums", "inline_field", "allow_empty", "unregistered"}
        if unknown:
            raise ValueError(f"unknown type descriptor keys: {sorted(unknown)}")
        unregistered = bool(d.get("unregistered", False))
        if not unregistered and not d.get("name"):
            raise ValueError("type descriptor needs a name unless it is unregistered")
        return cls(
            name=d.get("name", ""),
            field_renames=d.get("field_renames") or {},
            enums=d.get("enums") or {},
            inline_field=d.get("inline_field"),
            allow_empty=d.get("allow_empty"),
            unregistered=unregistered,
        )


class TypeRegistry(Mapping):
    """Read-only type URL -> LegacyTypeDescriptor table."""

    def __init__(self, entries: Mapping[str, LegacyTypeDescriptor]):
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, type_url: str) -> LegacyTypeDescriptor:
        return self._entries[type_url]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, type_url: str) -> LegacyTypeDescriptor:
        try:
            return self._entries[type_url]
        except KeyError:
            raise MissingTypeMapping(type_url) from None

    def extend(self, entries: Mapping[str, LegacyTypeDescriptor]) -> "TypeRegistry":
        """Return a new registry; given entries override existing ones."""
        merged = dict(self._entries)
        merged.update(entries)
        return TypeRegistry(merged)


def load_type_map(path: Union[str, Path], base: Optional[TypeRegistry] = None) -> TypeRegistry:
    """
    Read extra descriptors from a YAML or JSON file and layer them over `base`.

    The file is a mapping of type URL to descriptor fields:

        /my.module.v1.MsgDoThing:
          name: my/MsgDoThing
          field_renames: {/old_name: new_name}
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text)
    if not isinstance(raw, dict):
        raise ValueError(f"type map {path} must be a mapping of type URL to descriptor")

    entries = {}
    for type_url, spec in raw.items():
        if not isinstance(spec, dict):
            raise ValueError(f"type map entry {type_url} must be a mapping")
        entries[type_url] = LegacyTypeDescriptor.from_dict(spec)
    logger.debug("loaded %d type mappings from %s", len(entries), path)
    return (base if base is not None else DEFAULT_REGISTRY).extend(entries)


VOTE_OPTIONS = {
    "VOTE_OPTION_UNSPECIFIED": 0,
    "VOTE_OPTION_YES": 1,
    "VOTE_OPTION_ABSTAIN": 2,
    "VOTE_OPTION_NO": 3,
    "VOTE_OPTION_NO_WITH_VETO": 4,
}

_VOTE_ENUM = {"/option": VOTE_OPTIONS}
_WEIGHTED_VOTE_ENUM = {"/options/option": VOTE_OPTIONS}


def _same(prefix: str, module: str, *msgs: str) -> Dict[str, LegacyTypeDescriptor]:
    return {f"/{module}.{m}": LegacyTypeDescriptor(name=f"{prefix}/{m}") for m in msgs}


def _gov_v1beta1(module: str, prefix: str) -> Dict[str, LegacyTypeDescriptor]:
    return {
        f"/{module}.MsgSubmitProposal": LegacyTypeDescriptor(
            name=f"{prefix}/MsgSubmitProposal", allow_empty="/initial_deposit"
        ),
        f"/{module}.MsgDeposit": LegacyTypeDescriptor(name=f"{prefix}/MsgDeposit"),
        f"/{module}.MsgVote": LegacyTypeDescriptor(name=f"{prefix}/MsgVote", enums=_VOTE_ENUM),
        f"/{module}.MsgVoteWeighted": LegacyTypeDescriptor(
            name=f"{prefix}/MsgVoteWeighted", enums=_WEIGHTED_VOTE_ENUM
        ),
        f"/{module}.TextProposal": LegacyTypeDescriptor(name=f"{prefix}/TextProposal"),
    }


def _builtin_entries() -> Dict[str, LegacyTypeDescriptor]:
    entries: Dict[str, LegacyTypeDescriptor] = {}

    # bank
    entries.update(_same("cosmos-sdk", "cosmos.bank.v1beta1", "MsgSend", "MsgMultiSend"))

    # distribution
    distr = "cosmos.distribution.v1beta1"
    entries.update({
        f"/{distr}.MsgCommunityPoolSpend": LegacyTypeDescriptor(name="cosmos-sdk/distr/MsgCommunityPoolSpend"),
        f"/{distr}.MsgFundCommunityPool": LegacyTypeDescriptor(name="cosmos-sdk/MsgFundCommunityPool"),
        f"/{distr}.MsgSetWithdrawAddress": LegacyTypeDescriptor(name="cosmos-sdk/MsgModifyWithdrawAddress"),
        f"/{distr}.MsgWithdrawDelegatorReward": LegacyTypeDescriptor(name="cosmos-sdk/MsgWithdrawDelegationReward"),
        f"/{distr}.MsgWithdrawTokenizeShareRecordReward": LegacyTypeDescriptor(
            name="cosmos-sdk/MsgWithdrawTokenizeReward"
        ),
        f"/{distr}.MsgWithdrawAllTokenizeShareRecordReward": LegacyTypeDescriptor(
            name="cosmos-sdk/MsgWithdrawAllTokenizeReward"
        ),
    })

    # auth
    entries["/cosmos.auth.v1beta1.MsgUpdateParams"] = LegacyTypeDescriptor(name="cosmos-sdk/x/auth/MsgUpdateParams")

    # slashing
    entries["/cosmos.slashing.v1beta1.MsgUnjail"] = LegacyTypeDescriptor(
        name="cosmos-sdk/MsgUnjail", field_renames={"/validator_addr": "address"}
    )

    # ibc: the proposal wrapper has no legacy name, its content passes through
    entries["/ibc.core.client.v1.ClientUpdateProposal"] = LegacyTypeDescriptor(unregistered=True)

    # params & upgrade
    entries["/cosmos.params.v1beta1.ParameterChangeProposal"] = LegacyTypeDescriptor(
        name="cosmos-sdk/ParameterChangeProposal"
    )
    entries.update(_same(
        "cosmos-sdk", "cosmos.upgrade.v1beta1", "SoftwareUpgradeProposal", "CancelSoftwareUpgradeProposal"
    ))

    # gov
    entries.update(_gov_v1beta1("cosmos.gov.v1beta1", "cosmos-sdk"))
    entries.update({
        "/cosmos.gov.v1.MsgSubmitProposal": LegacyTypeDescriptor(name="cosmos-sdk/v1/MsgSubmitProposal"),
        "/cosmos.gov.v1.MsgDeposit": LegacyTypeDescriptor(name="cosmos-sdk/v1/MsgDeposit"),
        "/cosmos.gov.v1.MsgVote": LegacyTypeDescriptor(name="cosmos-sdk/v1/MsgVote", enums=_VOTE_ENUM),
        "/cosmos.gov.v1.MsgVoteWeighted": LegacyTypeDescriptor(
            name="cosmos-sdk/v1/MsgVoteWeighted", enums=_WEIGHTED_VOTE_ENUM
        ),
        "/cosmos.gov.v1.MsgExecLegacyContent": LegacyTypeDescriptor(name="cosmos-sdk/v1/MsgExecLegacyContent"),
    })

    # staking (liquid staking module included)
    entries.update(_same(
        "cosmos-sdk",
        "cosmos.staking.v1beta1",
        "MsgCreateValidator",
        "MsgEditValidator",
        "MsgDelegate",
        "MsgUndelegate",
        "MsgBeginRedelegate",
        "MsgCancelUnbondingDelegation",
        "MsgValidatorBond",
        "MsgUnbondValidator",
        "MsgTokenizeShares",
        "MsgEnableTokenizeShares",
        "MsgDisableTokenizeShares",
        "MsgRedeemTokensForShares",
    ))
    entries["/cosmos.staking.v1beta1.MsgTransferTokenizeShareRecord"] = LegacyTypeDescriptor(
        name="cosmos-sdk/MsgTransferTokenizeRecord"
    )

    # govgen
    entries.update(_gov_v1beta1("govgen.gov.v1beta1", "govgen"))

    # crypto
    entries["/cosmos.crypto.secp256k1.PubKey"] = LegacyTypeDescriptor(
        name="tendermint/PubKeySecp256k1", inline_field="key"
    )
    entries["/cosmos.crypto.ed25519.PubKey"] = LegacyTypeDescriptor(
        name="tendermint/PubKeyEd25519", inline_field="key"
    )
    return entries


DEFAULT_REGISTRY = TypeRegistry(_builtin_entries())
