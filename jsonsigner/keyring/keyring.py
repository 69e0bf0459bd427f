# jsonsigner/keyring/keyring.py
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

from jsonsigner.crypto.keys import PrivKey
from jsonsigner.errors import JsonSignerError, KeyNotFoundError, MigrationError
from jsonsigner.keyring import amino, proto
from jsonsigner.keyring.key import Key, load_key
from jsonsigner.keyring.records import LegacyInfo, ProtoRecord
from jsonsigner.storage import KeyringBackend, create_backend

logger = logging.getLogger(__name__)

INFO_SUFFIX = ".info"


@dataclass
class MigrationReport:
    migrated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Keyring:
    """
    Named keys on top of a byte store. Keys live under `<name>.info`;
    any other item in the store is ignored.
    """

    def __init__(self, backend: Union[KeyringBackend, str],
                 password_func: Optional[Callable[[str], str]] = None):
        if isinstance(backend, str):
            backend = create_backend(backend, password_func)
        self.backend = backend

    def keys(self) -> List[str]:
        return [n[: -len(INFO_SUFFIX)] for n in self.backend.list_names() if n.endswith(INFO_SUFFIX)]

    def get(self, name: str) -> Key:
        try:
            raw = self.backend.get(name + INFO_SUFFIX)
        except KeyNotFoundError:
            raise KeyNotFoundError(name) from None
        return load_key(name, raw)

    def add_proto(self, record: ProtoRecord) -> None:
        self.backend.set(record.name + INFO_SUFFIX, proto.encode_record(record))

    def add_amino(self, info: LegacyInfo) -> None:
        self.backend.set(info.name + INFO_SUFFIX, amino.encode_legacy_info(info))

    def import_priv_key(self, name: str, priv_key: PrivKey, encoding: str = "proto") -> Key:
        """Store a local key under `name` in the requested encoding."""
        key = Key(name, proto.new_local_record(name, priv_key))
        if encoding == "amino":
            key = Key(name, key.to_legacy_info())
            self.add_amino(key.item)
        elif encoding == "proto":
            self.add_proto(key.item)
        else:
            raise ValueError(f"unknown keyring encoding {encoding!r}")
        logger.info("imported %s key %s", encoding, name)
        return key

    def migrate_proto_keys_to_amino(self, dest: "Keyring") -> MigrationReport:
        """
        Convert every protobuf key to amino and write it into `dest`.

        Amino keys are left where they are. A key that fails to decode or
        convert does not stop the pass; MigrationError is raised at the end
        if anything failed.
        """
        if dest.backend.same_store(self.backend):
            raise ValueError("migration destination must differ from the source keyring")

        report = MigrationReport()
        for name in self.keys():
            try:
                key = self.get(name)
                if key.encoding == "amino":
                    logger.info("key %s is already amino encoded, skipping", name)
                    report.skipped.append(name)
                    continue
                dest.add_amino(key.to_legacy_info())
            except (JsonSignerError, ValueError) as e:
                logger.error("failed to migrate key %s: %s", name, e)
                report.failed.append((name, str(e)))
                continue
            logger.info("migrated key %s", name)
            report.migrated.append(name)

        if report.failed:
            raise MigrationError(report)
        return report

    def close(self) -> None:
        self.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
