# jsonsigner/storage/directory.py
from pathlib import Path
from typing import List, Union

from jsonsigner.errors import KeyNotFoundError
from . import KeyringBackend


class DirectoryBackend(KeyringBackend):
    """One plaintext file per item, named after the item. Unencrypted, for tooling and tests."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def location(self) -> str:
        return str(self.root)

    def _path(self, name: str) -> Path:
        if not name or "/" in name or name in (".", ".."):
            raise ValueError(f"invalid keyring item name: {name!r}")
        return self.root / name

    def get(self, name: str) -> bytes:
        path = self._path(name)
        if not path.is_file():
            raise KeyNotFoundError(name)
        return path.read_bytes()

    def set(self, name: str, data: bytes) -> None:
        path = self._path(name)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(path)
        path.chmod(0o600)

    def list_names(self) -> List[str]:
        return sorted(p.name for p in self.root.iterdir() if p.is_file() and not p.name.endswith(".tmp"))

    def close(self) -> None:
        pass
