# jsonsigner/storage/memory.py
from typing import Dict, List

from jsonsigner.errors import KeyNotFoundError
from . import KeyringBackend


class MemoryBackend(KeyringBackend):
    def __init__(self):
        self._items: Dict[str, bytes] = {}

    @property
    def location(self) -> str:
        return "memory:"

    def same_store(self, other: KeyringBackend) -> bool:
        return other is self

    def get(self, name: str) -> bytes:
        try:
            return self._items[name]
        except KeyError:
            raise KeyNotFoundError(name) from None

    def set(self, name: str, data: bytes) -> None:
        self._items[name] = bytes(data)

    def list_names(self) -> List[str]:
        return sorted(self._items)

    def close(self) -> None:
        pass
