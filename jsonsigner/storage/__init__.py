# jsonsigner/storage/__init__.py
"""
Byte stores backing a keyring.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional


class KeyringBackend(ABC):
    """Abstract base for all keyring item stores."""

    @abstractmethod
    def get(self, name: str) -> bytes:
        """Return the stored bytes; raises KeyNotFoundError if absent."""

    @abstractmethod
    def set(self, name: str, data: bytes) -> None:
        pass

    @abstractmethod
    def list_names(self) -> List[str]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @property
    def location(self) -> str:
        return ""

    def same_store(self, other: "KeyringBackend") -> bool:
        """True when both backends read and write the same items."""
        if other is self:
            return True
        return bool(self.location) and self.location == other.location

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _local_path(raw: str) -> Path:
    return Path(raw).expanduser().resolve()


def create_backend(uri: str, password_func: Optional[Callable[[str], str]] = None) -> KeyringBackend:
    """
    Open the store a keyring URI names:

      sqlite://<path>  SQLite database
      dir:<path>       plaintext directory, one file per item
      file:<path>      passphrase-encrypted directory (Cosmos `file` backend)
      test:<path>      encrypted directory with the fixed passphrase "test"
      memory:          throwaway in-memory store
      <path>           same as dir:<path>

    `password_func` is only consulted by `file:` keyrings, on first access.
    """
    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteBackend
        return SQLiteBackend(_local_path(uri[len("sqlite://"):]))

    elif uri.startswith("dir:"):
        from .directory import DirectoryBackend
        return DirectoryBackend(_local_path(uri[len("dir:"):]))

    elif uri.startswith("file:"):
        from .encrypted import EncryptedFileBackend
        return EncryptedFileBackend(_local_path(uri[len("file:"):]), password_func)

    elif uri.startswith("test:"):
        from .encrypted import EncryptedFileBackend
        return EncryptedFileBackend.with_test_passphrase(_local_path(uri[len("test:"):]))

    elif uri == "memory:":
        from .memory import MemoryBackend
        return MemoryBackend()

    elif "://" in uri or uri.startswith("memory:"):
        raise ValueError(f"Unsupported keyring URI: {uri}")

    # plain path: a keyring directory
    from .directory import DirectoryBackend
    return DirectoryBackend(_local_path(uri))


from .directory import DirectoryBackend
from .encrypted import EncryptedFileBackend
from .memory import MemoryBackend
from .sqlite import SQLiteBackend

__all__ = [
    "KeyringBackend",
    "create_backend",
    "DirectoryBackend",
    "EncryptedFileBackend",
    "MemoryBackend",
    "SQLiteBackend",
]
