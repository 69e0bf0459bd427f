# jsonsigner/storage/encrypted.py
"""
Password-encrypted file keyring, as written by Cosmos binaries for the
`file` and `test` keyring backends.

One file per item, named after the path-escaped item key. Each file is a
compact JWE (PBES2-HS256+A128KW key wrap, A256GCM content) whose payload
is the JSON item record; the item bytes sit base64 encoded under "Data".
The passphrase is asked for once, on first access.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union
from urllib.parse import quote, unquote

from jwcrypto import jwe, jwk
from jwcrypto.common import JWException, json_encode

from jsonsigner.core.encoding import b64_decode, b64_encode
from jsonsigner.errors import KeyNotFoundError, KeyringPasswordError
from . import KeyringBackend

logger = logging.getLogger(__name__)

KEY_ALG = "PBES2-HS256+A128KW"
CONTENT_ALG = "A256GCM"
TEST_PASSPHRASE = "test"

# bcrypt hash of the passphrase kept by Cosmos binaries, not an item
KEYHASH_FILE = "keyhash"

# characters Go's url.PathEscape leaves alone besides the unreserved set
_PATH_SAFE = "$&+:=@"

PasswordFunc = Callable[[str], str]


class EncryptedFileBackend(KeyringBackend):
    def __init__(self, root: Union[str, Path], password_func: Optional[PasswordFunc] = None):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True, mode=0o700)
        self._password_func = password_func
        self._key: Optional[jwk.JWK] = None

    @classmethod
    def with_test_passphrase(cls, root: Union[str, Path]) -> "EncryptedFileBackend":
        """The `test` backend: same format, fixed passphrase."""
        return cls(root, lambda prompt: TEST_PASSPHRASE)

    @property
    def location(self) -> str:
        return str(self.root)

    def _jwk(self) -> jwk.JWK:
        if self._key is None:
            if self._password_func is None:
                raise KeyringPasswordError(f"no passphrase available for encrypted keyring {self.root}")
            password = self._password_func(f"Enter keyring passphrase ({self.root})")
            self._key = jwk.JWK.from_password(password)
        return self._key

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or name == KEYHASH_FILE:
            raise ValueError(f"invalid keyring item name: {name!r}")
        return self.root / quote(name, safe=_PATH_SAFE)

    def get(self, name: str) -> bytes:
        path = self._path(name)
        if not path.is_file():
            raise KeyNotFoundError(name)

        token = jwe.JWE(algs=[KEY_ALG, CONTENT_ALG])
        try:
            token.deserialize(path.read_text().strip(), key=self._jwk())
        except JWException as e:
            raise KeyringPasswordError(f"cannot decrypt keyring item {name}: wrong passphrase or corrupt file") from e

        try:
            record = json.loads(token.payload)
            data = record.get("Data") or ""
            return b64_decode(data)
        except (ValueError, AttributeError) as e:
            raise KeyringPasswordError(f"keyring item {name} has a malformed payload: {e}") from e

    def set(self, name: str, data: bytes) -> None:
        path = self._path(name)
        record = {
            "Key": name,
            "Data": b64_encode(data),
            "Label": "",
            "Description": "",
            "KeychainNotTrustApplication": False,
            "KeychainNotSynchronizable": False,
        }
        header = {
            "alg": KEY_ALG,
            "enc": CONTENT_ALG,
            "created": datetime.now(timezone.utc).isoformat(),
        }
        token = jwe.JWE(
            json.dumps(record, separators=(",", ":")).encode("utf-8"),
            protected=json_encode(header),
            algs=[KEY_ALG, CONTENT_ALG],
        )
        token.add_recipient(self._jwk())

        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(token.serialize(compact=True))
        tmp.replace(path)
        path.chmod(0o600)
        logger.debug("wrote encrypted keyring item %s", name)

    def list_names(self) -> List[str]:
        return sorted(
            unquote(p.name)
            for p in self.root.iterdir()
            if p.is_file()
            and not p.name.startswith(".")
            and not p.name.endswith(".tmp")
            and p.name != KEYHASH_FILE
        )

    def close(self) -> None:
        self._key = None
