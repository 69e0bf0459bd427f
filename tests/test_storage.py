# tests/test_storage.py
import json
import os
import stat
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from jwcrypto import jwe, jwk
from jwcrypto.common import base64url_decode, json_encode

from jsonsigner.errors import KeyNotFoundError, KeyringPasswordError
from jsonsigner.storage import (
    DirectoryBackend,
    EncryptedFileBackend,
    KeyringBackend,
    MemoryBackend,
    SQLiteBackend,
    create_backend,
)


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "keyring.db"


@pytest.fixture(params=["sqlite", "dir", "encrypted", "memory"])
def backend(request, tmp_path: Path) -> KeyringBackend:
    if request.param == "sqlite":
        b = SQLiteBackend(tmp_path / "kr.db")
    elif request.param == "dir":
        b = DirectoryBackend(tmp_path / "kr")
    elif request.param == "encrypted":
        b = EncryptedFileBackend(tmp_path / "kr", lambda prompt: "hunter2")
    else:
        b = MemoryBackend()
    yield b
    b.close()


def test_set_get_list(backend: KeyringBackend):
    backend.set("b.info", b"\x01\x02")
    backend.set("a.info", b"\x03")
    assert backend.get("b.info") == b"\x01\x02"
    assert backend.list_names() == ["a.info", "b.info"]


def test_overwrite(backend: KeyringBackend):
    backend.set("a.info", b"old")
    backend.set("a.info", b"new")
    assert backend.get("a.info") == b"new"
    assert backend.list_names() == ["a.info"]


def test_missing_item(backend: KeyringBackend):
    with pytest.raises(KeyNotFoundError):
        backend.get("nope.info")


def test_create_backend_dynamic_routing(temp_db_path: Path, tmp_path: Path):
    sqlite = create_backend(f"sqlite://{temp_db_path}")
    assert isinstance(sqlite, SQLiteBackend)
    assert str(sqlite.db_path.resolve()) == str(temp_db_path.resolve())
    sqlite.close()

    directory = create_backend(f"dir:{tmp_path / 'd'}")
    assert isinstance(directory, DirectoryBackend)
    assert directory.root == (tmp_path / "d").resolve()

    plain = create_backend(str(tmp_path / "plain"))
    assert isinstance(plain, DirectoryBackend)
    assert (tmp_path / "plain").is_dir()

    encrypted = create_backend(f"file:{tmp_path / 'enc'}", lambda prompt: "pw")
    assert isinstance(encrypted, EncryptedFileBackend)
    assert encrypted.root == (tmp_path / "enc").resolve()

    test_kr = create_backend(f"test:{tmp_path / 'keyring-test'}")
    assert isinstance(test_kr, EncryptedFileBackend)

    assert isinstance(create_backend("memory:"), MemoryBackend)


@pytest.mark.parametrize("uri", ["redis://localhost", "memory:named"])
def test_create_backend_unsupported(uri):
    with pytest.raises(ValueError):
        create_backend(uri)


def test_sqlite_init_default_and_env():
    cwd = os.getcwd()
    try:
        with TemporaryDirectory() as tmpdir:
            os.chdir(tmpdir)
            default_backend = SQLiteBackend()
            assert default_backend.db_path.name == "keyring.db"
            default_backend.close()
    finally:
        os.chdir(cwd)

    with TemporaryDirectory() as tmpdir:
        env_path = Path(tmpdir) / "env-test.db"
        os.environ["JSON_SIGNER_KEYRING_DB"] = str(env_path)
        try:
            env_backend = SQLiteBackend()
            assert env_backend.db_path == env_path.resolve()
            env_backend.close()
        finally:
            os.environ.pop("JSON_SIGNER_KEYRING_DB", None)


def test_sqlite_schema_creation(temp_db_path: Path):
    backend = SQLiteBackend(temp_db_path)
    cursor = backend.conn.cursor()
    cursor.execute("PRAGMA table_info(items)")
    assert {row[1] for row in cursor.fetchall()} == {"name", "data"}
    backend.close()


def test_sqlite_closed_connection(temp_db_path: Path):
    backend = SQLiteBackend(temp_db_path)
    backend.close()
    with pytest.raises(RuntimeError, match="closed"):
        backend.get("a.info")


def test_sqlite_persists_across_connections(temp_db_path: Path):
    with SQLiteBackend(temp_db_path) as first:
        first.set("alice.info", b"\x00bytes\xff")
    with SQLiteBackend(temp_db_path) as second:
        assert second.get("alice.info") == b"\x00bytes\xff"


def test_directory_file_permissions(tmp_path: Path):
    backend = DirectoryBackend(tmp_path / "kr")
    backend.set("alice.info", b"secret")
    mode = stat.S_IMODE((tmp_path / "kr" / "alice.info").stat().st_mode)
    assert mode == 0o600
    assert not (tmp_path / "kr" / "alice.info.tmp").exists()


def test_directory_ignores_subdirectories_and_tmp(tmp_path: Path):
    backend = DirectoryBackend(tmp_path / "kr")
    backend.set("alice.info", b"x")
    (tmp_path / "kr" / "amino").mkdir()
    (tmp_path / "kr" / "bob.info.tmp").write_bytes(b"partial")
    assert backend.list_names() == ["alice.info"]


@pytest.mark.parametrize("name", ["", "..", "a/b"])
def test_directory_rejects_bad_names(tmp_path: Path, name: str):
    backend = DirectoryBackend(tmp_path / "kr")
    with pytest.raises(ValueError):
        backend.set(name, b"x")


def test_same_store(tmp_path: Path):
    a = DirectoryBackend(tmp_path / "kr")
    assert a.same_store(DirectoryBackend(tmp_path / "kr"))
    assert a.same_store(EncryptedFileBackend(tmp_path / "kr"))
    assert not a.same_store(DirectoryBackend(tmp_path / "other"))
    m = MemoryBackend()
    assert m.same_store(m)
    assert not m.same_store(MemoryBackend())


# encrypted file keyring

def _jwe_header(path: Path) -> dict:
    return json.loads(base64url_decode(path.read_text().split(".")[0]))


def test_encrypted_item_is_compact_jwe(tmp_path: Path):
    backend = EncryptedFileBackend(tmp_path / "kr", lambda prompt: "pw")
    backend.set("alice.info", b"very secret key material")

    path = tmp_path / "kr" / "alice.info"
    token = path.read_text()
    assert len(token.split(".")) == 5
    header = _jwe_header(path)
    assert header["alg"] == "PBES2-HS256+A128KW"
    assert header["enc"] == "A256GCM"
    assert b"very secret" not in path.read_bytes()
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_encrypted_reads_item_record(tmp_path: Path):
    """Items written by other tools: JSON record with base64 Data."""
    root = tmp_path / "kr"
    root.mkdir()
    record = {"Key": "bob.info", "Data": "AQID", "Label": "", "Description": "",
              "KeychainNotTrustApplication": False, "KeychainNotSynchronizable": False}
    token = jwe.JWE(
        json.dumps(record).encode(),
        protected=json_encode({"alg": "PBES2-HS256+A128KW", "enc": "A256GCM", "created": "2023-05-01 10:00:00"}),
        algs=["PBES2-HS256+A128KW", "A256GCM"],
    )
    token.add_recipient(jwk.JWK.from_password("pw"))
    (root / "bob.info").write_text(token.serialize(compact=True))
    (root / "keyhash").write_text("$2a$10$notajwe")

    backend = EncryptedFileBackend(root, lambda prompt: "pw")
    assert backend.list_names() == ["bob.info"]
    assert backend.get("bob.info") == b"\x01\x02\x03"


def test_encrypted_wrong_passphrase(tmp_path: Path):
    EncryptedFileBackend(tmp_path / "kr", lambda prompt: "right").set("a.info", b"x")
    with pytest.raises(KeyringPasswordError):
        EncryptedFileBackend(tmp_path / "kr", lambda prompt: "wrong").get("a.info")


def test_encrypted_without_passphrase(tmp_path: Path):
    EncryptedFileBackend(tmp_path / "kr", lambda prompt: "pw").set("a.info", b"x")
    backend = EncryptedFileBackend(tmp_path / "kr")
    assert backend.list_names() == ["a.info"]
    with pytest.raises(KeyringPasswordError):
        backend.get("a.info")


def test_encrypted_prompts_once(tmp_path: Path):
    prompts = []

    def password(prompt):
        prompts.append(prompt)
        return "pw"

    backend = EncryptedFileBackend(tmp_path / "kr", password)
    assert prompts == []
    backend.set("a.info", b"1")
    backend.set("b.info", b"2")
    assert backend.get("a.info") == b"1"
    assert len(prompts) == 1
    assert str(tmp_path / "kr") in prompts[0]


def test_encrypted_escapes_item_names(tmp_path: Path):
    backend = EncryptedFileBackend(tmp_path / "kr", lambda prompt: "pw")
    backend.set("my key/1.info", b"x")
    assert (tmp_path / "kr" / "my%20key%2F1.info").is_file()
    assert backend.list_names() == ["my key/1.info"]
    assert backend.get("my key/1.info") == b"x"


def test_test_keyring_uses_fixed_passphrase(tmp_path: Path):
    create_backend(f"test:{tmp_path / 'kr'}").set("a.info", b"data")
    assert EncryptedFileBackend(tmp_path / "kr", lambda prompt: "test").get("a.info") == b"data"
