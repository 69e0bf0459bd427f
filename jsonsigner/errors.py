# jsonsigner/errors.py
"""
Exception hierarchy shared by the keyring, transformer and signing code.

Library code raises these; only the CLI turns them into exit codes.
"""

from typing import Any, Optional


class JsonSignerError(Exception):
    """Base class for every error raised by jsonsigner."""


class DecodeError(JsonSignerError):
    """Stored key bytes are neither a protobuf Record nor an amino LegacyInfo."""

    def __init__(self, name: str, proto_error: Exception, amino_error: Exception):
        self.name = name
        self.proto_error = proto_error
        self.amino_error = amino_error
        super().__init__(
            f"cannot decode key {name}: decodeProto={proto_error} decodeAmino={amino_error}"
        )


class UnsupportedKeyType(JsonSignerError):
    pass


class UnsupportedRecordKind(JsonSignerError):
    pass


class PrivateKeyUnavailable(JsonSignerError):
    pass


class MissingTypeMapping(JsonSignerError):
    def __init__(self, type_url: str):
        self.type_url = type_url
        super().__init__(f"can't find amino type for proto @type='{type_url}'")


class MissingInlineField(JsonSignerError):
    def __init__(self, legacy_name: str, field: str):
        self.legacy_name = legacy_name
        self.field = field
        super().__init__(f"can't find inline field '{field}' for amino type '{legacy_name}'")


class EnumValueNotFound(JsonSignerError):
    def __init__(self, legacy_name: str, path: str, value: Any):
        self.legacy_name = legacy_name
        self.path = path
        self.value = value
        super().__init__(
            f"can't find enum value for type '{legacy_name}', path '{path}' and key '{value}'"
        )


class DeviceNotFound(JsonSignerError):
    pass


class AmbiguousDevice(JsonSignerError):
    pass


class DeviceKeyMismatch(JsonSignerError):
    pass


class InvalidSignatureEncoding(JsonSignerError):
    pass


class KeyringPasswordError(JsonSignerError):
    """An encrypted keyring item could not be opened with the given passphrase."""


class KeyNotFoundError(JsonSignerError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"key '{name}' not found")

    def __str__(self):
        return f"key '{self.name}' not found"


class TxFormatError(JsonSignerError):
    pass


class MigrationError(JsonSignerError):
    """Raised after a migration pass in which at least one key failed."""

    def __init__(self, report: Optional[Any] = None):
        self.report = report
        failed = len(report.failed) if report is not None else 0
        super().__init__(f"migration finished with {failed} failed key(s)")
