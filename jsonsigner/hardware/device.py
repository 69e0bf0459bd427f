# jsonsigner/hardware/device.py
"""
Hardware signer support.

Transports are installed separately and advertise themselves under the
`json_signer.transports` entry-point group; each entry point is a callable
returning the devices it can see. Devices return uncompressed or
compressed secp256k1 public keys and DER signatures.
"""

import logging
from importlib.metadata import entry_points
from typing import Callable, List, Optional, Protocol, Sequence

import coincurve

from jsonsigner.crypto.der import der_to_compact
from jsonsigner.crypto.keys import PubKey, Secp256k1PubKey
from jsonsigner.errors import AmbiguousDevice, DeviceKeyMismatch, DeviceNotFound, UnsupportedKeyType
from jsonsigner.keyring.records import BIP44Params

logger = logging.getLogger(__name__)

TRANSPORT_GROUP = "json_signer.transports"


class HardwareDevice(Protocol):
    def get_public_key(self, path: List[int]) -> bytes:
        ...

    def sign(self, path: List[int], message: bytes) -> bytes:
        ...


Discover = Callable[[], Sequence[HardwareDevice]]


def discover_devices() -> List[HardwareDevice]:
    """Collect devices from every installed transport."""
    devices: List[HardwareDevice] = []
    for ep in entry_points(group=TRANSPORT_GROUP):
        found = list(ep.load()())
        logger.debug("transport %s reported %d device(s)", ep.name, len(found))
        devices.extend(found)
    return devices


def select_device(devices: Sequence[HardwareDevice], index: Optional[int] = None) -> HardwareDevice:
    if not devices:
        raise DeviceNotFound("no hardware signing device found")
    if index is not None:
        if not 0 <= index < len(devices):
            raise DeviceNotFound(f"no hardware device at index {index} ({len(devices)} attached)")
        return devices[index]
    if len(devices) > 1:
        raise AmbiguousDevice(f"{len(devices)} hardware devices attached, select one by index")
    return devices[0]


def sign_with_device(
    device: HardwareDevice,
    path: BIP44Params,
    pub_key: PubKey,
    message: bytes,
) -> bytes:
    """
    Check the device derives `pub_key` at `path`, then sign `message`.
    Returns the 64-byte low-S R||S signature.
    """
    if not isinstance(pub_key, Secp256k1PubKey):
        raise UnsupportedKeyType(f"hardware signing needs a secp256k1 key, got {pub_key.algo}")
    hd_path = path.derivation_path()
    raw = device.get_public_key(hd_path)
    try:
        device_key = coincurve.PublicKey(raw).format(compressed=True)
    except (ValueError, TypeError) as e:
        raise DeviceKeyMismatch(f"device returned an unusable public key at {path}: {e}") from e
    if device_key != pub_key.key:
        raise DeviceKeyMismatch(
            f"device public key {device_key.hex()} at {path} does not match keyring key {pub_key.key.hex()}"
        )
    logger.info("requesting signature from hardware device at %s", path)
    return der_to_compact(device.sign(hd_path, message))
