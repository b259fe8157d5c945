"""Shared fixtures for keyset MAC tests."""

import logging
import os

import pytest

from keysetmac.config import Settings, get_settings
from keysetmac.keys import KeyEntry, KeyMaterial, KeyStatus, OutputPrefixType
from keysetmac.mac_engine import MACAlgorithm, SingleKeyMac
from keysetmac.registry import KeyManager, create_default_registry


def make_entry(
    key_id: int,
    type_id: str = "hmac-sha256",
    key: bytes | None = None,
    status: KeyStatus = KeyStatus.ENABLED,
    prefix: OutputPrefixType = OutputPrefixType.TINK,
    primary: bool = False,
    tag_size: int | None = None,
) -> KeyEntry:
    """Key entry with fresh random key material unless ``key`` is given."""
    if key is None:
        key = os.urandom(32)
    return KeyEntry(
        key_id=key_id,
        key_material=KeyMaterial(type_id, key, tag_size=tag_size),
        status=status,
        output_prefix_type=prefix,
        is_primary=primary,
    )


class BrokenMac(SingleKeyMac):
    """Primitive whose backend always fails."""

    algorithm = MACAlgorithm.HMAC_SHA256

    def _raw_mac(self, key, data):
        raise RuntimeError("backend exploded")


class FixedTagMac(SingleKeyMac):
    """Primitive that always produces the same tag and counts verify calls."""

    algorithm = MACAlgorithm.HMAC_SHA256

    def __init__(self, key, tag_size=16):
        super().__init__(key, tag_size)
        self.calls = 0

    def _raw_mac(self, key, data):
        return b"\xaa" * self.tag_size

    def verify_mac(self, tag, data):
        self.calls += 1
        super().verify_mac(tag, data)


class RaisingMac(FixedTagMac):
    """Primitive whose verify_mac raises an unrelated exception."""

    def verify_mac(self, tag, data):
        self.calls += 1
        raise TypeError("incompatible")


class RecordingKeyManager(KeyManager):
    """Test key manager for the ``test-*`` key types."""

    key_types = ("test-broken", "test-fixed", "test-raising", "test-reject")

    def __init__(self):
        self.created = []

    def get_primitive(self, key_material):
        if key_material.type_id == "test-reject":
            raise RuntimeError(f"bad key {bytes(key_material.value.data).hex()}")
        if key_material.type_id == "test-broken":
            primitive = BrokenMac(key_material.value, 16)
        elif key_material.type_id == "test-raising":
            primitive = RaisingMac(key_material.value)
        else:
            primitive = FixedTagMac(key_material.value)
        self.created.append(primitive)
        return primitive


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers and levels installed by configure_logging()."""
    yield
    package_logger = logging.getLogger("keysetmac")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def registry(settings):
    return create_default_registry(settings)


@pytest.fixture
def recording_manager():
    return RecordingKeyManager()


@pytest.fixture
def hmac_key():
    return os.urandom(32)

