"""Key managers and primitive resolution.

A ``KeyManager`` turns key material of the types it supports into a
``SingleKeyMac``. Managers are collected in a ``KeyManagerRegistry`` keyed by
type id. Registries are plain objects passed to the resolver explicitly;
there is no process-wide registry.

The ``PrimitiveResolver`` consults an optional custom key manager first and
falls back to the registry for every type the custom manager does not
support.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from keysetmac.config import Settings, get_settings
from keysetmac.errors import (
    KeysetMacError,
    MalformedKeyMaterialError,
    UnsupportedKeyTypeError,
)
from keysetmac.keys import KeyEntry, KeyMaterial
from keysetmac.logging import get_logger
from keysetmac.mac_engine import (
    AesCmacMac,
    HmacMac,
    KmacMac,
    MACAlgorithm,
    SingleKeyMac,
)

logger = get_logger(__name__)


class KeyManager(ABC):
    """Creates single-key MAC primitives for a set of key types."""

    #: Type ids this manager can instantiate
    key_types: tuple[str, ...] = ()

    def does_support(self, type_id: str) -> bool:
        return type_id in self.key_types

    @abstractmethod
    def get_primitive(self, key_material: KeyMaterial) -> SingleKeyMac:
        """Instantiate a primitive for ``key_material``.

        Raises:
            UnsupportedKeyTypeError: If the type id is not handled here
            MalformedKeyMaterialError: If the key or its parameters are invalid
        """

    def _check_type(self, key_material: KeyMaterial) -> MACAlgorithm:
        if not self.does_support(key_material.type_id):
            raise UnsupportedKeyTypeError(
                f"{type(self).__name__} does not support key type {key_material.type_id!r}"
            )
        return MACAlgorithm(key_material.type_id)


def _check_tag_size(algorithm: MACAlgorithm, tag_size: int, minimum: int, maximum: int) -> None:
    if not isinstance(tag_size, int) or not minimum <= tag_size <= maximum:
        raise MalformedKeyMaterialError(
            f"{algorithm.value} tag size must be between {minimum} and {maximum} bytes, "
            f"got {tag_size}"
        )


class HmacKeyManager(KeyManager):
    """HMAC keys over SHA-1, SHA-2 and SHA-3."""

    key_types = tuple(a.value for a in HmacMac.HASH_ALGORITHMS)

    def __init__(self, settings: Settings):
        self.min_key_size = settings.min_hmac_key_size
        self.min_tag_size = settings.min_tag_size

    def get_primitive(self, key_material: KeyMaterial) -> SingleKeyMac:
        algorithm = self._check_type(key_material)
        if len(key_material) < self.min_key_size:
            raise MalformedKeyMaterialError(
                f"{algorithm.value} key must be at least {self.min_key_size} bytes, "
                f"got {len(key_material)}"
            )
        digest_size = HmacMac.digest_size(algorithm)
        tag_size = key_material.tag_size
        if tag_size is None:
            tag_size = digest_size
        _check_tag_size(algorithm, tag_size, self.min_tag_size, digest_size)
        return HmacMac(key_material.value, algorithm, tag_size)


class AesCmacKeyManager(KeyManager):
    """AES-CMAC keys. Only 256-bit keys are accepted."""

    key_types = (MACAlgorithm.AES_CMAC.value,)

    KEY_SIZE = 32
    MIN_TAG_SIZE = 10

    def get_primitive(self, key_material: KeyMaterial) -> SingleKeyMac:
        algorithm = self._check_type(key_material)
        if len(key_material) != self.KEY_SIZE:
            raise MalformedKeyMaterialError(
                f"{algorithm.value} key must be {self.KEY_SIZE} bytes, got {len(key_material)}"
            )
        tag_size = key_material.tag_size
        if tag_size is None:
            tag_size = AesCmacMac.BLOCK_SIZE
        _check_tag_size(algorithm, tag_size, self.MIN_TAG_SIZE, AesCmacMac.BLOCK_SIZE)
        return AesCmacMac(key_material.value, tag_size)


class KmacKeyManager(KeyManager):
    """KMAC128 and KMAC256 keys."""

    key_types = (MACAlgorithm.KMAC128.value, MACAlgorithm.KMAC256.value)

    # Minimum key sizes and default tag sizes (bytes), by security level
    MIN_KEY_SIZES = {
        MACAlgorithm.KMAC128: 16,
        MACAlgorithm.KMAC256: 32,
    }
    DEFAULT_TAG_SIZES = {
        MACAlgorithm.KMAC128: 16,
        MACAlgorithm.KMAC256: 32,
    }
    MAX_TAG_SIZE = 64

    def __init__(self, settings: Settings):
        self.min_tag_size = settings.min_tag_size

    def get_primitive(self, key_material: KeyMaterial) -> SingleKeyMac:
        algorithm = self._check_type(key_material)
        min_key_size = self.MIN_KEY_SIZES[algorithm]
        if len(key_material) < min_key_size:
            raise MalformedKeyMaterialError(
                f"{algorithm.value} key must be at least {min_key_size} bytes, "
                f"got {len(key_material)}"
            )
        tag_size = key_material.tag_size
        if tag_size is None:
            tag_size = self.DEFAULT_TAG_SIZES[algorithm]
        _check_tag_size(algorithm, tag_size, self.min_tag_size, self.MAX_TAG_SIZE)
        return KmacMac(key_material.value, algorithm, tag_size, key_material.customization)


class KeyManagerRegistry:
    """Type id to key manager lookup table."""

    def __init__(self, managers: Iterable[KeyManager] = ()):
        self._managers: dict[str, KeyManager] = {}
        for manager in managers:
            self.register(manager)

    def register(self, manager: KeyManager, replace: bool = False) -> None:
        """Register ``manager`` for every type id it supports.

        Raises:
            ValueError: If another manager already handles one of the type
                ids and ``replace`` is false
        """
        if not replace:
            for type_id in manager.key_types:
                existing = self._managers.get(type_id)
                if existing is not None and existing is not manager:
                    raise ValueError(
                        f"Key type {type_id!r} is already handled by {type(existing).__name__}"
                    )
        for type_id in manager.key_types:
            self._managers[type_id] = manager
        logger.debug(
            "Registered key manager",
            manager=type(manager).__name__,
            key_types=list(manager.key_types),
        )

    def get_key_manager(self, type_id: str) -> KeyManager:
        """Get the manager for ``type_id``.

        Raises:
            UnsupportedKeyTypeError: If no manager handles the type
        """
        manager = self._managers.get(type_id)
        if manager is None:
            raise UnsupportedKeyTypeError(f"No key manager for key type {type_id!r}")
        return manager

    def key_types(self) -> list[str]:
        return sorted(self._managers)

    def __contains__(self, type_id: str) -> bool:
        return type_id in self._managers


def create_default_registry(settings: Settings | None = None) -> KeyManagerRegistry:
    """Registry with the HMAC, AES-CMAC and KMAC key managers."""
    settings = settings or get_settings()
    return KeyManagerRegistry([
        HmacKeyManager(settings),
        AesCmacKeyManager(),
        KmacKeyManager(settings),
    ])


class PrimitiveResolver:
    """Resolves key entries into single-key MAC primitives."""

    def __init__(
        self,
        registry: KeyManagerRegistry,
        custom_key_manager: KeyManager | None = None,
    ):
        self.registry = registry
        self.custom_key_manager = custom_key_manager

    def key_manager_for(self, type_id: str) -> KeyManager:
        if self.custom_key_manager is not None and self.custom_key_manager.does_support(type_id):
            return self.custom_key_manager
        return self.registry.get_key_manager(type_id)

    def resolve(self, entry: KeyEntry) -> SingleKeyMac:
        """Instantiate the primitive for ``entry``.

        Raises:
            UnsupportedKeyTypeError: If no manager handles the entry's type
            MalformedKeyMaterialError: If the manager rejects the key
        """
        try:
            manager = self.key_manager_for(entry.type_id)
            try:
                return manager.get_primitive(entry.key_material)
            except KeysetMacError:
                raise
            except Exception as e:
                # Custom managers may raise anything; the message is dropped
                # in case it echoes key bytes.
                raise MalformedKeyMaterialError(
                    f"Key manager {type(manager).__name__} rejected key {entry.key_id}: "
                    f"{type(e).__name__}"
                ) from e
        except KeysetMacError as e:
            logger.warning(
                "Key resolution failed",
                key_id=entry.key_id,
                type_id=entry.type_id,
                error=type(e).__name__,
            )
            raise
