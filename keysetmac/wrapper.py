"""Keyset-backed MAC primitive.

``MultiKeyMac`` tags with the primary key and verifies against every enabled
key, so a keyset can be rotated without invalidating tags issued under keys
that are still enabled:

    mac = new_mac(keyset)
    tag = mac.compute_mac(b"payload")
    mac.verify_mac(tag, b"payload")   # raises VerificationFailedError on mismatch
"""

from __future__ import annotations

from typing import Sequence

from keysetmac.errors import (
    InvalidTagLengthError,
    VerificationFailedError,
)
from keysetmac.keys import (
    LEGACY_DATA_SUFFIX,
    PREFIX_SIZE,
    KeyEntry,
    KeyInfo,
    OutputPrefixType,
)
from keysetmac.logging import get_logger, log_operation
from keysetmac.primitive_set import PrimitiveEntry, PrimitiveSet
from keysetmac.registry import (
    KeyManager,
    KeyManagerRegistry,
    PrimitiveResolver,
    create_default_registry,
)

logger = get_logger(__name__)


def _framed_data(entry: PrimitiveEntry, data: bytes) -> bytes:
    if entry.output_prefix_type == OutputPrefixType.LEGACY:
        return data + LEGACY_DATA_SUFFIX
    return data


class MultiKeyMac:
    """MAC primitive over all enabled keys of a keyset.

    Instances are immutable and may be shared between threads.
    """

    def __init__(self, primitive_set: PrimitiveSet):
        self._primitives = primitive_set

    @property
    def primitive_set(self) -> PrimitiveSet:
        return self._primitives

    @property
    def keyset_info(self) -> list[KeyInfo]:
        return self._primitives.keyset_info()

    def compute_mac(self, data: bytes) -> bytes:
        """Tag ``data`` with the primary key.

        Returns:
            Output prefix of the primary key followed by the raw tag

        Raises:
            ComputationFailedError: If the underlying MAC fails
        """
        primary = self._primitives.primary
        return primary.prefix + primary.primitive.compute_mac(_framed_data(primary, data))

    def verify_mac(self, tag: bytes, data: bytes) -> None:
        """Verify ``tag`` over ``data`` with any enabled key.

        Keys whose prefix matches the tag are tried first, then every RAW
        key. The first match wins.

        Raises:
            InvalidTagLengthError: If the tag is too short to be valid
            VerificationFailedError: If no enabled key accepts the tag
        """
        tag = bytes(tag)
        if len(tag) <= PREFIX_SIZE:
            raise InvalidTagLengthError(
                f"MAC tag must be longer than {PREFIX_SIZE} bytes, got {len(tag)}"
            )

        prefix, raw_tag = tag[:PREFIX_SIZE], tag[PREFIX_SIZE:]
        candidates = self._primitives.get_primitives(prefix)
        for entry in candidates:
            if self._try_verify(entry, raw_tag, data):
                return

        raw_candidates = self._primitives.get_raw_primitives()
        for entry in raw_candidates:
            if self._try_verify(entry, tag, data):
                return

        if not candidates and not raw_candidates:
            # Unknown prefix: do one verification's worth of work so it costs
            # the same as a mismatch. The outcome is discarded.
            self._try_verify(self._primitives.primary, raw_tag, data)

        logger.debug("MAC verification failed")
        raise VerificationFailedError("invalid MAC")

    @staticmethod
    def _try_verify(entry: PrimitiveEntry, tag: bytes, data: bytes) -> bool:
        try:
            entry.primitive.verify_mac(tag, _framed_data(entry, data))
        except Exception:
            # Primitives from custom key managers may raise anything; any
            # failure is a mismatch for this candidate only.
            return False
        return True

    def close(self) -> None:
        """Scrub all key material. The primitive is unusable afterwards."""
        self._primitives.close()

    def __enter__(self) -> MultiKeyMac:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"MultiKeyMac(keys={len(self._primitives)}, "
            f"primary_key_id={self._primitives.primary.key_id})"
        )


@log_operation("Keyset MAC construction")
def new_mac(
    keyset: Sequence[KeyEntry],
    registry: KeyManagerRegistry | None = None,
    custom_key_manager: KeyManager | None = None,
) -> MultiKeyMac:
    """Build a ``MultiKeyMac`` from ``keyset``.

    Args:
        keyset: Ordered key entries
        registry: Key managers by type id; the default HMAC, AES-CMAC and
            KMAC managers configured from settings when omitted
        custom_key_manager: Manager used instead of the registry for the
            key types it supports

    Raises:
        KeysetBuildError: If the keyset cannot be resolved or is invalid
    """
    if registry is None:
        registry = create_default_registry()
    resolver = PrimitiveResolver(registry, custom_key_manager)
    return MultiKeyMac(PrimitiveSet.build(keyset, resolver))
