"""Validated, indexed collection of single-key primitives.

A ``PrimitiveSet`` is built once from a keyset and never changes afterwards.
All validation happens in ``PrimitiveSet.build``; compute and verify only
do dictionary lookups.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterator, Sequence

from keysetmac.errors import (
    DuplicatePrefixError,
    EmptyKeysetError,
    MultiplePrimaryKeysError,
    NoPrimaryKeyError,
)
from keysetmac.keys import (
    KeyEntry,
    KeyInfo,
    KeyStatus,
    OutputPrefixType,
    RAW_PREFIX,
)
from keysetmac.logging import get_logger
from keysetmac.mac_engine import SingleKeyMac
from keysetmac.registry import PrimitiveResolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class PrimitiveEntry:
    """Key metadata paired with its instantiated primitive."""
    key_id: int
    type_id: str
    status: KeyStatus
    output_prefix_type: OutputPrefixType
    is_primary: bool
    prefix: bytes
    primitive: SingleKeyMac

    def info(self) -> KeyInfo:
        return KeyInfo(
            key_id=self.key_id,
            type_id=self.type_id,
            status=self.status,
            output_prefix_type=self.output_prefix_type,
            is_primary=self.is_primary,
        )


class PrimitiveSet:
    """Enabled primitives of a keyset, indexed by output prefix.

    Usually created with ``build``. The constructor takes already resolved
    enabled entries and enforces the primary and prefix rules itself.

    Raises:
        NoPrimaryKeyError: If no entry is primary
        MultiplePrimaryKeysError: If several entries are primary
        DuplicatePrefixError: If two entries share prefix and key id
        ValueError: If an entry is not enabled
    """

    def __init__(self, entries: Sequence[PrimitiveEntry]):
        self._entries = tuple(entries)
        for entry in self._entries:
            if entry.status != KeyStatus.ENABLED:
                raise ValueError(f"Key {entry.key_id} is {entry.status.value}, not enabled")

        primaries = [entry for entry in self._entries if entry.is_primary]
        if not primaries:
            raise NoPrimaryKeyError("Keyset has no enabled primary key")
        if len(primaries) > 1:
            raise MultiplePrimaryKeysError(
                f"Keyset has {len(primaries)} enabled primary keys: "
                f"{[entry.key_id for entry in primaries]}"
            )
        self._primary = primaries[0]

        index: dict[bytes, list[PrimitiveEntry]] = defaultdict(list)
        seen: set[tuple[bytes, int]] = set()
        for entry in self._entries:
            identity = (entry.prefix, entry.key_id)
            if identity in seen:
                raise DuplicatePrefixError(
                    f"Duplicate {entry.output_prefix_type.value} prefix for key id {entry.key_id}"
                )
            seen.add(identity)
            index[entry.prefix].append(entry)
        self._by_prefix = {prefix: tuple(group) for prefix, group in index.items()}

    @classmethod
    def build(
        cls,
        keyset: Sequence[KeyEntry],
        resolver: PrimitiveResolver,
    ) -> PrimitiveSet:
        """Resolve and validate ``keyset``.

        Raises:
            EmptyKeysetError: If the keyset has no entries
            UnsupportedKeyTypeError: If any non-destroyed key has no manager
            MalformedKeyMaterialError: If any non-destroyed key is rejected
            NoPrimaryKeyError: If no enabled key is primary
            MultiplePrimaryKeysError: If several enabled keys are primary
            DuplicatePrefixError: If two enabled keys share prefix and key id
        """
        keyset = list(keyset)
        if not keyset:
            raise EmptyKeysetError("Keyset contains no keys")

        resolved: list[tuple[KeyEntry, SingleKeyMac]] = []
        try:
            for key in keyset:
                if key.status == KeyStatus.DESTROYED:
                    continue
                resolved.append((key, resolver.resolve(key)))
            primitive_set = cls([
                PrimitiveEntry(
                    key_id=key.key_id,
                    type_id=key.type_id,
                    status=key.status,
                    output_prefix_type=key.output_prefix_type,
                    is_primary=key.is_primary,
                    prefix=key.prefix,
                    primitive=primitive,
                )
                for key, primitive in resolved
                if key.status == KeyStatus.ENABLED
            ])
        except Exception:
            for _, primitive in resolved:
                primitive.close()
            raise

        # Disabled keys were only resolved to surface bad material
        for key, primitive in resolved:
            if key.status != KeyStatus.ENABLED:
                primitive.close()

        logger.info(
            "Built MAC primitive set",
            key_count=len(keyset),
            enabled_count=len(primitive_set),
            raw_count=len(primitive_set.get_raw_primitives()),
            primary_key_id=primitive_set.primary.key_id,
        )
        return primitive_set

    @property
    def primary(self) -> PrimitiveEntry:
        return self._primary

    @property
    def entries(self) -> tuple[PrimitiveEntry, ...]:
        """All enabled entries in keyset order."""
        return self._entries

    def get_primitives(self, prefix: bytes) -> tuple[PrimitiveEntry, ...]:
        """Enabled entries whose output prefix equals ``prefix``."""
        return self._by_prefix.get(bytes(prefix), ())

    def get_raw_primitives(self) -> tuple[PrimitiveEntry, ...]:
        """Enabled entries with the RAW output prefix, in keyset order."""
        return self.get_primitives(RAW_PREFIX)

    def keyset_info(self) -> list[KeyInfo]:
        return [entry.info() for entry in self._entries]

    def close(self) -> None:
        """Scrub the key material of every primitive in the set."""
        for entry in self._entries:
            entry.primitive.close()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PrimitiveEntry]:
        return iter(self._entries)
