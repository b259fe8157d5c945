"""Key entries and the output prefix model.

A keyset is an ordered sequence of ``KeyEntry`` records. Each entry carries
its secret material, a 32-bit key id, a status and an output prefix type
that decides how tags produced with the key are framed:

    TINK            0x01 || key_id (4 bytes, big-endian) || raw tag
    LEGACY/CRUNCHY  0x00 || key_id (4 bytes, big-endian) || raw tag
    RAW             raw tag

LEGACY keys additionally MAC ``data || 0x00`` instead of ``data``.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum

from keysetmac.secure_memory import SecureBytes

PREFIX_SIZE = 5
TINK_START_BYTE = 0x01
LEGACY_START_BYTE = 0x00
RAW_PREFIX = b""
LEGACY_DATA_SUFFIX = b"\x00"

MAX_KEY_ID = 0xFFFFFFFF


class KeyStatus(str, Enum):
    """Lifecycle state of a key entry."""
    ENABLED = "enabled"
    DISABLED = "disabled"
    DESTROYED = "destroyed"


class OutputPrefixType(str, Enum):
    """Framing applied to tags produced with a key."""
    TINK = "tink"
    LEGACY = "legacy"
    RAW = "raw"
    CRUNCHY = "crunchy"


def output_prefix(key_id: int, prefix_type: OutputPrefixType) -> bytes:
    """Return the tag prefix for a key id and prefix type."""
    if prefix_type == OutputPrefixType.RAW:
        return RAW_PREFIX
    if prefix_type == OutputPrefixType.TINK:
        start = TINK_START_BYTE
    elif prefix_type in (OutputPrefixType.LEGACY, OutputPrefixType.CRUNCHY):
        start = LEGACY_START_BYTE
    else:
        raise ValueError(f"Unknown output prefix type: {prefix_type}")
    return struct.pack(">BI", start, key_id)


@dataclass(eq=False)
class KeyMaterial:
    """Secret key bytes plus the algorithm they belong to.

    Attributes:
        type_id: Algorithm identifier used for key manager lookup
            (e.g. ``"hmac-sha256"``, ``"aes-cmac"``, ``"kmac256"``)
        value: Secret bytes, copied into a scrubbable buffer
        tag_size: Raw tag length in bytes; ``None`` uses the algorithm default
        customization: KMAC customization string
    """
    type_id: str
    value: SecureBytes = field(repr=False)
    tag_size: int | None = None
    customization: bytes = field(default=b"", repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.value, SecureBytes):
            self.value = SecureBytes(self.value)

    def __len__(self) -> int:
        return len(self.value)


@dataclass(frozen=True)
class KeyInfo:
    """Key metadata without secret material."""
    key_id: int
    type_id: str
    status: KeyStatus
    output_prefix_type: OutputPrefixType
    is_primary: bool


@dataclass(frozen=True, eq=False)
class KeyEntry:
    """One key of a keyset."""
    key_id: int
    key_material: KeyMaterial
    status: KeyStatus = KeyStatus.ENABLED
    output_prefix_type: OutputPrefixType = OutputPrefixType.TINK
    is_primary: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.key_id, int) or isinstance(self.key_id, bool):
            raise ValueError(f"key_id must be an integer, got {type(self.key_id).__name__}")
        if not 0 <= self.key_id <= MAX_KEY_ID:
            raise ValueError(f"key_id must fit in 32 bits, got {self.key_id}")
        # Accept plain strings for the enums
        object.__setattr__(self, "status", KeyStatus(self.status))
        object.__setattr__(self, "output_prefix_type", OutputPrefixType(self.output_prefix_type))

    @property
    def type_id(self) -> str:
        return self.key_material.type_id

    @property
    def prefix(self) -> bytes:
        return output_prefix(self.key_id, self.output_prefix_type)

    @property
    def is_enabled(self) -> bool:
        return self.status == KeyStatus.ENABLED

    def info(self) -> KeyInfo:
        return KeyInfo(
            key_id=self.key_id,
            type_id=self.type_id,
            status=self.status,
            output_prefix_type=self.output_prefix_type,
            is_primary=self.is_primary,
        )
