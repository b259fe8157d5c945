"""
keysetmac - Multi-key MAC primitives over rotating keysets.

A keyset is an ordered list of key entries. ``new_mac`` resolves it into a
single MAC primitive that tags with the primary key and verifies with any
enabled key, so keys can be rotated without breaking existing tags.

Example:
    from keysetmac import KeyEntry, KeyMaterial, new_mac

    keyset = [
        KeyEntry(key_id=1, key_material=KeyMaterial("hmac-sha256", key), is_primary=True),
    ]
    mac = new_mac(keyset)
    tag = mac.compute_mac(b"hello")
    mac.verify_mac(tag, b"hello")
"""

from keysetmac.config import Settings, get_settings
from keysetmac.errors import (
    KeysetMacError,
    KeysetBuildError,
    EmptyKeysetError,
    NoPrimaryKeyError,
    MultiplePrimaryKeysError,
    DuplicatePrefixError,
    ResolutionError,
    UnsupportedKeyTypeError,
    MalformedKeyMaterialError,
    ComputationFailedError,
    InvalidTagLengthError,
    VerificationFailedError,
)
from keysetmac.keys import (
    KeyEntry,
    KeyInfo,
    KeyMaterial,
    KeyStatus,
    OutputPrefixType,
    output_prefix,
)
from keysetmac.logging import configure_logging, get_logger
from keysetmac.mac_engine import (
    MACAlgorithm,
    SingleKeyMac,
    HmacMac,
    AesCmacMac,
    KmacMac,
)
from keysetmac.registry import (
    KeyManager,
    HmacKeyManager,
    AesCmacKeyManager,
    KmacKeyManager,
    KeyManagerRegistry,
    PrimitiveResolver,
    create_default_registry,
)
from keysetmac.primitive_set import PrimitiveEntry, PrimitiveSet
from keysetmac.wrapper import MultiKeyMac, new_mac

__version__ = "0.1.0"

__all__ = [
    # Entry point
    "new_mac",
    "MultiKeyMac",
    # Keys
    "KeyEntry",
    "KeyInfo",
    "KeyMaterial",
    "KeyStatus",
    "OutputPrefixType",
    "output_prefix",
    # Primitives
    "MACAlgorithm",
    "SingleKeyMac",
    "HmacMac",
    "AesCmacMac",
    "KmacMac",
    "PrimitiveEntry",
    "PrimitiveSet",
    # Resolution
    "KeyManager",
    "HmacKeyManager",
    "AesCmacKeyManager",
    "KmacKeyManager",
    "KeyManagerRegistry",
    "PrimitiveResolver",
    "create_default_registry",
    # Configuration
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Errors
    "KeysetMacError",
    "KeysetBuildError",
    "EmptyKeysetError",
    "NoPrimaryKeyError",
    "MultiplePrimaryKeysError",
    "DuplicatePrefixError",
    "ResolutionError",
    "UnsupportedKeyTypeError",
    "MalformedKeyMaterialError",
    "ComputationFailedError",
    "InvalidTagLengthError",
    "VerificationFailedError",
]
