"""Exceptions raised while building and using keyset MAC primitives.

Construction errors abort the whole build: a keyset either resolves
completely or no primitive is returned. ``VerificationFailedError`` is the
only error expected in routine operation and is deliberately uninformative.
"""


class KeysetMacError(Exception):
    """Base exception for keyset MAC operations."""
    pass


class KeysetBuildError(KeysetMacError):
    """The keyset could not be turned into a primitive set."""
    pass


class EmptyKeysetError(KeysetBuildError):
    """Keyset contains no entries."""
    pass


class NoPrimaryKeyError(KeysetBuildError):
    """No enabled entry is marked primary."""
    pass


class MultiplePrimaryKeysError(KeysetBuildError):
    """More than one enabled entry is marked primary."""
    pass


class DuplicatePrefixError(KeysetBuildError):
    """Two enabled entries share the same output prefix and key id."""
    pass


class ResolutionError(KeysetBuildError):
    """A single key entry could not be turned into a primitive."""
    pass


class UnsupportedKeyTypeError(ResolutionError):
    """No key manager is registered for the key's type id."""
    pass


class MalformedKeyMaterialError(ResolutionError):
    """The key manager rejected the key material or its parameters."""
    pass


class ComputationFailedError(KeysetMacError):
    """The underlying MAC implementation failed."""
    pass


class InvalidTagLengthError(KeysetMacError):
    """Tag is too short to be a valid MAC."""
    pass


class VerificationFailedError(KeysetMacError):
    """Tag did not verify under any enabled key."""
    pass
