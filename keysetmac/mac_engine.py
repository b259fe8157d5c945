"""Single-key MAC primitives.

Each primitive wraps one key and one algorithm:
- HMAC: HMAC-SHA1, HMAC-SHA256, HMAC-SHA384, HMAC-SHA512, HMAC-SHA3-256
- AES-CMAC: NIST SP 800-38B with a 256-bit key
- KMAC: KMAC128, KMAC256 (NIST SP 800-185)

Tags may be truncated to a configured tag size. Verification recomputes the
tag and compares in constant time. A fresh library context is created per
call, so a primitive can be shared between threads.
"""

from abc import ABC, abstractmethod
from enum import Enum

from Crypto.Hash import KMAC128, KMAC256
from cryptography.hazmat.primitives import cmac, hashes, hmac as crypto_hmac
from cryptography.hazmat.primitives.ciphers import algorithms

from keysetmac.errors import ComputationFailedError, VerificationFailedError
from keysetmac.secure_memory import SecureBytes, constant_time_compare


class MACAlgorithm(str, Enum):
    """Supported MAC algorithms, keyed by their type id."""
    # HMAC family
    HMAC_SHA1 = "hmac-sha1"
    HMAC_SHA256 = "hmac-sha256"
    HMAC_SHA384 = "hmac-sha384"
    HMAC_SHA512 = "hmac-sha512"
    HMAC_SHA3_256 = "hmac-sha3-256"

    # Block cipher based
    AES_CMAC = "aes-cmac"

    # KMAC family (NIST SP 800-185)
    KMAC128 = "kmac128"  # Based on cSHAKE128
    KMAC256 = "kmac256"  # Based on cSHAKE256


class SingleKeyMac(ABC):
    """MAC primitive bound to a single key."""

    algorithm: MACAlgorithm

    def __init__(self, key: SecureBytes | bytes, tag_size: int):
        self._key = SecureBytes(key)
        self.tag_size = tag_size

    @abstractmethod
    def _raw_mac(self, key: bytearray, data: bytes) -> bytes:
        """Full-length tag for ``data``."""

    def compute_mac(self, data: bytes) -> bytes:
        """Compute the (possibly truncated) tag of ``data``.

        Raises:
            ComputationFailedError: If the primitive is closed or the
                underlying implementation fails
        """
        try:
            tag = self._raw_mac(self._key.data, data)
        except Exception as e:
            raise ComputationFailedError(
                f"{self.algorithm.value} computation failed: {type(e).__name__}"
            ) from e
        return tag[: self.tag_size]

    def verify_mac(self, tag: bytes, data: bytes) -> None:
        """Check ``tag`` against ``data``.

        Raises:
            VerificationFailedError: If the tag does not match
            ComputationFailedError: If the tag cannot be recomputed
        """
        expected = self.compute_mac(data)
        if not constant_time_compare(expected, tag):
            raise VerificationFailedError("invalid MAC")

    def close(self) -> None:
        """Scrub the key buffer. The primitive is unusable afterwards."""
        self._key.clear()

    @property
    def closed(self) -> bool:
        return self._key.cleared

    def __repr__(self) -> str:
        return f"{type(self).__name__}(algorithm={self.algorithm.value}, tag_size={self.tag_size})"


class HmacMac(SingleKeyMac):
    """HMAC over a SHA-1, SHA-2 or SHA-3 hash."""

    HASH_ALGORITHMS = {
        MACAlgorithm.HMAC_SHA1: hashes.SHA1,
        MACAlgorithm.HMAC_SHA256: hashes.SHA256,
        MACAlgorithm.HMAC_SHA384: hashes.SHA384,
        MACAlgorithm.HMAC_SHA512: hashes.SHA512,
        MACAlgorithm.HMAC_SHA3_256: hashes.SHA3_256,
    }

    def __init__(self, key: SecureBytes | bytes, algorithm: MACAlgorithm, tag_size: int):
        if algorithm not in self.HASH_ALGORITHMS:
            raise ValueError(f"Not an HMAC algorithm: {algorithm}")
        super().__init__(key, tag_size)
        self.algorithm = algorithm
        self._hash = self.HASH_ALGORITHMS[algorithm]

    @classmethod
    def digest_size(cls, algorithm: MACAlgorithm) -> int:
        return cls.HASH_ALGORITHMS[algorithm].digest_size

    def _raw_mac(self, key: bytearray, data: bytes) -> bytes:
        h = crypto_hmac.HMAC(key, self._hash())
        h.update(data)
        return h.finalize()


class AesCmacMac(SingleKeyMac):
    """AES-CMAC (NIST SP 800-38B)."""

    algorithm = MACAlgorithm.AES_CMAC
    BLOCK_SIZE = 16

    def _raw_mac(self, key: bytearray, data: bytes) -> bytes:
        c = cmac.CMAC(algorithms.AES(key))
        c.update(data)
        return c.finalize()


class KmacMac(SingleKeyMac):
    """KMAC128 / KMAC256 with an optional customization string.

    KMAC binds the output length into the computation, so the tag is
    produced at ``tag_size`` directly rather than truncated.
    """

    VARIANTS = {
        MACAlgorithm.KMAC128: KMAC128,
        MACAlgorithm.KMAC256: KMAC256,
    }

    def __init__(
        self,
        key: SecureBytes | bytes,
        algorithm: MACAlgorithm,
        tag_size: int,
        customization: bytes = b"",
    ):
        if algorithm not in self.VARIANTS:
            raise ValueError(f"Not a KMAC algorithm: {algorithm}")
        super().__init__(key, tag_size)
        self.algorithm = algorithm
        self._customization = bytes(customization)

    def _raw_mac(self, key: bytearray, data: bytes) -> bytes:
        h = self.VARIANTS[self.algorithm].new(
            key=bytes(key),
            mac_len=self.tag_size,
            custom=self._customization,
        )
        h.update(data)
        return h.digest()
