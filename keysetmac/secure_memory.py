"""Scrubbable buffers for MAC key material.

Key bytes handed to a keyset are copied once into a ``SecureBytes`` buffer.
Each single-key primitive owns its own buffer and scrubs it when closed or
garbage collected, so secrets do not outlive the primitive that uses them.
Python may still hold transient copies (e.g. inside the crypto backend);
this only bounds the lifetime of the copies we control.
"""

from __future__ import annotations

import ctypes
import hmac


def secure_zero(data: bytearray) -> None:
    """Overwrite a bytearray with zeros in place.

    Raises:
        TypeError: If ``data`` is not a bytearray.
    """
    if not isinstance(data, bytearray):
        raise TypeError("secure_zero requires a bytearray, not bytes")

    if len(data) == 0:
        return

    buffer = (ctypes.c_char * len(data)).from_buffer(data)
    ctypes.memset(ctypes.addressof(buffer), 0, len(data))


class SecureBytes:
    """Owned copy of secret bytes that is zeroed on ``clear()``.

    Example:
        secret = SecureBytes(b"\\x00" * 32)
        try:
            h = hmac.HMAC(secret.data, hashes.SHA256())
        finally:
            secret.clear()
    """

    __slots__ = ("_data", "_cleared")

    def __init__(self, data: bytes | bytearray | "SecureBytes"):
        if isinstance(data, SecureBytes):
            data = data.data
        self._data = bytearray(data)
        self._cleared = False

    @property
    def data(self) -> bytearray:
        """Underlying buffer. Raises ValueError once cleared."""
        if self._cleared:
            raise ValueError("SecureBytes has been cleared")
        return self._data

    @property
    def cleared(self) -> bool:
        return self._cleared

    def copy(self) -> "SecureBytes":
        """Independent buffer with the same content."""
        return SecureBytes(self.data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        state = "cleared" if self._cleared else f"{len(self._data)} bytes"
        return f"SecureBytes(<{state}>)"

    def clear(self) -> None:
        if not self._cleared:
            secure_zero(self._data)
            self._cleared = True

    def __enter__(self) -> "SecureBytes":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.clear()

    def __del__(self) -> None:
        try:
            self.clear()
        except AttributeError:
            # __init__ failed before the slots were set
            pass


def constant_time_compare(a: bytes | bytearray, b: bytes | bytearray) -> bool:
    """Compare two tags without leaking the position of the first difference."""
    return hmac.compare_digest(a, b)
