"""In-memory credential storage for object store access keys.

Keys are kept in mutable byte buffers rather than ``str`` objects so they
can be overwritten when the holder is disposed. Plaintext is only produced
on demand, immediately before a client is constructed.
"""

from typing import Optional


class KeyManager:
    """Holds an access key and secret key with explicit zeroing on disposal.

    Can be used as a context manager; the keys are wiped on exit.
    """

    def __init__(self, access_key: Optional[str], secret_key: Optional[str]):
        """Initialize the holder from plaintext keys.

        Args:
            access_key: Object store access key.
            secret_key: Object store secret key.

        Raises:
            ValueError: If either key is empty or None.
        """
        if not access_key:
            raise ValueError("access_key must not be empty")
        if not secret_key:
            raise ValueError("secret_key must not be empty")

        self._access_key = bytearray(access_key.encode("utf-8"))
        self._secret_key = bytearray(secret_key.encode("utf-8"))
        self._disposed = False

    @classmethod
    def empty(cls) -> "KeyManager":
        """Create a holder with no keys, to be filled one character at a time."""
        manager = cls.__new__(cls)
        manager._access_key = bytearray()
        manager._secret_key = bytearray()
        manager._disposed = False
        return manager

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def is_complete(self) -> bool:
        """True when both keys have been provided."""
        return bool(self._access_key) and bool(self._secret_key)

    def append_access_char(self, char: str) -> None:
        self._append(self._access_key, char)

    def append_secret_char(self, char: str) -> None:
        self._append(self._secret_key, char)

    def remove_last_access_char(self) -> None:
        self._remove_last(self._access_key)

    def remove_last_secret_char(self) -> None:
        self._remove_last(self._secret_key)

    def reveal_access_key(self) -> str:
        """Return the access key as plaintext.

        Raises:
            RuntimeError: If the holder has been disposed.
        """
        self._check_usable()
        return self._access_key.decode("utf-8")

    def reveal_secret_key(self) -> str:
        """Return the secret key as plaintext.

        Raises:
            RuntimeError: If the holder has been disposed.
        """
        self._check_usable()
        return self._secret_key.decode("utf-8")

    def clear(self) -> None:
        """Overwrite both keys with zeros and empty the buffers."""
        for buffer in (self._access_key, self._secret_key):
            for i in range(len(buffer)):
                buffer[i] = 0
            del buffer[:]

    def dispose(self) -> None:
        """Wipe both keys. Safe to call more than once."""
        if self._disposed:
            return
        self.clear()
        self._disposed = True

    def _append(self, buffer: bytearray, char: str) -> None:
        self._check_usable()
        buffer.extend(char.encode("utf-8"))

    def _remove_last(self, buffer: bytearray) -> None:
        self._check_usable()
        if not buffer:
            return
        # Drop a whole UTF-8 sequence, not just its final byte
        index = len(buffer) - 1
        while index > 0 and (buffer[index] & 0xC0) == 0x80:
            index -= 1
        for i in range(index, len(buffer)):
            buffer[i] = 0
        del buffer[index:]

    def _check_usable(self) -> None:
        if self._disposed:
            raise RuntimeError("KeyManager has been disposed")

    def __enter__(self) -> "KeyManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.dispose()
        return False

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"<KeyManager {state}>"

    def __reduce__(self):
        raise TypeError("KeyManager cannot be serialized")
