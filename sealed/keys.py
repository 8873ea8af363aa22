from __future__ import annotations

import base64
import binascii
import os
from typing import Optional

from .constants import KEY_SIZE
from .errors import CryptoError, MissingKeyError


class KeyMaterial:
    """A decoded 32-byte project key.

    Only ever built from validated input; the raw bytes are kept out of ``repr``.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise CryptoError(f"key must be {KEY_SIZE} bytes after base64 decode")
        self._key = bytes(key)

    @classmethod
    def from_base64(cls, text: str) -> "KeyMaterial":
        try:
            raw = base64.b64decode(text.strip().encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError):
            raise CryptoError("invalid base64 key") from None
        return cls(raw)

    @property
    def key(self) -> bytes:
        return self._key

    def __len__(self) -> int:
        return len(self._key)

    def __repr__(self) -> str:
        return "KeyMaterial(<redacted>)"


def resolve(explicit_key: Optional[str] = None, env_fallback: Optional[str] = None) -> KeyMaterial:
    """Pick and decode the project key.

    Args:
        explicit_key: Base64 key given directly (argument, key file, stdin). Wins when set.
        env_fallback: Base64 key taken from the environment, used only when no explicit
            key was given. Empty strings count as unset.

    Raises:
        MissingKeyError: neither source yields a value.
        CryptoError: the chosen value is not base64 or does not decode to 32 bytes.
    """
    for candidate in (explicit_key, env_fallback):
        if candidate:
            return KeyMaterial.from_base64(candidate)
    raise MissingKeyError("key required; provide --key, --key-file, --key-stdin, or set SEALED_KEY")


def keygen() -> str:
    """Return a fresh random key as standard padded base64 text."""
    return base64.b64encode(os.urandom(KEY_SIZE)).decode("ascii")
