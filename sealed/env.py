from __future__ import annotations

"""Read sealed values the way you would read ``os.environ``.

Three policies share one lookup:

- ``var``: the value must be present and encrypted.
- ``var_or_plain``: the value must be present; plaintext passes through unchanged.
- ``var_optional``: ``None`` when unset; otherwise like ``var_or_plain``.

The key is only resolved when a value actually carries the ``ENCv1:`` prefix, so
plaintext reads work without ``SEALED_KEY`` configured.
"""

import os
from typing import Mapping, Optional

from .constants import KEY_ENV_VAR
from .envelope import decrypt_value, is_encrypted
from .errors import MissingVarError, NotEncryptedError
from .keys import resolve


class EnvReader:
    """Policy wrapper around an injectable name -> value mapping.

    Args:
        environ: Where variable values (and the fallback key) are looked up.
            Defaults to ``os.environ`` at call time.
        key: Base64 key to use instead of the ``key_var`` entry of ``environ``.
        key_var: Name of the variable holding the fallback key.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        *,
        key: Optional[str] = None,
        key_var: str = KEY_ENV_VAR,
    ):
        self._environ = environ
        self._key = key
        self.key_var = key_var

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def _lookup(self, name: str) -> Optional[str]:
        return self.environ.get(name)

    def _open(self, name: str, value: str) -> str:
        key = resolve(self._key, self.environ.get(self.key_var))
        return decrypt_value(name, value, key)

    def var(self, name: str) -> str:
        value = self._lookup(name)
        if value is None:
            raise MissingVarError(f"environment variable '{name}' is not set")
        if not is_encrypted(value):
            raise NotEncryptedError(f"environment variable '{name}' is not encrypted")
        return self._open(name, value)

    def var_or_plain(self, name: str) -> str:
        value = self._lookup(name)
        if value is None:
            raise MissingVarError(f"environment variable '{name}' is not set")
        if not is_encrypted(value):
            return value
        return self._open(name, value)

    def var_optional(self, name: str) -> Optional[str]:
        try:
            return self.var_or_plain(name)
        except MissingVarError:
            return None


def var(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    return EnvReader(environ).var(name)


def var_or_plain(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    return EnvReader(environ).var_or_plain(name)


def var_optional(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    return EnvReader(environ).var_optional(name)


__all__ = [
    "EnvReader",
    "var",
    "var_or_plain",
    "var_optional",
]
