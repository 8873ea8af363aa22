from __future__ import annotations

import os
import sys
from typing import Mapping, Optional, TextIO

from .constants import KEY_ENV_VAR
from .errors import ArgumentError
from .keys import KeyMaterial, resolve


def trim_newlines(text: str) -> str:
    return text.rstrip("\r\n")


def _read_stream(stream: Optional[TextIO]) -> str:
    stream = sys.stdin if stream is None else stream
    try:
        return stream.read()
    except OSError as exc:
        raise ArgumentError(f"failed to read stdin: {exc}") from None


def _read_file(path: str, what: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ArgumentError(f"failed to read {what} {path}: {exc}") from None


def read_value(
    *,
    stdin: bool = False,
    value: Optional[str] = None,
    value_file: Optional[str] = None,
    allow_argv: bool = False,
    stream: Optional[TextIO] = None,
) -> str:
    """Return the plaintext to seal from exactly one source.

    Args:
        stdin: Read everything from ``stream`` (``sys.stdin`` by default).
        value: Plaintext given on the command line; only honoured with ``allow_argv``.
        value_file: Read plaintext from this file.
        allow_argv: Opt-in for ``value``, since argv is visible to other processes.
        stream: Replacement for ``sys.stdin``.

    Trailing newlines are trimmed from stdin and file input.
    """
    chosen = sum((bool(stdin), value is not None, value_file is not None))
    if chosen != 1:
        raise ArgumentError(
            "value required; choose exactly one of --stdin, --value (with --allow-argv), or --value-file"
        )
    if value is not None:
        if not allow_argv:
            raise ArgumentError("--value requires --allow-argv")
        return value
    if stdin:
        return trim_newlines(_read_stream(stream))
    return trim_newlines(_read_file(value_file, "value file"))


def read_key_text(
    *,
    key: Optional[str] = None,
    key_file: Optional[str] = None,
    key_stdin: bool = False,
    stream: Optional[TextIO] = None,
) -> Optional[str]:
    """Return the explicitly supplied base64 key, or None if no explicit source was used."""
    chosen = sum((key is not None, key_file is not None, bool(key_stdin)))
    if chosen > 1:
        raise ArgumentError("choose exactly one key source: --key, --key-file, or --key-stdin")
    if key is not None:
        return key
    if key_file is not None:
        return trim_newlines(_read_file(key_file, "key file"))
    if key_stdin:
        return trim_newlines(_read_stream(stream))
    return None


def resolve_key(
    *,
    key: Optional[str] = None,
    key_file: Optional[str] = None,
    key_stdin: bool = False,
    environ: Optional[Mapping[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> KeyMaterial:
    """Explicit key sources first, then ``SEALED_KEY`` from ``environ``."""
    environ = os.environ if environ is None else environ
    explicit = read_key_text(key=key, key_file=key_file, key_stdin=key_stdin, stream=stream)
    return resolve(explicit, environ.get(KEY_ENV_VAR))
