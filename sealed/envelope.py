from __future__ import annotations

"""Encrypted-value envelope: ``ENCv1:<base64 nonce>:<base64 ciphertext||tag>``.

Values are sealed with ChaCha20-Poly1305 from PyCryptodomex using a fresh random
12-byte nonce per call. The variable name is passed as associated data, so an
envelope only opens under the name it was sealed for.

Every failure past the prefix check (shape, base64, nonce size, authentication,
UTF-8) surfaces as the same ``CryptoError`` with no hint of the sub-cause.
"""

import base64
import binascii
import os
from dataclasses import dataclass

from Cryptodome.Cipher import ChaCha20_Poly1305

from .constants import (
    ENVELOPE_FIELDS,
    ENVELOPE_PREFIX,
    ENVELOPE_TAG,
    ENVELOPE_VERSION,
    NONCE_SIZE,
    TAG_SIZE,
)
from .errors import CryptoError, NotEncryptedError
from .keys import KeyMaterial


_DECRYPT_FAILED = "decryption failed (bad key or data)"


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


@dataclass(frozen=True)
class Envelope:
    nonce: bytes
    ciphertext: bytes  # includes the trailing 16-byte tag
    version: str = ENVELOPE_VERSION

    def encode(self) -> str:
        return f"{ENVELOPE_TAG}:{_b64encode(self.nonce)}:{_b64encode(self.ciphertext)}"

    def __str__(self) -> str:
        return self.encode()

    @classmethod
    def parse(cls, text: str) -> "Envelope":
        """Split envelope text into its fields.

        Raises NotEncryptedError when the ``ENCv1:`` prefix is missing and CryptoError
        for anything else that does not match the exact three-field shape.
        """
        if not is_encrypted(text):
            raise NotEncryptedError("value is not encrypted")
        parts = text.split(":")
        if len(parts) != ENVELOPE_FIELDS:
            raise CryptoError(_DECRYPT_FAILED)
        try:
            nonce = _b64decode(parts[1])
            ciphertext = _b64decode(parts[2])
        except (binascii.Error, UnicodeEncodeError):
            raise CryptoError(_DECRYPT_FAILED) from None
        if len(nonce) != NONCE_SIZE or len(ciphertext) < TAG_SIZE:
            raise CryptoError(_DECRYPT_FAILED)
        return cls(nonce=nonce, ciphertext=ciphertext)


def is_encrypted(raw_value: str) -> bool:
    return raw_value.startswith(ENVELOPE_PREFIX)


def encrypt(plaintext: bytes, key: KeyMaterial, aad: bytes) -> Envelope:
    nonce = os.urandom(NONCE_SIZE)
    cipher = ChaCha20_Poly1305.new(key=key.key, nonce=nonce)
    cipher.update(aad)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    return Envelope(nonce=nonce, ciphertext=ciphertext + tag)


def decrypt(envelope_text: str, key: KeyMaterial, aad: bytes) -> bytes:
    envelope = Envelope.parse(envelope_text)
    body = envelope.ciphertext[:-TAG_SIZE]
    tag = envelope.ciphertext[-TAG_SIZE:]
    cipher = ChaCha20_Poly1305.new(key=key.key, nonce=envelope.nonce)
    cipher.update(aad)
    try:
        return cipher.decrypt_and_verify(body, tag)
    except (ValueError, KeyError):
        raise CryptoError(_DECRYPT_FAILED) from None


def encrypt_value(name: str, plaintext: str, key: KeyMaterial) -> str:
    """Seal a text value for variable ``name`` and return the envelope text."""
    return encrypt(plaintext.encode("utf-8"), key, name.encode("utf-8")).encode()


def decrypt_value(name: str, envelope_text: str, key: KeyMaterial) -> str:
    """Open an envelope sealed for ``name`` and return the text it carries."""
    plaintext = decrypt(envelope_text, key, name.encode("utf-8"))
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        raise CryptoError("decrypted value is not valid UTF-8") from None


__all__ = [
    "Envelope",
    "is_encrypted",
    "encrypt",
    "decrypt",
    "encrypt_value",
    "decrypt_value",
]
