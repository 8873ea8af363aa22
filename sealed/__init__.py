"""
Sealed — encrypted values inside ordinary .env files.

Features:

- Per-value AEAD (ChaCha20-Poly1305 via PyCryptodomex) stored as a versioned
  ``ENCv1:<base64 nonce>:<base64 ciphertext>`` token.
- The variable name is bound as associated data, so a sealed value cannot be moved
  to another variable without failing authentication.
- Structure-preserving .env rewriting: names, comments, blank lines, quoting and
  ordering stay byte-identical, keeping the file diffable.
- Read helpers (``var``, ``var_or_plain``, ``var_optional``) mirroring ``os.environ``
  lookups that decrypt on the fly with ``SEALED_KEY``.

Variable names are never encrypted and there is no key rotation; whoever holds the
project key can read every value.
"""

__version__ = "0.1"

from .env import EnvReader, var, var_or_plain, var_optional

__all__ = [
    "constants",
    "errors",
    "envelope",
    "keys",
    "envfile",
    "env",
    "EnvReader",
    "var",
    "var_or_plain",
    "var_optional",
]

# The command line front end lives in sealed.cli (cmd_set/cmd_get/cmd_keygen take
# normal parameters and can be driven programmatically).
