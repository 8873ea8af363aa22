# Envelope wire format: ENCv1:<base64(nonce)>:<base64(ciphertext || tag)>
ENVELOPE_TAG = "ENCv1"
ENVELOPE_PREFIX = ENVELOPE_TAG + ":"
ENVELOPE_VERSION = "v1"
ENVELOPE_FIELDS = 3

# ChaCha20-Poly1305 (IETF)
KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

# Environment fallback for the base64 project key
KEY_ENV_VAR = "SEALED_KEY"

DEFAULT_ENV_FILE = ".env"
KEY_FILE_MODE = 0o600

# Process exit codes
EXIT_VAR_NOT_FOUND = 1
EXIT_CRYPTO = 2
EXIT_ARGUMENT = 3
EXIT_ENV_FILE = 4
