from .constants import EXIT_ARGUMENT, EXIT_CRYPTO, EXIT_ENV_FILE, EXIT_VAR_NOT_FOUND


class SealedError(Exception):
    """Base class for sealed-specific errors.

    Concrete subclasses set ``exit_code``, the process status the CLI exits with.
    """

    exit_code: int


# Lookup
class MissingVarError(SealedError):
    exit_code = EXIT_VAR_NOT_FOUND


class NotEncryptedError(SealedError):
    """Value is present but does not carry the envelope prefix."""

    exit_code = EXIT_CRYPTO


# Key / crypto
class MissingKeyError(SealedError):
    exit_code = EXIT_CRYPTO


class CryptoError(SealedError):
    """Any decode, envelope-shape or authentication failure.

    The message never says which of those happened.
    """

    exit_code = EXIT_CRYPTO


# Front end
class ArgumentError(SealedError):
    exit_code = EXIT_ARGUMENT


class EnvFileError(SealedError):
    exit_code = EXIT_ENV_FILE
