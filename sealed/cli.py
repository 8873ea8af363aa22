from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional, TextIO

from sealed.constants import DEFAULT_ENV_FILE, KEY_FILE_MODE
from sealed.envelope import decrypt_value, encrypt_value, is_encrypted
from sealed.envfile import read_env_file, write_env_file
from sealed.errors import ArgumentError, EnvFileError, MissingVarError, SealedError
from sealed.inputs import read_value, resolve_key
from sealed.keys import keygen


def cmd_set(
    var_name: str,
    *,
    env_file: str = DEFAULT_ENV_FILE,
    stdin: bool = False,
    value: Optional[str] = None,
    value_file: Optional[str] = None,
    allow_argv: bool = False,
    key: Optional[str] = None,
    key_file: Optional[str] = None,
    key_stdin: bool = False,
    stream: Optional[TextIO] = None,
) -> bool:
    """Encrypt a value and store it as ``var_name`` in an env file.

    Args:
        var_name: Variable to write; also the associated data bound into the envelope.
        env_file: Target file. Created if missing; otherwise only the last
            ``var_name`` line changes (or a line is appended).
        stdin, value, value_file, allow_argv: Plaintext source, see
            :func:`sealed.inputs.read_value`.
        key, key_file, key_stdin: Explicit key source; ``SEALED_KEY`` is the fallback.
        stream: Replacement for ``sys.stdin``.
    """
    if stdin and key_stdin:
        raise ArgumentError("stdin may be used only once; --stdin and --key-stdin cannot be used together")

    plaintext = read_value(stdin=stdin, value=value, value_file=value_file, allow_argv=allow_argv, stream=stream)
    material = resolve_key(key=key, key_file=key_file, key_stdin=key_stdin, stream=stream)

    doc = read_env_file(env_file, missing_ok=True)
    try:
        doc.set_value(var_name, encrypt_value(var_name, plaintext, material))
    except ValueError as exc:
        raise ArgumentError(str(exc)) from None
    write_env_file(env_file, doc)
    return True


def cmd_get(
    var_name: str,
    *,
    env_file: str = DEFAULT_ENV_FILE,
    reveal: bool = False,
    key: Optional[str] = None,
    key_file: Optional[str] = None,
    key_stdin: bool = False,
    stream: Optional[TextIO] = None,
) -> bool:
    """Print a variable from an env file.

    Plaintext values are printed as-is and need no key. Encrypted values are always
    decrypted (which verifies them) but only printed with ``reveal``.
    """
    value = read_env_file(env_file).get_value(var_name)
    if value is None:
        raise MissingVarError(f"variable '{var_name}' not found in {env_file}")

    if not is_encrypted(value):
        print(value)
        return True

    material = resolve_key(key=key, key_file=key_file, key_stdin=key_stdin, stream=stream)
    plaintext = decrypt_value(var_name, value, material)
    if reveal:
        print(plaintext)
    else:
        print("value is encrypted; use --reveal to print plaintext", file=sys.stderr)
    return True


def cmd_keygen(*, out_file: Optional[str] = None) -> bool:
    """Generate a new random key and print it, or write it to ``out_file`` (mode 0600)."""
    b64 = keygen()
    if out_file is None:
        print(b64)
        return True
    try:
        fd = os.open(out_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
        with os.fdopen(fd, "w", encoding="ascii") as fh:
            fh.write(b64 + "\n")
    except OSError as exc:
        raise EnvFileError(f"failed to write key file {out_file}: {exc}") from None
    return True


class _ArgumentParser(argparse.ArgumentParser):
    """argparse front end that reports usage errors as ArgumentError."""

    def error(self, message):
        self.print_usage(sys.stderr)
        raise ArgumentError(message)


def _add_key_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--key", "-k", metavar="BASE64", help="Read key from base64-encoded argument")
    ap.add_argument("--key-file", "-K", metavar="PATH", help="Read key from a file (base64)")
    ap.add_argument("--key-stdin", "-S", action="store_true", help="Read key from stdin (base64)")


def main(argv: List[str] | None = None):
    ap = _ArgumentParser(
        prog="sealed",
        description="Store encrypted environment variables in .env files",
        epilog=(
            "Values are stored as ENCv1:<nonce>:<ciphertext>, bound to their variable name. "
            "Key input: --key, --key-file, --key-stdin, or SEALED_KEY."
        ),
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    # set
    ap_set = sub.add_parser(
        "set",
        help="Encrypt and store a variable in an env file",
        description=(
            "Encrypt a plaintext value and store it as ENCv1:<nonce>:<ciphertext> in the env file. "
            "Value input: exactly one of --stdin, --value (with --allow-argv), or --value-file."
        ),
    )
    ap_set.add_argument("var_name", metavar="VAR_NAME", help="Environment variable name (used as AAD)")
    src = ap_set.add_mutually_exclusive_group(required=True)
    src.add_argument("--stdin", "-s", action="store_true", help="Read plaintext value from stdin")
    src.add_argument("--value", "-v", metavar="STRING", help="Read plaintext value from argv (requires --allow-argv)")
    src.add_argument("--value-file", "-f", metavar="PATH", help="Read plaintext value from a file")
    ap_set.add_argument("--allow-argv", "-a", action="store_true", help="Allow --value to read plaintext from argv")
    _add_key_args(ap_set)
    ap_set.add_argument("--env-file", "-e", metavar="PATH", default=DEFAULT_ENV_FILE, help="Path to env file (default .env)")

    # get
    ap_get = sub.add_parser(
        "get",
        help="Read a variable from an env file",
        description=(
            "Read a variable from the env file. Encrypted values need a key "
            "(--key/--key-file/--key-stdin or SEALED_KEY). Without --reveal, plaintext is not printed."
        ),
    )
    ap_get.add_argument("var_name", metavar="VAR_NAME", help="Environment variable name (used as AAD)")
    ap_get.add_argument("--env-file", "-e", metavar="PATH", default=DEFAULT_ENV_FILE, help="Path to env file (default .env)")
    ap_get.add_argument("--reveal", "-r", action="store_true", help="Print decrypted plaintext to stdout")
    _add_key_args(ap_get)

    # keygen
    ap_keygen = sub.add_parser("keygen", help="Generate a new random key (base64)")
    ap_keygen.add_argument("--out-file", "-o", metavar="PATH", help="Write base64 key to a file instead of stdout")

    try:
        args = ap.parse_args(argv)
        if args.cmd == "set":
            cmd_set(
                args.var_name,
                env_file=args.env_file,
                stdin=args.stdin,
                value=args.value,
                value_file=args.value_file,
                allow_argv=args.allow_argv,
                key=args.key,
                key_file=args.key_file,
                key_stdin=args.key_stdin,
            )
        elif args.cmd == "get":
            cmd_get(
                args.var_name,
                env_file=args.env_file,
                reveal=args.reveal,
                key=args.key,
                key_file=args.key_file,
                key_stdin=args.key_stdin,
            )
        elif args.cmd == "keygen":
            cmd_keygen(out_file=args.out_file)
        else:
            raise ArgumentError("Unknown command")
    except SealedError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
