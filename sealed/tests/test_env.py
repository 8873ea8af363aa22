from __future__ import annotations

import base64
import os
import unittest
from unittest import mock

from sealed import EnvReader, var, var_optional, var_or_plain
from sealed.envelope import encrypt_value
from sealed.errors import CryptoError, MissingKeyError, MissingVarError, NotEncryptedError
from sealed.keys import KeyMaterial


KEY_A = base64.b64encode(b"A" * 32).decode()
KEY_B = base64.b64encode(b"B" * 32).decode()


def _sealed(name: str, plaintext: str, key_b64: str = KEY_A) -> str:
    return encrypt_value(name, plaintext, KeyMaterial.from_base64(key_b64))


class ReadPolicyTests(unittest.TestCase):
    def test_absent(self):
        env = {}
        with self.assertRaises(MissingVarError):
            var("DATABASE_PASSWORD", env)
        with self.assertRaises(MissingVarError):
            var_or_plain("DATABASE_PASSWORD", env)
        self.assertIsNone(var_optional("DATABASE_PASSWORD", env))

    def test_plaintext_without_key(self):
        env = {"DATABASE_PASSWORD": "plain123"}
        with self.assertRaises(NotEncryptedError):
            var("DATABASE_PASSWORD", env)
        self.assertEqual(var_or_plain("DATABASE_PASSWORD", env), "plain123")
        self.assertEqual(var_optional("DATABASE_PASSWORD", env), "plain123")

    def test_lookalike_prefixes_are_plaintext(self):
        env = {"X": "ENCv2:x:y", "Y": "enc1:x:y"}
        self.assertEqual(var_or_plain("X", env), "ENCv2:x:y")
        self.assertEqual(var_optional("Y", env), "enc1:x:y")

    def test_encrypted_with_correct_key(self):
        env = {"DATABASE_PASSWORD": _sealed("DATABASE_PASSWORD", "s3cr3t"), "SEALED_KEY": KEY_A}
        self.assertEqual(var("DATABASE_PASSWORD", env), "s3cr3t")
        self.assertEqual(var_or_plain("DATABASE_PASSWORD", env), "s3cr3t")
        self.assertEqual(var_optional("DATABASE_PASSWORD", env), "s3cr3t")

    def test_encrypted_with_wrong_key(self):
        env = {"DATABASE_PASSWORD": _sealed("DATABASE_PASSWORD", "s3cr3t"), "SEALED_KEY": KEY_B}
        for fn in (var, var_or_plain, var_optional):
            with self.assertRaises(CryptoError):
                fn("DATABASE_PASSWORD", env)

    def test_encrypted_without_key(self):
        env = {"DATABASE_PASSWORD": _sealed("DATABASE_PASSWORD", "s3cr3t")}
        for fn in (var, var_or_plain, var_optional):
            with self.assertRaises(MissingKeyError):
                fn("DATABASE_PASSWORD", env)
        env["SEALED_KEY"] = ""
        with self.assertRaises(MissingKeyError):
            var("DATABASE_PASSWORD", env)

    def test_value_moved_to_other_name_fails(self):
        env = {"OTHER": _sealed("DATABASE_PASSWORD", "s3cr3t"), "SEALED_KEY": KEY_A}
        with self.assertRaises(CryptoError):
            var("OTHER", env)

    def test_malformed_envelope_is_error_in_every_policy(self):
        env = {"BAD": "ENCv1:nonce:ct", "SEALED_KEY": KEY_A}
        for fn in (var, var_or_plain, var_optional):
            with self.assertRaises(CryptoError):
                fn("BAD", env)

    def test_bad_key_text(self):
        env = {"S": _sealed("S", "v"), "SEALED_KEY": "not-a-key"}
        with self.assertRaises(CryptoError):
            var("S", env)


class EnvReaderTests(unittest.TestCase):
    def test_explicit_key_overrides_environment(self):
        env = {"S": _sealed("S", "value", KEY_B), "SEALED_KEY": KEY_A}
        self.assertEqual(EnvReader(env, key=KEY_B).var("S"), "value")

    def test_custom_key_var(self):
        env = {"S": _sealed("S", "value"), "APP_KEY": KEY_A}
        reader = EnvReader(env, key_var="APP_KEY")
        self.assertEqual(reader.var("S"), "value")
        with self.assertRaises(MissingKeyError):
            EnvReader(env).var("S")

    def test_defaults_to_process_environment(self):
        patched = {"SEALED_TEST_SECRET": _sealed("SEALED_TEST_SECRET", "from-os"), "SEALED_KEY": KEY_A}
        with mock.patch.dict(os.environ, patched):
            self.assertEqual(var("SEALED_TEST_SECRET"), "from-os")
            self.assertEqual(EnvReader().var_optional("SEALED_TEST_SECRET"), "from-os")
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(var_optional("SEALED_TEST_SECRET"))


if __name__ == "__main__":
    unittest.main()
