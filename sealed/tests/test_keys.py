from __future__ import annotations

import base64
import unittest

from sealed.errors import CryptoError, MissingKeyError
from sealed.keys import KeyMaterial, keygen, resolve


class KeyMaterialTests(unittest.TestCase):
    def test_keygen_produces_32_byte_base64(self):
        text = keygen()
        raw = base64.b64decode(text, validate=True)
        self.assertEqual(len(raw), 32)
        self.assertNotEqual(keygen(), text)
        self.assertEqual(resolve(text).key, raw)

    def test_explicit_wins_over_env(self):
        a = base64.b64encode(b"a" * 32).decode()
        b = base64.b64encode(b"b" * 32).decode()
        self.assertEqual(resolve(a, b).key, b"a" * 32)
        self.assertEqual(resolve(None, b).key, b"b" * 32)
        self.assertEqual(resolve("", b).key, b"b" * 32)

    def test_missing(self):
        with self.assertRaises(MissingKeyError):
            resolve(None, None)
        with self.assertRaises(MissingKeyError):
            resolve("", "")

    def test_rejects_bad_base64(self):
        for bad in ("not base64!", "AAA", "ä" * 44):
            with self.assertRaises(CryptoError):
                resolve(bad)

    def test_rejects_wrong_length(self):
        for size in (0, 16, 31, 33, 64):
            text = base64.b64encode(b"k" * size).decode()
            if not text:
                continue
            with self.assertRaises(CryptoError):
                resolve(text)
        with self.assertRaises(CryptoError):
            KeyMaterial(b"short")

    def test_repr_hides_key(self):
        key = KeyMaterial(b"\x01" * 32)
        self.assertNotIn("\\x01", repr(key))
        self.assertIn("redacted", repr(key))
        self.assertEqual(len(key), 32)


if __name__ == "__main__":
    unittest.main()
