from __future__ import annotations

import unittest

from sealed import errors


class ExitCodeTests(unittest.TestCase):
    def test_every_error_declares_its_exit_code(self):
        expected = {
            errors.MissingVarError: 1,
            errors.MissingKeyError: 2,
            errors.NotEncryptedError: 2,
            errors.CryptoError: 2,
            errors.ArgumentError: 3,
            errors.EnvFileError: 4,
        }
        self.assertEqual(set(errors.SealedError.__subclasses__()), set(expected))
        for cls, code in expected.items():
            self.assertIn("exit_code", vars(cls), cls.__name__)
            self.assertEqual(cls("x").exit_code, code)

    def test_base_class_has_no_default(self):
        self.assertNotIn("exit_code", vars(errors.SealedError))
        self.assertFalse(hasattr(errors.SealedError("x"), "exit_code"))


if __name__ == "__main__":
    unittest.main()
