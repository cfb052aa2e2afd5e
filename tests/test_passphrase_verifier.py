"""
Tests for passphrase verification of certificate uploads.
"""
import unittest
from unittest.mock import patch

from certwatch.certificates.passphrase import verify

from cert_factory import make_certificate, to_der, to_pem, to_pkcs12


class TestVerify(unittest.TestCase):
    """Test cases for verify()."""

    @classmethod
    def setUpClass(cls):
        cls.cert = make_certificate()
        cls.unprotected = to_pkcs12(cls.cert)
        cls.protected = to_pkcs12(cls.cert, password="correct horse")

    def test_unprotected_archive_without_passphrase(self):
        self.assertTrue(verify(self.unprotected, 'bundle.p12'))

    def test_unprotected_archive_ignores_supplied_passphrase(self):
        self.assertTrue(verify(self.unprotected, 'bundle.p12', 'wrong'))
        self.assertTrue(verify(self.unprotected, 'bundle.pfx', 'wrong'))

    def test_protected_archive_without_passphrase(self):
        self.assertFalse(verify(self.protected, 'bundle.p12'))
        self.assertFalse(verify(self.protected, 'bundle.p12', ''))

    def test_protected_archive_with_correct_passphrase(self):
        self.assertTrue(verify(self.protected, 'bundle.p12', 'correct horse'))

    def test_protected_archive_with_wrong_passphrase(self):
        self.assertFalse(verify(self.protected, 'bundle.pfx', 'battery staple'))

    def test_garbage_archive(self):
        self.assertFalse(verify(b"not an archive", 'bundle.p12', 'anything'))

    def test_formats_without_passphrases_always_verify(self):
        self.assertTrue(verify(to_pem(self.cert), 'server.pem', 'whatever'))
        self.assertTrue(verify(to_der(self.cert), 'server.der'))
        self.assertTrue(verify(b"garbage", 'server.crt'))
        self.assertTrue(verify(b"garbage", 'notes.txt'))

    def test_is_repeatable(self):
        first = verify(self.protected, 'bundle.p12', 'correct horse')
        second = verify(self.protected, 'bundle.p12', 'correct horse')
        self.assertEqual(first, second)

    @patch('certwatch.certificates.passphrase.load_pkcs12_archive')
    def test_unexpected_errors_are_reported_as_false(self, mock_load):
        mock_load.side_effect = RuntimeError("backend exploded")

        with self.assertLogs('certwatch.certificates.passphrase', level='ERROR'):
            self.assertFalse(verify(self.protected, 'bundle.p12', 'correct horse'))


if __name__ == '__main__':
    unittest.main()
