"""
Tests for session and HTTP Basic authentication.
"""
import unittest
from unittest.mock import Mock

from flask import Flask, g, jsonify

from certwatch.security.auth_middleware import BasicAuthenticator, require_authentication, setup_authentication


class TestBasicAuthenticator(unittest.TestCase):
    """Test cases for BasicAuthenticator."""

    def setUp(self):
        self.config = Mock()
        self.config.api_username = 'admin'
        self.config.api_password = 'a-long-password'
        self.authenticator = BasicAuthenticator(self.config)

    def test_check_credentials(self):
        self.assertTrue(self.authenticator.check_credentials('admin', 'a-long-password'))
        self.assertFalse(self.authenticator.check_credentials('admin', 'wrong'))
        self.assertFalse(self.authenticator.check_credentials('root', 'a-long-password'))
        self.assertFalse(self.authenticator.check_credentials(None, None))

    def test_non_string_credentials_are_rejected(self):
        self.assertFalse(self.authenticator.check_credentials(1, 'a-long-password'))
        self.assertFalse(self.authenticator.check_credentials('admin', 12345678))
        self.assertFalse(self.authenticator.check_credentials(b'admin', b'a-long-password'))

    def test_empty_configured_password_never_matches(self):
        self.config.api_password = ''
        self.assertFalse(self.authenticator.check_credentials('admin', ''))


class TestRequireAuthentication(unittest.TestCase):
    """Test cases for the before_request hook and decorator."""

    def setUp(self):
        config = Mock()
        config.api_username = 'admin'
        config.api_password = 'a-long-password'

        self.app = Flask(__name__)
        self.app.secret_key = 'test'
        setup_authentication(self.app, BasicAuthenticator(config))

        @self.app.route('/protected')
        @require_authentication
        def protected():
            return jsonify({'user': g.user})

        self.client = self.app.test_client()

    def test_rejects_anonymous(self):
        response = self.client.get('/protected')
        self.assertEqual(response.status_code, 401)
        self.assertIn('Basic', response.headers['WWW-Authenticate'])

    def test_accepts_basic_credentials(self):
        response = self.client.get('/protected', auth=('admin', 'a-long-password'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'user': 'admin'})

    def test_accepts_session_user(self):
        with self.client.session_transaction() as sess:
            sess['user'] = 'admin'

        response = self.client.get('/protected')
        self.assertEqual(response.status_code, 200)

    def test_ignores_bearer_tokens(self):
        response = self.client.get('/protected', headers={'Authorization': 'Bearer abc'})
        self.assertEqual(response.status_code, 401)


if __name__ == '__main__':
    unittest.main()
