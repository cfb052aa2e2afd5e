"""
Session and HTTP Basic authentication for the certificate API.
"""
import hmac
import logging
from functools import wraps
from typing import Optional

from flask import request, g, jsonify, session


SESSION_USER_KEY = 'user'


class BasicAuthenticator:
    """Checks credentials against the single configured API user."""

    def __init__(self, config):
        self.config = config
        self.logger = logging.getLogger(__name__)

    def check_credentials(self, username: Optional[str], password: Optional[str]) -> bool:
        """Constant-time comparison against the configured username and password."""
        if not isinstance(username, str) or not isinstance(password, str):
            return False
        if not username or not password or not self.config.api_password:
            return False

        username_ok = hmac.compare_digest(username.encode('utf-8'), self.config.api_username.encode('utf-8'))
        password_ok = hmac.compare_digest(password.encode('utf-8'), self.config.api_password.encode('utf-8'))
        return username_ok and password_ok

    def authenticate_request(self) -> Optional[str]:
        """Return the authenticated username for the current request, if any."""
        user = session.get(SESSION_USER_KEY)
        if user:
            return user

        auth = request.authorization
        if auth is None or auth.type != 'basic':
            return None

        if self.check_credentials(auth.username, auth.password):
            return auth.username

        self.logger.warning(f"Rejected Basic credentials for user '{auth.username}'")
        return None


def setup_authentication(app, authenticator: BasicAuthenticator):
    """Resolve the caller on every request and store it in Flask's g object."""

    @app.before_request
    def authenticate_request():
        user = authenticator.authenticate_request()
        g.user = user
        g.authenticated = user is not None

    return app


def unauthorized_response(message: str = 'This endpoint requires a session or HTTP Basic credentials'):
    response = jsonify({
        'error': 'Authentication required',
        'message': message
    })
    response.status_code = 401
    response.headers['WWW-Authenticate'] = 'Basic realm="certwatch"'
    return response


def require_authentication(f):
    """Decorator to require authentication for specific endpoints."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not getattr(g, 'authenticated', False):
            return unauthorized_response()
        return f(*args, **kwargs)
    return decorated_function
