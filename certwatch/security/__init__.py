"""
Security package for API authentication.
"""
from .auth_middleware import (
    BasicAuthenticator, setup_authentication, require_authentication, unauthorized_response,
    SESSION_USER_KEY
)

__all__ = [
    'BasicAuthenticator',
    'setup_authentication',
    'require_authentication',
    'unauthorized_response',
    'SESSION_USER_KEY'
]
