"""
Extension-based detection of certificate container formats.
"""
import os

from .models import ContainerKind


_EXTENSION_KINDS = {
    '.p12': ContainerKind.PKCS12,
    '.pfx': ContainerKind.PKCS12,
    '.pem': ContainerKind.PEM,
    '.crt': ContainerKind.PEM,
    '.cer': ContainerKind.PEM,
    '.der': ContainerKind.DER,
}

_MIME_TYPES = {
    '.p12': 'application/x-pkcs12',
    '.pfx': 'application/x-pkcs12',
    '.pem': 'application/x-pem-file',
    '.crt': 'application/x-x509-ca-cert',
    '.cer': 'application/x-x509-ca-cert',
    '.der': 'application/x-x509-ca-cert',
}


def extension_of(filename: str) -> str:
    """Return the lower-cased extension including its dot, or '' if none."""
    return os.path.splitext(filename or '')[1].lower()


def detect(filename: str) -> ContainerKind:
    """Classify a file by its extension. Never inspects content."""
    return _EXTENSION_KINDS.get(extension_of(filename), ContainerKind.UNKNOWN)


def may_require_password(kind: ContainerKind) -> bool:
    """Only PKCS#12 archives can be passphrase protected."""
    return kind is ContainerKind.PKCS12


def mime_type_for(filename: str) -> str:
    """MIME type used when serving a stored certificate file."""
    return _MIME_TYPES.get(extension_of(filename), 'application/octet-stream')
