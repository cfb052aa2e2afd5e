"""
Certificate decoding and expiry classification.
"""
from .models import (
    CertificateInfo, CertificateStatus, ContainerKind, DecodeError, DecodeErrorKind,
    DecodeResult, StatusSnapshot, Urgency, UrgencyDisplay
)
from .format_detector import detect, may_require_password, mime_type_for
from .decoder import CertificateDecoder, decode
from .passphrase import verify
from .status import classify, days_until, display_urgency, is_expired, is_expiring_soon

__all__ = [
    'CertificateInfo',
    'CertificateStatus',
    'ContainerKind',
    'DecodeError',
    'DecodeErrorKind',
    'DecodeResult',
    'StatusSnapshot',
    'Urgency',
    'UrgencyDisplay',
    'detect',
    'may_require_password',
    'mime_type_for',
    'CertificateDecoder',
    'decode',
    'verify',
    'classify',
    'days_until',
    'display_urgency',
    'is_expired',
    'is_expiring_soon'
]
