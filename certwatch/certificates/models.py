"""
Data models for certificate decoding and expiry classification.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


UNKNOWN_ATTRIBUTE = "Unknown"


class ContainerKind(Enum):
    """On-disk encoding family of an uploaded certificate file."""
    PKCS12 = "pkcs12"
    PEM = "pem"
    DER = "der"
    UNKNOWN = "unknown"


class CertificateStatus(Enum):
    """Lifecycle bucket computed when a certificate is decoded."""
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"


class Urgency(Enum):
    """Display urgency tier used for dashboard coloring."""
    EXPIRED = "expired"
    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"


class DecodeErrorKind(Enum):
    """Reasons a certificate upload could not be decoded."""
    UNSUPPORTED_FORMAT = "unsupported_format"
    DECODE_FAILURE = "decode_failure"
    PASSWORD_REQUIRED_OR_INCORRECT = "password_required_or_incorrect"
    MISSING_CERTIFICATE_IN_ARCHIVE = "missing_certificate_in_archive"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class CertificateInfo:
    """Flattened metadata extracted from a decoded certificate."""
    common_name: str
    organization: str
    organizational_unit: str
    issuer: str
    serial_number: str
    valid_from: datetime
    valid_to: datetime
    days_remaining: int
    status: CertificateStatus


@dataclass(frozen=True)
class DecodeError:
    """Human-readable decode failure."""
    kind: DecodeErrorKind
    message: str
    container_kind: ContainerKind

    def __str__(self):
        return self.message


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding an upload: either certificate info or an error."""
    info: Optional[CertificateInfo] = None
    error: Optional[DecodeError] = None

    def __post_init__(self):
        if (self.info is None) == (self.error is None):
            raise ValueError("DecodeResult requires exactly one of info or error")

    @classmethod
    def success(cls, info: CertificateInfo) -> 'DecodeResult':
        return cls(info=info)

    @classmethod
    def failure(cls, kind: DecodeErrorKind, message: str,
                container_kind: ContainerKind) -> 'DecodeResult':
        return cls(error=DecodeError(kind=kind, message=message, container_kind=container_kind))

    @property
    def ok(self) -> bool:
        return self.info is not None


@dataclass(frozen=True)
class StatusSnapshot:
    """Days remaining and status bucket at a given instant."""
    days_remaining: int
    status: CertificateStatus


@dataclass(frozen=True)
class UrgencyDisplay:
    """Urgency tier with its display label and CSS class."""
    urgency: Urgency
    label: str
    class_name: str
