"""
Decoding of uploaded certificate containers into flat certificate metadata.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from cryptography import x509
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from .format_detector import detect, extension_of
from .models import (
    UNKNOWN_ATTRIBUTE, CertificateInfo, ContainerKind, DecodeErrorKind, DecodeResult
)
from .status import as_utc, classify, utcnow


PKCS12_PASSWORD_REQUIRED = "Failed to parse P12/PFX certificate. It may require a password."
PKCS12_INVALID_PASSWORD = "Invalid password for P12/PFX certificate"
PKCS12_MISSING_CERTIFICATE = "No certificate found in P12/PFX archive"
PEM_DECODE_FAILED = "Failed to parse PEM certificate. File may be invalid."
DER_DECODE_FAILED = "Failed to parse DER certificate. File may be invalid."
UNEXPECTED_FAILURE = "Unexpected error parsing certificate"


class CertificateDecoder:
    """Decodes PKCS#12, PEM and DER uploads into ``CertificateInfo`` records."""

    def __init__(self, logger: Optional[logging.Logger] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or utcnow
        self._decoders = {
            ContainerKind.PKCS12: self._decode_pkcs12,
            ContainerKind.PEM: self._decode_pem,
            ContainerKind.DER: self._decode_der,
        }

    def decode(self, data: bytes, filename: str, passphrase: Optional[str] = None) -> DecodeResult:
        """
        Decode a certificate upload.

        Args:
            data: Raw file contents
            filename: Original filename, used only for format detection
            passphrase: Optional passphrase for PKCS#12 archives

        Returns:
            DecodeResult holding either the certificate info or an error
        """
        kind = detect(filename)
        decoder = self._decoders.get(kind)

        if decoder is None:
            return DecodeResult.failure(
                DecodeErrorKind.UNSUPPORTED_FORMAT,
                f"Unsupported certificate format: {extension_of(filename)}",
                kind
            )

        try:
            return decoder(data, passphrase)
        except Exception as e:
            self.logger.error(f"Unexpected error parsing certificate {filename}: {e}", exc_info=True)
            return DecodeResult.failure(DecodeErrorKind.UNEXPECTED, UNEXPECTED_FAILURE, kind)

    def _decode_pkcs12(self, data: bytes, passphrase: Optional[str]) -> DecodeResult:
        try:
            archive = load_pkcs12_archive(data, passphrase)
        except ValueError as e:
            self.logger.error(f"Failed to parse P12/PFX certificate: {e}")
            if passphrase:
                return DecodeResult.failure(
                    DecodeErrorKind.PASSWORD_REQUIRED_OR_INCORRECT,
                    PKCS12_INVALID_PASSWORD,
                    ContainerKind.PKCS12
                )
            return DecodeResult.failure(
                DecodeErrorKind.PASSWORD_REQUIRED_OR_INCORRECT,
                PKCS12_PASSWORD_REQUIRED,
                ContainerKind.PKCS12
            )

        cert = _first_certificate(archive)
        if cert is None:
            self.logger.error("P12/PFX archive decoded but holds no certificate bag")
            return DecodeResult.failure(
                DecodeErrorKind.MISSING_CERTIFICATE_IN_ARCHIVE,
                PKCS12_MISSING_CERTIFICATE,
                ContainerKind.PKCS12
            )

        return DecodeResult.success(self.extract_certificate_info(cert))

    def _decode_pem(self, data: bytes, passphrase: Optional[str]) -> DecodeResult:
        try:
            pem_text = data.decode('utf-8')
            cert = x509.load_pem_x509_certificate(pem_text.encode('utf-8'))
        except (ValueError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to parse PEM certificate: {e}")
            return DecodeResult.failure(
                DecodeErrorKind.DECODE_FAILURE, PEM_DECODE_FAILED, ContainerKind.PEM
            )

        return DecodeResult.success(self.extract_certificate_info(cert))

    def _decode_der(self, data: bytes, passphrase: Optional[str]) -> DecodeResult:
        try:
            cert = x509.load_der_x509_certificate(data)
        except ValueError as e:
            self.logger.error(f"Failed to parse DER certificate: {e}")
            return DecodeResult.failure(
                DecodeErrorKind.DECODE_FAILURE, DER_DECODE_FAILED, ContainerKind.DER
            )

        return DecodeResult.success(self.extract_certificate_info(cert))

    def extract_certificate_info(self, cert: x509.Certificate) -> CertificateInfo:
        """Flatten a decoded certificate into a ``CertificateInfo``."""
        return extract_certificate_info(cert, self.clock())


def load_pkcs12_archive(data: bytes, passphrase: Optional[str] = None):
    """Load a PKCS#12 archive; raises ValueError on bad data or passphrase."""
    password = passphrase.encode('utf-8') if passphrase else None
    return pkcs12.load_pkcs12(data, password)


def _first_certificate(archive) -> Optional[x509.Certificate]:
    if archive.cert is not None:
        return archive.cert.certificate
    for bag in archive.additional_certs:
        return bag.certificate
    return None


def extract_certificate_info(cert: x509.Certificate, now: Optional[datetime] = None) -> CertificateInfo:
    """
    Extract subject fields, issuer, serial and validity from a certificate.

    Subject attributes that are missing are reported as ``"Unknown"``. The
    issuer keeps the attribute order in which the certificate encodes it.
    """
    valid_from = as_utc(cert.not_valid_before_utc)
    valid_to = as_utc(cert.not_valid_after_utc)
    snapshot = classify(valid_to, now)

    return CertificateInfo(
        common_name=_find_attribute(cert.subject, NameOID.COMMON_NAME),
        organization=_find_attribute(cert.subject, NameOID.ORGANIZATION_NAME),
        organizational_unit=_find_attribute(cert.subject, NameOID.ORGANIZATIONAL_UNIT_NAME),
        issuer=format_name(cert.issuer),
        serial_number=format_serial_number(cert.serial_number),
        valid_from=valid_from,
        valid_to=valid_to,
        days_remaining=snapshot.days_remaining,
        status=snapshot.status
    )


def _find_attribute(name: x509.Name, oid: x509.ObjectIdentifier) -> str:
    for attribute in name:
        if attribute.oid == oid:
            return _attribute_value(attribute)
    return UNKNOWN_ATTRIBUTE


def _attribute_value(attribute: x509.NameAttribute) -> str:
    value = attribute.value
    if isinstance(value, bytes):
        return value.hex()
    return value


def _attribute_name(oid: x509.ObjectIdentifier) -> str:
    name = oid._name
    if not name or name == "Unknown OID":
        return oid.dotted_string
    return name


def format_name(name: x509.Name) -> str:
    """Render a distinguished name as 'attr=value, attr=value' in encoded order."""
    return ", ".join(
        f"{_attribute_name(attribute.oid)}={_attribute_value(attribute)}"
        for attribute in name
    )


def format_serial_number(serial_number: int) -> str:
    """Hex of the serial's DER content octets (minimal two's complement)."""
    length = (serial_number.bit_length() + 8) // 8
    return serial_number.to_bytes(length, 'big', signed=True).hex()


_default_decoder = CertificateDecoder()


def decode(data: bytes, filename: str, passphrase: Optional[str] = None) -> DecodeResult:
    """Decode with a module-level decoder using the live clock."""
    return _default_decoder.decode(data, filename, passphrase)
