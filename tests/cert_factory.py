"""
Helpers for building test certificates and PKCS#12 archives.
"""
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID


_KEY = None


def shared_key():
    """One RSA key shared by every generated certificate."""
    global _KEY
    if _KEY is None:
        _KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return _KEY


def make_name(common_name=None, organization=None, organizational_unit=None, extra=None):
    attributes = []
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    if organization is not None:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    if organizational_unit is not None:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, organizational_unit))
    attributes.extend(extra or [])
    return x509.Name(attributes)


def make_certificate(subject=None, issuer=None, not_before=None, not_after=None, serial_number=None):
    """Build a self-signed style certificate with sensible defaults."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    subject = subject if subject is not None else make_name("test.example.com", "Example Inc")
    issuer = issuer if issuer is not None else x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test CA"),
        x509.NameAttribute(NameOID.COMMON_NAME, "Test CA Root"),
    ])
    key = shared_key()
    not_after = not_after or now + timedelta(days=365)
    not_before = not_before or min(now, not_after) - timedelta(days=1)

    return x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        key.public_key()
    ).serial_number(
        serial_number if serial_number is not None else x509.random_serial_number()
    ).not_valid_before(
        not_before
    ).not_valid_after(
        not_after
    ).sign(key, hashes.SHA256())


def to_pem(cert) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def to_der(cert) -> bytes:
    return cert.public_bytes(serialization.Encoding.DER)


def to_pkcs12(cert=None, password=None, include_key=True, cas=None) -> bytes:
    """Serialize into a PKCS#12 archive, encrypted when a password is given."""
    if password:
        encryption = serialization.BestAvailableEncryption(password.encode('utf-8'))
    else:
        encryption = serialization.NoEncryption()

    return pkcs12.serialize_key_and_certificates(
        name=b"test",
        key=shared_key() if include_key else None,
        cert=cert,
        cas=cas,
        encryption_algorithm=encryption
    )


def make_inverted_certificate_der() -> bytes:
    """
    DER certificate whose notBefore (2030-01-01) is after its notAfter (2020-01-01).

    The builder refuses inverted windows, so the encoded times are swapped in
    the DER bytes; the signature no longer matches, which decoding ignores.
    """
    cert = make_certificate(
        not_before=datetime(2020, 1, 1, tzinfo=timezone.utc),
        not_after=datetime(2030, 1, 1, tzinfo=timezone.utc),
        serial_number=1000
    )
    der = to_der(cert)
    early, late = b"200101000000Z", b"300101000000Z"
    assert der.count(early) == 1 and der.count(late) == 1
    return der.replace(early, b"PLACEHOLDER!!").replace(late, early).replace(b"PLACEHOLDER!!", late)
