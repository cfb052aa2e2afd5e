"""
Certificate service for uploading, storing and querying tracked certificates.
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Any

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from ..certificates import CertificateDecoder, CertificateStatus, classify, mime_type_for, verify
from ..certificates.format_detector import detect, extension_of
from ..certificates.status import as_utc, utcnow
from ..models.database import Certificate, DatabaseManager
from .logging_service import certificate_context


class CertificateUploadError(Exception):
    """Raised when an uploaded file cannot be turned into a certificate record."""


@dataclass
class CertificateFile:
    """Stored certificate file ready to be sent back to a client."""
    data: bytes
    filename: str
    mimetype: str
    original_name: str


def to_storage_datetime(value: datetime) -> datetime:
    """Naive UTC datetime as stored in the database."""
    return as_utc(value).replace(tzinfo=None)


class CertificateService:
    """Service class for managing uploaded certificates."""

    def __init__(self, db_manager: DatabaseManager, upload_dir: str,
                 decoder: Optional[CertificateDecoder] = None,
                 logging_service=None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the certificate service.

        Args:
            db_manager: Database manager instance
            upload_dir: Directory where uploaded files are kept
            decoder: Certificate decoder, a default one is created if omitted
            logging_service: Optional LoggingService for performance metrics
            clock: Returns the current UTC time, injectable for tests
        """
        self.db_manager = db_manager
        self.upload_dir = upload_dir
        self.clock = clock or utcnow
        self.decoder = decoder or CertificateDecoder(clock=self.clock)
        self.logging_service = logging_service
        self.logger = logging.getLogger(__name__)

        os.makedirs(self.upload_dir, exist_ok=True)

    def upload_certificate(self, data: bytes, original_name: str,
                           password: Optional[str] = None,
                           mimetype: Optional[str] = None) -> Certificate:
        """
        Decode an uploaded certificate, store the file and record its metadata.

        Nothing is written to disk or the database unless decoding succeeds.

        Args:
            data: Raw uploaded bytes
            original_name: Filename supplied by the uploader
            password: Optional passphrase for PKCS#12 archives
            mimetype: MIME type reported by the client

        Returns:
            The stored Certificate

        Raises:
            CertificateUploadError: If the file cannot be decoded or stored
        """
        if self.logging_service:
            with self.logging_service.measure_performance('certificate_decode', {'filename': original_name}):
                result = self.decoder.decode(data, original_name, password)
        else:
            result = self.decoder.decode(data, original_name, password)

        if not result.ok:
            self.logger.warning(
                f"Rejected certificate upload {original_name}: {result.error.message}",
                extra=certificate_context(
                    filename=original_name,
                    container_kind=result.error.container_kind,
                    error_kind=result.error.kind
                )
            )
            raise CertificateUploadError(result.error.message)

        info = result.info
        stored_name = self._save_file(data, original_name)

        try:
            session = self.db_manager.get_session()
            try:
                certificate = Certificate(
                    filename=stored_name,
                    original_name=original_name,
                    common_name=info.common_name,
                    organization=info.organization,
                    organizational_unit=info.organizational_unit,
                    valid_from=to_storage_datetime(info.valid_from),
                    valid_to=to_storage_datetime(info.valid_to),
                    issuer=info.issuer,
                    serial_number=info.serial_number,
                    password=password or None,
                    file_type=mimetype or mime_type_for(original_name),
                    uploaded_at=to_storage_datetime(self.clock()),
                    type='certificate'
                )

                session.add(certificate)
                session.commit()
                session.refresh(certificate)

                self.logger.info(
                    f"Stored certificate {certificate.id} for {info.common_name} "
                    f"(expires {info.valid_to.isoformat()}, status {info.status.value})",
                    extra=certificate_context(
                        certificate_id=certificate.id,
                        filename=stored_name,
                        container_kind=detect(original_name),
                        status=info.status
                    )
                )
                return self._detach(certificate)
            finally:
                session.close()

        except SQLAlchemyError as e:
            self.logger.error(f"Database error storing certificate {original_name}: {e}")
            self._remove_file(stored_name)
            raise CertificateUploadError("Failed to store certificate") from e

    def verify_certificate_password(self, data: bytes, filename: str,
                                    password: Optional[str] = None) -> bool:
        """Check a passphrase against an upload without storing anything."""
        return verify(data, filename, password, logger=self.logger)

    def get_all_certificates(self) -> List[Certificate]:
        """All certificates, soonest expiry first."""
        try:
            session = self.db_manager.get_session()
            try:
                certificates = session.query(Certificate).order_by(Certificate.valid_to.asc()).all()
                return [self._detach(c) for c in certificates]
            finally:
                session.close()
        except SQLAlchemyError as e:
            self.logger.error(f"Database error listing certificates: {e}")
            return []

    def get_certificate(self, certificate_id: int) -> Optional[Certificate]:
        """
        Get a certificate by ID.

        Returns:
            Certificate if found, None otherwise
        """
        try:
            session = self.db_manager.get_session()
            try:
                certificate = session.query(Certificate).filter(Certificate.id == certificate_id).first()
                return self._detach(certificate) if certificate else None
            finally:
                session.close()
        except SQLAlchemyError as e:
            self.logger.error(f"Database error getting certificate {certificate_id}: {e}")
            return None

    def get_certificate_by_filename(self, filename: str) -> Optional[Certificate]:
        try:
            session = self.db_manager.get_session()
            try:
                certificate = session.query(Certificate).filter(Certificate.filename == filename).first()
                return self._detach(certificate) if certificate else None
            finally:
                session.close()
        except SQLAlchemyError as e:
            self.logger.error(f"Database error getting certificate by filename {filename}: {e}")
            return None

    def get_expiring_certificates(self, days: int = 30, now: Optional[datetime] = None) -> List[Certificate]:
        """
        Certificates whose expiry falls between now and ``days`` from now.

        Already expired certificates are not included.
        """
        now = to_storage_datetime(now or self.clock())
        until = now + timedelta(days=days)

        try:
            session = self.db_manager.get_session()
            try:
                certificates = (
                    session.query(Certificate)
                    .filter(Certificate.valid_to >= now, Certificate.valid_to <= until)
                    .order_by(Certificate.valid_to.asc())
                    .all()
                )
                return [self._detach(c) for c in certificates]
            finally:
                session.close()
        except SQLAlchemyError as e:
            self.logger.error(f"Database error getting expiring certificates: {e}")
            return []

    def delete_certificate(self, certificate_id: int) -> bool:
        """
        Delete a certificate record and its stored file.

        Returns:
            True if the record was deleted, False otherwise
        """
        try:
            session = self.db_manager.get_session()
            try:
                certificate = session.query(Certificate).filter(Certificate.id == certificate_id).first()
                if not certificate:
                    return False

                stored_name = certificate.filename
                session.delete(certificate)
                session.commit()
                self._remove_file(stored_name)

                self.logger.info(f"Deleted certificate {certificate_id}")
                return True
            finally:
                session.close()
        except SQLAlchemyError as e:
            self.logger.error(f"Database error deleting certificate {certificate_id}: {e}")
            return False

    def get_certificate_file(self, certificate_id: int) -> Optional[CertificateFile]:
        """Load the stored file for a certificate, or None if record or file is missing."""
        certificate = self.get_certificate(certificate_id)
        if not certificate:
            return None

        path = os.path.join(self.upload_dir, certificate.filename)
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            self.logger.error(f"Failed to read certificate file {path}: {e}")
            return None

        return CertificateFile(
            data=data,
            filename=certificate.filename,
            mimetype=mime_type_for(certificate.filename),
            original_name=certificate.original_name or certificate.filename
        )

    def get_dashboard_summary(self, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Counts per status plus the certificates expiring within ``days``."""
        now = now or self.clock()
        certificates = self.get_all_certificates()

        counts = {status.value: 0 for status in CertificateStatus}
        for certificate in certificates:
            counts[classify(certificate.valid_to, now).status.value] += 1

        return {
            'total': len(certificates),
            'counts': counts,
            'expiring_soon': self.get_expiring_certificates(days, now=now)
        }

    def generate_unique_filename(self, original_name: str, now: Optional[datetime] = None) -> str:
        """Build '<name>-YYYYMMDD-HHMMSS<ext>' from a sanitized upload name."""
        timestamp = (now or self.clock()).strftime('%Y%m%d-%H%M%S')
        extension = extension_of(original_name)
        base_name = secure_filename(os.path.splitext(original_name)[0]) or 'certificate'

        candidate = f"{base_name}-{timestamp}{extension}"
        counter = 1
        while os.path.exists(os.path.join(self.upload_dir, candidate)):
            candidate = f"{base_name}-{timestamp}-{counter}{extension}"
            counter += 1
        return candidate

    def _save_file(self, data: bytes, original_name: str) -> str:
        stored_name = self.generate_unique_filename(original_name)
        path = os.path.join(self.upload_dir, stored_name)

        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            self.logger.error(f"Failed to save certificate file {path}: {e}")
            raise CertificateUploadError("Failed to store certificate file") from e

        return stored_name

    def _remove_file(self, stored_name: str):
        path = os.path.join(self.upload_dir, stored_name)
        try:
            os.remove(path)
        except FileNotFoundError:
            self.logger.warning(f"Certificate file already missing: {path}")
        except OSError as e:
            self.logger.error(f"Failed to delete certificate file {path}: {e}")

    def _detach(self, certificate: Certificate) -> Certificate:
        """Copy a session-bound record so it can be used after the session closes."""
        data = {column.name: getattr(certificate, column.name) for column in Certificate.__table__.columns}
        return Certificate(**data)
