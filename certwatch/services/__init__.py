"""
Services package for the CertWatch application.
"""

from .config_service import ConfigService
from .certificate_service import CertificateService, CertificateUploadError, CertificateFile
from .logging_service import LoggingService

__all__ = [
    'ConfigService',
    'CertificateService',
    'CertificateUploadError',
    'CertificateFile',
    'LoggingService'
]
