"""
Passphrase checks for protected certificate archives.
"""
import logging
from typing import Optional

from .decoder import load_pkcs12_archive
from .format_detector import detect, may_require_password


def verify(data: bytes, filename: str, passphrase: Optional[str] = None,
           logger: Optional[logging.Logger] = None) -> bool:
    """
    Check whether an upload can be opened with the given passphrase.

    Formats that never carry a passphrase always verify. A PKCS#12 archive
    that opens without a passphrase verifies whatever passphrase was given.
    Errors are logged and reported as ``False``; nothing is raised.
    """
    logger = logger or logging.getLogger(__name__)

    if not may_require_password(detect(filename)):
        return True

    try:
        try:
            load_pkcs12_archive(data)
            return True
        except ValueError:
            if not passphrase:
                return False

        load_pkcs12_archive(data, passphrase)
        return True
    except Exception as e:
        logger.error(f"Failed to verify password for certificate {filename}: {e}")
        return False
