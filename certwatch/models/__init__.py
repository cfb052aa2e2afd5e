"""
Models package for the CertWatch application.
"""

from .config import Config, ConfigValidationError, ConfigValidationResult
from .database import Certificate, DatabaseManager, get_database_manager

__all__ = [
    'Config',
    'ConfigValidationError',
    'ConfigValidationResult',
    'Certificate',
    'DatabaseManager',
    'get_database_manager'
]
