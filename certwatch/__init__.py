"""
CertWatch: certificate expiry tracking.
"""

__version__ = "1.0.0"
