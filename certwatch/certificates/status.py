"""
Expiry status classification.

Two separate views of the same validity end date are computed here:

* ``classify`` is the snapshot stored alongside freshly decoded certificates
  (expired / expiring within 30 days / valid).
* ``display_urgency`` drives dashboard coloring and adds a critical tier for
  certificates with less than a week left.

Countdowns shown to users (``days_until`` and the helpers built on it) round
partial days up, while both classifications use a truncated day count.
"""
import math
from datetime import datetime, timezone
from typing import Optional

from .models import CertificateStatus, StatusSnapshot, Urgency, UrgencyDisplay


SECONDS_PER_DAY = 24 * 60 * 60
EXPIRING_THRESHOLD_DAYS = 30
CRITICAL_THRESHOLD_DAYS = 7
EXPIRING_SOON_DAYS = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _days_between(valid_to: datetime, now: Optional[datetime]) -> float:
    now = as_utc(now) if now is not None else utcnow()
    return (as_utc(valid_to) - now).total_seconds() / SECONDS_PER_DAY


def elapsed_days(valid_to: datetime, now: Optional[datetime] = None) -> int:
    """Whole days until ``valid_to``, truncated toward zero."""
    return int(_days_between(valid_to, now))


def days_until(valid_to: datetime, now: Optional[datetime] = None) -> int:
    """Days until ``valid_to``, rounding partial days up."""
    return math.ceil(_days_between(valid_to, now))


def is_expired(valid_to: datetime, now: Optional[datetime] = None) -> bool:
    return days_until(valid_to, now) < 0


def is_expiring_soon(valid_to: datetime, now: Optional[datetime] = None) -> bool:
    days = days_until(valid_to, now)
    return 0 <= days <= EXPIRING_SOON_DAYS


def classify(valid_to: datetime, now: Optional[datetime] = None) -> StatusSnapshot:
    """Status snapshot recorded when a certificate is decoded."""
    days_remaining = elapsed_days(valid_to, now)

    if days_remaining < 0:
        status = CertificateStatus.EXPIRED
    elif days_remaining < EXPIRING_THRESHOLD_DAYS:
        status = CertificateStatus.EXPIRING
    else:
        status = CertificateStatus.VALID

    return StatusSnapshot(days_remaining=days_remaining, status=status)


def display_urgency(valid_to: datetime, now: Optional[datetime] = None) -> UrgencyDisplay:
    """Urgency tier used to color certificates on the dashboard."""
    days_remaining = elapsed_days(valid_to, now)

    if days_remaining < 0:
        return UrgencyDisplay(Urgency.EXPIRED, 'Expired', 'danger')
    if days_remaining < CRITICAL_THRESHOLD_DAYS:
        return UrgencyDisplay(Urgency.CRITICAL, 'Critical', 'danger')
    if days_remaining < EXPIRING_THRESHOLD_DAYS:
        return UrgencyDisplay(Urgency.WARNING, 'Warning', 'warning')
    return UrgencyDisplay(Urgency.NORMAL, 'Valid', 'success')


def status_class(valid_to: Optional[datetime], now: Optional[datetime] = None) -> str:
    if valid_to is None:
        return 'muted'
    if is_expired(valid_to, now):
        return 'danger'
    if is_expiring_soon(valid_to, now):
        return 'warning'
    return 'success'


def status_text(valid_to: Optional[datetime], now: Optional[datetime] = None) -> str:
    if valid_to is None:
        return 'Unknown'
    if is_expired(valid_to, now):
        return 'Expired'
    if is_expiring_soon(valid_to, now):
        return 'Expiring Soon'
    return 'Valid'


def describe_days_remaining(valid_to: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Human-facing countdown, e.g. '12 days' or 'Expired 3 days ago'."""
    if valid_to is None:
        return 'N/A'

    days = days_until(valid_to, now)
    if days < 0:
        return f"Expired {abs(days)} days ago"
    return f"{days} days"


def format_date(value: Optional[datetime]) -> str:
    """Format a date as 'Jan 5, 2025'."""
    if value is None:
        return 'N/A'
    return f"{value.strftime('%b')} {value.day}, {value.year}"
