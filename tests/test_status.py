"""
Tests for expiry status classification.
"""
import unittest
from datetime import datetime, timedelta, timezone

from certwatch.certificates.models import CertificateStatus, Urgency
from certwatch.certificates.status import (
    classify, days_until, describe_days_remaining, display_urgency, format_date,
    is_expired, is_expiring_soon, status_class, status_text
)


NOW = datetime(2025, 3, 15, 8, 30, 0, tzinfo=timezone.utc)


class TestClassify(unittest.TestCase):
    """Test cases for the status snapshot."""

    def test_expired_yesterday(self):
        snapshot = classify(NOW - timedelta(days=1), NOW)
        self.assertEqual(snapshot.status, CertificateStatus.EXPIRED)
        self.assertEqual(snapshot.days_remaining, -1)
        self.assertLess(days_until(NOW - timedelta(days=1), NOW), 0)

    def test_expiring_in_five_days(self):
        snapshot = classify(NOW + timedelta(days=5), NOW)
        self.assertEqual(snapshot.status, CertificateStatus.EXPIRING)
        self.assertEqual(snapshot.days_remaining, 5)

    def test_valid_in_hundred_days(self):
        snapshot = classify(NOW + timedelta(days=100), NOW)
        self.assertEqual(snapshot.status, CertificateStatus.VALID)
        self.assertEqual(snapshot.days_remaining, 100)

    def test_thirty_day_boundary(self):
        self.assertEqual(classify(NOW + timedelta(days=29, hours=23), NOW).status, CertificateStatus.EXPIRING)
        self.assertEqual(classify(NOW + timedelta(days=30), NOW).status, CertificateStatus.VALID)

    def test_partial_day_is_truncated(self):
        """Less than a day past expiry still truncates to zero days."""
        snapshot = classify(NOW - timedelta(hours=12), NOW)
        self.assertEqual(snapshot.days_remaining, 0)
        self.assertEqual(snapshot.status, CertificateStatus.EXPIRING)

        self.assertEqual(classify(NOW + timedelta(days=2, hours=20), NOW).days_remaining, 2)

    def test_naive_datetimes_are_utc(self):
        naive = (NOW + timedelta(days=10)).replace(tzinfo=None)
        self.assertEqual(classify(naive, NOW).days_remaining, 10)

    def test_other_timezones_are_normalized(self):
        plus_two = timezone(timedelta(hours=2))
        valid_to = (NOW + timedelta(days=10)).astimezone(plus_two)
        self.assertEqual(classify(valid_to, NOW).days_remaining, 10)


class TestDisplayUrgency(unittest.TestCase):
    """Test cases for the dashboard urgency tiers."""

    def test_expired(self):
        display = display_urgency(NOW - timedelta(days=1), NOW)
        self.assertEqual(display.urgency, Urgency.EXPIRED)
        self.assertEqual(display.label, 'Expired')
        self.assertEqual(display.class_name, 'danger')

    def test_critical_under_a_week(self):
        display = display_urgency(NOW + timedelta(days=5), NOW)
        self.assertEqual(display.urgency, Urgency.CRITICAL)
        self.assertEqual(display.label, 'Critical')
        self.assertEqual(display.class_name, 'danger')

    def test_warning_under_thirty_days(self):
        display = display_urgency(NOW + timedelta(days=7), NOW)
        self.assertEqual(display.urgency, Urgency.WARNING)
        self.assertEqual(display.class_name, 'warning')

    def test_normal(self):
        display = display_urgency(NOW + timedelta(days=100), NOW)
        self.assertEqual(display.urgency, Urgency.NORMAL)
        self.assertEqual(display.label, 'Valid')
        self.assertEqual(display.class_name, 'success')

    def test_differs_from_snapshot_inside_first_week(self):
        valid_to = NOW + timedelta(days=3)
        self.assertEqual(classify(valid_to, NOW).status, CertificateStatus.EXPIRING)
        self.assertEqual(display_urgency(valid_to, NOW).urgency, Urgency.CRITICAL)


class TestCountdownHelpers(unittest.TestCase):
    """Test cases for the rounded-up countdown helpers."""

    def test_days_until_rounds_up(self):
        self.assertEqual(days_until(NOW + timedelta(hours=1), NOW), 1)
        self.assertEqual(days_until(NOW + timedelta(days=2, hours=1), NOW), 3)
        self.assertEqual(days_until(NOW - timedelta(hours=12), NOW), 0)
        self.assertEqual(days_until(NOW - timedelta(days=1, hours=12), NOW), -1)

    def test_is_expired(self):
        self.assertTrue(is_expired(NOW - timedelta(days=2), NOW))
        self.assertFalse(is_expired(NOW - timedelta(hours=12), NOW))
        self.assertFalse(is_expired(NOW + timedelta(days=1), NOW))

    def test_is_expiring_soon_window(self):
        self.assertTrue(is_expiring_soon(NOW, NOW))
        self.assertTrue(is_expiring_soon(NOW + timedelta(days=30), NOW))
        self.assertFalse(is_expiring_soon(NOW + timedelta(days=30, hours=1), NOW))
        self.assertFalse(is_expiring_soon(NOW - timedelta(days=2), NOW))

    def test_status_class_and_text(self):
        self.assertEqual(status_class(None), 'muted')
        self.assertEqual(status_text(None), 'Unknown')
        self.assertEqual(status_class(NOW - timedelta(days=5), NOW), 'danger')
        self.assertEqual(status_text(NOW - timedelta(days=5), NOW), 'Expired')
        self.assertEqual(status_class(NOW + timedelta(days=10), NOW), 'warning')
        self.assertEqual(status_text(NOW + timedelta(days=10), NOW), 'Expiring Soon')
        self.assertEqual(status_class(NOW + timedelta(days=90), NOW), 'success')
        self.assertEqual(status_text(NOW + timedelta(days=90), NOW), 'Valid')

    def test_describe_days_remaining(self):
        self.assertEqual(describe_days_remaining(None), 'N/A')
        self.assertEqual(describe_days_remaining(NOW + timedelta(days=12), NOW), '12 days')
        self.assertEqual(describe_days_remaining(NOW - timedelta(days=3), NOW), 'Expired 3 days ago')

    def test_format_date(self):
        self.assertEqual(format_date(None), 'N/A')
        self.assertEqual(format_date(datetime(2025, 1, 5)), 'Jan 5, 2025')


if __name__ == '__main__':
    unittest.main()
