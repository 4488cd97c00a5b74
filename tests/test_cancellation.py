"""Tests for cancellation refund eligibility."""

from datetime import datetime

import pytest

from homecare.pricing.cancellation import check_cancellation_refund

NOW = datetime(2025, 6, 2, 8, 0)


class TestCancellationRefund:
    def test_asap_is_never_refundable(self):
        decision = check_cancellation_refund("2025-06-10", "10:00", is_asap=True, now=NOW)
        assert not decision.eligible
        assert "non-refundable" in decision.message

    def test_outside_notice_window(self):
        decision = check_cancellation_refund("2025-06-02", "13:00", now=NOW)
        assert decision.eligible
        assert "refund" in decision.message

    def test_exactly_at_threshold_is_refundable(self):
        assert check_cancellation_refund("2025-06-02", "12:00", now=NOW).eligible

    def test_inside_notice_window(self):
        decision = check_cancellation_refund("2025-06-02", "11:59", now=NOW)
        assert not decision.eligible
        assert "within 4 hours" in decision.message

    def test_custom_threshold(self):
        assert not check_cancellation_refund("2025-06-02", "13:00", now=NOW, threshold_hours=24).eligible

    def test_malformed_date_raises(self):
        with pytest.raises(ValueError):
            check_cancellation_refund("02/06/2025", "10:00", now=NOW)
