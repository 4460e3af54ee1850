"""Tests for the pure domain rules: overlap, capacity, cadence and state machines."""

from datetime import date, time

import pytest

from educrm.domain.cadence import Cadence, add_months, due_dates, next_due_after, nth_due_date
from educrm.domain.invariants import (
    capacity_ok,
    find_duplicates,
    find_overlap,
    schedule_overlaps,
    validate_interval,
)
from educrm.domain.transitions import (
    ApplicationAction,
    WaitlistAction,
    next_application_status,
    next_waitlist_status,
)
from educrm.exceptions import InvalidOperationException, ValidationException
from educrm.models import ApplicationStatus, WaitlistStatus


class TestScheduleOverlap:
    """Tests for half-open interval overlap."""

    def test_overlapping_intervals(self):
        """Test that partially overlapping slots conflict."""
        assert schedule_overlaps(time(9), time(10, 30), time(10), time(11))
        assert schedule_overlaps(time(10), time(11), time(9), time(10, 30))

    def test_touching_intervals_do_not_overlap(self):
        """Test that a slot starting where another ends is accepted."""
        assert not schedule_overlaps(time(9), time(10, 30), time(10, 30), time(11, 30))
        assert not schedule_overlaps(time(10, 30), time(11, 30), time(9), time(10, 30))

    def test_containment_overlaps(self):
        assert schedule_overlaps(time(9), time(12), time(10), time(11))

    def test_find_overlap_returns_first_clash(self):
        existing = [("a", time(8), time(9)), ("b", time(9, 30), time(10)), ("c", time(9, 45), time(11))]
        assert find_overlap(time(9), time(9, 40), existing) == "b"
        assert find_overlap(time(11), time(12), existing) is None

    def test_validate_interval_rejects_empty(self):
        with pytest.raises(ValidationException):
            validate_interval(time(10), time(10))
        validate_interval(time(10), time(10, 1))


class TestCapacity:
    """Tests for the capacity rule."""

    @pytest.mark.parametrize(
        "count,capacity,delta,expected",
        [
            (0, 2, 1, True),
            (1, 2, 1, True),
            (2, 2, 1, False),
            (2, 2, 0, True),
            (0, 2, -1, False),
        ],
    )
    def test_capacity_ok(self, count, capacity, delta, expected):
        assert capacity_ok(count, capacity, delta) is expected

    def test_find_duplicates_keeps_first_seen_order(self):
        assert find_duplicates(["b", "a", "b", "c", "a"]) == ["b", "a"]
        assert find_duplicates([1, 2, 3]) == []


class TestCadence:
    """Tests for due-date arithmetic."""

    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 28)

    def test_monthly_dates_derive_from_anchor(self):
        """Test that a Jan 31 anchor returns to the 31st after February."""
        anchor = date(2025, 1, 31)
        assert [nth_due_date(Cadence.MONTHLY, anchor, n) for n in range(3)] == [
            date(2025, 1, 31),
            date(2025, 2, 28),
            date(2025, 3, 31),
        ]

    def test_due_dates_in_window(self):
        dates = due_dates(Cadence.MONTHLY, date(2025, 1, 15), date(2025, 1, 1), date(2025, 4, 30))
        assert dates == [date(2025, 1, 15), date(2025, 2, 15), date(2025, 3, 15), date(2025, 4, 15)]

    def test_due_dates_window_after_anchor(self):
        dates = due_dates(Cadence.MONTHLY, date(2025, 1, 15), date(2025, 3, 1), date(2025, 5, 15))
        assert dates == [date(2025, 3, 15), date(2025, 4, 15), date(2025, 5, 15)]

    def test_due_dates_never_before_anchor(self):
        dates = due_dates(Cadence.WEEKLY, date(2025, 1, 15), date(2025, 1, 1), date(2025, 1, 31))
        assert dates == [date(2025, 1, 15), date(2025, 1, 22), date(2025, 1, 29)]

    def test_due_dates_respect_until(self):
        dates = due_dates(
            Cadence.MONTHLY, date(2025, 1, 15), date(2025, 1, 1), date(2025, 12, 31), until=date(2025, 3, 1)
        )
        assert dates == [date(2025, 1, 15), date(2025, 2, 15)]

    @pytest.mark.parametrize("cadence", list(Cadence))
    def test_due_dates_strictly_increasing(self, cadence):
        dates = due_dates(cadence, date(2024, 2, 29), date(2024, 1, 1), date(2027, 12, 31))
        assert dates
        assert all(a < b for a, b in zip(dates, dates[1:]))

    def test_quarterly_and_yearly(self):
        assert due_dates(Cadence.QUARTERLY, date(2025, 1, 31), date(2025, 1, 1), date(2025, 12, 31)) == [
            date(2025, 1, 31),
            date(2025, 4, 30),
            date(2025, 7, 31),
            date(2025, 10, 31),
        ]
        assert nth_due_date(Cadence.YEARLY, date(2024, 2, 29), 1) == date(2025, 2, 28)

    def test_next_due_after(self):
        anchor = date(2025, 1, 31)
        assert next_due_after(Cadence.MONTHLY, anchor, date(2025, 1, 31)) == date(2025, 2, 28)
        assert next_due_after(Cadence.MONTHLY, anchor, date(2025, 1, 1)) == date(2025, 1, 31)
        assert next_due_after(Cadence.BIWEEKLY, date(2025, 1, 1), date(2025, 1, 14)) == date(2025, 1, 15)


class TestTransitions:
    """Tests for the application and waitlist state machines."""

    def test_application_happy_path(self):
        status = next_application_status(ApplicationStatus.SUBMITTED.value, ApplicationAction.APPROVE)
        assert status is ApplicationStatus.APPROVED
        assert next_application_status(status.value, ApplicationAction.ENROLL) is ApplicationStatus.ENROLLED

    def test_application_withdraw_from_approved(self):
        assert (
            next_application_status(ApplicationStatus.APPROVED.value, ApplicationAction.WITHDRAW)
            is ApplicationStatus.WITHDRAWN
        )

    @pytest.mark.parametrize(
        "status,action",
        [
            (ApplicationStatus.SUBMITTED, ApplicationAction.ENROLL),
            (ApplicationStatus.APPROVED, ApplicationAction.REJECT),
            (ApplicationStatus.REJECTED, ApplicationAction.APPROVE),
            (ApplicationStatus.ENROLLED, ApplicationAction.WITHDRAW),
            (ApplicationStatus.WITHDRAWN, ApplicationAction.ENROLL),
        ],
    )
    def test_application_invalid_transitions(self, status, action):
        with pytest.raises(InvalidOperationException) as exc_info:
            next_application_status(status.value, action)
        assert exc_info.value.details == {"status": status.value, "action": action.value}

    def test_waitlist_transitions(self):
        assert next_waitlist_status(WaitlistStatus.WAITING.value, WaitlistAction.OFFER) is WaitlistStatus.OFFERED
        assert next_waitlist_status(WaitlistStatus.OFFERED.value, WaitlistAction.ACCEPT) is WaitlistStatus.ACCEPTED
        with pytest.raises(InvalidOperationException):
            next_waitlist_status(WaitlistStatus.DECLINED.value, WaitlistAction.ACCEPT)
        with pytest.raises(InvalidOperationException):
            next_waitlist_status(WaitlistStatus.OFFERED.value, WaitlistAction.OFFER)
