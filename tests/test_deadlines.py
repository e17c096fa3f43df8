"""Deadline math, the breach predicate and duration parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.config import MAX_SLA_HOURS, TicketStatus
from helpdesk.core import InvalidFormatException, ValidationException
from helpdesk.sla.domain import DeadlineCalculator, SLATier, is_breaching
from helpdesk.tickets.domain import format_duration, parse_duration

from tests.conftest import T0


def test_deadlines_add_budgets_to_creation_time():
    tier = SLATier(id=1, name="Standard", response_time_hours=4, resolution_time_hours=24)

    deadlines = DeadlineCalculator.compute(tier, T0)

    assert deadlines.response_due == T0 + timedelta(hours=4)
    assert deadlines.resolution_due == T0 + timedelta(hours=24)


def test_fractional_hours_are_not_rounded():
    tier = SLATier(id=1, name="Fast", response_time_hours=1.5, resolution_time_hours=2.25)

    deadlines = DeadlineCalculator.compute(tier, T0)

    assert deadlines.response_due == T0 + timedelta(minutes=90)
    assert deadlines.resolution_due == T0 + timedelta(minutes=135)


def test_zero_budgets_put_deadlines_at_creation():
    tier = SLATier(id=1, name="Instant", response_time_hours=0, resolution_time_hours=0)

    deadlines = DeadlineCalculator.compute(tier, T0)

    assert deadlines.response_due == T0
    assert deadlines.resolution_due == T0


@pytest.mark.parametrize("response, resolution", [
    (-1, 4), (4, 2), (4, MAX_SLA_HOURS + 1), (1e9, 1e9), (float("nan"), 4), (4, float("inf")),
])
def test_tier_rejects_bad_budgets(response, resolution):
    with pytest.raises(ValidationException):
        SLATier(id=None, name="Broken", response_time_hours=response, resolution_time_hours=resolution)


def test_deadline_past_the_calendar_is_a_validation_error():
    tier = SLATier(id=7, name="Yearly", response_time_hours=MAX_SLA_HOURS, resolution_time_hours=MAX_SLA_HOURS)
    near_the_end = datetime(9999, 12, 1, tzinfo=timezone.utc)

    with pytest.raises(ValidationException) as exc_info:
        DeadlineCalculator.compute(tier, near_the_end)
    assert exc_info.value.details["sla_tier_id"] == 7


def test_breach_needs_strictly_past_deadline():
    due = T0 + timedelta(hours=4)

    assert not is_breaching(TicketStatus.OPEN, due, due)
    assert is_breaching(TicketStatus.OPEN, due, due + timedelta(seconds=1))
    assert is_breaching(TicketStatus.IN_PROGRESS, due, due + timedelta(hours=1))


@pytest.mark.parametrize("status", [TicketStatus.RESOLVED, TicketStatus.CLOSED])
def test_resolved_and_closed_never_breach(status):
    assert not is_breaching(status, T0, T0 + timedelta(days=30))


@pytest.mark.parametrize("value, expected", [
    ("00:00:00", timedelta()),
    ("08:00:00", timedelta(hours=8)),
    ("01:30:15", timedelta(hours=1, minutes=30, seconds=15)),
    ("99:59:59", timedelta(hours=99, minutes=59, seconds=59)),
])
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", [
    "25:61:00", "1:00:00", "08:00", "08:00:60", "abc", "", "100:00:00", "08:00:00\n", " 08:00:00",
])
def test_parse_duration_rejects_malformed_values(value):
    with pytest.raises(InvalidFormatException) as exc_info:
        parse_duration(value)
    assert exc_info.value.kind == "InvalidFormat"


def test_format_duration_grows_past_two_hour_digits():
    assert format_duration(timedelta(hours=8)) == "08:00:00"
    assert format_duration(timedelta(hours=120, minutes=5, seconds=9)) == "120:05:09"
