"""Unit tests for shift recurrence rules and the shared retry backoff."""

from datetime import datetime, timedelta, timezone

import pytest
from libs.common.retry import backoff_minutes, next_attempt_at
from services.volunteer_service.services.recurrence import (
    MAX_OCCURRENCES,
    describe_recurrence_rule,
    generate_occurrences,
    parse_recurrence_rule,
)

# Monday
START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
END = START + timedelta(hours=3)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_parse_weekly_rule():
    rule = parse_recurrence_rule("weekly:mon, fri")

    assert rule.frequency == "WEEKLY"
    assert rule.weekdays == ["MON", "FRI"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "rule", [None, "", "HOURLY", "WEEKLY:", "WEEKLY:XYZ", "MONTHLY:0", "MONTHLY:a"]
)
def test_parse_rejects_unrecognised_rules(rule):
    assert parse_recurrence_rule(rule) is None


@pytest.mark.unit
def test_describe_recurrence_rule():
    assert describe_recurrence_rule("DAILY") == "Every day"
    assert describe_recurrence_rule("WEEKLY:MON,WED") == "Every Monday, Wednesday"
    assert describe_recurrence_rule("MONTHLY:1,15") == "Monthly on day(s) 1, 15"
    assert describe_recurrence_rule("nonsense") == "Custom recurrence"


# ---------------------------------------------------------------------------
# Occurrence generation
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_weekly_occurrences_keep_duration():
    occurrences = generate_occurrences(
        START, END, "WEEKLY:MON,WED", until=START + timedelta(days=13)
    )

    assert [s.day for s, _ in occurrences] == [2, 4, 9, 11]
    assert all(e - s == timedelta(hours=3) for s, e in occurrences)


@pytest.mark.unit
def test_monthly_occurrences():
    occurrences = generate_occurrences(
        START, END, "MONTHLY:15", until=START + timedelta(days=60)
    )

    assert [(s.month, s.day) for s, _ in occurrences] == [(3, 15), (4, 15)]


@pytest.mark.unit
def test_unrecognised_rule_yields_template_only():
    occurrences = generate_occurrences(START, END, None, until=START + timedelta(days=30))

    assert occurrences == [(START, END)]


@pytest.mark.unit
def test_occurrences_are_capped():
    with pytest.raises(ValueError):
        generate_occurrences(
            START, END, "DAILY", until=START + timedelta(days=MAX_OCCURRENCES + 5)
        )


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_backoff_doubles_and_caps():
    assert [backoff_minutes(n, cap=60) for n in (1, 2, 3, 4)] == [1, 2, 4, 8]
    assert backoff_minutes(10, cap=60) == 60
    assert backoff_minutes(0, cap=60) == 1


@pytest.mark.unit
def test_next_attempt_at_uses_backoff():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    assert next_attempt_at(3, now) == now + timedelta(minutes=4)
