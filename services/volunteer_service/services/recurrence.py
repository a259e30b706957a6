"""Recurring shift rules.

Rules are strings: ``DAILY``, ``WEEKLY:MON,WED,FRI`` or ``MONTHLY:1,15``.
Occurrences are generated by walking forward one day at a time from the
template shift's start, keeping its duration.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

WEEKDAYS = {"MON": 0, "TUE": 1, "WED": 2, "THU": 3, "FRI": 4, "SAT": 5, "SUN": 6}
WEEKDAY_NAMES = {
    "MON": "Monday",
    "TUE": "Tuesday",
    "WED": "Wednesday",
    "THU": "Thursday",
    "FRI": "Friday",
    "SAT": "Saturday",
    "SUN": "Sunday",
}
MAX_OCCURRENCES = 366


@dataclass
class RecurrenceRule:
    frequency: str
    weekdays: list[str] = field(default_factory=list)
    days: list[int] = field(default_factory=list)

    def matches(self, day: date) -> bool:
        if self.frequency == "DAILY":
            return True
        if self.frequency == "WEEKLY":
            return any(WEEKDAYS[w] == day.weekday() for w in self.weekdays)
        return day.day in self.days


def parse_recurrence_rule(rule: Optional[str]) -> Optional[RecurrenceRule]:
    """Parse a rule string; returns None for anything unrecognised."""
    if not rule:
        return None
    frequency, _, params = rule.strip().upper().partition(":")
    if frequency == "DAILY":
        return RecurrenceRule("DAILY")
    if frequency == "WEEKLY" and params:
        weekdays = [w.strip() for w in params.split(",") if w.strip()]
        if weekdays and all(w in WEEKDAYS for w in weekdays):
            return RecurrenceRule("WEEKLY", weekdays=weekdays)
        return None
    if frequency == "MONTHLY" and params:
        try:
            days = [int(d) for d in params.split(",") if d.strip()]
        except ValueError:
            return None
        if days and all(1 <= d <= 31 for d in days):
            return RecurrenceRule("MONTHLY", days=days)
    return None


def generate_occurrences(
    start_at: datetime, end_at: datetime, rule: Optional[str], until: datetime
) -> list[tuple[datetime, datetime]]:
    """
    Expand a template shift into ``(start, end)`` pairs up to ``until``.

    An empty or unrecognised rule yields just the template itself.
    """
    parsed = parse_recurrence_rule(rule)
    if parsed is None:
        return [(start_at, end_at)]

    duration = end_at - start_at
    occurrences = []
    current = start_at
    while current <= until:
        if parsed.matches(current.date()):
            occurrences.append((current, current + duration))
            if len(occurrences) > MAX_OCCURRENCES:
                raise ValueError(f"Recurrence produces more than {MAX_OCCURRENCES} shifts")
        current += timedelta(days=1)
    return occurrences


def describe_recurrence_rule(rule: str) -> str:
    parsed = parse_recurrence_rule(rule)
    if parsed is None:
        return "Custom recurrence"
    if parsed.frequency == "DAILY":
        return "Every day"
    if parsed.frequency == "WEEKLY":
        return "Every " + ", ".join(WEEKDAY_NAMES[w] for w in parsed.weekdays)
    return "Monthly on day(s) " + ", ".join(str(d) for d in parsed.days)
