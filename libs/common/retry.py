"""Backoff rules shared by the polling jobs."""

from datetime import datetime, timedelta
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now


def backoff_minutes(attempts: int, cap: Optional[int] = None) -> int:
    """Exponential backoff in minutes: 1, 2, 4, 8 ... capped (60 by default)."""
    if cap is None:
        cap = get_settings().BACKOFF_CAP_MINUTES
    exponent = max(attempts - 1, 0)
    return min(cap, 2**exponent)


def next_attempt_at(attempts: int, now: Optional[datetime] = None) -> datetime:
    now = now or utc_now()
    return now + timedelta(minutes=backoff_minutes(attempts))
