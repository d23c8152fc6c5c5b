"""
Delivery schedule evaluation.

`is_due_today` is a pure function of the user's frequency, delivery day and
the calendar date, so any date can be evaluated deterministically. Weekday
ordinals follow the stored convention 0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

from datetime import date

from .core.types import DEFAULT_DELIVERY_DAY, Frequency, User


EPOCH = date(1970, 1, 1)


def weekday_ordinal(day: date) -> int:
    """Weekday of `day` with Sunday as 0."""
    return (day.weekday() + 1) % 7


def epoch_week(day: date) -> int:
    """Whole weeks elapsed since 1970-01-01."""
    return (day - EPOCH).days // 7


def is_due_today(user: User, today: date) -> bool:
    """Decide whether `user` should receive a newsletter on `today`.

    - daily: every day
    - weekly: on the user's delivery day (Monday when unset)
    - bi-weekly: on the delivery day of even epoch weeks
    - monthly: on the first day of the month
    - anything else: never
    """
    frequency = user.frequency.value if isinstance(user.frequency, Frequency) else user.frequency
    delivery_day = DEFAULT_DELIVERY_DAY if user.delivery_day is None else user.delivery_day

    if frequency == Frequency.DAILY.value:
        return True
    if frequency == Frequency.WEEKLY.value:
        return weekday_ordinal(today) == delivery_day
    if frequency == Frequency.BI_WEEKLY.value:
        return weekday_ordinal(today) == delivery_day and epoch_week(today) % 2 == 0
    if frequency == Frequency.MONTHLY.value:
        return today.day == 1
    return False
