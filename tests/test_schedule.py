from datetime import date, timedelta

import pytest

from tech_digest.core.types import User
from tech_digest.schedule import epoch_week, is_due_today, weekday_ordinal

MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)
SUNDAY = date(2026, 10, 18)


def _user(frequency: str, delivery_day=None) -> User:
    return User(id=1, email="u@example.com", frequency=frequency, delivery_day=delivery_day)


def test_weekday_ordinal_counts_from_sunday():
    assert weekday_ordinal(SUNDAY) == 0
    assert weekday_ordinal(MONDAY) == 1
    assert weekday_ordinal(WEDNESDAY) == 3


def test_daily_is_always_due():
    for offset in range(7):
        assert is_due_today(_user("daily"), MONDAY + timedelta(days=offset))


def test_weekly_user_is_not_due_on_other_weekday():
    user = _user("weekly", delivery_day=1)
    assert not is_due_today(user, WEDNESDAY)
    assert is_due_today(user, MONDAY)


def test_weekly_defaults_to_monday_when_day_unset():
    user = _user("weekly")
    assert is_due_today(user, MONDAY)
    assert not is_due_today(user, SUNDAY)


def test_weekly_sunday_delivery_day_is_honoured():
    user = _user("weekly", delivery_day=0)
    assert is_due_today(user, SUNDAY)
    assert not is_due_today(user, MONDAY)


def test_bi_weekly_alternates_between_consecutive_delivery_days():
    user = _user("bi-weekly", delivery_day=1)
    first, second = MONDAY, MONDAY + timedelta(days=7)
    results = [is_due_today(user, first), is_due_today(user, second)]
    assert sorted(results) == [False, True]
    assert is_due_today(user, first) == (epoch_week(first) % 2 == 0)


def test_bi_weekly_requires_matching_weekday():
    user = _user("bi-weekly", delivery_day=1)
    for offset in range(1, 7):
        assert not is_due_today(user, MONDAY + timedelta(days=offset))


def test_monthly_only_on_first_of_month():
    user = _user("monthly")
    assert is_due_today(user, date(2026, 11, 1))
    assert not is_due_today(user, date(2026, 11, 2))


@pytest.mark.parametrize("frequency", ["hourly", "", "Weekly"])
def test_unknown_frequency_is_never_due(frequency):
    assert not is_due_today(_user(frequency), MONDAY)


def test_epoch_week_starts_at_zero():
    assert epoch_week(date(1970, 1, 1)) == 0
    assert epoch_week(date(1970, 1, 8)) == 1
