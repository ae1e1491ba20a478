from datetime import datetime, timedelta

import pytest

from kiosk_app.lib.constants import Period
from kiosk_app.lib.models.dto import EPOCH, ResetStateDTO
from kiosk_app.lib.services.counter_service import apply_check_in, period_start

from conftest import KL


def at(*args):
    return datetime(*args, tzinfo=KL)


def test_period_starts_for_a_wednesday():
    now = at(2024, 5, 15, 10, 30, 12)
    assert period_start(now, Period.DAILY) == at(2024, 5, 15)
    assert period_start(now, Period.WEEKLY) == at(2024, 5, 12)
    assert period_start(now, Period.MONTHLY) == at(2024, 5, 1)
    assert period_start(now, Period.YEARLY) == at(2024, 1, 1)


def test_week_starts_on_sunday():
    assert period_start(at(2024, 5, 12, 9, 0), Period.WEEKLY) == at(2024, 5, 12)
    assert period_start(at(2024, 5, 18, 23, 59), Period.WEEKLY) == at(2024, 5, 12)
    assert period_start(at(2024, 5, 19, 0, 0), Period.WEEKLY) == at(2024, 5, 19)


def test_week_can_start_in_previous_year():
    assert period_start(at(2025, 1, 1, 8, 0), Period.WEEKLY) == at(2024, 12, 29)


def test_first_check_in_starts_every_counter():
    state, numbers = apply_check_in(ResetStateDTO(), at(2024, 5, 15, 10, 30))

    assert numbers == {Period.DAILY: 1, Period.WEEKLY: 1, Period.MONTHLY: 1, Period.YEARLY: 1}
    assert state.last_daily_reset == at(2024, 5, 15)
    assert state.last_weekly_reset == at(2024, 5, 12)
    assert state.last_monthly_reset == at(2024, 5, 1)
    assert state.last_yearly_reset == at(2024, 1, 1)


def test_first_check_in_counts_the_whole_group():
    _, numbers = apply_check_in(ResetStateDTO(), at(2024, 5, 15, 10, 30), group_size=25)
    assert set(numbers.values()) == {25}


def test_numbers_increase_by_group_size_within_a_period():
    state = ResetStateDTO()
    now = at(2024, 5, 15, 9, 0)
    expected = 0
    for size in [1, 3, 1, 12, 2]:
        state, numbers = apply_check_in(state, now, size)
        expected += size
        assert numbers[Period.DAILY] == expected
        assert numbers[Period.YEARLY] == expected
        now += timedelta(minutes=17)


def test_midnight_resets_only_the_daily_counter():
    state = ResetStateDTO()
    state, _ = apply_check_in(state, at(2024, 5, 15, 10, 0))
    state, _ = apply_check_in(state, at(2024, 5, 15, 23, 59))

    state, numbers = apply_check_in(state, at(2024, 5, 16, 0, 1), group_size=5)

    assert numbers[Period.DAILY] == 5
    assert numbers[Period.WEEKLY] == 7
    assert numbers[Period.MONTHLY] == 7
    assert numbers[Period.YEARLY] == 7
    assert state.last_daily_reset == at(2024, 5, 16)


def test_sunday_resets_the_weekly_counter():
    state, _ = apply_check_in(ResetStateDTO(), at(2024, 5, 18, 16, 0))
    state, numbers = apply_check_in(state, at(2024, 5, 19, 9, 0))

    assert numbers[Period.DAILY] == 1
    assert numbers[Period.WEEKLY] == 1
    assert numbers[Period.MONTHLY] == 2


def test_first_of_month_resets_monthly_but_not_weekly():
    # Friday 31 May then Saturday 1 June, same week
    state, _ = apply_check_in(ResetStateDTO(), at(2024, 5, 31, 15, 0), group_size=4)
    state, numbers = apply_check_in(state, at(2024, 6, 1, 10, 0))

    assert numbers[Period.DAILY] == 1
    assert numbers[Period.WEEKLY] == 5
    assert numbers[Period.MONTHLY] == 1
    assert numbers[Period.YEARLY] == 5


def test_new_year_resets_yearly_counter():
    # Tuesday 31 Dec then Wednesday 1 Jan, the week began on Sunday 29 Dec
    state, _ = apply_check_in(ResetStateDTO(), at(2024, 12, 31, 12, 0), group_size=2)
    state, numbers = apply_check_in(state, at(2025, 1, 1, 12, 0))

    assert numbers == {Period.DAILY: 1, Period.WEEKLY: 3, Period.MONTHLY: 1, Period.YEARLY: 1}
    assert state.last_yearly_reset == at(2025, 1, 1)


def test_reset_counts_from_the_triggering_group():
    state, _ = apply_check_in(ResetStateDTO(), at(2024, 5, 15, 10, 0), group_size=40)
    _, numbers = apply_check_in(state, at(2024, 5, 16, 8, 0), group_size=30)
    assert numbers[Period.DAILY] == 30


def test_input_state_is_not_mutated():
    state = ResetStateDTO()
    apply_check_in(state, at(2024, 5, 15, 10, 0), group_size=3)

    assert state.current_daily_count == 0
    assert state.last_daily_reset == EPOCH


def test_group_size_must_be_positive():
    with pytest.raises(ValueError):
        apply_check_in(ResetStateDTO(), at(2024, 5, 15, 10, 0), group_size=0)


def test_naive_marker_is_read_in_local_time():
    state = ResetStateDTO(
        last_daily_reset=datetime(2024, 5, 15, 0, 0),
        last_weekly_reset=datetime(2024, 5, 12, 0, 0),
        last_monthly_reset=datetime(2024, 5, 1, 0, 0),
        last_yearly_reset=datetime(2024, 1, 1, 0, 0),
        current_daily_count=7,
        current_weekly_count=9,
        current_monthly_count=20,
        current_yearly_count=300,
    )
    _, numbers = apply_check_in(state, at(2024, 5, 15, 10, 30))
    assert numbers == {Period.DAILY: 8, Period.WEEKLY: 10, Period.MONTHLY: 21, Period.YEARLY: 301}
