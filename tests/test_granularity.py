from __future__ import annotations

import pytest

from granularity import (
    FOUR_WEEKS,
    ONE_DAY,
    ONE_HOUR,
    ONE_MONTH,
    ONE_WEEK,
    ONE_YEAR,
    QUARTER_HOUR,
    TWO_DAYS,
    TWO_WEEKS,
    Step,
    TimeUnit,
    UnknownUnit,
)
from helpers import at


SUNDAY_NIGHT = '2018-10-28T23:23'


def test_unit_lookup_by_name():
    assert TimeUnit.from_name('week') is TimeUnit.WEEK
    assert TimeUnit.from_name('Day') is TimeUnit.DAY
    with pytest.raises(UnknownUnit):
        TimeUnit.from_name('fortnight')


def test_approximate_milliseconds():
    assert TimeUnit.MINUTE.milliseconds == 60_000
    assert ONE_WEEK.milliseconds == 7 * 24 * 60 * 60 * 1000
    assert TWO_DAYS.milliseconds == 2 * ONE_DAY.milliseconds
    assert ONE_MONTH.milliseconds == 31 * 24 * 60 * 60 * 1000


def test_invalid_multiplier():
    with pytest.raises(ValueError):
        Step(TimeUnit.DAY, 0)


@pytest.mark.parametrize('text, expected', [
    ('day', ONE_DAY),
    ('1 day', ONE_DAY),
    ('2 weeks', TWO_WEEKS),
    ('15 minutes', QUARTER_HOUR),
    ('1 year', ONE_YEAR),
])
def test_parse(text, expected):
    assert Step.parse(text) == expected


def test_parse_unknown():
    with pytest.raises(UnknownUnit):
        Step.parse('3 moons')
    with pytest.raises(UnknownUnit):
        Step.from_name('lightyear')


def test_unit_step_drops_multiplier():
    assert TWO_WEEKS.unit_step == ONE_WEEK
    assert ONE_WEEK.unit_step is ONE_WEEK


def test_floor_to_monday():
    assert ONE_WEEK.floor(at(SUNDAY_NIGHT)) == at('2018-10-22T00:00')


def test_round_to_next_day_across_dst():
    # 2018-10-28 has 25 hours in Berlin.
    assert ONE_DAY.round(at(SUNDAY_NIGHT)) == at('2018-10-29T00:00')


def test_round_two_weeks():
    assert TWO_WEEKS.round(at(SUNDAY_NIGHT)) == at('2018-10-29T00:00')


def test_ceil_keeps_aligned_instants():
    monday = at('2018-10-29T00:00')

    assert ONE_WEEK.ceil(monday) == monday
    assert ONE_WEEK.ceil(at('2018-10-29T00:01')) == at('2018-11-05T00:00')
    assert ONE_DAY.ceil(at('2018-11-01T12:00')) == at('2018-11-02T00:00')


def test_day_offset_keeps_wall_clock_over_dst():
    start = at('2018-10-27T00:00')

    later = ONE_DAY.offset(start, 2)

    assert later == at('2018-10-29T00:00')
    assert later - start == ONE_HOUR.offset(start, 49) - start


def test_hour_offset_is_absolute():
    start = at('2018-10-28T00:00')

    assert ONE_HOUR.offset(start, 24) == at('2018-10-28T23:00')


def test_month_offset_clamps_day():
    assert ONE_MONTH.offset(at('2019-01-31T10:00'), 1) == at('2019-02-28T10:00')
    assert ONE_YEAR.offset(at('2020-02-29T00:00'), 1) == at('2021-02-28T00:00')
    assert ONE_MONTH.offset(at('2019-01-15T00:00'), -2) == at('2018-11-15T00:00')


def test_range_is_half_open():
    days = ONE_DAY.range(at('2018-10-29T00:00'), at('2018-11-05T00:00'))

    assert len(days) == 7
    assert days[0] == at('2018-10-29T00:00')
    assert days[-1] == at('2018-11-04T00:00')
    assert ONE_DAY.range(at('2018-10-29T00:00'), at('2018-10-29T00:00')) == []


def test_range_starts_at_ceil():
    assert ONE_DAY.range(at('2018-10-29T10:00'), at('2018-10-31T10:00')) == [
        at('2018-10-30T00:00'),
        at('2018-10-31T00:00'),
    ]


def test_quarter_hours():
    moment = at('2018-11-01T10:07:30')

    assert QUARTER_HOUR.floor(moment) == at('2018-11-01T10:00')
    assert QUARTER_HOUR.ceil(moment) == at('2018-11-01T10:15')
    assert QUARTER_HOUR.round(moment) == at('2018-11-01T10:15')
    assert len(QUARTER_HOUR.range(at('2018-11-01T10:00'), at('2018-11-01T11:00'))) == 4


def test_two_day_step_aligns_on_day_of_month():
    # Odd days of the month (day - 1 divisible by two) are aligned.
    assert TWO_DAYS.floor(at('2018-11-04T12:00')) == at('2018-11-03T00:00')
    assert TWO_DAYS.offset(at('2018-11-03T00:00'), 1) == at('2018-11-05T00:00')


def test_multiplied_weeks_need_unit_step_for_unaligned_mondays():
    # 2018-10-29 is on the two-week grid, 2018-11-05 is not.
    unaligned = at('2018-11-05T00:00')

    assert TWO_WEEKS.is_aligned(at('2018-10-29T00:00'))
    assert not TWO_WEEKS.is_aligned(unaligned)
    assert TWO_WEEKS.offset(unaligned, 1) == at('2018-11-12T00:00')
    assert TWO_WEEKS.unit_step.offset(unaligned, 2) == at('2018-11-19T00:00')


def test_four_weeks_floor():
    floored = FOUR_WEEKS.floor(at('2018-11-20T12:00'))

    assert FOUR_WEEKS.is_aligned(floored)
    assert floored.datetime.weekday() == 0
    assert at('2018-11-20T12:00') - floored < FOUR_WEEKS.unit_step.offset(floored, 4) - floored


def test_month_and_year_floor():
    moment = at('2018-11-20T12:00')

    assert ONE_MONTH.floor(moment) == at('2018-11-01T00:00')
    assert ONE_YEAR.floor(moment) == at('2018-01-01T00:00')
    assert Step(TimeUnit.MONTH, 3).floor(moment) == at('2018-10-01T00:00')
