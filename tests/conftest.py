from __future__ import annotations
import pytest

from helpers import Entry, at, utc
from spans import Interval


@pytest.fixture
def week() -> Interval:
    '''Monday 2018-10-29 to Monday 2018-11-05 in Berlin.'''

    return Interval(at('2018-10-29T00:00'), at('2018-11-05T00:00'))


@pytest.fixture
def entries() -> list[Entry]:
    '''Entries on 2018-11-01 (UTC); 'kind' is the projection level.'''

    return [
        Entry(utc('2018-11-01T05:00'), utc('2018-11-01T11:00'), 0),
        Entry(utc('2018-11-01T06:00'), utc('2018-11-01T08:00'), 1),
        Entry(utc('2018-11-01T07:00'), utc('2018-11-01T08:00'), 2),
        Entry(utc('2018-11-01T12:00'), utc('2018-11-02T01:00'), 0),
        Entry(utc('2018-11-01T12:00'), utc('2018-11-01T13:00'), 1),
        Entry(utc('2018-11-01T15:00'), utc('2018-11-01T19:00'), 3),
        Entry(utc('2018-11-01T16:00'), utc('2018-11-01T17:00'), 2),
        Entry(utc('2018-11-01T19:00'), utc('2018-11-01T20:00'), 0),
    ]


@pytest.fixture
def day_span() -> Interval:
    return Interval(utc('2018-10-30T23:00'), utc('2018-11-01T23:00'))
