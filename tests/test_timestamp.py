from __future__ import annotations
import datetime
import zoneinfo

import pytest

from helpers import at
from timestamp import Timestamp


def test_requires_zoneinfo_zone():
    with pytest.raises(ValueError):
        Timestamp(datetime.datetime(2018, 11, 1, 12, 0))
    with pytest.raises(ValueError):
        Timestamp(datetime.datetime(2018, 11, 1, 12, 0, tzinfo=datetime.timezone.utc))


def test_compares_in_utc():
    berlin = at('2018-11-01T13:00')
    london = berlin.to_timezone('Europe/London')

    assert berlin == london
    assert hash(berlin) == hash(london)
    assert london.datetime.hour == 12
    assert berlin < at('2018-11-01T13:01')


def test_from_utc():
    ts = Timestamp.from_utc('2018-11-01T05:00:00Z')

    assert ts.timezone_iana == 'Etc/UTC'
    assert ts.utc_iso == '2018-11-01T05:00:00Z'
    with pytest.raises(ValueError):
        Timestamp.from_utc('2018-11-01T05:00:00+01:00')
    with pytest.raises(ValueError):
        Timestamp.from_utc('yesterday')


def test_from_datetime_variants():
    naive = datetime.datetime(2018, 11, 1, 6, 30)
    fixed = datetime.datetime(2018, 11, 1, 6, 30, tzinfo=datetime.timezone(datetime.timedelta(hours=2)))

    assert Timestamp.from_datetime(naive, 'Europe/Berlin').datetime.utcoffset() == datetime.timedelta(hours=1)
    assert Timestamp.from_datetime(fixed).timezone_iana == 'Etc/UTC'
    assert Timestamp.from_datetime(fixed) == Timestamp.from_utc('2018-11-01T04:30')
    assert Timestamp.from_datetime(fixed, 'Europe/Berlin').timezone_iana == 'Europe/Berlin'


def test_from_datetime_resolves_dst_gap():
    # 02:30 does not exist in Berlin on 2019-03-31.
    ts = Timestamp.from_datetime(datetime.datetime(2019, 3, 31, 2, 30), 'Europe/Berlin')

    assert ts.datetime.hour == 3


def test_coerce():
    ts = at('2018-11-01T06:30')

    assert Timestamp.coerce(ts) is ts
    assert Timestamp.coerce(ts.datetime) == ts
    with pytest.raises(ValueError):
        Timestamp.coerce('2018-11-01')


def test_arithmetic_is_absolute():
    # Berlin leaves DST in the night to 2018-10-28.
    start = at('2018-10-28T00:00')
    later = start + datetime.timedelta(hours=24)

    assert later.datetime.hour == 23
    assert later - start == datetime.timedelta(hours=24)
    assert later - datetime.timedelta(hours=24) == start


def test_epoch_ms_round_trip():
    ts = Timestamp.from_epoch_ms(1541048400123, 'Europe/Berlin')

    assert ts.epoch_ms == 1541048400123
    assert ts.zone == zoneinfo.ZoneInfo('Europe/Berlin')


def test_invalid_zone_name():
    with pytest.raises(ValueError):
        at('2018-11-01T06:30').to_timezone('Mars/Olympus_Mons')
