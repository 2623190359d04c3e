from __future__ import annotations
from dataclasses import dataclass
from functools import total_ordering
from typing import overload
import datetime
import zoneinfo
import tzlocal
import sys



@dataclass(frozen=True)
@total_ordering
class Timestamp:
    '''An instant on the time axis, kept in the time zone it belongs to.

    Wraps an aware datetime whose 'tzinfo' is a 'zoneinfo.ZoneInfo'.
    Ordering, equality and hashing use absolute (UTC) time, while
    calendar arithmetic (days, weeks, months) is done in the wall clock
    of the stored zone.

    Notes:
    - Dependency: 'tzlocal' (for detecting the local IANA zone name
      when a naive datetime is coerced).'''


    _UTC = zoneinfo.ZoneInfo('Etc/UTC')    # UTC time zone.
    _EPOCH = datetime.datetime(1970, 1, 1, tzinfo=_UTC)
    _ONE_MS = datetime.timedelta(milliseconds=1)


    _dt: datetime.datetime


    @staticmethod
    def _is_valid_dt(dt: datetime.datetime) -> bool:
        '''Checks that the datetime carries a usable 'ZoneInfo' zone.'''

        if not isinstance(dt, datetime.datetime) or dt.tzinfo is None:
            return False
        try:
            utc_off = dt.tzinfo.utcoffset(dt)
        except Exception:
            return False
        return utc_off is not None and isinstance(dt.tzinfo, zoneinfo.ZoneInfo)


    def __post_init__(self) -> None:
        if not Timestamp._is_valid_dt(self._dt):
            raise ValueError('The time zone has been set incorrectly.')


    def __str__(self) -> str:
        return f'{self.datetime_iso}, {self.timezone_iana}'


    def __repr__(self) -> str:
        return f'Timestamp({self.datetime_iso!r}, {self.timezone_iana!r})'


    def __eq__(self, other: object) -> bool:
        '''Compares two timestamps in UTC.'''

        if not isinstance(other, Timestamp):
            return NotImplemented

        return self._dt.astimezone(Timestamp._UTC) == other._dt.astimezone(Timestamp._UTC)


    def __hash__(self) -> int:
        return hash(self._dt.astimezone(Timestamp._UTC))


    def __lt__(self, other: object) -> bool:
        '''Less-than comparison based on absolute (UTC) time.'''

        if not isinstance(other, Timestamp):
            return NotImplemented

        return self._dt.astimezone(Timestamp._UTC) < other._dt.astimezone(Timestamp._UTC)


    def __add__(self, other: datetime.timedelta) -> Timestamp:
        '''Absolute time shift by the given amount.'''

        if not isinstance(other, datetime.timedelta):
            return NotImplemented

        tz = self._dt.tzinfo
        dt_utc = self._dt.astimezone(Timestamp._UTC) + other
        return Timestamp(dt_utc.astimezone(tz))


    @overload
    def __sub__(self, other: datetime.timedelta) -> Timestamp: ...


    @overload
    def __sub__(self, other: Timestamp) -> datetime.timedelta: ...


    def __sub__(self, other: datetime.timedelta | Timestamp) -> Timestamp | datetime.timedelta:
        '''The shift of a timestamp back by a given amount,
        or the difference between two timestamps.'''

        if isinstance(other, datetime.timedelta):
            return self + (-other)

        if isinstance(other, Timestamp):
            return self._dt.astimezone(Timestamp._UTC) - other._dt.astimezone(Timestamp._UTC)

        return NotImplemented


    @classmethod
    def from_utc(cls, dt_iso: str) -> Timestamp:
        '''Parse an ISO 8601 string and return a 'Timestamp' in UTC.

        Naive strings are assumed to be UTC. Strings with a non-zero
        offset are rejected.'''

        # 'fromisoformat' only accepts the 'Z' suffix from Python 3.11 on.
        if sys.version_info < (3, 11) and dt_iso.endswith('Z'):
            dt_iso = dt_iso[:-1] + '+00:00'

        try:
            dt = datetime.datetime.fromisoformat(dt_iso)
        except ValueError as e:
            raise ValueError(f'Invalid ISO 8601 datetime string: {dt_iso}') from e

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=Timestamp._UTC)
        else:
            if dt.utcoffset() != datetime.timedelta(0):
                raise ValueError(f"The timestamp '{dt_iso}' is not in UTC.")
            dt = dt.astimezone(Timestamp._UTC)

        return cls(dt)


    @classmethod
    def from_datetime(cls, dt: datetime.datetime, timezone_iana: str | None = None) -> Timestamp:
        '''Creates a timestamp from any datetime.

        A naive datetime is read as wall-clock time of 'timezone_iana'
        (the local zone if omitted). An aware datetime with a zone
        other than 'ZoneInfo' is converted to UTC, unless 'timezone_iana'
        names the zone to convert it to.'''

        if not isinstance(dt, datetime.datetime):
            raise ValueError(f'Not a datetime: {dt!r}')

        tz = Timestamp.zone_for(timezone_iana) if timezone_iana else None

        if dt.tzinfo is None:
            tz = tz or Timestamp.local_zone()
            # Round trip through UTC to resolve wall times that fall
            # into a DST gap.
            return cls(dt.replace(tzinfo=tz).astimezone(Timestamp._UTC).astimezone(tz))

        if tz is not None:
            return cls(dt.astimezone(tz))

        if isinstance(dt.tzinfo, zoneinfo.ZoneInfo):
            return cls(dt)

        return cls(dt.astimezone(Timestamp._UTC))


    @classmethod
    def coerce(cls, value: object) -> Timestamp:
        '''Returns 'value' as a timestamp. Accepts timestamps and
        datetimes.'''

        if isinstance(value, Timestamp):
            return value
        if isinstance(value, datetime.datetime):
            return cls.from_datetime(value)
        raise ValueError(f'Not a date-like value: {value!r}')


    @classmethod
    def from_epoch_ms(cls, ms: int, timezone_iana: str = 'Etc/UTC') -> Timestamp:
        '''Creates a timestamp from milliseconds since the Unix epoch.'''

        dt_utc = Timestamp._EPOCH + datetime.timedelta(milliseconds=ms)
        return cls(dt_utc.astimezone(Timestamp.zone_for(timezone_iana)))


    @staticmethod
    def local_zone() -> zoneinfo.ZoneInfo:
        return zoneinfo.ZoneInfo(tzlocal.get_localzone_name())


    @staticmethod
    def zone_for(timezone_iana: str) -> zoneinfo.ZoneInfo:
        '''Resolves an IANA name. The name 'local' stands for the zone
        of this machine.'''

        if timezone_iana == 'local':
            return Timestamp.local_zone()
        try:
            return zoneinfo.ZoneInfo(timezone_iana)
        except Exception as e:
            # 'ZoneInfo' raises 'ZoneInfoNotFoundError' (subclass
            # of Exception) on bad names.
            raise ValueError(f'Invalid IANA time zone: {timezone_iana}') from e


    @property
    def datetime(self) -> datetime.datetime:
        return self._dt


    @property
    def datetime_iso(self) -> str:
        '''Returns the timestamp in ISO 8601 format in its own zone.'''

        return self._dt.isoformat()


    @property
    def zone(self) -> zoneinfo.ZoneInfo:
        assert isinstance(self._dt.tzinfo, zoneinfo.ZoneInfo)
        return self._dt.tzinfo


    @property
    def timezone_iana(self) -> str:
        '''Returns the time zone of this timestamp in IANA format.'''

        return self.zone.key


    @property
    def epoch_ms(self) -> int:
        '''Whole milliseconds since the Unix epoch.'''

        return (self._dt - Timestamp._EPOCH) // Timestamp._ONE_MS


    def to_timezone(self, timezone_iana: str) -> Timestamp:
        '''Creates a new timestamp by converting this one to
        the specified time zone.'''

        return Timestamp(self._dt.astimezone(Timestamp.zone_for(timezone_iana)))


    @property
    def utc_iso(self) -> str:
        '''Returns an ISO 8601 string in UTC.'''

        dt_utc = self._dt.astimezone(Timestamp._UTC)
        return dt_utc.replace(tzinfo=None).isoformat() + 'Z'
