from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import calendar
import datetime
import re

from timestamp import Timestamp



class UnknownUnit(ValueError):
    '''No time unit is known under the given name.'''



_DAY_MS = 24 * 60 * 60 * 1000

# Weeks are counted from the Monday before the Unix epoch.
_EPOCH_MONDAY = datetime.date(1969, 12, 29)

_STEP_RE = re.compile(r'^\s*(?:(\d+)\s*)?([a-z]+?)s?\s*$', re.IGNORECASE)



class TimeUnit(Enum):
    '''A unit of calendar time.

    'milliseconds' is a fixed approximation meant for estimates only;
    months and years vary in length.'''

    MILLISECOND = 'millisecond'
    SECOND = 'second'
    MINUTE = 'minute'
    HOUR = 'hour'
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'


    @classmethod
    def from_name(cls, name: str) -> TimeUnit:
        try:
            return cls(name.strip().lower())
        except (ValueError, AttributeError) as e:
            raise UnknownUnit(f'Unknown time unit name: {name!r}') from e


    @property
    def milliseconds(self) -> float:

        match self:
            case TimeUnit.MILLISECOND:
                return 1
            case TimeUnit.SECOND:
                return 1000
            case TimeUnit.MINUTE:
                return 60 * 1000
            case TimeUnit.HOUR:
                return 60 * 60 * 1000
            case TimeUnit.DAY:
                return _DAY_MS
            case TimeUnit.WEEK:
                return 7 * _DAY_MS
            case TimeUnit.MONTH:
                return 31 * _DAY_MS
            case TimeUnit.YEAR:
                return 365.25 * _DAY_MS

        raise AssertionError(f'Unhandled \'TimeUnit\': {self}.')


    @property
    def is_calendar(self) -> bool:
        '''Calendar units step in wall-clock time of the zone.
        Shorter units step in absolute time.'''

        return self in {TimeUnit.DAY, TimeUnit.WEEK, TimeUnit.MONTH, TimeUnit.YEAR}


    def floor(self, moment: Timestamp) -> Timestamp:
        '''Returns the start of the unit containing 'moment'.'''

        dt = moment.datetime

        match self:
            case TimeUnit.MILLISECOND:
                return Timestamp(dt.replace(microsecond=dt.microsecond // 1000 * 1000))
            case TimeUnit.SECOND:
                return Timestamp(dt.replace(microsecond=0))
            case TimeUnit.MINUTE:
                return Timestamp(dt.replace(second=0, microsecond=0))
            case TimeUnit.HOUR:
                return Timestamp(dt.replace(minute=0, second=0, microsecond=0))
            case TimeUnit.DAY:
                return _midnight(dt.date(), moment)
            case TimeUnit.WEEK:
                return _midnight(dt.date() - datetime.timedelta(days=dt.weekday()), moment)
            case TimeUnit.MONTH:
                return _midnight(dt.date().replace(day=1), moment)
            case TimeUnit.YEAR:
                return _midnight(datetime.date(dt.year, 1, 1), moment)

        raise AssertionError(f'Unhandled \'TimeUnit\': {self}.')


    def offset(self, moment: Timestamp, n: int) -> Timestamp:
        '''Moves 'moment' by 'n' units. The moment is not floored.'''

        dt = moment.datetime

        match self:
            case TimeUnit.MILLISECOND:
                return moment + datetime.timedelta(milliseconds=n)
            case TimeUnit.SECOND:
                return moment + datetime.timedelta(seconds=n)
            case TimeUnit.MINUTE:
                return moment + datetime.timedelta(minutes=n)
            case TimeUnit.HOUR:
                return moment + datetime.timedelta(hours=n)
            case TimeUnit.DAY:
                # Aware datetime arithmetic keeps the wall clock.
                return _normalized(dt + datetime.timedelta(days=n))
            case TimeUnit.WEEK:
                return _normalized(dt + datetime.timedelta(weeks=n))
            case TimeUnit.MONTH:
                return _normalized(_add_months(dt, n))
            case TimeUnit.YEAR:
                return _normalized(_add_months(dt, 12 * n))

        raise AssertionError(f'Unhandled \'TimeUnit\': {self}.')


    def field(self, moment: Timestamp) -> int:
        '''The calendar field a multiplied step aligns on.'''

        dt = moment.datetime

        match self:
            case TimeUnit.MILLISECOND:
                return moment.epoch_ms
            case TimeUnit.SECOND:
                return dt.second
            case TimeUnit.MINUTE:
                return dt.minute
            case TimeUnit.HOUR:
                return dt.hour
            case TimeUnit.DAY:
                return dt.day - 1
            case TimeUnit.WEEK:
                monday = dt.date() - datetime.timedelta(days=dt.weekday())
                return (monday - _EPOCH_MONDAY).days // 7
            case TimeUnit.MONTH:
                return dt.month - 1
            case TimeUnit.YEAR:
                return dt.year

        raise AssertionError(f'Unhandled \'TimeUnit\': {self}.')



def _normalized(dt: datetime.datetime) -> Timestamp:
    # A round trip through UTC moves wall times inside a DST gap
    # to an existing instant.
    tz = dt.tzinfo
    return Timestamp(dt.astimezone(datetime.timezone.utc).astimezone(tz))


def _midnight(day: datetime.date, moment: Timestamp) -> Timestamp:
    return _normalized(datetime.datetime(day.year, day.month, day.day, tzinfo=moment.zone))


def _add_months(dt: datetime.datetime, n: int) -> datetime.datetime:
    '''Adds calendar months, clamping the day to the length of the
    target month.'''

    months = dt.year * 12 + (dt.month - 1) + n
    year, month = divmod(months, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)



@dataclass(frozen=True)
class Step:
    '''A calendar aware granularity such as "1 day" or "2 weeks".

    Instants are aligned on a step if they start a unit and the unit's
    calendar field is divisible by 'multiplier' (for example every
    second Monday counted from the epoch, or every quarter hour).

    Offsetting a multiplied step moves from aligned instant to aligned
    instant. To move a non-aligned instant by whole units use
    'unit_step'.'''


    unit: TimeUnit
    multiplier: int = 1


    _TINY = datetime.timedelta(microseconds=1)


    def __post_init__(self) -> None:
        if not isinstance(self.unit, TimeUnit):
            object.__setattr__(self, 'unit', TimeUnit.from_name(self.unit))
        if not isinstance(self.multiplier, int) or self.multiplier < 1:
            raise ValueError(f'The step multiplier must be a positive integer: {self.multiplier!r}')


    def __str__(self) -> str:
        suffix = 's' if self.multiplier > 1 else ''
        return f'{self.multiplier} {self.unit.value}{suffix}'


    @classmethod
    def from_name(cls, name: str, multiplier: int = 1) -> Step:
        return cls(TimeUnit.from_name(name), multiplier)


    @classmethod
    def parse(cls, text: str) -> Step:
        '''Parses strings like "day", "1 day" or "2 weeks".'''

        m = _STEP_RE.match(str(text))
        if not m:
            raise UnknownUnit(f'Unknown step: {text!r}')
        multiplier = int(m.group(1)) if m.group(1) else 1
        return cls.from_name(m.group(2), multiplier)


    @property
    def milliseconds(self) -> float:
        '''Approximate length of the step, for estimates only.'''

        return self.unit.milliseconds * self.multiplier


    @property
    def unit_step(self) -> Step:
        '''The same step with a multiplier of one.'''

        if self.multiplier == 1:
            return self
        return Step(self.unit, 1)


    def _matches(self, moment: Timestamp) -> bool:
        return self.unit.field(moment) % self.multiplier == 0


    def is_aligned(self, moment: Timestamp) -> bool:
        return self.unit.floor(moment) == moment and self._matches(moment)


    def floor(self, moment: Timestamp) -> Timestamp:
        '''Returns the latest aligned instant <= 'moment'.'''

        moment = Timestamp.coerce(moment)
        result = self.unit.floor(moment)
        while not self._matches(result):
            result = self.unit.floor(result - Step._TINY)
        return result


    def ceil(self, moment: Timestamp) -> Timestamp:
        '''Returns the earliest aligned instant >= 'moment'.'''

        moment = Timestamp.coerce(moment)
        return self.floor(self.offset(self.floor(moment - Step._TINY), 1))


    def round(self, moment: Timestamp) -> Timestamp:
        '''Returns the nearest aligned instant. A tie goes to the later
        one.'''

        moment = Timestamp.coerce(moment)
        lower = self.floor(moment)
        upper = self.ceil(moment)
        return lower if moment - lower < upper - moment else upper


    def offset(self, moment: Timestamp, n: int = 1) -> Timestamp:
        '''Moves 'moment' by 'n' steps (backwards if 'n' is negative).'''

        moment = Timestamp.coerce(moment)
        if self.multiplier == 1:
            return self.unit.offset(moment, n)

        direction = 1 if n > 0 else -1
        for _ in range(abs(n)):
            moment = self.unit.offset(moment, direction)
            while not self._matches(moment):
                moment = self.unit.offset(moment, direction)
        return moment


    def range(self, start: Timestamp, stop: Timestamp) -> list[Timestamp]:
        '''Returns every aligned instant in '[start; stop)'.'''

        current = self.ceil(start)
        stop = Timestamp.coerce(stop)
        result: list[Timestamp] = []
        while current < stop:
            result.append(current)
            current = self.offset(current, 1)
        return result



QUARTER_HOUR = Step(TimeUnit.MINUTE, 15)
ONE_HOUR = Step(TimeUnit.HOUR)
ONE_DAY = Step(TimeUnit.DAY)
TWO_DAYS = Step(TimeUnit.DAY, 2)
ONE_WEEK = Step(TimeUnit.WEEK)
TWO_WEEKS = Step(TimeUnit.WEEK, 2)
FOUR_WEEKS = Step(TimeUnit.WEEK, 4)
ONE_MONTH = Step(TimeUnit.MONTH)
ONE_YEAR = Step(TimeUnit.YEAR)
