from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
import datetime

from timestamp import Timestamp

if TYPE_CHECKING:
    from granularity import Step



class InvalidRange(ValueError):
    '''The start of an interval lies after its end.'''


class InvalidTemporal(ValueError):
    '''A value does not expose usable 'start' and 'end' instants.'''



@runtime_checkable
class Temporal(Protocol):
    '''Anything with a start and an end instant, start <= end.'''

    start: Any
    end: Any



def _field(item: object, name: str) -> object:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _instant(item: object, name: str) -> Timestamp:
    value = _field(item, name)
    if value is None:
        raise InvalidTemporal(
            f'Unknown temporal: \'{name}\' is missing: {item!r}'
        )
    try:
        return Timestamp.coerce(value)
    except ValueError as e:
        raise InvalidTemporal(
            f'Unknown temporal: \'{name}\' is not date-like: {item!r}'
        ) from e


def bounds(item: object) -> tuple[Timestamp, Timestamp]:
    '''Returns the start and end instants of any temporal.'''

    if isinstance(item, Interval):
        return item.start, item.end
    return _instant(item, 'start'), _instant(item, 'end')


def overlap(a: object, b: object) -> bool:
    '''Checks whether two temporals overlap. Touching endpoints do not
    count as an overlap.'''

    a_start, a_end = bounds(a)
    b_start, b_end = bounds(b)
    return a_start < b_end and a_end > b_start



@dataclass(frozen=True)
class Interval:
    '''A half-open span of time '[start; end)'.

    Values are treated as immutable. Every helper returns a new
    interval instead of changing this one.'''


    start: Timestamp
    end: Timestamp


    def __post_init__(self) -> None:
        for name in ('start', 'end'):
            value = getattr(self, name)
            if not isinstance(value, Timestamp):
                try:
                    object.__setattr__(self, name, Timestamp.coerce(value))
                except ValueError as e:
                    raise InvalidTemporal(f'\'{name}\' is not date-like: {value!r}') from e

        if self.start > self.end:
            raise InvalidRange(
                f'The start of the interval ({self.start}) occurs after its end ({self.end}).'
            )


    def __str__(self) -> str:
        return f'[{self.start}; {self.end})'


    @classmethod
    def from_temporal(cls, item: object) -> Interval:
        '''Creates an interval from any value with 'start' and 'end'
        instants, given as attributes or mapping keys.'''

        start, end = bounds(item)
        return cls(start, end)


    @classmethod
    def from_step(cls, start: Timestamp, step: Step, multiplier: int = 1) -> Interval:
        '''Creates the interval covering 'multiplier' steps from 'start'.'''

        return cls(start, step.offset(start, multiplier))


    @classmethod
    def from_offsets(cls, source: object, step: Step, past: int, future: int) -> Interval:
        '''Widens 'source' by 'past' steps into the past and 'future'
        steps into the future.'''

        start, end = bounds(source)
        return cls(step.offset(start, -past), step.offset(end, future))


    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start


    @property
    def mean(self) -> Timestamp:
        '''The instant halfway between start and end.'''

        return self.start + (self.end - self.start) / 2


    def overlaps(self, other: object) -> bool:
        '''Checks whether this interval overlaps the given temporal.'''

        return overlap(self, other)


    def includes(self, value: object) -> bool:
        '''Checks whether an instant or a whole temporal lies within
        this interval. Both bounds are included.'''

        if isinstance(value, (Timestamp, datetime.datetime)):
            moment = Timestamp.coerce(value)
            return self.start <= moment <= self.end

        start, end = bounds(value)
        return self.includes(start) and self.includes(end)


    def truncate(self, bound: object) -> Interval:
        '''Returns this interval clipped to 'bound'.

        Raises 'InvalidRange' if the two are disjoint.'''

        bound_start, bound_end = bounds(bound)
        return Interval(max(self.start, bound_start), min(self.end, bound_end))


    def equal(self, other: object) -> bool:
        '''Checks whether 'other' starts and ends at the same instants.'''

        if other is None:
            return False
        try:
            start, end = bounds(other)
        except InvalidTemporal:
            return False
        return self.start == start and self.end == end


    def each(self, step: Step) -> list[Timestamp]:
        '''Returns the start of every step that touches this interval.'''

        return step.range(step.floor(self.start), step.ceil(self.end))


    def equals_step(self, step: Step) -> bool:
        '''Checks whether this interval is exactly one step long,
        counted from its start.'''

        return Interval.from_step(self.start, step).equal(self)



@dataclass(frozen=True, eq=False)
class Slice(Interval):
    '''A piece of another temporal.

    'origin' points at the temporal the slice was cut from. A slice of
    a slice points at the root temporal, never at the intermediate
    slice. Aggregations store the aggregate value in 'origin'. Slices
    compare by their span only.'''


    origin: Any = field(default=None, compare=False)


    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.origin, Slice):
            object.__setattr__(self, 'origin', self.origin.origin)
