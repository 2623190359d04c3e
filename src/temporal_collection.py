from __future__ import annotations
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum, auto
from functools import reduce
from typing import Any

from spans import Slice, bounds, overlap
from timestamp import Timestamp


LevelFn = Callable[[Any], int]
AggregateFn = Callable[[Any, Any], Any]



@dataclass(frozen=True)
class BoundaryMark:
    '''The start or the end of a temporal, as seen by a sweep line.

    'instant' is already clipped to the swept span.'''


    class Kind(Enum):
        START = auto()
        END = auto()


    instant: Timestamp
    origin: Any
    kind: Kind
    level: int = 0



class Collection:
    '''An ordered list of temporals with overlap queries, slicing,
    projection and aggregation.

    The order of the items is kept in every result but has no meaning
    for the algorithms themselves.'''


    def __init__(self, items: Iterable[Any] | None = None):
        self._items: list[Any] = list(items) if items is not None else []


    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._items!r})'


    def __len__(self) -> int:
        return len(self._items)


    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)


    def __getitem__(self, index: int) -> Any:
        return self._items[index]


    @property
    def items(self) -> list[Any]:
        return self._items


    @property
    def size(self) -> int:
        return len(self._items)


    def query(self, span: object) -> Collection:
        '''Returns a new collection with the items that overlap 'span'.
        The items themselves are not sliced.'''

        return Collection(item for item in self._items if overlap(item, span))


    def truncate(self, span: object) -> Collection:
        '''Returns a new collection of slices: every item overlapping
        'span', clipped to it. Other items are dropped.'''

        span_start, span_end = bounds(span)
        result = []
        for item in self._items:
            start, end = bounds(item)
            if start < span_end and end > span_start:
                result.append(Slice(max(start, span_start), min(end, span_end), item))
        return Collection(result)


    def add(self, item: Any) -> Collection:
        '''Returns a new collection with 'item' appended.

        The list of this collection is replaced as well, so always
        continue with the returned collection.'''

        self._items = [*self._items, item]
        return Collection(self._items)


    def remove(self, item: Any) -> Collection:
        '''Returns a new collection without 'item' (compared by
        identity).

        The list of this collection is replaced as well, so always
        continue with the returned collection.'''

        self._items = [i for i in self._items if i is not item]
        return Collection(self._items)


    def filter(self, predicate: Callable[[Any], bool]) -> Collection:
        return Collection(item for item in self._items if predicate(item))


    def reduce(self, function: Callable[[Any, Any], Any], *initial: Any) -> Any:
        return reduce(function, self._items, *initial)


    def project(self, span: object, level_fn: LevelFn | None = None) -> Collection:
        '''Stacks the items inside 'span' into non-overlapping slices.

        'level_fn' maps an item (the root item for slices) to its level.
        An item with a higher level is shown on top of items with lower
        levels. Among items of the same level the one opened last wins.
        Without 'level_fn' all items are on level 0.

        Each resulting slice points at the item visible in its range.'''

        marks = self._create_marks(span, level_fn)
        return _projection_slices(marks)


    def aggregate(
        self,
        span: object,
        aggregate_fn: AggregateFn | None = None,
        start_value: Any = None
    ) -> Collection:
        '''Builds a piecewise constant aggregation of the items inside
        'span'.

        'aggregate_fn(aggregation, item)' is called with the item when it
        starts and with 'None' when it ends. Without it the slices
        count the items active at the same time. The aggregate value of
        a slice is stored in its 'origin'.'''

        if start_value is None and aggregate_fn is None:
            start_value = 0
        marks = self._create_marks(span)
        return _aggregation_slices(marks, aggregate_fn, start_value)


    def _create_marks(self, span: object, level_fn: LevelFn | None = None) -> list[BoundaryMark]:
        '''Creates a start and an end mark for every item overlapping
        'span', clipped to it and sorted by time.'''

        span_start, span_end = bounds(span)
        marks: list[BoundaryMark] = []

        for item in self._items:
            start, end = bounds(item)
            if not (start < span_end and end > span_start):
                continue

            root = item.origin if isinstance(item, Slice) else item
            level = level_fn(root) if level_fn else 0

            marks.append(BoundaryMark(max(start, span_start), item, BoundaryMark.Kind.START, level))
            marks.append(BoundaryMark(min(end, span_end), item, BoundaryMark.Kind.END, level))

        # Stable, so simultaneous marks keep the item order.
        marks.sort(key=lambda mark: mark.instant)
        return marks



def _add_slice(result: list[Slice], start: Timestamp, end: Timestamp, origin: Any) -> None:
    # Zero-length slices are dropped.
    if end > start:
        result.append(Slice(start, end, origin))


def _projection_slices(marks: list[BoundaryMark]) -> Collection:
    result: list[Slice] = []
    # One stack per level, since items of the same level may overlap.
    # The top of the highest stack is the visible item.
    level_stacks: dict[int, list[BoundaryMark]] = {}
    time: Timestamp | None = None

    for mark in marks:
        pending = level_stacks[max(level_stacks)][-1] if level_stacks else None

        if mark.kind is BoundaryMark.Kind.START:
            if pending is None:
                time = mark.instant
            elif pending.level <= mark.level:
                # The new item covers the pending one from here on.
                _add_visible_slice(result, time, mark.instant, pending.origin)
                time = mark.instant

            level_stacks.setdefault(mark.level, []).append(mark)
            continue

        stack = level_stacks.get(mark.level, [])
        position = next(
            (i for i in reversed(range(len(stack))) if stack[i].origin is mark.origin),
            None
        )
        if position is None:
            raise AssertionError(f'End mark without a start mark: {mark}.')

        if stack[position] is pending:
            _add_visible_slice(result, time, mark.instant, mark.origin)
            time = mark.instant

        del stack[position]
        if not stack:
            del level_stacks[mark.level]

    return Collection(result)


def _add_visible_slice(result: list[Slice], start: Timestamp | None, end: Timestamp, origin: Any) -> None:
    if start is None:
        raise AssertionError(f'The visible item {origin!r} has no start.')
    _add_slice(result, start, end, origin)


def _aggregation_slices(marks: list[BoundaryMark], aggregate_fn: AggregateFn | None, start_value: Any) -> Collection:
    result: list[Slice] = []
    aggregation = start_value
    # The slice currently open: its start and its aggregate value.
    open_slice: tuple[Timestamp, Any] | None = None
    active = 0

    for mark in marks:
        if open_slice is not None:
            _add_slice(result, open_slice[0], mark.instant, open_slice[1])
            open_slice = None

        if mark.kind is BoundaryMark.Kind.START:
            aggregation = aggregate_fn(aggregation, mark.origin) if aggregate_fn else aggregation + 1
            active += 1
            open_slice = (mark.instant, aggregation)
        else:
            aggregation = aggregate_fn(aggregation, None) if aggregate_fn else aggregation - 1
            active -= 1
            if active > 0:
                open_slice = (mark.instant, aggregation)

    return Collection(result)
