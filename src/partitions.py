from __future__ import annotations
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, Generic, TypeVar
import structlog

from granularity import ONE_DAY, Step
from spans import Interval, bounds
from temporal_collection import Collection, LevelFn
from timestamp import Timestamp


logger = structlog.get_logger()



def symmetric_difference(a: Sequence[Any], b: Sequence[Any]) -> list[Any]:
    '''Items that are in exactly one of the two lists, compared by
    identity. Items of 'a' come first, each list keeps its order.'''

    ids_a = {id(item) for item in a}
    ids_b = {id(item) for item in b}
    result: list[Any] = []
    seen: set[int] = set()
    for item, other_ids in [*((i, ids_b) for i in a), *((i, ids_a) for i in b)]:
        if id(item) in other_ids or id(item) in seen:
            continue
        seen.add(id(item))
        result.append(item)
    return result



class Partition(Collection):
    '''The temporals touching one step of a 'PartitionMap'.

    'index' is the position of the partition in the map it was created
    for; a later map sharing the partition may hold it at another
    position. 'commit()' is called by the map once the partition has been
    filled; 'on_commit' can attach derived state at that point.'''


    def __init__(
        self,
        start: Timestamp,
        step: Step,
        index: int,
        on_commit: Callable[[Partition], None] | None = None
    ):
        super().__init__()
        span = Interval.from_step(start, step)
        self.start: Timestamp = span.start
        self.end: Timestamp = span.end
        self.step = step
        self.index = index
        self._on_commit = on_commit
        self._projections: dict[LevelFn | None, Collection] = {}


    def __repr__(self) -> str:
        return f'Partition({self.index}, [{self.start}; {self.end}), {len(self)} items)'


    @property
    def span(self) -> Interval:
        return Interval(self.start, self.end)


    def get_projection(self, level_fn: LevelFn | None = None) -> Collection:
        '''Returns the projection of the items over this partition.
        Computed once per level function.'''

        if level_fn not in self._projections:
            self._projections[level_fn] = self.project(self, level_fn)
        return self._projections[level_fn]


    def commit(self) -> None:
        '''Called once after the partition has been filled.'''

        if self._on_commit is not None:
            self._on_commit(self)


    def _fill(self, items: Iterable[Any]) -> None:
        # Only used by the map while the partition is not shared yet.
        self._items = list(items)
        self._projections.clear()



P = TypeVar('P', bound=Partition)
PartitionFactory = Callable[[Timestamp, Step, int], P]



class PartitionMap(Generic[P]):
    '''Splits a bounding interval into partitions of one step each and
    keeps every temporal of its content in the partitions it overlaps.

    Maps are never changed once built. 'set_valid_timespan' and
    'set_content' return new maps that share every partition the change
    does not touch.'''


    def __init__(
        self,
        partition_factory: PartitionFactory = Partition,
        step: Step = ONE_DAY,
        bound: object | None = None,
        content: Iterable[Any] | None = None
    ):
        self._factory = partition_factory
        self._step = step
        self._partitions: list[P] = []
        # Partition start -> position in '_partitions'.
        self._index: dict[Timestamp, int] = {}
        self._bound: Interval | None = None
        self._content: list[Any] = list(content) if content is not None else []

        if bound is None:
            # Without a bound the map has no partitions; it serves as a
            # template for clones.
            return

        self._bound = Interval.from_temporal(bound)
        for i, key in enumerate(self._boundary_keys(self._bound)):
            self._partitions.append(partition_factory(key, step, i))
            self._index[key] = i

        for item in self._content:
            for key in self.affected_keys(item):
                position = self._index.get(key)
                if position is not None:
                    self._partitions[position].items.append(item)

        for partition in self._partitions:
            partition.commit()


    def __len__(self) -> int:
        return len(self._partitions)


    def __iter__(self) -> Iterator[P]:
        return iter(self._partitions)


    def __getitem__(self, index: int) -> P:
        return self._partitions[index]


    def __repr__(self) -> str:
        return f'PartitionMap({self._step}, {self._bound}, {len(self._partitions)} partitions)'


    @property
    def partitions(self) -> tuple[P, ...]:
        return tuple(self._partitions)


    @property
    def step(self) -> Step:
        return self._step


    @property
    def valid_timespan(self) -> Interval | None:
        return self._bound


    @property
    def content(self) -> tuple[Any, ...]:
        return tuple(self._content)


    def index_of(self, moment: Timestamp) -> int | None:
        '''Returns the position of the partition containing 'moment'.'''

        return self._index.get(self._step.floor(moment))


    def partition_at(self, moment: Timestamp) -> P | None:
        position = self.index_of(moment)
        return None if position is None else self._partitions[position]


    def clone(self) -> PartitionMap[P]:
        '''Returns an empty map with the same factory and step.'''

        return PartitionMap(self._factory, self._step)


    def set_valid_timespan(self, value: object | None) -> PartitionMap[P]:
        '''Returns a map over the new bounding interval with this map's
        content, or this map if the bound does not change.

        Partitions lying inside both the old and the new bound are
        shared with the new map, even if their position changes.'''

        if value is None or (self._bound is not None and self._bound.equal(value)):
            return self

        state = self.clone()
        state._bound = Interval.from_temporal(value)

        keys = state._boundary_keys(state._bound)
        known: set[Timestamp] = set()

        for i, key in enumerate(keys):
            previous = self._index.get(key)
            old = self._partitions[previous] if previous is not None else None

            # Items are clipped to the bound, so a partition sticking out
            # of either bound may gain or lose items.
            if old is not None and self._bound.includes(old) and state._bound.includes(old):
                partition = old
                known.add(key)
            else:
                partition = state._factory(key, state._step, i)
                partition.commit()

            state._partitions.append(partition)
            state._index[key] = i

        logger.debug(
            'partition_map_bound_changed',
            partitions=len(keys),
            reused=len(known),
            fresh=len(keys) - len(known),
        )

        return state._set_content(self._content, skip=known)


    def set_content(self, value: Iterable[Any] | None) -> PartitionMap[P]:
        '''Returns a map holding 'value' as its content, or this map if
        the content does not change.

        Only partitions touched by added or removed items are rebuilt.'''

        if value is None:
            return self
        return self._set_content(list(value))


    def _set_content(self, value: list[Any], skip: set[Timestamp] | None = None) -> PartitionMap[P]:
        '''Applies the difference between the current and the new
        content. Partitions starting at an instant in 'skip' are left
        alone because they already hold the right items.'''

        diffs = symmetric_difference(self._content, value)
        if not diffs:
            return self

        state = self.clone()
        state._content = list(value)
        state._partitions = list(self._partitions)
        state._index = dict(self._index)
        state._bound = self._bound

        if state._bound is None:
            return state

        current = {id(item) for item in self._content}
        added: dict[Timestamp, list[Any]] = {}
        removed: dict[Timestamp, set[int]] = {}

        for item in diffs:
            for key in state.affected_keys(item):
                if (skip and key in skip) or key not in state._index:
                    continue
                if id(item) in current:
                    removed.setdefault(key, set()).add(id(item))
                else:
                    added.setdefault(key, []).append(item)

        changed = added.keys() | removed.keys()
        for key in changed:
            position = state._index[key]
            gone = removed.get(key, set())
            items = [i for i in self._partitions[position].items if id(i) not in gone]
            items.extend(added.get(key, []))

            partition = state._factory(key, state._step, position)
            partition._fill(items)
            partition.commit()
            state._partitions[position] = partition

        logger.debug(
            'partition_map_content_changed',
            changed_items=len(diffs),
            rebuilt=len(changed),
        )

        return state


    def affected_keys(self, item: object) -> list[Timestamp]:
        '''Returns the start of every partition step the item touches,
        after clipping it to the bounding interval.'''

        if self._bound is None:
            return []

        start, end = bounds(item)
        start = max(start, self._bound.start)
        end = min(end, self._bound.end)
        if start > end:
            return []
        return self._step.range(self._step.floor(start), self._step.ceil(end))


    def _boundary_keys(self, bound: Interval) -> list[Timestamp]:
        return self._step.range(self._step.floor(bound.start), self._step.ceil(bound.end))
