from __future__ import annotations
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import networkx as nx
import structlog
import yaml


logger = structlog.get_logger()



@dataclass
class Activity:
    '''A kind of calendar entry, e.g. 'work' or 'meeting'.'''

    _slug: str
    title: str
    description: str = field(default_factory=str)


    def __hash__(self):
        return hash(self._slug)


    def __eq__(self, other):

        if not isinstance(other, Activity):
            return NotImplemented

        return self.slug == other.slug


    @property
    def slug(self):
        '''Returns a unique string identifier of the activity.'''

        return self._slug


    @classmethod
    def from_dict(cls, slug: str, data: Mapping[str, Any]) -> Activity:
        if 'title' not in data:
            raise ValueError(f'Activity \'{slug}\' has no title.')

        return cls(
            _slug=slug,
            title=data['title'],
            description=data.get('description', '')
        )



@dataclass
class Activities:
    '''Hierarchy of activities. An edge goes from a parent activity to
    a more specific one.

    The hierarchy gives the projection level of calendar entries:
    the more specific an activity, the higher it is stacked.'''

    activities_graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    slug_to_activity: dict[str, Activity] = field(default_factory=dict)
    _levels: dict[str, int] = field(default_factory=dict, repr=False)


    def __contains__(self, slug: object) -> bool:
        return slug in self.slug_to_activity


    def __len__(self) -> int:
        return len(self.slug_to_activity)


    def validate(self) -> None:

        if not nx.is_directed_acyclic_graph(self.activities_graph):
            cycle = nx.find_cycle(self.activities_graph)
            raise ValueError(f'Cycle detected: {cycle}.')


    def clear(self) -> None:
        '''Clears all activities data.'''

        self.activities_graph.clear()
        self.slug_to_activity.clear()
        self._levels.clear()


    def load_from_yaml(self, filename: str | Path) -> None:
        '''Load activities from a YAML file with an 'activities'
        mapping at its root.'''

        path = Path(filename)

        with path.open('r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError('YAML root must be a mapping.')

        self.load_from_mapping(data.get('activities'))
        logger.info('activities_loaded', path=str(path), count=len(self))


    def load_from_mapping(self, activities_data: object) -> None:
        '''Load activities from a mapping of slug to activity data.'''

        if not isinstance(activities_data, Mapping):
            raise ValueError('\'activities\' must be a mapping.')

        # Clear old data.
        self.clear()

        # Create activities.
        for slug, item in activities_data.items():
            if not isinstance(item, Mapping):
                raise ValueError('Each activity must be a mapping.')

            activity = Activity.from_dict(slug, item)

            if activity.slug in self.slug_to_activity:
                raise ValueError(f'Duplicate slug: {activity.slug}.')

            self.slug_to_activity[activity.slug] = activity
            self.activities_graph.add_node(activity)

        # Create connections.
        for slug, item in activities_data.items():
            parents = item.get('parents', [])

            if parents is None:
                parents = []

            if not isinstance(parents, list):
                raise ValueError(
                    f'\'parents\' of \'{slug}\' must be a list.'
                )

            child = self.slug_to_activity[slug]

            for parent_slug in parents:
                if parent_slug not in self.slug_to_activity:
                    raise ValueError(
                        f'Unknown parent \'{parent_slug}\' for activity \'{slug}\'.'
                    )

                parent = self.slug_to_activity[parent_slug]
                self.activities_graph.add_edge(parent, child)

        self.validate()
        self._compute_levels()


    def _compute_levels(self) -> None:
        '''The level of an activity is the length of the longest chain
        of parents above it. Root activities are on level 0.'''

        self._levels.clear()
        for activity in nx.topological_sort(self.activities_graph):
            parents = self.activities_graph.predecessors(activity)
            self._levels[activity.slug] = max(
                (self._levels[p.slug] + 1 for p in parents),
                default=0
            )


    def level(self, slug: str) -> int:
        '''Returns the projection level of the activity.'''

        if slug not in self._levels:
            raise ValueError(f'Unknown activity: {slug}.')

        return self._levels[slug]


    def level_fn(self, attribute: str = 'activity') -> Callable[[Any], int]:
        '''Returns a level function for 'Collection.project'.

        The activity of a temporal is read from 'attribute' (an
        'Activity' or its slug). Temporals without one are on level 0.'''

        def get_level(temporal: Any) -> int:
            if isinstance(temporal, Mapping):
                value = temporal.get(attribute)
            else:
                value = getattr(temporal, attribute, None)

            if value is None:
                return 0
            if isinstance(value, Activity):
                value = value.slug
            return self.level(value)

        return get_level
