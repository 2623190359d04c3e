from __future__ import annotations
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import datetime
import zoneinfo
import structlog
import yaml

from activities import Activities
from granularity import ONE_DAY, Step
from logging_setup import configure_logging
from partitions import Partition, PartitionFactory, PartitionMap
from timestamp import Timestamp


logger = structlog.get_logger()

_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
_LOG_FORMATS = {'console', 'json'}



@dataclass(frozen=True)
class Settings:
    '''Calendar settings, usually read from a YAML file.

    Example:

        timezone: Europe/Berlin
        partition_step: 1 day
        log_level: INFO
        log_format: console
        activities:
          work: {title: Work}
          meeting: {title: Meeting, parents: [work]}

    Every key is optional. 'timezone' accepts an IANA name or 'local'
    (the zone of this machine).'''


    timezone_iana: str = 'local'
    step: Step = ONE_DAY
    log_level: str = 'INFO'
    log_format: str = 'console'
    activities_data: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)


    def __post_init__(self) -> None:
        # Fails on unknown zone names.
        Timestamp.zone_for(self.timezone_iana)

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f'Invalid log level: {self.log_level}.')
        if self.log_format not in _LOG_FORMATS:
            raise ValueError(f'Invalid log format: {self.log_format}.')


    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Settings:

        if not isinstance(data, Mapping):
            raise ValueError('Settings must be a mapping.')

        unknown = set(data) - {'timezone', 'partition_step', 'log_level', 'log_format', 'activities'}
        if unknown:
            raise ValueError(f'Unknown settings: {", ".join(sorted(unknown))}.')

        activities_data = data.get('activities') or {}
        if not isinstance(activities_data, Mapping):
            raise ValueError('\'activities\' must be a mapping.')

        return cls(
            timezone_iana=str(data.get('timezone', 'local')),
            step=Step.parse(str(data.get('partition_step', 'day'))),
            log_level=str(data.get('log_level', 'INFO')),
            log_format=str(data.get('log_format', 'console')),
            activities_data=activities_data,
        )


    @classmethod
    def load_from_yaml(cls, filename: str | Path) -> Settings:
        '''Load settings from a YAML file. An empty file gives the
        defaults.'''

        path = Path(filename)

        with path.open('r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        settings = cls.from_dict(data if data is not None else {})
        logger.info(
            'settings_loaded',
            path=str(path),
            timezone=settings.timezone_iana,
            step=str(settings.step),
        )
        return settings


    @property
    def zone(self) -> zoneinfo.ZoneInfo:
        return Timestamp.zone_for(self.timezone_iana)


    def localize(self, value: object) -> Timestamp:
        '''Returns 'value' as a timestamp. Naive datetimes are read in
        the configured zone.'''

        if isinstance(value, Timestamp):
            return value
        if isinstance(value, datetime.datetime):
            return Timestamp.from_datetime(value, self.timezone_iana)
        raise ValueError(f'Not a date-like value: {value!r}')


    def configure_logging(self) -> None:
        '''Applies 'log_level' and 'log_format' to structlog.'''

        configure_logging(self.log_level, self.log_format)


    def activities(self) -> Activities:
        '''Builds the activity hierarchy of these settings.'''

        activities = Activities()
        if self.activities_data:
            activities.load_from_mapping(self.activities_data)
        return activities


    def partition_map(
        self,
        bound: object | None = None,
        content: Iterable[Any] | None = None,
        partition_factory: PartitionFactory = Partition
    ) -> PartitionMap:
        '''Creates a partition map using the configured step.'''

        return PartitionMap(partition_factory, self.step, bound, content)
