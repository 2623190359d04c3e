from __future__ import annotations
from dataclasses import dataclass
from typing import Any
import datetime

from timestamp import Timestamp


BERLIN = 'Europe/Berlin'


def at(iso: str, timezone_iana: str = BERLIN) -> Timestamp:
    '''Wall-clock time in the given zone, e.g. at('2018-11-01T06:30').'''

    return Timestamp.from_datetime(datetime.datetime.fromisoformat(iso), timezone_iana)


def utc(iso: str) -> Timestamp:
    return Timestamp.from_utc(iso)


@dataclass(eq=False)
class Entry:
    '''A calendar entry, compared by identity like real domain objects.'''

    start: Any
    end: Any
    kind: int = 0
    activity: str | None = None
