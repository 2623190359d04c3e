from __future__ import annotations
from collections.abc import Mapping
import datetime
import re

from spans import Interval
from timestamp import Timestamp



_URL_PARAM_RE = re.compile(r'(\d{1,2}-\d{1,2}-\d{2,4})')

# date-fns style pattern letters -> 'strptime' directives.
_PARSE_TOKENS = {
    'y': '%Y',
    'M': '%m',
    'd': '%d',
    'H': '%H',
    'm': '%M',
    's': '%S',
}
_PARSE_TOKEN_RE = re.compile(r'y+|M+|d+|H+|m+|s+')



def week_number(moment: Timestamp) -> int:
    '''ISO 8601 week number: weeks start on Monday and the first week
    of a year contains the 4th of January.'''

    return moment.datetime.isocalendar()[1]


def is_weekend(moment: Timestamp) -> bool:
    return moment.datetime.weekday() >= 5


def format_datetime(moment: Timestamp, pattern: str) -> str:
    '''Formats 'moment' in its own zone with zero padded fields.

    Tokens: 'yyyy' year, 'mm' month, 'dd' day, 'hh' hour, 'ii' minute,
    'ss' second, 'ww' ISO week, 'dow' day of the week (0 is Sunday).'''

    dt = moment.datetime
    replacements = [
        ('yyyy', dt.year),
        ('dd', dt.day),
        ('mm', dt.month),
        ('hh', dt.hour),
        ('ii', dt.minute),
        ('ss', dt.second),
        ('ww', week_number(moment)),
        ('dow', (dt.weekday() + 1) % 7),
    ]
    result = pattern
    for token, value in replacements:
        result = result.replace(token, f'{value:02d}')
    return result


def parse_datetime(text: str, pattern: str, timezone_iana: str | None = None) -> Timestamp:
    '''Parses 'text' with a date-fns style pattern such as 'yyyy-MM-dd'
    or 'd-M-y'. Fields missing from the pattern default to the start of
    the day. The wall time is read in 'timezone_iana' (local zone if
    omitted).'''

    directives = _PARSE_TOKEN_RE.sub(lambda m: _PARSE_TOKENS[m.group(0)[0]], pattern)
    try:
        dt = datetime.datetime.strptime(text, directives)
    except ValueError as e:
        raise ValueError(f'\'{text}\' does not match the pattern \'{pattern}\'.') from e
    return Timestamp.from_datetime(dt, timezone_iana)


def serialize_url_param(moment: Timestamp) -> str:
    '''Serializes the date of 'moment' as 'D-M-YYYY'.'''

    dt = moment.datetime
    return f'{dt.day}-{dt.month}-{dt.year}'


def deserialize_url_param(value: str | None, timezone_iana: str | None = None) -> Timestamp | None:
    '''Reads a 'D-M-YYYY' date as midnight of that day. Returns 'None'
    if the value is not a valid date.'''

    if not value or not _URL_PARAM_RE.fullmatch(value):
        return None
    try:
        return parse_datetime(value, 'd-M-y', timezone_iana)
    except ValueError:
        return None


def url_params_from_interval(interval: Interval) -> dict[str, str]:
    '''Serializes an interval of whole days as URL parameters.

    The end is exclusive, but a range is shown up to its last day, so
    the serialized end is one day earlier.'''

    last_day = interval.end.datetime - datetime.timedelta(days=1)
    return {
        'f': serialize_url_param(interval.start),
        't': serialize_url_param(Timestamp.from_datetime(last_day)),
    }


def interval_from_url_params(params: Mapping[str, str], timezone_iana: str | None = None) -> Interval | None:
    '''Reads an interval written by 'url_params_from_interval'. Returns
    'None' if either date is invalid or the range is empty.'''

    start = deserialize_url_param(params.get('f'), timezone_iana)
    last_day = deserialize_url_param(params.get('t'), timezone_iana)
    if start is None or last_day is None:
        return None

    end = Timestamp.from_datetime(last_day.datetime + datetime.timedelta(days=1))
    if not start < end:
        return None
    return Interval(start, end)
