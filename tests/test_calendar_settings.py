from __future__ import annotations
import datetime
import textwrap
import zoneinfo

import pytest

from calendar_settings import Settings
from granularity import ONE_DAY, TWO_WEEKS
from helpers import Entry, at
from spans import Interval


SETTINGS_YAML = textwrap.dedent('''
    timezone: Europe/Berlin
    partition_step: 2 weeks
    log_level: debug
    log_format: json
    activities:
      work: {title: Work}
      meeting: {title: Meeting, parents: [work]}
''')


def test_defaults():
    settings = Settings()

    assert settings.timezone_iana == 'local'
    assert settings.step == ONE_DAY
    assert len(settings.activities()) == 0


def test_load_from_yaml(tmp_path):
    path = tmp_path / 'calendar.yaml'
    path.write_text(SETTINGS_YAML, encoding='utf-8')

    settings = Settings.load_from_yaml(path)

    assert settings.zone == zoneinfo.ZoneInfo('Europe/Berlin')
    assert settings.step == TWO_WEEKS
    assert settings.log_format == 'json'
    assert settings.activities().level('meeting') == 1


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / 'calendar.yaml'
    path.write_text('', encoding='utf-8')

    assert Settings.load_from_yaml(path) == Settings()


@pytest.mark.parametrize('data', [
    ['timezone'],
    {'timezone': 'Mars/Olympus_Mons'},
    {'partition_step': '3 moons'},
    {'log_level': 'LOUD'},
    {'log_format': 'xml'},
    {'activities': ['work']},
    {'colour': 'blue'},
])
def test_invalid_settings(data):
    with pytest.raises(ValueError):
        Settings.from_dict(data)


def test_localize_reads_naive_datetimes_in_zone():
    settings = Settings(timezone_iana='Europe/Berlin')
    moment = at('2018-11-01T06:30')

    assert settings.localize(datetime.datetime(2018, 11, 1, 6, 30)) == moment
    assert settings.localize(moment) is moment
    with pytest.raises(ValueError):
        settings.localize('2018-11-01')


def test_partition_map_uses_step(week):
    entry = Entry(at('2018-11-01T11:00'), at('2018-11-02T02:00'))
    settings = Settings(timezone_iana='Europe/Berlin')

    pm = settings.partition_map(week, [entry])

    assert pm.step == ONE_DAY
    assert len(pm) == 7
    assert pm[3].items == [entry]
    assert pm.valid_timespan == Interval(week.start, week.end)


def test_configure_logging_applies_level_and_format(monkeypatch):
    calls = []
    monkeypatch.setattr('calendar_settings.configure_logging', lambda level, fmt: calls.append((level, fmt)))

    Settings(log_level='debug', log_format='json').configure_logging()

    assert calls == [('debug', 'json')]
