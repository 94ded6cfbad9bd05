import logging

from textwrap import dedent

import pytest

from logknife import main as main_module
from logknife.colorize import color_lookup, Red
from logknife.commands import (
    Follow, Include, Exclude, Highlight, JsonKey, Json, Interval, Style, Color
)
from logknife.config import parse_repr_config, parse_yaml_config, \
    parse_config_file, parse_duration, since_to_lines, argv_parse, Runtime, \
    MAX_SINCE_LINES
from logknife.errors import ConfigurationError, PatternError
from logknife.matcher import RegexPattern

log = logging.getLogger()


def test_8():
    # test to make sure classes equality work right
    assert Follow('foo') == Follow('foo')
    assert Follow('foo', 5) != Follow('foo')
    assert Include('rez') == Include('rez')
    assert Include('rez') != Exclude('rez')
    assert Color(long='darkred', escape='\x1b[31m') == Red
    assert {'a': Follow('a')} == {'a': Follow('a')}


def test_7():
    # test repr config file
    assert parse_repr_config(dedent("""
    {
    'syslog': [
        Follow('/foo/bar'),
        Include('baz'),
        Highlight('ERROR'),
        ]
    }
    """)) == {
        'syslog': [
            Follow(path='/foo/bar'),
            Include('baz'),
            Highlight('ERROR'),
        ]
    }


def test_repr_config_has_no_builtins():
    with pytest.raises(NameError):
        parse_repr_config("{'a': [open('/etc/passwd')]}")


def test_6():
    # test yaml config file
    assert parse_yaml_config(dedent("""
    - test
    - basic
    - yaml
    """)) == ['test', 'basic', 'yaml']

    assert parse_yaml_config(dedent("""
    - !follow [path/to/file]
    - !follow [path/to/file, 20]
    """)) == [
        Follow('path/to/file'),
        Follow('path/to/file', 20),
    ]

    assert parse_yaml_config(dedent("""
    - !include ['^GET']
    - !exclude [favicon]
    - !highlight [ERROR]
    - !jsonkey [level]
    - !json-key [msg]
    """)) == [
        Include('^GET'),
        Exclude('favicon'),
        Highlight('ERROR'),
        JsonKey('level'),
        JsonKey('msg'),
    ]

    assert parse_yaml_config(dedent("""
    - !json
    - !json [false]
    - !interval [50]
    - !style [error, red]
    """)) == [
        Json(True),
        Json(False),
        Interval(50),
        Style('error', 'red'),
    ]


def test_yaml_bad_style():
    with pytest.raises(ConfigurationError):
        parse_yaml_config('- !style [nope, red]')


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'logknife.yaml'
    path.write_text(dedent("""
    # web server logs
    nginx:
      - !follow [/var/log/nginx/error.log, 50]
      - !include [error]
      - !highlight [WARN]
    json:
      - !json
      - !jsonkey [level]
    """))
    return path


def test_parse_config_file(config_file):
    assert parse_config_file(str(config_file), ['nginx', 'json']) == [
        Follow('/var/log/nginx/error.log', 50),
        Include('error'),
        Highlight('WARN'),
        Json(True),
        JsonKey('level'),
    ]
    assert parse_config_file(str(config_file), []) == []
    assert parse_config_file(str(config_file) + '.missing', ['nginx']) == []


def test_parse_config_file_unknown_group(config_file):
    with pytest.raises(ConfigurationError):
        parse_config_file(str(config_file), ['apache'])


def test_parse_config_file_invalid(tmp_path):
    path = tmp_path / 'broken'
    path.write_text('a: [unclosed\n')
    with pytest.raises(ConfigurationError):
        parse_config_file(str(path), ['a'])


@pytest.mark.parametrize('text,expected', [
    ('30', 30),
    ('30s', 30),
    ('5m', 300),
    ('1.5h', 5400),
    ('2d', 172800),
    (' 10 M ', 600),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize('text', ['', 'm', '5w', '5 minutes', '-5m', '1h30m'])
def test_parse_duration_invalid(text):
    with pytest.raises(ConfigurationError):
        parse_duration(text)


@pytest.mark.parametrize('duration,rate,expected', [
    ('5m', 10, 3000),
    ('1s', 2.5, 2),
    ('0s', 10, 1),
    ('1s', 0.01, 1),
    ('1d', 10, MAX_SINCE_LINES),
    ('9' * 400 + 's', 10, MAX_SINCE_LINES),
    ('9' * 400 + 'd', 0.01, MAX_SINCE_LINES),
])
def test_since_to_lines(duration, rate, expected):
    assert since_to_lines(duration, rate) == expected


@pytest.mark.parametrize('rate', [0, -1, float('inf'), float('nan')])
def test_since_to_lines_bad_rate(rate):
    with pytest.raises(ConfigurationError):
        since_to_lines('5m', rate)


def test_argv_parse_huge_since(no_config):
    runtime = argv_parse(no_config + ['follow', 'app.log',
                                      '--since', '9' * 400 + 'd'])
    assert runtime.tail_count() == MAX_SINCE_LINES


def test_runtime_add():
    runtime = Runtime(
        Follow('a.log'), Include('x'), Exclude('y'), Highlight('ERROR'),
        Highlight(''), JsonKey('level'), Json(), Interval(5),
        Style('key', 'yellow'),
    )
    assert runtime.path == 'a.log'
    assert runtime.highlights == ['ERROR']
    assert runtime.json_keys == ['level']
    assert runtime.json_mode
    assert runtime.interval_ms == 10
    assert runtime.styles['key'] == color_lookup['yellow']
    assert [f.pattern.pattern for f in runtime.includes] == ['x']
    assert [f.pattern.pattern for f in runtime.excludes] == ['y']
    assert runtime.pipeline().should_emit('x\n')
    assert runtime.renderer().json_mode

    runtime.add(Follow('b.log'))
    assert runtime.path == 'b.log'

    with pytest.raises(ConfigurationError):
        runtime.add('not a command')
    with pytest.raises(ConfigurationError):
        runtime.add(Style('key', 'no-such-color'))


def test_runtime_engine():
    runtime = Runtime(Include(r'\d+'), engine='re')
    assert isinstance(runtime.includes[0].pattern, RegexPattern)
    with pytest.raises(PatternError):
        runtime.add(Include('('))
    with pytest.raises(ConfigurationError):
        Runtime(engine='pcre')


def test_tail_count():
    runtime = Runtime(Follow('a.log', 7))
    assert runtime.tail_count() == 7
    runtime.since = '2s'
    runtime.rate = 3
    assert runtime.tail_count() == 6
    runtime.lines = 4
    assert runtime.tail_count() == 4
    assert Runtime(Follow('a.log')).tail_count() == 0


@pytest.fixture
def no_config(tmp_path):
    return ['--config', str(tmp_path / 'none')]


def test_argv_parse(no_config):
    runtime = argv_parse(no_config + [
        'follow', 'app.log',
        '-i', 'error', '--include', 'fail', '-x', 'debug',
        '-H', 'ERROR', '--highlight', 'WARN',
        '-j', '-k', 'level',
        '--interval', '5', '-n', '20',
    ])
    assert runtime.path == 'app.log'
    assert runtime.filters == [Include('error'), Include('fail'),
                               Exclude('debug')]
    assert runtime.highlights == ['ERROR', 'WARN']
    assert runtime.json_mode
    assert runtime.json_keys == ['level']
    assert runtime.interval_ms == 10
    assert runtime.tail_count() == 20
    assert not runtime.debug


def test_argv_parse_defaults(no_config):
    runtime = argv_parse(no_config + ['follow', 'app.log'])
    assert runtime.interval_ms == 200
    assert runtime.tail_count() == 0
    assert runtime.engine == 'builtin'
    assert not runtime.json_mode


def test_argv_parse_since(no_config):
    runtime = argv_parse(no_config + ['follow', 'app.log',
                                      '--since', '1m', '--rate', '2'])
    assert runtime.tail_count() == 120
    with pytest.raises(ConfigurationError):
        argv_parse(no_config + ['follow', 'app.log', '--since', '1y'])


def test_argv_parse_config_groups(config_file):
    runtime = argv_parse(['-c', str(config_file), '-z', 'nginx',
                          'follow', '-i', 'timeout'])
    assert runtime.path == '/var/log/nginx/error.log'
    assert runtime.tail_count() == 50
    assert runtime.filters == [Include('error'), Include('timeout')]
    assert runtime.highlights == ['WARN']

    runtime = argv_parse(['-c', str(config_file), '-z', 'nginx',
                          'follow', 'other.log', '-n', '0'])
    assert runtime.path == 'other.log'
    assert runtime.tail_count() == 0


def test_argv_parse_engine(no_config):
    with pytest.raises(PatternError):
        argv_parse(no_config + ['--engine', 're', 'follow', 'a.log',
                                '-i', '[unclosed'])
    runtime = argv_parse(no_config + ['--engine', 're', 'follow', 'a.log',
                                      '-i', 'err(or)?'])
    assert isinstance(runtime.includes[0].pattern, RegexPattern)


def test_argv_parse_missing_file(no_config):
    with pytest.raises(ConfigurationError):
        argv_parse(no_config + ['follow'])


def test_argv_parse_usage(no_config):
    with pytest.raises(SystemExit) as e:
        argv_parse(no_config + ['tail', 'app.log'])
    assert e.value.code == 2


@pytest.fixture
def quiet_main(monkeypatch):
    monkeypatch.setattr(main_module, 'setup_logging', lambda is_debug: None)
    return main_module.main


def test_main_exit_codes(quiet_main, no_config, tmp_path):
    assert quiet_main(no_config + ['follow']) == 2
    assert quiet_main(no_config + ['follow', 'a.log', '--since', '3x']) == 2
    assert quiet_main(no_config + ['follow',
                                   str(tmp_path / 'missing.log')]) == 1


def test_main_broken_pipe(quiet_main, no_config, monkeypatch):
    async def reader_gone(runtime):
        raise BrokenPipeError(32, 'Broken pipe')

    silenced = []
    monkeypatch.setattr(main_module, 'async_main', reader_gone)
    monkeypatch.setattr(main_module, 'silence_stdout',
                        lambda: silenced.append(True))
    assert quiet_main(no_config + ['follow', 'a.log']) == 0
    assert silenced == [True]
