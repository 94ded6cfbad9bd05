"""
Configuration file processing, sys.argv processing, and runtime configuration
"""

import argparse
import logging
import math
import os
import re
from io import StringIO
from itertools import chain

from .commands import Follow, Filter, Include, Exclude, Highlight, JsonKey, \
    Json, Interval, Style, config_commands
from .colorize import Renderer, default_styles, lookup_color
from .errors import ConfigurationError
from .filters import FilterPipeline
from .matcher import engines
from .util import expand_path, build_repr

log = logging.getLogger()
default_config_file = '~/.logknife'

DEFAULT_INTERVAL_MS = 200
MIN_INTERVAL_MS = 10
DEFAULT_RATE = 10.0  # lines per second, for --since estimates
MAX_SINCE_LINES = 100000

duration_units = {
    's': 1,
    'm': 60,
    'h': 60 * 60,
    'd': 24 * 60 * 60,
}
_duration_re = re.compile(r'\A\s*(\d+(?:\.\d*)?|\.\d+)\s*([A-Za-z]*)\s*\Z')


def parse_duration(text):
    """
    Convert '90s', '5m', '1.5h', '2d' (bare numbers are seconds) to seconds
    """
    m = _duration_re.match(str(text))
    if not m:
        raise ConfigurationError('Invalid duration %r' % text)
    value, unit = m.groups()
    unit = unit.lower() or 's'
    if unit not in duration_units:
        raise ConfigurationError(
            'Invalid duration unit %r in %r, expected one of %s' % (
                unit, text, ', '.join(duration_units)))
    return float(value) * duration_units[unit]


def since_to_lines(duration, rate=DEFAULT_RATE):
    """
    Estimate how many lines were written during duration, assuming the log
    grows at rate lines per second. This is a guess, timestamps in the file
    are never read. The result is clamped to [1, MAX_SINCE_LINES].
    """
    if not math.isfinite(rate) or rate <= 0:
        raise ConfigurationError(
            'rate must be a positive number, got %r' % rate)
    seconds = parse_duration(duration)
    # clamp while still a float, a huge duration overflows to inf
    estimate = min(float(MAX_SINCE_LINES), seconds * rate)
    return max(1, int(estimate))


class ConfigGroup:
    """represents current set of patterns, words and styles"""

    def __init__(self, name, *args, engine='builtin'):
        if engine not in engines:
            raise ConfigurationError('Unknown engine %r, expected one of %s' %
                                     (engine, ', '.join(sorted(engines))))
        self.name = name
        self.engine = engine
        self.styles = default_styles()
        self.filters = []
        self.highlights = []
        self.json_keys = []
        self.json_mode = False
        self.follow = None
        self.interval_ms = DEFAULT_INTERVAL_MS
        self.add(*args)

    def add(self, *args):
        """add object to session"""
        for obj in args:
            if isinstance(obj, Filter):
                obj.compile(self.engine)
                self.filters.append(obj)
            elif isinstance(obj, Highlight):
                if obj.word:
                    self.highlights.append(obj.word)
            elif isinstance(obj, JsonKey):
                self.json_keys.append(obj.key)
            elif isinstance(obj, Json):
                self.json_mode = obj.enabled
            elif isinstance(obj, Interval):
                self.interval_ms = max(MIN_INTERVAL_MS, obj.ms)
            elif isinstance(obj, Style):
                self.styles[obj.role] = lookup_color(obj.color)
            elif isinstance(obj, Follow):
                if self.follow is not None:
                    log.debug('replace %s with %s', self.follow, obj)
                self.follow = obj
            else:
                raise ConfigurationError(
                    'Unknown obj type %r' % type(obj).__name__)

    @property
    def includes(self):
        return [f for f in self.filters if isinstance(f, Include)]

    @property
    def excludes(self):
        return [f for f in self.filters if isinstance(f, Exclude)]

    __repr__ = build_repr('Group', 'name')


class Runtime(ConfigGroup):
    """Runtime configuration"""

    def __init__(self, *args, engine='builtin'):
        self.lines = None
        self.since = None
        self.rate = DEFAULT_RATE
        self.debug = False
        super().__init__('runtime', *args, engine=engine)

    @property
    def path(self):
        return self.follow.path if self.follow else None

    def tail_count(self):
        """lines to print before following, -n wins over --since"""
        if self.lines is not None:
            return self.lines
        if self.since is not None:
            return since_to_lines(self.since, self.rate)
        if self.follow is not None and self.follow.n is not None:
            return self.follow.n
        return 0

    def pipeline(self):
        return FilterPipeline.from_filters(self.filters)

    def renderer(self):
        return Renderer(self.highlights, self.json_mode, self.json_keys,
                        self.styles)

    __repr__ = build_repr('Runtime', 'path', 'engine', 'filters',
                          'highlights', 'json_mode', 'json_keys',
                          'interval_ms')


def parse_config_file(config_file, group_names):
    """
    Reads config_file and returns the objects of the named groups
    :param config_file:
    :param group_names:
    """
    config_file = expand_path(config_file)
    if not os.path.isfile(config_file):
        return []
    log.debug('parsing config %r, %r', config_file, group_names)
    with open(config_file) as fh:
        content = fh.read()
    buf_fh = StringIO(content)
    # repr content must be a dictionary, search for { ignoring
    # any comments coming before it
    stripped = ''.join(ln.split('#', 1)[0].strip() for ln in
                       content.splitlines(True))
    try:
        if re.match(r'\A{', stripped, re.MULTILINE):
            groups = parse_repr_config(buf_fh)
        else:
            groups = parse_yaml_config(buf_fh)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError('Cannot parse %s: %s' % (config_file, e)) \
            from e
    if not group_names:
        return []
    if not isinstance(groups, dict):
        raise ConfigurationError('%s must map group names to lists' %
                                 config_file)
    missing = [z for z in group_names if z not in groups]
    if missing:
        raise ConfigurationError('Unknown group(s) %s in %s' % (
            ', '.join(missing), config_file))
    return list(chain(*[groups[z] or [] for z in group_names]))


def parse_repr_config(stream):
    """
    read config_file, returns a dict of lists containing namespace objects.
    Example -
    {
    'syslog': [
      Follow('/var/log/messages'),
      Include('sshd'),
      Highlight('ERROR'),
      ]
    }
    """
    if hasattr(stream, 'read'):
        content = stream.read()
    else:
        log.debug('stream %r', stream)
        content = stream
    with_globals = [Follow, Include, Exclude, Highlight, JsonKey, Json,
                    Interval, Style]
    scope = {c.__name__: c for c in with_globals}
    scope['__builtins__'] = {}
    return eval(content, scope)


def parse_yaml_config(stream):
    """
    read config_file, returns dict of lists containing namespace objects.
    expected format -
    section-name:
      - !ctor [args...]
    Example -
    syslog:
      - !follow [/var/log/messages]
      - !include [sshd]
      - !highlight [ERROR]
    """
    import yaml

    class ConfigLoader(yaml.SafeLoader):
        pass

    def build_ctor(class_object):
        def ctor(loader, node):
            log.debug('ctor(loader, node=%r)', node)
            if isinstance(node, yaml.ScalarNode):
                value = loader.construct_scalar(node)
                args = [value] if value != '' else []
            else:
                args = loader.construct_sequence(node)
            return class_object(*args)

        return ctor

    for name, cls in config_commands.items():
        ConfigLoader.add_constructor('!' + name, build_ctor(cls))
    ConfigLoader.add_constructor('!json-key', build_ctor(JsonKey))

    data = yaml.load(stream, Loader=ConfigLoader)
    log.debug('parse_config(stream) => %r', data)
    return data


def argv_parse(argv=None):
    """
    Build the Runtime from the config file and command line.
    :param argv: arguments, defaults to sys.argv[1:]
    :return: Runtime
    """

    class ConfigAction(argparse.Action):
        """Expand file path"""

        def __call__(self, p, namespace, values, option_string=None):
            setattr(namespace, self.dest, expand_path(values))

    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument(
        '--config', '-c', default=default_config_file, action=ConfigAction
    )
    config_parser.add_argument(
        '-z', metavar='Z', default=[], dest='group_names', action='append',
    )
    config_parser.add_argument(
        '--engine', default='builtin', choices=sorted(engines),
    )

    options, ignore = config_parser.parse_known_args(argv)
    log.debug('initial options %r', options)

    cfg_objects = parse_config_file(options.config, options.group_names)
    log.debug('config objects %r', cfg_objects)

    # add files, patterns, styles, etc from the configuration
    session = Runtime(engine=options.engine)
    session.add(*cfg_objects)

    # import the parent package high level description and version
    from . import __doc__ as desc
    from . import __version__ as version

    parser = argparse.ArgumentParser(
        prog='logknife',
        description=desc,
    )
    parser.add_argument(
        '--version', action='version', version='%(prog)s ' + version
    )
    parser.add_argument(
        '--debug', default=False, dest='debug', action='store_true',
        help='enable debug',
    )
    parser.add_argument(
        '--config', '-c',
        metavar='CFG', default=default_config_file, action=ConfigAction,
        help='configuration file, default %(default)s',
    )
    parser.add_argument(
        '-z', metavar='Z', default=[], dest='group_names', action='append',
        help='Load Z group(s) from CFG file'
    )
    parser.add_argument(
        '--engine', default='builtin', choices=sorted(engines),
        help='pattern engine, builtin understands only ^ $ . * '
             '(default %(default)s)',
    )
    parser.add_argument(
        'command', choices=['follow'],
        help='follow FILE',
    )
    parser.add_argument(
        'file', metavar='FILE', nargs='?',
        help='file to follow, optional if CFG provides one',
    )
    parser.add_argument(
        '--interval', metavar='MS', type=int, default=None,
        help='polling interval in milliseconds (default %d, minimum %d)' % (
            DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS),
    )
    parser.add_argument(
        '-n', metavar='N', type=int, default=None, dest='lines',
        help='output the last N lines before following',
    )
    parser.add_argument(
        '--since', metavar='DURATION', default=None,
        help='output an estimate of the lines written in DURATION '
             '(e.g. 30s, 5m, 2h, 1d) before following',
    )
    parser.add_argument(
        '--rate', metavar='LPS', type=float, default=DEFAULT_RATE,
        help='lines per second assumed by --since (default %(default)s)',
    )
    parser.add_argument(
        '--json', '-j', default=False, dest='json', action='store_true',
        help='colorize lines starting with { or [ as JSON',
    )

    def build_action(command):
        """generate action for command"""

        class CommandAction(argparse.Action):
            def __call__(self, parse, namespace, values, option_string=None):
                obj = command(values)
                previous = getattr(namespace, self.dest)
                if previous:
                    previous.append(obj)
                else:
                    setattr(namespace, self.dest, [obj])

        return CommandAction

    parser.add_argument(
        '--include', '-i', metavar='PTRN', dest='commands',
        action=build_action(Include),
        default=[], help='print only lines matching PTRN (repeatable)',
    )
    parser.add_argument(
        '--exclude', '-x', metavar='PTRN', dest='commands',
        action=build_action(Exclude),
        default=[], help='drop lines matching PTRN (repeatable)',
    )
    parser.add_argument(
        '--highlight', '-H', metavar='WORD', dest='commands',
        action=build_action(Highlight),
        default=[], help='highlight exact WORD (repeatable)',
    )
    parser.add_argument(
        '--json-key', '-k', metavar='KEY', dest='commands',
        action=build_action(JsonKey),
        default=[], help='emphasize JSON object KEY (repeatable)',
    )

    options = parser.parse_args(argv)
    log.debug('final options %r', options)

    # add patterns and options from arguments
    session.add(*options.commands)
    if options.json:
        session.add(Json(True))
    if options.interval is not None:
        session.add(Interval(options.interval))
    if options.file:
        session.add(Follow(options.file))
    if session.path is None:
        raise ConfigurationError('missing FILE to follow')

    session.lines = options.lines
    session.since = options.since
    session.rate = options.rate
    session.debug = options.debug
    # reject a bad --since before any file is opened
    count = session.tail_count()
    if options.since is not None and options.lines is None:
        log.info('--since %s estimated as %d lines at %g lines/s',
                 options.since, count, options.rate)
    return session
