"""
Configuration command objects, built from the config file or sys.argv and
consumed by the Runtime
"""
from collections import namedtuple
from types import SimpleNamespace

from .errors import ConfigurationError
from .matcher import compile_pattern
from .util import build_repr

Color = namedtuple('Color', ['long', 'escape'])

roles = ('error', 'warn', 'highlight',
         'key', 'emphasis', 'string', 'number', 'literal',
         'reset')


class Follow(SimpleNamespace):
    """File to follow - follow <path> [n]"""

    def __init__(self, path: str, n: int = None):
        if not path:
            raise ConfigurationError('follow requires a file path')
        if n is not None:
            n = int(n)
        super().__init__(path=path, n=n)

    def __str__(self):
        if self.n is None:
            return 'follow %s' % self.path
        return 'follow %s %d' % (self.path, self.n)


class Filter:
    """Line filter - <type> <pattern>"""

    def __init__(self, regex):
        self.regex = regex
        self.pattern = None  # compiled by Runtime.add

    def compile(self, engine):
        self.pattern = compile_pattern(self.regex, engine)
        return self.pattern

    def __eq__(self, other):
        return type(self) is type(other) and self.regex == other.regex

    @property
    def type(self):
        return self.__class__.__name__.lower()

    def __str__(self):
        return '%s %s' % (self.type, self.regex)


class Include(Filter):
    """Keep lines matching pattern - include <pattern>"""

    __repr__ = build_repr('Include', 'regex')


class Exclude(Filter):
    """Drop lines matching pattern - exclude <pattern>"""

    __repr__ = build_repr('Exclude', 'regex')


class Highlight:
    """Color a literal word in plain lines - highlight <word>"""

    def __init__(self, word):
        self.word = str(word)

    def __eq__(self, other):
        return type(self) is type(other) and self.word == other.word

    def __str__(self):
        return 'highlight %s' % self.word

    __repr__ = build_repr('Highlight', 'word')


class JsonKey:
    """Emphasize a JSON object key - jsonkey <key>"""

    def __init__(self, key):
        self.key = str(key)

    def __eq__(self, other):
        return type(self) is type(other) and self.key == other.key

    def __str__(self):
        return 'jsonkey %s' % self.key

    __repr__ = build_repr('JsonKey', 'key')


class Json(SimpleNamespace):
    """Colorize JSON looking lines - json [on]"""

    def __init__(self, enabled=True):
        super().__init__(enabled=bool(enabled))


class Interval(SimpleNamespace):
    """Poll interval in milliseconds - interval <ms>"""

    def __init__(self, ms):
        super().__init__(ms=int(ms))


class Style(SimpleNamespace):
    """Color used for a rendering role - style <role> <color>"""

    def __init__(self, role, color):
        if role not in roles:
            raise ConfigurationError('Unknown style role %r, expected one of '
                                     '%s' % (role, ', '.join(roles)))
        super().__init__(role=role, color=color)


config_commands = dict(
    follow=Follow,
    include=Include,
    exclude=Exclude,
    highlight=Highlight,
    jsonkey=JsonKey,
    json=Json,
    interval=Interval,
    style=Style,
)
