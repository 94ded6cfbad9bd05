"""
Pattern compilation and matching.

The builtin engine understands a small regex subset:
  ^  anchor at start of text (first character only)
  $  anchor at end of text (last character only)
  .  any single character
  c* zero or more repetitions of c (any character when c is '.')
Everything else is a literal. The 're' engine compiles with the re module
and searches anywhere in the line.
"""

import logging
import re

from .errors import ConfigurationError, PatternError
from .util import build_repr

log = logging.getLogger()


def _match_star(c, pattern, text, pos):
    """c* followed by pattern, starting at text[pos]"""
    while True:
        if _match_here(pattern, text, pos):
            return True
        if pos >= len(text) or (c != '.' and text[pos] != c):
            return False
        pos += 1


def _match_here(pattern, text, pos):
    """match pattern against text starting exactly at pos"""
    p = 0
    while True:
        if p == len(pattern):
            return True
        if pattern[p] == '$' and p + 1 == len(pattern):
            return pos == len(text)
        if p + 1 < len(pattern) and pattern[p + 1] == '*':
            return _match_star(pattern[p], pattern[p + 2:], text, pos)
        if pos < len(text) and pattern[p] in ('.', text[pos]):
            p += 1
            pos += 1
            continue
        return False


def match(pattern, text):
    """True if pattern matches anywhere in text (builtin grammar)"""
    return BuiltinPattern(pattern).match(text)


class Pattern:
    """compiled pattern, reused for every line"""
    engine = None

    def __init__(self, pattern):
        self.pattern = pattern

    def match(self, text):
        raise NotImplementedError

    def __eq__(self, other):
        return type(self) is type(other) and self.pattern == other.pattern

    def __hash__(self):
        return hash((self.engine, self.pattern))

    __repr__ = build_repr('Pattern', 'engine', 'pattern')


class BuiltinPattern(Pattern):
    engine = 'builtin'

    def __init__(self, pattern):
        super().__init__(pattern)
        self._anchored = pattern.startswith('^')
        self._body = pattern[1:] if self._anchored else pattern

    def match(self, text):
        if self._anchored:
            return _match_here(self._body, text, 0)
        body = self._body
        return any(_match_here(body, text, pos)
                   for pos in range(len(text) + 1))


class RegexPattern(Pattern):
    engine = 're'

    def __init__(self, pattern):
        super().__init__(pattern)
        try:
            self.regex = re.compile(pattern)
        except re.error as e:
            raise PatternError(pattern, e) from e

    def match(self, text):
        return self.regex.search(text) is not None


engines = {
    BuiltinPattern.engine: BuiltinPattern,
    RegexPattern.engine: RegexPattern,
}


def compile_pattern(pattern, engine='builtin'):
    """
    Compile pattern with the named engine
    :param pattern: source string
    :param engine: 'builtin' or 're'
    :return: Pattern
    """
    try:
        cls = engines[engine]
    except KeyError:
        raise ConfigurationError('Unknown engine %r, expected one of %s' % (
            engine, ', '.join(sorted(engines)))) from None
    compiled = cls(pattern)
    log.debug('compile_pattern(%r, %r) => %r', pattern, engine, compiled)
    return compiled
