"""
Include/exclude decision for a single line
"""

import logging

from .commands import Include, Exclude
from .util import build_repr, strip_eol

log = logging.getLogger()


def should_emit(line, includes, excludes):
    """
    Decide if line is printed.
    :param line: text, trailing \\r\\n are ignored
    :param includes: patterns, one must match when not empty
    :param excludes: patterns, any match drops the line
    :return: bool
    """
    text = strip_eol(line)
    if includes and not any(p.match(text) for p in includes):
        return False
    # exclude wins over include
    return not any(p.match(text) for p in excludes)


class FilterPipeline:
    """compiled include and exclude sets for the run"""

    def __init__(self, includes=(), excludes=()):
        self.includes = tuple(includes)
        self.excludes = tuple(excludes)

    @classmethod
    def from_filters(cls, filters):
        """build from compiled Include/Exclude command objects"""
        includes = [f.pattern for f in filters if isinstance(f, Include)]
        excludes = [f.pattern for f in filters if isinstance(f, Exclude)]
        return cls(includes, excludes)

    def should_emit(self, line):
        return should_emit(line, self.includes, self.excludes)

    __repr__ = build_repr('FilterPipeline', 'includes', 'excludes')
