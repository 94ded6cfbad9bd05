"""
Highlighting, JSON-ish colorization, terminal string building
"""

import logging
from typing import Dict, List, Tuple

from .commands import Color
from .errors import ConfigurationError

log = logging.getLogger()

Token = Tuple[Color, str]


def build_colors():
    """generate list of Color objects for terminal"""
    dark_colors = ['black', 'darkred', 'darkgreen', 'brown', 'darkblue',
                   'purple', 'teal', 'lightgray']
    light_colors = ['darkgray', 'red', 'green', 'yellow', 'blue',
                    'fuchsia', 'turquoise', 'white']

    esc = '\x1b['

    codes = {
        'reset': esc + '0m',

        'bold': esc + '01m',
        'faint': esc + '02m',
        'standout': esc + '03m',
        'underline': esc + '04m',
        'blink': esc + '05m',
        'overline': esc + '06m',
    }

    for x, (d, l) in enumerate(zip(dark_colors, light_colors), 30):
        codes[d] = esc + '%im' % x
        codes[l] = esc + '%i;01m' % x

    # aliases
    codes['darkteal'] = codes['turquoise']
    codes['darkyellow'] = codes['brown']
    codes['fuscia'] = codes['fuchsia']
    codes['magenta'] = codes['purple']
    codes['cyan'] = codes['teal']

    # build color objects
    return {name: Color(name, code)
            for name, code in codes.items()}


color_lookup = build_colors()
Plain = Color('plain', '')
Reset = color_lookup['reset']
Red = color_lookup['darkred']
Yellow = color_lookup['brown']
Cyan = color_lookup['cyan']
Blue = color_lookup['darkblue']
Green = color_lookup['darkgreen']
Magenta = color_lookup['magenta']
Fuchsia = color_lookup['fuchsia']


def default_styles():
    """role -> Color used when the configuration does not override it"""
    return {
        'error': Red,
        'warn': Yellow,
        'highlight': Cyan,
        'key': Blue,
        'emphasis': Fuchsia,
        'string': Green,
        'number': Yellow,
        'literal': Magenta,
        'reset': Reset,
    }


def lookup_color(name):
    try:
        return color_lookup[name]
    except KeyError:
        raise ConfigurationError('Unknown color %r' % name) from None


def word_color(word, styles):
    """ERROR and WARN/WARNING get their own colors, any other word the
    highlight color"""
    upper = word.upper()
    if upper == 'ERROR':
        return styles['error']
    elif upper in ('WARN', 'WARNING'):
        return styles['warn']
    return styles['highlight']


def highlight_tokens(line, words, styles) -> List[Token]:
    """
    Split line on the leftmost occurrence of any word, repeatedly.
    Ties at the same offset go to the word registered first.
    :param line: text
    :param words: ordered literal words
    :param styles: role -> Color
    :return: [(Color, text), ...]
    """
    words = [w for w in words if w]
    if not words:
        return [(Plain, line)] if line else []

    tokens = []  # type: List[Token]
    pos = 0
    while pos < len(line):
        best, best_word = -1, None
        for word in words:
            idx = line.find(word, pos)
            if idx != -1 and (best_word is None or idx < best):
                best, best_word = idx, word
        if best_word is None:
            tokens.append((Plain, line[pos:]))
            break
        if best > pos:
            tokens.append((Plain, line[pos:best]))
        tokens.append((word_color(best_word, styles), best_word))
        pos = best + len(best_word)
    return tokens


def _isdigit(c):
    return '0' <= c <= '9'


def _scan_string(line, start):
    """returns (end, closed) for the string opening at line[start]"""
    pos = start + 1
    while pos < len(line):
        c = line[pos]
        if c == '\\':
            pos += 2
            continue
        pos += 1
        if c == '"':
            return pos, True
    return len(line), False


def _scan_number(line, start):
    """returns index just past the number starting at line[start]"""
    end = len(line)
    pos = start
    if line[pos] == '-':
        pos += 1
    while pos < end and _isdigit(line[pos]):
        pos += 1
    if pos < end and line[pos] == '.':
        pos += 1
        while pos < end and _isdigit(line[pos]):
            pos += 1
    if pos < end and line[pos] in 'eE':
        exp = pos + 1
        if exp < end and line[exp] in '+-':
            exp += 1
        if exp < end and _isdigit(line[exp]):
            pos = exp
            while pos < end and _isdigit(line[pos]):
                pos += 1
    return pos


def _is_key(line, pos):
    """True if the next non-space character at or after pos is ':'"""
    while pos < len(line) and line[pos].isspace():
        pos += 1
    return pos < len(line) and line[pos] == ':'


def _is_word_char(c):
    return c.isalnum() or c == '_'


def _literal_at(line, pos):
    """true/false/null starting at pos, only as a whole word"""
    if pos > 0 and _is_word_char(line[pos - 1]):
        return None
    for literal in ('true', 'false', 'null'):
        if line.startswith(literal, pos):
            after = pos + len(literal)
            if after < len(line) and _is_word_char(line[after]):
                return None
            return literal
    return None


def json_tokens(line, keys, styles) -> List[Token]:
    """
    Lexical colorization of a JSON looking line. Not a parser, malformed
    input is colored as far as it goes.
    :param line: text
    :param keys: object keys to emphasize (case-sensitive)
    :param styles: role -> Color
    :return: [(Color, text), ...]
    """
    tokens = []  # type: List[Token]
    plain_start = 0
    pos = 0
    end = len(line)

    def push(color, start, stop):
        nonlocal plain_start
        if plain_start < start:
            tokens.append((Plain, line[plain_start:start]))
        tokens.append((color, line[start:stop]))
        plain_start = stop

    while pos < end:
        c = line[pos]
        if c == '"':
            stop, closed = _scan_string(line, pos)
            if _is_key(line, stop):
                contents = line[pos + 1:stop - 1 if closed else stop]
                role = 'emphasis' if contents in keys else 'key'
            else:
                role = 'string'
            push(styles[role], pos, stop)
            pos = stop
        elif _isdigit(c) or (c == '-' and pos + 1 < end and
                             _isdigit(line[pos + 1])):
            stop = _scan_number(line, pos)
            push(styles['number'], pos, stop)
            pos = stop
        else:
            literal = _literal_at(line, pos)
            if literal:
                stop = pos + len(literal)
                push(styles['literal'], pos, stop)
                pos = stop
            else:
                pos += 1

    if plain_start < end:
        tokens.append((Plain, line[plain_start:]))
    return tokens


def is_jsonish(line):
    """line starts with { or [ after leading whitespace"""
    return line.lstrip()[:1] in ('{', '[')


def tokens_to_str(tokens, reset=Reset):
    """turn tokens into a color string, plain text is left unescaped"""

    def text(tk):
        color, chunk = tk
        if not color.escape:
            return chunk
        return color.escape + chunk + reset.escape

    return ''.join(text(t) for t in tokens)


class Renderer:
    """Chooses the highlighter or the JSON colorizer for each line"""

    def __init__(self, highlights=(), json_mode=False, json_keys=(),
                 styles: Dict[str, Color] = None):
        self.highlights = list(highlights)
        self.json_mode = json_mode
        self.json_keys = list(json_keys)
        self.styles = default_styles()
        self.styles.update(styles or {})

    def tokens(self, line) -> List[Token]:
        if self.json_mode and is_jsonish(line):
            return json_tokens(line, self.json_keys, self.styles)
        return highlight_tokens(line, self.highlights, self.styles)

    def render(self, line):
        return tokens_to_str(self.tokens(line), self.styles['reset'])


def render(line, highlights, json_mode=False, json_keys=(), styles=None):
    """style a single line, see Renderer"""
    return Renderer(highlights, json_mode, json_keys, styles).render(line)
