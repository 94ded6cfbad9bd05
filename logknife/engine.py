"""
Tail and follow engine.
"""

import asyncio
import codecs
import logging
import os

from .cli import Terminal
from .errors import OpenError
from .util import Closable, expand_path, trim_repr

log = logging.getLogger()

BLOCK_SIZE = 4096
MAX_LINE = 8192


class TailReader:
    """Finds where the last N lines of a file start"""

    def __init__(self, block_size=BLOCK_SIZE):
        self.block_size = block_size

    def tail_offset(self, fh, n):
        """
        Scan fh backward block by block counting newlines.
        :param fh: binary file opened for reading
        :param n: number of lines, must be > 0
        :return: offset just past the (n+1)-th newline from the end, or 0
        """
        fh.seek(0, os.SEEK_END)
        end = fh.tell()
        found = 0
        while end > 0:
            start = max(0, end - self.block_size)
            fh.seek(start)
            block = fh.read(end - start)
            idx = len(block)
            while True:
                idx = block.rfind(b'\n', 0, idx)
                if idx == -1:
                    break
                found += 1
                if found > n:
                    return start + idx + 1
            end = start
        return 0


class FollowService(Closable):
    """
    Polls a single file for appended lines, sending each complete line
    through the filter pipeline and renderer to the terminal.
    """

    def __init__(self, runtime, terminal=None, max_line=MAX_LINE,
                 sleep=None):
        super().__init__()
        self.runtime = runtime
        self.term = terminal or Terminal()
        self.pipeline = runtime.pipeline()
        self.renderer = runtime.renderer()
        self.tail_reader = TailReader()
        self.max_line = max_line
        self.last_size = -1
        self._pending = b''
        self._decoder = codecs.getincrementaldecoder('utf-8')('replace')
        self._sleep = sleep or asyncio.sleep

    @property
    def path(self):
        return expand_path(self.runtime.path)

    @property
    def interval(self):
        return self.runtime.interval_ms / 1000.0

    def open_file(self):
        """
        Open file for reading
        :return: binary file object
        """
        try:
            fh = open(self.path, 'rb')
        except OSError as e:
            raise OpenError('Failed to open %s: %s' % (
                self.path, e.strerror or e)) from e
        log.debug('open_file(%s) => %r', self.path, fh)
        return fh

    @staticmethod
    def file_size(fh):
        """current size of fh, -1 if it cannot be determined"""
        try:
            return os.fstat(fh.fileno()).st_size
        except (OSError, ValueError):
            return -1

    def emit(self, raw):
        """filter and render one line, returns True if it was printed"""
        # a character cut by max_line is finished by the next piece
        line = self._decoder.decode(raw, final=raw.endswith(b'\n'))
        if not line or not self.pipeline.should_emit(line):
            return False
        self.term.emit(self.renderer.render(line))
        return True

    def read_line(self, fh):
        """
        Next complete line, or None when only a partial line is available.
        A line longer than max_line is returned in max_line sized pieces.
        """
        chunk = fh.readline(self.max_line - len(self._pending))
        if not chunk:
            return None
        self._pending += chunk
        if self._pending.endswith(b'\n') or \
                len(self._pending) >= self.max_line:
            line, self._pending = self._pending, b''
            return line
        return None

    def drain(self, fh):
        """emit every complete line available, returns the count read"""
        count = 0
        while True:
            try:
                line = self.read_line(fh)
            except OSError as e:
                log.debug('read %s failed: %s', self.path, e)
                return count
            if line is None:
                return count
            self.emit(line)
            count += 1

    def check_truncation(self, fh):
        """restart from offset 0 when the file shrank since the last poll"""
        size = self.file_size(fh)
        if size >= 0:
            shrunk = 0 <= size < self.last_size
            if shrunk or fh.tell() > size:
                log.info('%s truncated (%d -> %d bytes), reading from start',
                         self.path, self.last_size, size)
                self._pending = b''
                self._decoder.reset()
                fh.seek(0)
        self.last_size = size

    def poll(self, fh):
        """
        One poll cycle: drain, then check for truncation. Read errors are
        a gap in the data, terminal write errors propagate.
        """
        count = self.drain(fh)
        try:
            self.check_truncation(fh)
        except OSError as e:
            log.debug('seek %s failed: %s', self.path, e)
        return count

    def tail(self, fh, n):
        """emit the last n lines of fh, nothing when n <= 0"""
        if not n or n <= 0:
            return 0
        offset = self.tail_reader.tail_offset(fh, n)
        log.debug('tail(%d) => offset %d', n, offset)
        fh.seek(offset)
        return self.drain(fh)

    def start(self, fh, lines=None):
        """position fh at end of file, or print the last lines first"""
        fh.seek(0, os.SEEK_END)
        self.last_size = self.file_size(fh)
        if lines:
            self.tail(fh, lines)
            self.last_size = self.file_size(fh)
        if self._pending:
            log.debug('waiting on partial line %s', trim_repr(self._pending))

    async def loop(self, fh):
        """poll until closed, sleeping between polls"""
        try:
            log.debug('follow loop -> closed: %s', self.is_closed)
            while not self.is_closed:
                self.poll(fh)
                await self._sleep(self.interval)
        finally:
            log.debug('finished follow loop -> closed: %s', self.is_closed)

    async def run(self):
        fh = self.open_file()
        try:
            self.start(fh, self.runtime.tail_count())
            await self.loop(fh)
        finally:
            fh.close()
