"""
Terminal output
"""
import sys
import logging

from .util import coerce_str as _str

log = logging.getLogger()


class Terminal:
    """Virtual terminal"""

    def __init__(self, stdout=None):
        self.stdout = stdout or sys.stdout

    def emit(self, string):
        """Write string to stdout and flush"""
        self.stdout.write(_str(string))
        self.stdout.flush()
