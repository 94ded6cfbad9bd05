#!/usr/bin/env python3 -u
"""
Follow a growing log file, filter its lines and colorize the result.
"""
# NOTES
# http://www.termsys.demon.co.uk/vtansi.htm
# https://en.wikipedia.org/wiki/ANSI_escape_code#SGR_(Select_Graphic_Rendition)_parameters
# The Practice of Programming, ch. 9.2 (regular expressions)

__version__ = '0.1.0'
__application__ = 'logknife'
default_config_file = '~/.logknife'
