"""
Exceptions raised while configuring or opening a follow session
"""


class LogknifeError(Exception):
    pass


class ConfigurationError(LogknifeError, ValueError):
    """Invalid option, duration, engine or configuration object"""


class PatternError(ConfigurationError):
    """Pattern rejected by the matching engine"""

    def __init__(self, pattern, reason):
        super().__init__('Invalid pattern %r: %s' % (pattern, reason))
        self.pattern = pattern
        self.reason = reason


class OpenError(LogknifeError, OSError):
    """Target file cannot be opened"""
