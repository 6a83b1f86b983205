"""
Configuration management - externalized settings built from the environment.
"""
from .environment import (
    LOG_LEVELS,
    DEFAULT_PROFILE,
    DEFAULT_TEST_FILE,
    JiraSettings,
    LoggingSettings,
    AppSettings,
)

__all__ = [
    'LOG_LEVELS',
    'DEFAULT_PROFILE',
    'DEFAULT_TEST_FILE',
    'JiraSettings',
    'LoggingSettings',
    'AppSettings',
]
