"""
Domain entities and value objects.
"""
from .errors import (
    ScaffoldError,
    ConfigurationError,
    ProfileNotFoundError,
    SourceUnavailableError,
    SpecFileWriteError,
)
from .issue import Issue
from .file_state import BlockSpan, FileState
from .merge_result import MergeResult

__all__ = [
    'ScaffoldError',
    'ConfigurationError',
    'ProfileNotFoundError',
    'SourceUnavailableError',
    'SpecFileWriteError',
    'Issue',
    'BlockSpan',
    'FileState',
    'MergeResult',
]
