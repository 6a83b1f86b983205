"""
Core services - anchor scanning, rendering and merging of generated blocks.
"""
from .anchor_locator import TextAnchorLocator, MARKER_LINE, MARKER_TOKEN
from .ac_formatter import AcceptanceCriteriaFormatter
from .duplicate_guard import DuplicateGuard
from .merge_engine import MergeEngine

__all__ = [
    'TextAnchorLocator',
    'MARKER_LINE',
    'MARKER_TOKEN',
    'AcceptanceCriteriaFormatter',
    'DuplicateGuard',
    'MergeEngine',
]
