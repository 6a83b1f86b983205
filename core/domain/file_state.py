"""
In-memory view of the target spec file for one run.
"""
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class BlockSpan:
    """Verbatim span of one generated describe block."""
    key: str
    title: str
    start: int
    end: int
    text: str


@dataclass
class FileState:
    """Scanned spec file: raw text plus the anchors found in it.

    Rebuilt from disk on every run and never persisted.
    """
    content: str
    existing_blocks: Dict[str, BlockSpan] = field(default_factory=dict)
    existing_imports: List[str] = field(default_factory=list)
    marker_index: int = -1
    exists: bool = True

    @property
    def has_marker(self) -> bool:
        return self.marker_index != -1
