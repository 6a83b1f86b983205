"""
Outcome of a single merge pass.
"""
from dataclasses import dataclass, field
from typing import List


@dataclass
class MergeResult:
    """Final text plus a per-issue account of what the merge decided."""
    content: str
    original: str = ""
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    skipped_duplicates: List[str] = field(default_factory=list)
    imports_added: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.content != self.original

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"{len(self.added)} added, {len(self.updated)} updated, "
            f"{len(self.unchanged)} unchanged, {len(self.skipped_duplicates)} skipped as duplicate, "
            f"{len(self.imports_added)} import(s) added"
        )
