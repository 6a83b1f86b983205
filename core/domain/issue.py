"""
Issue domain entity.
"""
import re
from dataclasses import dataclass

ISSUE_KEY_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9_]*-(\d+)$')


@dataclass(frozen=True)
class Issue:
    """A tracked work item with its acceptance criteria text."""
    key: str
    title: str
    acceptance_criteria: str

    def __post_init__(self):
        """Validate issue after initialization."""
        if not self.key or not ISSUE_KEY_PATTERN.match(self.key):
            raise ValueError(f"Issue key must look like PREFIX-NUMBER, got: {self.key!r}")

    @property
    def number(self) -> int:
        """Numeric suffix of the key (CRM-12 -> 12)."""
        return int(self.key.rsplit('-', 1)[1])

    @property
    def project(self) -> str:
        """Project prefix of the key (CRM-12 -> CRM)."""
        return self.key.rsplit('-', 1)[0]

    @property
    def criteria_lines(self):
        """Non-empty, trimmed acceptance criteria lines in order."""
        return [line.strip() for line in self.acceptance_criteria.splitlines() if line.strip()]
