"""
Repository interfaces for data access abstraction.

Following the Repository pattern to abstract data access from business logic.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from core.domain.issue import Issue


class IIssueSource(ABC):
    """Interface for fetching issues with acceptance criteria."""

    @abstractmethod
    def fetch_issues(self, project_key: str, board_id: Optional[str] = None) -> List[Issue]:
        """Fetch every issue with acceptance criteria for a project or board.

        Args:
            project_key: Project key (e.g., "CRM")
            board_id: Optional board ID; when given the board decides the issue set

        Returns:
            Issues in fetch order; empty if the source is unavailable
        """
        pass


class ISpecFileStore(ABC):
    """Interface for reading and writing the target spec file."""

    @abstractmethod
    def read(self, path: str) -> Tuple[str, bool]:
        """Read the spec file.

        Args:
            path: Path of the spec file

        Returns:
            (content, exists) - placeholder content when the file is missing
        """
        pass

    @abstractmethod
    def write(self, path: str, content: str) -> None:
        """Replace the spec file content in one step.

        Raises:
            SpecFileWriteError: If the file could not be written
        """
        pass
