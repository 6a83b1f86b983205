"""
Use case: Collect issues across projects and boards.
"""
import logging
from typing import List, Sequence

from core.domain.issue import Issue
from core.interfaces.repository import IIssueSource

logger = logging.getLogger(__name__)


class IssueCollector:
    """Fetches issues for every selected project and board combination."""

    def __init__(self, source: IIssueSource):
        self.source = source

    def collect(self, projects: Sequence[str], boards: Sequence[str] = ()) -> List[Issue]:
        """Fetch and concatenate issues in project, then board order.

        Args:
            projects: Project keys
            boards: Board IDs; each project is queried per board, or on its
                own when no boards are given

        Returns:
            All fetched issues (keys may repeat across batches)
        """
        if not projects:
            logger.error("No projects specified. Use --project (and optionally --board).")
            return []

        issues: List[Issue] = []
        for project in projects:
            if boards:
                for board in boards:
                    issues.extend(self.source.fetch_issues(project, board))
            else:
                issues.extend(self.source.fetch_issues(project))

        logger.info("Total Jira issues extracted: %d", len(issues))
        return issues
