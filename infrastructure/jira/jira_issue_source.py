"""
Jira issue source.

Fetches issues with acceptance criteria from Jira, by board (Scrum boards
through their saved filter, Kanban and simple boards directly) or by
project key.
"""
import json
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

import requests

from core.config.environment import JiraSettings
from core.domain.errors import SourceUnavailableError
from core.domain.issue import Issue
from core.interfaces.repository import IIssueSource
from .content_parser import JiraContentParser
from .http_client import JiraHttpClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 50
NO_TITLE = "No Title"
SCRUM_BOARD = "scrum"
DIRECT_BOARDS = ("kanban", "simple")


class JiraIssueSource(IIssueSource):
    """Jira implementation of the issue source.

    Any HTTP, network or response format failure aborts the current batch:
    the failure is logged with step, URL, status and body, and the batch
    yields no issues.
    """

    def __init__(
        self,
        client: JiraHttpClient,
        ac_field: Optional[str] = None,
        page_size: int = PAGE_SIZE
    ):
        """Initialize source.

        Args:
            client: Configured Jira HTTP client
            ac_field: Custom field ID holding acceptance criteria; the
                description is used when unset or empty
            page_size: Issues requested per page
        """
        self._client = client
        self._ac_field = ac_field
        self._page_size = page_size
        self._parser = JiraContentParser()

    @classmethod
    def from_settings(cls, settings: JiraSettings) -> 'JiraIssueSource':
        """Build a source from Jira settings.

        Raises:
            ConfigurationError: If credentials are missing
        """
        settings.validate()
        client = JiraHttpClient(
            base_url=settings.base_url,
            email=settings.username,
            api_token=settings.api_token,
            timeout=settings.timeout,
            is_cloud=settings.is_cloud,
            verify_ssl=settings.verify_ssl,
            max_retries=settings.max_retries,
        )
        return cls(client, ac_field=settings.ac_field)

    @property
    def fields(self) -> str:
        fields = ['summary', 'description']
        if self._ac_field:
            fields.append(self._ac_field)
        return ','.join(fields)

    def fetch_issues(self, project_key: str, board_id: Optional[str] = None) -> List[Issue]:
        """Fetch issues with acceptance criteria.

        Args:
            project_key: Project key, used when no board is given
            board_id: Board ID; when given, the board decides the issue set

        Returns:
            Issues in fetch order, or an empty list if Jira is unavailable
        """
        try:
            if board_id:
                logger.info("Fetching issues for board %s", board_id)
                raw_issues = self._fetch_board(str(board_id))
            else:
                logger.info("Fetching issues for project %s", project_key)
                raw_issues = list(self._search(self.project_jql(project_key)))
        except SourceUnavailableError as e:
            self._log_source_error(e)
            return []

        issues = []
        for raw_issue in raw_issues:
            issue = self._to_issue(raw_issue)
            if issue is not None:
                issues.append(issue)

        logger.info("Fetched %d issue(s) with acceptance criteria", len(issues))
        return issues

    @staticmethod
    def project_jql(project_key: str) -> str:
        escaped = project_key.replace('\\', '\\\\').replace('"', '\\"')
        return f'project = "{escaped}" ORDER BY key ASC'

    def _fetch_board(self, board_id: str) -> List[Dict[str, Any]]:
        board = self._call("Board Fetch", self._client.agile_url(f"board/{board_id}"),
                           self._client.get_board, board_id)
        board_type = str(board.get('type', '')).lower()
        logger.info("Board %s detected as %s", board_id, board_type.upper() or "UNKNOWN")

        if board_type == SCRUM_BOARD:
            filter_id = self._board_filter_id(board_id, board)
            if not filter_id:
                logger.error("Scrum board %s does not have an associated filter", board_id)
                return []
            logger.info("Scrum board %s is linked to filter %s", board_id, filter_id)
            return self._fetch_filter(str(filter_id))

        if board_type in DIRECT_BOARDS:
            url = self._client.agile_url(f"board/{board_id}/issue")
            return list(self._paginate(
                "Board Issue Fetch", url,
                lambda start_at: self._client.get_board_issues(
                    board_id, fields=self.fields, start_at=start_at, max_results=self._page_size
                ),
            ))

        logger.error("Unknown board type for board %s: %r", board_id, board.get('type'))
        return []

    def _board_filter_id(self, board_id: str, board: Dict[str, Any]) -> Optional[str]:
        """Filter ID from the board details, or from the board configuration."""
        filter_id = (board.get('filter') or {}).get('id')
        if filter_id:
            return filter_id
        configuration = self._call(
            "Board Configuration Fetch", self._client.agile_url(f"board/{board_id}/configuration"),
            self._client.get_board_configuration, board_id
        )
        return (configuration.get('filter') or {}).get('id')

    def _fetch_filter(self, filter_id: str) -> List[Dict[str, Any]]:
        saved_filter = self._call("Filter Fetch", self._client.api_url(f"filter/{filter_id}"),
                                  self._client.get_filter, filter_id)
        jql = saved_filter.get('jql')
        if not jql:
            logger.error("No JQL found for filter %s", filter_id)
            return []

        logger.info("JQL for filter %s: %s", filter_id, jql)
        return list(self._search(jql))

    def _search(self, jql: str) -> Iterator[Dict[str, Any]]:
        return self._paginate(
            "Issue Search", self._client.api_url("search"),
            lambda start_at: self._client.search_issues(
                jql, fields=self.fields, start_at=start_at, max_results=self._page_size
            ),
        )

    def _paginate(
        self,
        step: str,
        url: str,
        fetch_page: Callable[[int], Dict[str, Any]]
    ) -> Iterator[Dict[str, Any]]:
        """Yield raw issues page by page until the reported total is reached."""
        start_at = 0
        while True:
            page = self._call(step, url, fetch_page, start_at)
            issues = page.get('issues') or []
            yield from issues

            start_at += len(issues)
            total = page.get('total')
            if not issues or page.get('isLast'):
                break
            if total is not None and start_at >= total:
                break
            if total is None and len(issues) < self._page_size:
                break

    def _call(self, step: str, url: str, func: Callable, *args) -> Dict[str, Any]:
        """Run one API call, converting transport and format errors.

        Raises:
            SourceUnavailableError: On HTTP error status, network failure or invalid JSON
        """
        try:
            data = func(*args)
        except requests.HTTPError as e:
            response = e.response
            raise SourceUnavailableError(
                step, url, str(e),
                status_code=response.status_code if response is not None else None,
                body=response.text if response is not None else None,
            ) from e
        except ValueError as e:
            raise SourceUnavailableError(step, url, f"Invalid JSON response: {e}") from e
        except requests.RequestException as e:
            raise SourceUnavailableError(step, url, f"No response received. Possible network issue: {e}") from e

        if not isinstance(data, dict):
            raise SourceUnavailableError(step, url, f"Unexpected response type: {type(data).__name__}")
        return data

    @staticmethod
    def _log_source_error(error: SourceUnavailableError) -> None:
        fields = {'step': error.step, 'url': error.url, 'status_code': error.status_code}
        logger.error("%s failed at URL: %s", error.step, error.url, extra=fields)
        if error.status_code is not None:
            logger.error("Status: %s", error.status_code, extra=fields)
            logger.error("Response: %s", _pretty_body(error.body), extra=fields)
        else:
            logger.error("%s", error, extra=fields)

    def _to_issue(self, raw_issue: Dict[str, Any]) -> Optional[Issue]:
        key = raw_issue.get('key', '')
        fields = raw_issue.get('fields') or {}
        title = (fields.get('summary') or '').strip() or NO_TITLE

        content = fields.get(self._ac_field) if self._ac_field else None
        ac_text = self._parser.normalize_to_text(content or fields.get('description'))
        if not ac_text:
            logger.debug("Skipping %s (No AC found)", key)
            return None

        try:
            issue = Issue(key=key, title=title, acceptance_criteria=ac_text)
        except ValueError:
            logger.warning("Skipping issue with malformed key: %r", key)
            return None

        logger.info("Fetched AC for %s: %s", key, title)
        return issue


def _pretty_body(body: Optional[str]) -> str:
    if not body:
        return "<empty>"
    try:
        return json.dumps(json.loads(body), indent=2)
    except ValueError:
        return body
