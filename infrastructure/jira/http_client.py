"""
Jira HTTP Client - Low-level HTTP interactions with Jira Cloud/Server.

This class handles only HTTP concerns, keeping infrastructure separate from domain logic.
"""
import base64
import logging
from typing import Any, Dict, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


class JiraHttpClient:
    """Low-level HTTP client for the Jira REST and Agile APIs."""

    API_VERSION = "3"  # Jira Cloud REST API v3
    AGILE_API = "rest/agile/1.0"

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        timeout: int = 30,
        is_cloud: bool = True,
        verify_ssl: bool = True,
        max_retries: int = 3,
        session: Optional[requests.Session] = None
    ):
        """Initialize Jira HTTP client.

        Args:
            base_url: Jira instance URL (e.g., "https://company.atlassian.net")
            email: User email (Cloud) or username (Server) for authentication
            api_token: API token (Cloud) or password (Server)
            timeout: Request timeout in seconds
            is_cloud: True for Jira Cloud, False for Jira Server/Data Center
            verify_ssl: Verify the server certificate
            max_retries: Transport level retries on 429/5xx and connection errors
            session: Optional pre-built session
        """
        if not api_token:
            raise ValueError("API token is required")
        if not base_url:
            raise ValueError("Base URL is required")
        if not email:
            raise ValueError("Email is required")

        self._base_url = base_url.rstrip('/')
        self._email = email
        self._api_token = api_token
        self._timeout = timeout
        self._is_cloud = is_cloud
        self._headers = self._create_headers()
        self._session = session or self._create_session(max_retries)
        self._session.verify = verify_ssl

        if not verify_ssl:
            logger.warning("TLS certificate verification is disabled for %s", self._base_url)
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def base_url(self) -> str:
        """Base URL for API calls."""
        return self._base_url

    @property
    def headers(self) -> Dict[str, str]:
        """Headers for API calls."""
        return self._headers.copy()

    def _create_headers(self) -> Dict[str, str]:
        """Create authentication headers."""
        # Jira Cloud uses Basic Auth with email:api_token
        # Jira Server uses Basic Auth with username:password
        credentials = base64.b64encode(
            f"{self._email}:{self._api_token}".encode()
        ).decode()
        return {
            'Content-Type': 'application/json',
            'Authorization': f'Basic {credentials}',
            'Accept': 'application/json'
        }

    @staticmethod
    def _create_session(max_retries: int) -> requests.Session:
        """Session that retries idempotent requests on throttling and server errors."""
        retry = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=frozenset(['GET']),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session = requests.Session()
        session.mount('https://', adapter)
        session.mount('http://', adapter)
        return session

    def _get_api_base(self) -> str:
        """Get the appropriate API base URL."""
        if self._is_cloud:
            return f"{self._base_url}/rest/api/{self.API_VERSION}"
        else:
            # Jira Server uses /rest/api/2
            return f"{self._base_url}/rest/api/2"

    def api_url(self, endpoint: str) -> str:
        """Absolute URL of a REST API endpoint."""
        return f"{self._get_api_base()}/{endpoint}"

    def agile_url(self, endpoint: str) -> str:
        """Absolute URL of an Agile API endpoint."""
        return f"{self._base_url}/{self.AGILE_API}/{endpoint}"

    def get(self, endpoint: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        """Make GET request to the Jira REST API.

        Args:
            endpoint: API endpoint (relative to API base)
            params: Optional query parameters

        Returns:
            JSON response as dictionary

        Raises:
            requests.HTTPError: If request fails
        """
        return self._get_json(self.api_url(endpoint), params)

    def get_agile(self, endpoint: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        """Make GET request to the Jira Agile API (boards).

        Raises:
            requests.HTTPError: If request fails
        """
        return self._get_json(self.agile_url(endpoint), params)

    def _get_json(self, url: str, params: Optional[Dict]) -> Dict[str, Any]:
        logger.debug("GET %s params=%s", url, params)
        response = self._session.get(
            url,
            headers=self._headers,
            params=params,
            timeout=self._timeout
        )
        response.raise_for_status()
        return response.json()

    def get_board(self, board_id: str) -> Dict[str, Any]:
        """Get board details (id, name, type, filter)."""
        return self.get_agile(f"board/{board_id}")

    def get_board_configuration(self, board_id: str) -> Dict[str, Any]:
        """Get board configuration, which carries the board's filter ID."""
        return self.get_agile(f"board/{board_id}/configuration")

    def get_board_issues(
        self,
        board_id: str,
        fields: Optional[str] = None,
        start_at: int = 0,
        max_results: int = 50
    ) -> Dict[str, Any]:
        """Get one page of issues on a board."""
        params = {"startAt": start_at, "maxResults": max_results}
        if fields:
            params["fields"] = fields
        return self.get_agile(f"board/{board_id}/issue", params=params)

    def get_filter(self, filter_id: str) -> Dict[str, Any]:
        """Get a saved filter (including its JQL)."""
        return self.get(f"filter/{filter_id}")

    def search_issues(
        self,
        jql: str,
        fields: Optional[str] = None,
        start_at: int = 0,
        max_results: int = 50
    ) -> Dict[str, Any]:
        """Search issues using JQL.

        Args:
            jql: JQL query string
            fields: Comma separated fields to return (None for all)
            start_at: Starting index for pagination
            max_results: Maximum results per page

        Returns:
            Search results with issues
        """
        params = {
            "jql": jql,
            "startAt": start_at,
            "maxResults": max_results
        }
        if fields:
            params["fields"] = fields

        return self.get("search", params=params)
