"""
Jira infrastructure module.

Provides the HTTP client and the issue source for Jira integration.
"""
from .http_client import JiraHttpClient
from .content_parser import JiraContentParser
from .jira_issue_source import JiraIssueSource

__all__ = ['JiraHttpClient', 'JiraContentParser', 'JiraIssueSource']
