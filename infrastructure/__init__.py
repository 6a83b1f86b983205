"""
Infrastructure layer - implementations of interfaces.

Contains:
- jira: Jira integration (issue source)
- files: spec file store
- logs: logging setup
"""
from .jira import JiraHttpClient, JiraContentParser, JiraIssueSource
from .files import SpecFileRepository

__all__ = [
    'JiraHttpClient',
    'JiraContentParser',
    'JiraIssueSource',
    'SpecFileRepository',
]
