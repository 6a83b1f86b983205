"""
Application use cases.
"""
from .collect_issues import IssueCollector

__all__ = ['IssueCollector']
