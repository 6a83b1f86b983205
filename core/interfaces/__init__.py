"""
Interfaces for dependency inversion following SOLID principles.

External dependencies should depend on these abstractions, not concrete implementations.
"""
from .repository import IIssueSource, ISpecFileStore

__all__ = [
    'IIssueSource',
    'ISpecFileStore',
]
