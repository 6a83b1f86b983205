"""
File system infrastructure.
"""
from .spec_file_repository import SpecFileRepository, DEFAULT_CONTENT

__all__ = ['SpecFileRepository', 'DEFAULT_CONTENT']
