"""
Logging infrastructure.
"""
from .logger import StructuredFormatter, configure_logging, clean_old_logs, log_file_name

__all__ = ['StructuredFormatter', 'configure_logging', 'clean_old_logs', 'log_file_name']
