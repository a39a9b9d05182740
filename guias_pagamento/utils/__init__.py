"""
Utility Module for the payment-guide pipeline.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - File and text helpers
"""

from .logger import setup_logger, get_logger
from .helpers import ensure_directory, generate_timestamp, safe_filename, digits_only

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'generate_timestamp',
    'safe_filename',
    'digits_only'
]
