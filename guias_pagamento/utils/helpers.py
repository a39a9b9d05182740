"""
Helper Utilities Module.

Small, generic helpers shared by the pipeline stages.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - generate_timestamp: Formatted timestamps for file names
    - safe_filename: Sanitize filenames for the filesystem
    - digits_only: Strip everything but ASCII digits
    - preview: Single-line excerpt of long text for logs
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Example:
        >>> generate_timestamp("%Y-%m-%d")
        "2025-10-19"
    """
    return datetime.now().strftime(format_str)


def safe_filename(filename: str, replacement: str = "_") -> str:
    """
    Sanitize a filename by replacing characters invalid on Windows/POSIX.

    Example:
        >>> safe_filename("SEPA:2025/10.xml")
        "SEPA_2025_10.xml"
    """
    invalid_chars = r'[<>:"/\\|?*\x00-\x1f]'
    sanitized = re.sub(invalid_chars, replacement, filename)
    sanitized = sanitized.strip('. ')

    if not sanitized:
        sanitized = "unnamed"

    return sanitized


def digits_only(value: str) -> str:
    """Return only the ASCII digits of ``value`` ("156.080 671" -> "156080671")."""
    if not value:
        return ""
    return re.sub(r'[^0-9]', '', value)


def preview(text: str, length: int = 200) -> str:
    """Collapse whitespace and cut ``text`` to ``length`` characters for logging."""
    collapsed = ' '.join((text or '').split())
    if len(collapsed) <= length:
        return collapsed
    return collapsed[:length] + "..."
