"""
Helper utility functions for the video recap application.
"""

import os
import time
import uuid
from pathlib import Path


def unique_temp_path(directory: Path, prefix: str, extension: str) -> Path:
    """
    Build a collision-free path for a temporary media file.

    Args:
        directory: Directory the file will live in
        prefix: Short label for the stage that owns the file
        extension: File extension (without the dot)

    Returns:
        Path that no other job will generate
    """
    os.makedirs(directory, exist_ok=True)
    name = f"{prefix}_{time.time_ns()}_{uuid.uuid4().hex[:8]}.{extension}"
    return Path(directory) / name


def count_words(text: str) -> int:
    """Count whitespace separated words."""
    return len(text.split())


def format_megabytes(size_in_bytes: int, precision: int = 1) -> str:
    """Format a byte count as megabytes, e.g. ``12.3``."""
    return f"{size_in_bytes / (1024 * 1024):.{precision}f}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
