"""Text processing utilities.

Common text manipulation functions used across modules.
"""

import re

# Patterns for removing thinking/reasoning blocks from LLM output
THINK_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<thinking>.*?</thinking>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]

FILE_NAME_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def strip_think(text: str) -> str:
    """Remove thinking/reasoning blocks from LLM output.

    Args:
        text: Raw LLM output text

    Returns:
        Cleaned text without thinking artifacts
    """
    result = text
    for pattern in THINK_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


def truncate(text: str, max_len: int = 120) -> str:
    """Shorten text for one-line display."""
    text = " ".join(text.split())
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def safe_file_name(name: str) -> str:
    """Make a file name safe for object storage paths.

    "Form 1 Biology (2023).pdf" -> "Form_1_Biology_2023_.pdf"
    """
    cleaned = FILE_NAME_UNSAFE.sub("_", name.strip())
    return cleaned or "file"
