"""
Formatting helpers
"""
from datetime import datetime

# Stands in for path separators inside a single path component
SEPARATOR_REPLACEMENT = "∕"

_SANITIZE_TABLE = str.maketrans({
    "/": SEPARATOR_REPLACEMENT,
    "\\": SEPARATOR_REPLACEMENT,
    "\x00": None,
})


def sanitize_path(part: str) -> str:
    """Make a string safe to use as exactly one path component"""
    part = (part or "").translate(_SANITIZE_TABLE)
    if part in ("", ".", ".."):
        part = "_" + part
    return part


def format_item_dirname(published: datetime, title: str) -> str:
    """Directory name for one post: "<YYYY-MM-DD>: <title>"."""
    return sanitize_path(f"{published.strftime('%Y-%m-%d')}: {title}")
