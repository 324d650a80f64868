"""Raw append/prepend for files with no assumed structure."""

from __future__ import annotations


def append_content(existing: str | None, new: str) -> str:
    """Return *existing* followed by *new*, separated by a single newline."""
    if not existing:
        return new
    separator = "" if existing.endswith("\n") else "\n"
    return existing + separator + new


def prepend_content(existing: str | None, new: str) -> str:
    """Return *new* followed by *existing*, separated by a single newline."""
    if not existing:
        return new
    separator = "" if new.endswith("\n") else "\n"
    return new + separator + existing
