"""Flat ``KEY=value`` merge for env-style files.

Existing lines are never rewritten or removed.  A generated line is appended
only when no existing line declares the same key, which makes the merge
idempotent.
"""

from __future__ import annotations


def env_key(line: str) -> str:
    """Return the key of an env line (the text before the first ``=``)."""
    return line.split("=", 1)[0].strip()


def _is_entry(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def existing_keys(content: str | None) -> set[str]:
    """Collect every key declared in *content*."""
    if not content:
        return set()
    return {env_key(line) for line in content.splitlines() if _is_entry(line)}


def merge_env(existing: str | None, new: str) -> str:
    """Append the entries of *new* whose keys are absent from *existing*.

    Comment lines immediately above a generated entry are carried along with
    it, so ``# Stripe secret`` stays next to ``STRIPE_SECRET_KEY=``.  Added
    lines use the existing file's line ending.

    Args:
        existing: Current file content, or ``None`` if the file does not exist.
        new: Generated env content.

    Returns:
        The merged content.  Equal to *existing* when nothing was added.
    """
    current = existing or ""
    seen = existing_keys(current)

    additions: list[str] = []
    pending_comments: list[str] = []
    for raw_line in new.splitlines():
        line = raw_line.strip()
        if not line:
            pending_comments = []
            continue
        if line.startswith("#"):
            pending_comments.append(line)
            continue

        key = env_key(line)
        if key not in seen:
            additions.extend(pending_comments)
            additions.append(line)
            seen.add(key)
        pending_comments = []

    if not additions:
        return current

    eol = "\r\n" if "\r\n" in current else "\n"
    separator = "" if not current or current.endswith("\n") else eol
    return current + separator + eol.join(additions) + eol
