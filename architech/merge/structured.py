"""Structured-object merge for JSON config files (package.json, tsconfig.json).

Both sides are parsed; an unparsable existing file is an error so that a
corrupt manifest is never silently replaced.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from architech.errors import ParseError, UnknownMergeStrategy
from architech.utils import dump_json

STRUCTURED_STRATEGIES: dict[str, str] = {
    "deep": "deep",
    "deep-merge": "deep",
    "shallow": "shallow",
    "shallow-merge": "shallow",
    "replace": "replace",
}


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into a copy of *target*.

    Nested objects are merged key by key; scalars and arrays from *source*
    overwrite whatever *target* holds.  Keys only in *target* are preserved.
    """
    result = copy.deepcopy(target)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def shallow_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Overwrite top-level keys of *target* with those of *source*."""
    return {**copy.deepcopy(target), **copy.deepcopy(source)}


def merge_objects(existing: dict[str, Any], payload: dict[str, Any], strategy: str = "deep") -> dict[str, Any]:
    """Combine two already-parsed objects with the named strategy."""
    canonical = STRUCTURED_STRATEGIES.get(strategy)
    if canonical is None:
        raise UnknownMergeStrategy(strategy)
    if canonical == "deep":
        return deep_merge(existing, payload)
    if canonical == "shallow":
        return shallow_merge(existing, payload)
    return copy.deepcopy(payload)


def parse_object(text: str, path: str) -> dict[str, Any]:
    """Parse *text* as a JSON object.

    Raises:
        ParseError: If the text is not valid JSON or is not an object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(path, f"invalid JSON ({exc.msg} at line {exc.lineno} column {exc.colno})") from exc
    if not isinstance(data, dict):
        raise ParseError(path, f"expected a JSON object, found {type(data).__name__}")
    return data


def merge_structured(
    existing: str | None,
    new: str,
    *,
    strategy: str = "deep",
    path: str = "<content>",
) -> str:
    """Merge JSON text *new* into JSON text *existing*.

    Args:
        existing: Current file content, or ``None`` if the file does not exist.
        new: Generated JSON content.
        strategy: ``deep``, ``shallow`` or ``replace`` (``deep-merge`` and
            ``shallow-merge`` are accepted as aliases).
        path: Used in error messages.

    Returns:
        The merged document, serialised with a 2-space indent.

    Raises:
        ParseError: If either side is not a JSON object.
        UnknownMergeStrategy: If *strategy* is not recognised.
    """
    if strategy not in STRUCTURED_STRATEGIES:
        raise UnknownMergeStrategy(strategy)

    payload = parse_object(new, f"{path} (generated content)")
    if existing is None or not existing.strip():
        return dump_json(payload)

    current = parse_object(existing, path)
    merged = merge_objects(current, payload, strategy)
    if merged == current:
        # Nothing new; keep the author's formatting intact.
        return existing
    return dump_json(merged)
