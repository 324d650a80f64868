"""Merge strategies and the table that picks one for a target file.

Each strategy is a pure function of ``(existing, new) -> merged`` where
*existing* is ``None`` for a file that does not exist yet.
"""

from __future__ import annotations

from typing import Callable

from architech.errors import UnknownMergeStrategy
from architech.utils import SHAPE_ENV, SHAPE_SOURCE, SHAPE_STRUCTURED, SHAPE_TEXT, file_shape

from .env import merge_env
from .raw import append_content, prepend_content
from .source import merge_source
from .structured import STRUCTURED_STRATEGIES, merge_structured
from .wrapper import wrap_config

# Strategy used when the action does not name one.
DEFAULT_STRATEGIES: dict[str, str] = {
    SHAPE_STRUCTURED: "deep",
    SHAPE_SOURCE: "source",
    SHAPE_ENV: "env",
    SHAPE_TEXT: "append",
}

# Shapes each named strategy may be applied to.
_ALL_SHAPES = frozenset(DEFAULT_STRATEGIES)
_COMPATIBLE_SHAPES: dict[str, frozenset[str]] = {
    **{name: frozenset({SHAPE_STRUCTURED}) for name in STRUCTURED_STRATEGIES},
    "source": frozenset({SHAPE_SOURCE}),
    "env": frozenset({SHAPE_ENV, SHAPE_TEXT}),
    "append": frozenset({SHAPE_ENV, SHAPE_TEXT}),
    "prepend": frozenset({SHAPE_ENV, SHAPE_TEXT}),
    "overwrite": _ALL_SHAPES,
}

KNOWN_STRATEGIES: frozenset[str] = frozenset(_COMPATIBLE_SHAPES)

_TEXT_STRATEGIES: dict[str, Callable[[str | None, str], str]] = {
    "source": merge_source,
    "env": merge_env,
    "append": append_content,
    "prepend": prepend_content,
}


def select_strategy(path: str, requested: str | None = None) -> str:
    """Return the strategy name to use for *path*.

    Raises:
        UnknownMergeStrategy: If *requested* is not a known strategy, or is
            known but cannot be applied to this kind of file.
    """
    shape = file_shape(path)
    if not requested:
        return DEFAULT_STRATEGIES[shape]
    if requested not in KNOWN_STRATEGIES:
        raise UnknownMergeStrategy(requested)
    if shape not in _COMPATIBLE_SHAPES[requested]:
        raise UnknownMergeStrategy(requested, f"cannot be applied to {shape} file {path}")
    return requested


def apply_strategy(strategy: str, existing: str | None, new: str, *, path: str = "<content>") -> str:
    """Run the named strategy.

    Without existing content every strategy writes *new* as-is, except the
    structured ones, which re-serialise it.
    """
    if strategy == "overwrite":
        return new
    if strategy in STRUCTURED_STRATEGIES:
        return merge_structured(existing, new, strategy=strategy, path=path)
    try:
        merge = _TEXT_STRATEGIES[strategy]
    except KeyError:
        raise UnknownMergeStrategy(strategy) from None
    return merge(existing, new)


def merge_content(path: str, existing: str | None, new: str, requested: str | None = None) -> str:
    """Select a strategy for *path* and apply it."""
    return apply_strategy(select_strategy(path, requested), existing, new, path=path)


__all__ = [
    "DEFAULT_STRATEGIES",
    "KNOWN_STRATEGIES",
    "apply_strategy",
    "append_content",
    "merge_content",
    "merge_env",
    "merge_source",
    "merge_structured",
    "prepend_content",
    "select_strategy",
    "wrap_config",
]
