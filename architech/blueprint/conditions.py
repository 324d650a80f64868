"""Guard-expression evaluation for actions and ``{{#if}}`` blocks.

The condition language is flat: a handful of dotted lookups and two
literals.  Anything else evaluates to ``False``, and the guarded action is
skipped.
"""

from __future__ import annotations

import re

from .models import ProjectContext

_WRAPPED_RE = re.compile(r"^\{\{\s*(?:#if\s+)?(.*?)\s*\}\}$", re.DOTALL)
_FEATURE_RE = re.compile(r"^integration\.features\.(\w+)$")
_PARAMETER_RE = re.compile(r"^module\.parameters\.(\w+)$")


def normalize_condition(expr: str) -> str:
    """Strip whitespace and an optional ``{{#if ...}}`` / ``{{...}}`` wrapper.

    Blueprints in the wild write guards both bare (``integration.features.x``)
    and in block form (``{{#if integration.features.x}}``).
    """
    text = expr.strip()
    match = _WRAPPED_RE.match(text)
    if match:
        text = match.group(1).strip()
    return text


def evaluate_condition(expr: str | None, context: ProjectContext) -> bool:
    """Return ``True`` if *expr* holds against *context*.

    A missing or blank expression always holds.  Recognised forms, in
    priority order:

    * ``integration.features.NAME`` -- the feature flag is present and truthy.
    * ``module.parameters.NAME`` -- the caller supplied a truthy parameter.
    * ``framework`` -- the project declares a framework.
    * ``true`` / ``false``.

    Every other expression is ``False``.
    """
    if expr is None or not expr.strip():
        return True

    text = normalize_condition(expr)

    feature = _FEATURE_RE.match(text)
    if feature:
        if context.integration is None:
            return False
        return bool(context.integration.features.get(feature.group(1)))

    parameter = _PARAMETER_RE.match(text)
    if parameter:
        if context.module is None:
            return False
        return bool(context.module.parameters.get(parameter.group(1)))

    if text == "framework":
        return bool(context.framework)

    if text == "true":
        return True
    return False
