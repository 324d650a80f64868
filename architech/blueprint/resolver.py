"""Template resolution for blueprint strings.

Blueprint authors embed a small handlebars-like language in paths, file
contents, and commands.  ``TemplateResolver`` expands it in a fixed order:

1. ``{{#if EXPR}}...{{/if}}`` blocks (innermost first, so nesting works)
2. ``{{paths.KEY}}`` through the project's path handler
3. ``{{project.*}}`` fields, with defaults for the optional ones
4. ``{{module.parameters.KEY}}`` over adapter defaults
5. ``{{module.id|category|version}}`` and ``{{framework}}``
6. ``{{env.NODE_ENV}}`` and ``{{env.USER}}``

Placeholders that none of the steps recognise are left untouched.
"""

from __future__ import annotations

import json
import os
import re
from typing import Any

from architech.utils import is_source_path

from .conditions import evaluate_condition
from .models import ProjectContext

_IF_BLOCK_RE = re.compile(
    r"\{\{#if\s+([^}]+?)\s*\}\}((?:(?!\{\{#if\s).)*?)\{\{/if\}\}",
    re.DOTALL,
)
_PATH_RE = re.compile(r"\{\{paths\.([\w.-]+)\}\}")
_PROJECT_RE = re.compile(r"\{\{project\.(name|path|framework|description|author|version|license)\}\}")
_PARAMETER_RE = re.compile(r"\{\{module\.parameters\.(\w+)\}\}")
_MODULE_RE = re.compile(r"\{\{module\.(id|category|version)\}\}")
_FRAMEWORK_RE = re.compile(r"\{\{framework\}\}")
_ENV_RE = re.compile(r"\{\{env\.(NODE_ENV|USER)\}\}")

ENV_FALLBACKS: dict[str, str] = {
    "NODE_ENV": "development",
    "USER": "user",
}

PROJECT_DEFAULTS: dict[str, str] = {
    "version": "0.1.0",
    "license": "MIT",
}


def format_parameter(value: Any, target_path: str | None = None) -> str:
    """Render a module parameter for substitution into text.

    Lists become a quoted literal (``['a', 'b']``) when the target is a source
    file and a space-joined token list otherwise, because the same value may
    feed a source-code literal or a shell command.
    """
    if isinstance(value, (list, tuple)):
        if is_source_path(target_path):
            return "[" + ", ".join(f"'{item}'" for item in value) + "]"
        return " ".join(str(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


class TemplateResolver:
    """Expands placeholders in blueprint strings against a ``ProjectContext``.

    The resolver holds no per-action state: the path a piece of content is
    destined for is passed explicitly to :meth:`resolve`.
    """

    def resolve(
        self,
        text: str,
        context: ProjectContext,
        target_path: str | None = None,
    ) -> str:
        """Resolve every recognised placeholder in *text*.

        Args:
            text: Template text.
            context: The run's project context.
            target_path: Path the resolved text will be written to, if any.
                Controls how list parameters are rendered.

        Returns:
            The resolved text.

        Raises:
            PathKeyMissing: If a ``{{paths.KEY}}`` placeholder is undefined.
        """
        if "{{" not in text:
            return text

        resolved = self._expand_conditionals(text, context)
        resolved = self._substitute_paths(resolved, context)
        resolved = self._substitute_project(resolved, context)
        resolved = self._substitute_parameters(resolved, context, target_path)
        resolved = self._substitute_module(resolved, context)
        resolved = self._substitute_env(resolved)
        return resolved

    def resolve_value(
        self,
        value: Any,
        context: ProjectContext,
        target_path: str | None = None,
    ) -> Any:
        """Recursively resolve every string inside a dict/list payload."""
        if isinstance(value, str):
            return self.resolve(value, context, target_path)
        if isinstance(value, dict):
            return {
                self.resolve(str(key), context, target_path): self.resolve_value(item, context, target_path)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [self.resolve_value(item, context, target_path) for item in value]
        return value

    # -- Steps -------------------------------------------------------------

    def _expand_conditionals(self, text: str, context: ProjectContext) -> str:
        def _replace(match: re.Match[str]) -> str:
            return match.group(2) if evaluate_condition(match.group(1), context) else ""

        previous = None
        while previous != text:
            previous = text
            text = _IF_BLOCK_RE.sub(_replace, text)
        return text

    def _substitute_paths(self, text: str, context: ProjectContext) -> str:
        return _PATH_RE.sub(lambda m: context.path_handler.resolve(m.group(1)), text)

    def _substitute_project(self, text: str, context: ProjectContext) -> str:
        project = context.project

        def _replace(match: re.Match[str]) -> str:
            field_name = match.group(1)
            value = getattr(project, field_name)
            if value:
                return str(value)
            return PROJECT_DEFAULTS.get(field_name, "")

        return _PROJECT_RE.sub(_replace, text)

    def _substitute_parameters(
        self,
        text: str,
        context: ProjectContext,
        target_path: str | None,
    ) -> str:
        parameters = context.resolved_parameters()

        def _replace(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in parameters:
                return match.group(0)
            return format_parameter(parameters[key], target_path)

        return _PARAMETER_RE.sub(_replace, text)

    def _substitute_module(self, text: str, context: ProjectContext) -> str:
        module = context.module
        if module is not None:
            text = _MODULE_RE.sub(lambda m: getattr(module, m.group(1)), text)
        if context.framework:
            text = _FRAMEWORK_RE.sub(lambda m: context.framework, text)
        return text

    def _substitute_env(self, text: str) -> str:
        return _ENV_RE.sub(
            lambda m: os.environ.get(m.group(1)) or ENV_FALLBACKS[m.group(1)],
            text,
        )
