"""Wrap a config module's exported value with a higher-order function call.

``next.config.js`` style files end with ``module.exports = X`` or
``export default X``.  Integrations such as Sentry or next-intl need that
value passed through their own wrapper, e.g. ``withSentryConfig(X, {...})``.
The replacement text is rendered from small Jinja2 templates.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from jinja2 import DictLoader, Environment

from architech.errors import ParseError

from .source import split_leading_comments, split_statements, split_trailing_comment

_COMMONJS_RE = re.compile(r"\Amodule\.exports\s*=\s*(?P<target>.+?)\s*;?\Z", re.DOTALL)
_ESM_RE = re.compile(r"\Aexport\s+default\s+(?P<target>.+?)\s*;?\Z", re.DOTALL)
_DECLARATION_RE = re.compile(r"^(?:async\s+)?(?:function|class)\b")

_TEMPLATES: dict[str, str] = {
    "call": "{{ wrapper }}({{ target }}{% if options %}, {{ options }}{% endif %})",
    "commonjs": "module.exports = {% include 'call' %};",
    "esm": "export default {% include 'call' %};",
    "require": "const { {{ wrapper }} } = require('{{ module }}');\n",
    "import": "import { {{ wrapper }} } from '{{ module }}';\n",
}

_env = Environment(
    loader=DictLoader(_TEMPLATES),
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass
class _Export:
    """The exporting statement of a config file, as offsets into its text."""

    start: int
    end: int
    target: str
    commonjs: bool


def _find_export(content: str) -> _Export | None:
    """Locate the last ``module.exports =`` or ``export default`` statement.

    Only the statement's code is covered by ``start``/``end``; comments above
    it and a ``//`` comment after it stay outside.
    """
    found: _Export | None = None
    position = 0
    for statement in split_statements(content):
        start = content.find(statement, position)
        position = start + len(statement)
        _, code = split_leading_comments(statement)
        bare, _ = split_trailing_comment(code)
        code_start = position - len(code)
        for pattern, commonjs in ((_COMMONJS_RE, True), (_ESM_RE, False)):
            match = pattern.match(bare)
            if match:
                found = _Export(code_start, code_start + len(bare), match.group("target"), commonjs)
                break
    return found


def is_wrapped(content: str, wrapper_name: str) -> bool:
    """Return ``True`` if the exported value is already a call to *wrapper_name*."""
    export = _find_export(content)
    return export is not None and export.target.startswith(f"{wrapper_name}(")


def _imports_binding(content: str, name: str) -> bool:
    """Return ``True`` if *content* imports or requires *name*."""
    ident = re.escape(name)
    patterns = (
        rf"^\s*import\s+(?:type\s+)?{ident}\b",
        rf"^\s*import\s+(?:type\s+)?(?:[\w$]+\s*,\s*)?\{{[^}}]*\b{ident}\b[^}}]*\}}\s*from\b",
        rf"^\s*(?:const|let|var)\s*\{{[^}}]*\b{ident}\b[^}}]*\}}\s*=\s*require\s*\(",
        rf"^\s*(?:const|let|var)\s+{ident}\s*=\s*require\s*\(",
    )
    return any(re.search(pattern, content, re.MULTILINE) for pattern in patterns)


def wrap_config(
    existing: str,
    wrapper_name: str,
    options: dict[str, Any] | None = None,
    *,
    import_from: str | None = None,
    path: str = "<config>",
) -> str:
    """Wrap the value exported by *existing* with ``wrapper_name(value, options)``.

    Text after the exporting statement, such as a trailing comment or another
    statement, is kept as it is.

    Args:
        existing: Current content of the config file.
        wrapper_name: Name of the wrapper function.
        options: Second argument to the wrapper, rendered as a JSON literal.
            Omitted from the call when empty.
        import_from: Module providing the wrapper.  A ``require`` or
            ``import`` line is added at the top when the file does not
            already bind the name.
        path: Used in error messages.

    Returns:
        The rewritten file, or *existing* unchanged when it is already wrapped.

    Raises:
        ParseError: If the file has no ``module.exports =`` or
            ``export default`` expression to wrap.
    """
    export = _find_export(existing)
    if export is None:
        raise ParseError(path, "no 'module.exports =' or 'export default' expression to wrap")
    if export.target.startswith(f"{wrapper_name}("):
        return existing
    if _DECLARATION_RE.match(export.target):
        raise ParseError(path, "cannot wrap an exported function or class declaration")

    values = {
        "wrapper": wrapper_name,
        "target": export.target,
        "options": json.dumps(options, indent=2) if options else "",
        "module": import_from,
    }
    replacement = _env.get_template("commonjs" if export.commonjs else "esm").render(**values)
    wrapped = existing[: export.start] + replacement + existing[export.end:]

    if import_from and not _imports_binding(existing, wrapper_name):
        header = _env.get_template("require" if export.commonjs else "import").render(**values)
        wrapped = header + wrapped
    return wrapped
