"""Heuristic merge for JavaScript/TypeScript source files.

This is not a parser.  The text is cut into top-level statements
by a scanner that understands strings, template literals, comments and bracket
nesting, and each statement is classified by a handful of regular expressions:

* imports are hoisted and merged by module source, unioning named symbols
* ``export`` keywords on declarations are lifted into a single export list
* new declarations whose name is not already declared are appended
* anything that cannot be classified is carried through untouched

The merged file is laid out as ``prologue + imports + body + additions +
exports``.  When the generated content contributes nothing new the existing
text is returned byte-for-byte, which keeps repeated runs idempotent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Statement scanning
# ---------------------------------------------------------------------------

_QUOTES = "'\"`"
_OPENERS = "([{"
_CLOSERS = ")]}"

# A line ending in one of these keeps the statement open.
_CONTINUATION_TAIL = frozenset(",=+-*/%&|^?:.(<")
# A following line starting with one of these continues the statement.
_CONTINUATION_HEAD = re.compile(r"(?:[.?:)\]}]|&&|\|\||else\b|catch\b|finally\b)")
_TRAILING_COMMENT_RE = re.compile(r"[ \t]*//[^\n]*")
_LEADING_COMMENTS_RE = re.compile(r"\A(?:\s*(?://[^\n]*|/\*.*?\*/))*\s*", re.DOTALL)
_INNER_COMMENTS_RE = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)


def _string_end(text: str, start: int) -> int:
    """Return the index just past the string literal opening at *start*."""
    quote = text[start]
    length = len(text)
    i = start + 1
    while i < length:
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        if char == "\n" and quote != "`":
            return i
        if quote == "`" and char == "$" and text.startswith("{", i + 1):
            i = _template_expression_end(text, i + 2)
            continue
        i += 1
    return length


def _template_expression_end(text: str, start: int) -> int:
    depth = 1
    i = start
    while i < len(text) and depth:
        char = text[i]
        if char in _QUOTES:
            i = _string_end(text, i)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        i += 1
    return i


def _continues(tail: str, text: str, position: int) -> bool:
    """Decide whether a newline at depth zero is inside a statement."""
    if tail.endswith("=>"):
        return True
    if tail.endswith(("++", "--")):
        return False
    if tail[-1:] in _CONTINUATION_TAIL:
        return True
    rest = text[position:].lstrip()
    return bool(_CONTINUATION_HEAD.match(rest))


def split_statements(text: str) -> list[str]:
    """Split source text into top-level statements.

    Comments directly above a statement stay attached to it, and a ``//``
    comment after a terminating semicolon stays on its line.  A comment with
    no statement after it becomes a statement of its own.
    """
    statements: list[str] = []
    buffer: list[str] = []
    tail = ""
    depth = 0
    i = 0
    length = len(text)

    def emit() -> None:
        nonlocal tail
        chunk = "".join(buffer).strip()
        if chunk:
            statements.append(chunk)
        buffer.clear()
        tail = ""

    while i < length:
        char = text[i]

        if text.startswith("//", i):
            end = text.find("\n", i)
            end = length if end == -1 else end
            buffer.append(text[i:end])
            i = end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = length if end == -1 else end + 2
            buffer.append(text[i:end])
            i = end
            continue
        if char in _QUOTES:
            end = _string_end(text, i)
            buffer.append(text[i:end])
            tail = (tail + char)[-2:]
            i = end
            continue

        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth = max(depth - 1, 0)

        if depth == 0 and char == ";":
            buffer.append(char)
            i += 1
            trailing = _TRAILING_COMMENT_RE.match(text, i)
            if trailing:
                buffer.append(trailing.group(0))
                i = trailing.end()
            emit()
            continue

        if depth == 0 and char == "\n" and tail and not _continues(tail, text, i + 1):
            emit()
            i += 1
            continue

        buffer.append(char)
        if not char.isspace():
            tail = (tail + char)[-2:]
        i += 1

    emit()
    return statements


def split_leading_comments(statement: str) -> tuple[str, str]:
    """Separate the comments above a statement from its code."""
    match = _LEADING_COMMENTS_RE.match(statement)
    end = match.end() if match else 0
    return statement[:end].strip(), statement[end:].strip()


def split_trailing_comment(code: str) -> tuple[str, str]:
    """Separate a ``//`` comment on the last line of a statement from its code.

    ``import { a } from 'x'; // keep`` becomes
    ``("import { a } from 'x';", "// keep")``.  Comment markers inside
    strings are ignored.
    """
    i = 0
    length = len(code)
    while i < length:
        if code.startswith("//", i):
            end = code.find("\n", i)
            if end == -1:
                return code[:i].rstrip(), code[i:]
            i = end
            continue
        if code.startswith("/*", i):
            end = code.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        if code[i] in _QUOTES:
            i = _string_end(code, i)
            continue
        i += 1
    return code, ""


def _normalize(text: str) -> str:
    return " ".join(text.split())


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_IDENT = r"[A-Za-z_$][\w$]*"

_DIRECTIVE_RE = re.compile(r"""^(['"])use [\w ]+\1;?$""")
_IMPORT_RE = re.compile(
    r"""^import\s+(?:(type)\s+)?(.+?)\s+from\s*(['"])(.+?)\3\s*;?$""",
    re.DOTALL,
)
_SIDE_EFFECT_IMPORT_RE = re.compile(r"""^import\s*(['"])(.+?)\1\s*;?$""")
_EXPORT_LIST_RE = re.compile(r"^export\s+(type\s+)?\{(.*?)\}\s*;?$", re.DOTALL)
_REEXPORT_RE = re.compile(r"""^export\s+(?:type\s+)?(?:\*|\{.*?\}|\*\s+as\s+\w+)\s*from\s*['"].+?['"]\s*;?$""", re.DOTALL)
_EXPORT_DEFAULT_IDENT_RE = re.compile(rf"^export\s+default\s+({_IDENT})\s*;?$")
_EXPORT_DEFAULT_DECL_RE = re.compile(
    rf"^export\s+default\s+((?:async\s+)?(?:function\*?|class)\s+({_IDENT}).*)$",
    re.DOTALL,
)
_EXPORT_DEFAULT_RE = re.compile(r"^export\s+default\b")
_EXPORT_DECL_RE = re.compile(
    r"^export\s+((?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    r"(?:const|let|var|function\*?|class|interface|type|enum)\b.*)$",
    re.DOTALL,
)
_DECL_RE = re.compile(
    rf"^(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    rf"(const|let|var|function\*?|class|interface|type|enum)\s+({_IDENT})"
)

_TYPE_KINDS = frozenset({"interface", "type"})


def declaration_name(code: str) -> tuple[str, bool] | None:
    """Return ``(name, is_type)`` for a top-level declaration, else ``None``."""
    match = _DECL_RE.match(code)
    if match is None:
        return None
    return match.group(2), match.group(1) in _TYPE_KINDS


@dataclass
class ImportSpec:
    """All bindings imported from one module source."""

    source: str
    quote: str = "'"
    type_only: bool = False
    default: str | None = None
    namespace: str | None = None
    named: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, bool]:
        return self.source, self.type_only

    @classmethod
    def parse(cls, code: str) -> "ImportSpec | None":
        side_effect = _SIDE_EFFECT_IMPORT_RE.match(code)
        if side_effect:
            return cls(source=side_effect.group(2), quote=side_effect.group(1))

        match = _IMPORT_RE.match(code)
        if match is None:
            return None
        spec = cls(source=match.group(4), quote=match.group(3), type_only=bool(match.group(1)))
        clause = _INNER_COMMENTS_RE.sub("", match.group(2))
        braces = re.search(r"\{(.*)\}", clause, re.DOTALL)
        if braces:
            spec.named = [_normalize(item) for item in braces.group(1).split(",") if item.strip()]
            clause = clause[: braces.start()] + clause[braces.end():]
        for part in clause.split(","):
            part = _normalize(part)
            if not part:
                continue
            if part.startswith("*"):
                spec.namespace = part
            else:
                spec.default = part
        return spec

    def absorb(self, other: "ImportSpec") -> bool:
        """Union *other*'s bindings into this spec.  Returns ``True`` if anything was added."""
        changed = False
        if other.default and not self.default:
            self.default = other.default
            changed = True
        if other.namespace and not self.namespace:
            self.namespace = other.namespace
            changed = True
        for name in other.named:
            if name not in self.named:
                self.named.append(name)
                changed = True
        return changed

    def render(self) -> list[str]:
        keyword = "import type" if self.type_only else "import"
        source = f"{self.quote}{self.source}{self.quote}"
        if not (self.default or self.namespace or self.named):
            return [f"import {source};"]

        parts: list[str] = []
        if self.default:
            parts.append(self.default)
        if self.named:
            parts.append("{ " + ", ".join(self.named) + " }")
        elif self.namespace:
            parts.append(self.namespace)
        lines = [f"{keyword} {', '.join(parts)} from {source};"]
        # A namespace import cannot share a clause with named bindings.
        if self.namespace and self.named:
            lines.append(f"{keyword} {self.namespace} from {source};")
        return lines


# ---------------------------------------------------------------------------
# Merged module model
# ---------------------------------------------------------------------------


@dataclass
class _Module:
    prologue: list[str] = field(default_factory=list)
    imports: dict[tuple[str, bool], ImportSpec] = field(default_factory=dict)
    body: list[str] = field(default_factory=list)
    additions: list[str] = field(default_factory=list)
    declared: set[str] = field(default_factory=set)
    exports: dict[str, bool] = field(default_factory=dict)
    reexports: list[str] = field(default_factory=list)
    default_export: str | None = None
    has_default: bool = False
    seen: set[str] = field(default_factory=set)
    changed: bool = False

    def add_import(self, spec: ImportSpec) -> None:
        current = self.imports.get(spec.key)
        if current is None:
            self.imports[spec.key] = spec
            self.changed = True
        elif current.absorb(spec):
            self.changed = True

    def add_export(self, name: str, is_type: bool = False) -> None:
        if name not in self.exports:
            self.exports[name] = is_type
            self.changed = True

    def add_prologue(self, text: str) -> None:
        if text and not any(text in item for item in self.prologue):
            self.prologue.append(text)
            self.changed = True

    def set_default(self, name: str) -> None:
        if not self.has_default:
            self.default_export = name
            self.has_default = True
            self.changed = True

    def place(self, statement: str, incoming: bool) -> None:
        """Put a statement into the body (existing) or the additions (incoming)."""
        self.seen.add(_normalize(statement))
        if incoming:
            self.additions.append(statement)
            self.changed = True
        else:
            self.body.append(statement)

    def render(self) -> str:
        sections: list[str] = []
        if self.prologue:
            sections.append("\n".join(self.prologue))
        if self.imports:
            lines: list[str] = []
            for spec in self.imports.values():
                lines.extend(spec.render())
            sections.append("\n".join(lines))
        for block in (self.body, self.additions):
            if block:
                sections.append(_join_statements(block))

        export_lines: list[str] = []
        values = [name for name, is_type in self.exports.items() if not is_type]
        types = [name for name, is_type in self.exports.items() if is_type]
        if values:
            export_lines.append("export { " + ", ".join(values) + " };")
        if types:
            export_lines.append("export type { " + ", ".join(types) + " };")
        export_lines.extend(self.reexports)
        if self.default_export:
            export_lines.append(f"export default {self.default_export};")
        if export_lines:
            sections.append("\n".join(export_lines))

        return "\n\n".join(sections) + "\n"


def _join_statements(statements: list[str]) -> str:
    """Blank lines around multi-line statements, single newlines between one-liners."""
    out = statements[0]
    for previous, current in zip(statements, statements[1:]):
        separator = "\n" if "\n" not in previous and "\n" not in current else "\n\n"
        out += separator + current
    return out


def _absorb(module: _Module, text: str, incoming: bool) -> None:
    for statement in split_statements(text):
        comments, code = split_leading_comments(statement)

        if not code:
            if not incoming or _normalize(statement) not in module.seen:
                module.place(statement, incoming)
            continue

        # Imports and export lists are re-rendered, so a comment after them
        # travels with the comments above.
        bare, trailing = split_trailing_comment(code)
        carried = "\n".join(part for part in (comments, trailing) if part)

        if _DIRECTIVE_RE.match(bare):
            module.add_prologue(statement)
            continue

        spec = ImportSpec.parse(bare)
        if spec is not None:
            if carried:
                module.add_prologue(carried)
            module.add_import(spec)
            continue

        if _REEXPORT_RE.match(bare):
            line = bare if bare.endswith(";") else bare + ";"
            if not any(split_trailing_comment(item)[0] == line for item in module.reexports):
                module.reexports.append(f"{line} {trailing}" if trailing else line)
                module.changed = True
            continue

        export_list = _EXPORT_LIST_RE.match(bare)
        if export_list:
            is_type = bool(export_list.group(1))
            for name in _INNER_COMMENTS_RE.sub("", export_list.group(2)).split(","):
                if name.strip():
                    module.add_export(_normalize(name), is_type)
            if carried and not incoming:
                module.place(carried, incoming)
            continue

        default_ident = _EXPORT_DEFAULT_IDENT_RE.match(bare)
        if default_ident:
            module.set_default(default_ident.group(1))
            if carried and not incoming:
                module.place(carried, incoming)
            continue

        default_decl = _EXPORT_DEFAULT_DECL_RE.match(code)
        if default_decl:
            name = default_decl.group(2)
            if name not in module.declared:
                module.declared.add(name)
                module.place(_with_comments(comments, default_decl.group(1)), incoming)
            module.set_default(name)
            continue

        if _EXPORT_DEFAULT_RE.match(code):
            if not module.has_default:
                module.has_default = True
                module.place(statement, incoming)
            continue

        exported = _EXPORT_DECL_RE.match(code)
        if exported:
            code = exported.group(1)
        declared = declaration_name(code)
        if declared is not None:
            name, is_type = declared
            if exported:
                module.add_export(name, is_type)
            if name in module.declared:
                continue
            module.declared.add(name)
            module.place(_with_comments(comments, code), incoming)
            continue

        if exported:
            # Destructuring export or similar; keep it whole.
            comments, code = "", statement
        placed = _with_comments(comments, code)
        if incoming and _normalize(placed) in module.seen:
            continue
        module.place(placed, incoming)


def _with_comments(comments: str, code: str) -> str:
    return f"{comments}\n{code}" if comments else code


def merge_source(existing: str | None, new: str) -> str:
    """Merge generated JS/TS *new* into *existing*.

    Args:
        existing: Current file content, or ``None`` if the file does not exist.
        new: Generated source content.

    Returns:
        The merged module text.  *new* verbatim when there is no existing
        content, *existing* verbatim when *new* adds nothing to it.
    """
    if existing is None or not existing.strip():
        return new

    module = _Module()
    _absorb(module, existing, incoming=False)
    module.changed = False
    _absorb(module, new, incoming=True)

    if not module.changed:
        return existing
    return module.render()
