"""Line-based cleanup of ``from ... import ...`` statements after a rewrite.

Only single-line statements are edited. Parenthesised or backslash
continued imports are left alone apart from being skipped over when
looking for the end of the import block.
"""

from __future__ import annotations

import re
import tokenize
from dataclasses import dataclass
from io import StringIO
from typing import List, Tuple

from callshift.exceptions import ImportConflict

_FROM_IMPORT_RE = re.compile(
    r"(?P<indent>[ \t]*)from[ \t]+(?P<module>[\w.]+)[ \t]+import[ \t]+"
    r"(?P<names>[^()#;\\\r\n]+?)[ \t]*(?P<comment>#[^\r\n]*)?(?P<eol>\r\n|\n|\r)?"
)
_ENTRY_RE = re.compile(r"(?P<name>\w+)(?:[ \t]+as[ \t]+(?P<alias>\w+))?")
_TOP_LEVEL_IMPORT_RE = re.compile(r"(?:from|import)[ \t]")


@dataclass(frozen=True)
class _Entry:
    name: str
    alias: str | None = None

    @property
    def local(self) -> str:
        return self.alias or self.name

    def render(self) -> str:
        return f"{self.name} as {self.alias}" if self.alias else self.name


@dataclass(frozen=True)
class _ImportLine:
    indent: str
    module: str
    entries: Tuple[_Entry, ...]
    comment: str
    eol: str

    def imports(self, module: str, name: str) -> bool:
        return self.module == module and any(
            entry.name == name and entry.alias is None for entry in self.entries
        )

    def render(self, entries: List[_Entry]) -> str:
        names = ", ".join(entry.render() for entry in entries)
        comment = f"  {self.comment}" if self.comment else ""
        return f"{self.indent}from {self.module} import {names}{comment}{self.eol}"


def split_qualified(qualified_name: str) -> tuple[str, str]:
    module, _, name = qualified_name.strip().rpartition(".")
    if not module or not name:
        raise ValueError(f"expected a dotted module.name, got {qualified_name!r}")
    return module, name


def _parse_line(line: str) -> _ImportLine | None:
    match = _FROM_IMPORT_RE.fullmatch(line)
    if match is None:
        return None
    entries: list[_Entry] = []
    for raw in match.group("names").split(","):
        entry = _ENTRY_RE.fullmatch(raw.strip())
        if entry is None:
            return None
        entries.append(_Entry(name=entry.group("name"), alias=entry.group("alias")))
    return _ImportLine(
        indent=match.group("indent"),
        module=match.group("module"),
        entries=tuple(entries),
        comment=match.group("comment") or "",
        eol=match.group("eol") or "",
    )


_LAYOUT_TOKENS = frozenset(
    {tokenize.NL, tokenize.NEWLINE, tokenize.COMMENT, tokenize.INDENT, tokenize.DEDENT}
)
_WORD_RE = re.compile(r"[A-Za-z_]\w*")


def _string_prefix(literal: str) -> str:
    return literal[: len(literal) - len(literal.lstrip("bBrRuUfF"))].lower()


def _code_names(text: str) -> set[str] | None:
    """Bare NAME tokens in ``text``; attribute names after ``.`` are skipped."""
    names: set[str] = set()
    after_dot = False
    try:
        for token in tokenize.generate_tokens(StringIO(text).readline):
            if token.type in _LAYOUT_TOKENS:
                continue
            if token.type == tokenize.NAME and not after_dot:
                names.add(token.string)
            elif token.type == tokenize.STRING and "f" in _string_prefix(token.string):
                # Before 3.12 an f-string is a single token; its fields may use the name.
                names.update(_WORD_RE.findall(token.string))
            after_dot = token.type == tokenize.OP and token.string == "."
    except (tokenize.TokenError, SyntaxError):
        return None
    return names


def is_referenced(local_name: str, text: str) -> bool:
    """True when ``local_name`` is used as a bare name in code.

    Comments and string literals do not count. Text that cannot be
    tokenized is searched word by word instead, which can only keep an
    import alive, never drop one.
    """
    names = _code_names(text)
    if names is not None:
        return local_name in names
    pattern = rf"(?<![\w.]){re.escape(local_name)}(?!\w)"
    return re.search(pattern, text) is not None


def _conflicting_binding(
    parsed: List[_ImportLine | None], module: str, name: str
) -> str | None:
    for stmt in parsed:
        if stmt is None or stmt.module == module:
            continue
        for entry in stmt.entries:
            if entry.local == name:
                return f"{stmt.module}.{entry.name}"
    return None


def _end_of_import_block(lines: List[str]) -> int | None:
    insert_at: int | None = None
    idx = 0
    while idx < len(lines):
        line = lines[idx]
        if not _TOP_LEVEL_IMPORT_RE.match(line):
            idx += 1
            continue
        stripped = line.split("#", 1)[0].rstrip()
        if "(" in stripped and ")" not in stripped:
            while idx < len(lines) and ")" not in lines[idx].split("#", 1)[0]:
                idx += 1
        else:
            while idx < len(lines) and lines[idx].split("#", 1)[0].rstrip().endswith("\\"):
                idx += 1
        idx += 1
        insert_at = idx
    return insert_at


def _ensure_newline(lines: List[str], fallback: str) -> None:
    if lines and not lines[-1].endswith(("\n", "\r")):
        lines[-1] += fallback


def rewrite_imports(
    text: str,
    old_import: str | None,
    new_import: str | None,
    *,
    insert_missing: bool = True,
) -> str:
    """Retarget imports of ``old_import`` to ``new_import``.

    Both names are dotted ``module.name`` paths. The old entry (aliased or
    not) is dropped once nothing else refers to its local name; the new
    name is imported exactly once and only when the text uses it bare.
    """
    old = split_qualified(old_import) if old_import else None
    new = split_qualified(new_import) if new_import else None
    lines = text.splitlines(keepends=True)
    parsed = [_parse_line(line) for line in lines]
    body = "".join(line for line, stmt in zip(lines, parsed) if stmt is None)
    eol = next((stmt.eol for stmt in parsed if stmt is not None and stmt.eol), "\n")

    needs_new = new is not None and is_referenced(new[1], body)
    if new is not None and any(stmt is not None and stmt.imports(*new) for stmt in parsed):
        needs_new = False
    if needs_new and new is not None:
        clash = _conflicting_binding(parsed, *new)
        if clash is not None:
            raise ImportConflict(f"{new[1]} is already imported from {clash}")

    out: List[str] = []
    for idx, (line, stmt) in enumerate(zip(lines, parsed)):
        if (
            old is None
            or stmt is None
            or stmt.module != old[0]
            or not any(entry.name == old[1] for entry in stmt.entries)
        ):
            out.append(line)
            continue
        rest = "".join(lines[:idx] + lines[idx + 1:])
        kept = [
            entry
            for entry in stmt.entries
            if entry.name != old[1] or is_referenced(entry.local, rest)
        ]
        follow: List[str] = []
        if needs_new and new is not None:
            if new[0] == stmt.module:
                kept.append(_Entry(name=new[1]))
            else:
                follow.append(f"{stmt.indent}from {new[0]} import {new[1]}{stmt.eol}")
            needs_new = False
        if kept:
            out.append(stmt.render(kept))
        if follow:
            _ensure_newline(out, eol)
            out.extend(follow)

    if needs_new and new is not None and insert_missing:
        insert_at = _end_of_import_block(out)
        if insert_at is not None:
            head = out[:insert_at]
            _ensure_newline(head, eol)
            tail = out[insert_at:]
            new_line = f"from {new[0]} import {new[1]}"
            out = head + [new_line + (eol if tail else "")] + tail
    return "".join(out)
