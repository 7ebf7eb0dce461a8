from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Tuple, Union

import libcst as cst


@dataclass(frozen=True)
class RewriteRule:
    method_name: str
    namespaces: Tuple[str, ...]
    outer_template: str
    inner_template: str
    old_import: str | None = None
    new_import: str | None = None

    def __post_init__(self) -> None:
        method = (self.method_name or "").strip()
        if not method:
            raise ValueError("method_name is required")
        namespaces = tuple(
            name.strip().rstrip(".") for name in self.namespaces if name and name.strip()
        )
        if not namespaces:
            raise ValueError(f"rule for {method!r} needs at least one namespace")
        if not self.outer_template or not self.inner_template:
            raise ValueError(f"rule for {method!r} needs outer and inner templates")
        object.__setattr__(self, "method_name", method)
        object.__setattr__(self, "namespaces", namespaces)

    def in_namespace(self, qualified_name: str) -> bool:
        for namespace in self.namespaces:
            if qualified_name == namespace or qualified_name.startswith(namespace + "."):
                return True
        return False

    def matches_name(self, qualified_name: str) -> bool:
        return qualified_name.rsplit(".", 1)[-1] == self.method_name


@dataclass(frozen=True)
class CallSite:
    node: cst.Call
    rule: RewriteRule
    qualified_name: str | None
    receiver: cst.BaseExpression | None
    arguments: Tuple[cst.Arg, ...]


@dataclass(frozen=True)
class TextEdit:
    start: int
    end: int
    replacement: str

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid edit range [{self.start}, {self.end})")

    def overlaps(self, other: TextEdit) -> bool:
        return self.start < other.end and other.start < self.end


class AbortReason(StrEnum):
    SHAPE_AMBIGUOUS = "shape-ambiguous"
    OVERLAPPING_EDITS = "overlapping-edits"
    PARSE_FAILURE = "parse-failure"
    IO_FAILURE = "io-failure"
    IMPORT_CONFLICT = "import-conflict"


@dataclass(frozen=True)
class Valid:
    edits: Tuple[TextEdit, ...] = ()
    rules: Tuple[RewriteRule, ...] = ()


@dataclass(frozen=True)
class Aborted:
    reason: AbortReason
    detail: str = ""


BatchResult = Union[Valid, Aborted]


class FileStatus(StrEnum):
    REWRITTEN = "rewritten"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FileOutcome:
    path: Path
    status: FileStatus
    edits: int = 0
    reason: AbortReason | None = None
    detail: str = ""
    original: str | None = None
    updated: str | None = None
    written: bool = False

    def summary(self) -> str:
        if self.status is FileStatus.REWRITTEN:
            noun = "call site" if self.edits == 1 else "call sites"
            verb = "rewrote" if self.written else "would rewrite"
            return f"{self.path}: {verb} {self.edits} {noun}"
        if self.status is FileStatus.UNCHANGED:
            return f"{self.path}: unchanged (no matching calls)"
        label = "skipped" if self.status is FileStatus.SKIPPED else "failed"
        reason = self.reason.value if self.reason is not None else "unknown"
        if self.detail:
            return f"{self.path}: {label} ({reason}: {self.detail})"
        return f"{self.path}: {label} ({reason})"

    def diff(self) -> str:
        if self.original is None or self.updated is None:
            return ""
        return "".join(
            difflib.unified_diff(
                self.original.splitlines(keepends=True),
                self.updated.splitlines(keepends=True),
                fromfile=f"a/{self.path}",
                tofile=f"b/{self.path}",
            )
        )


@dataclass(frozen=True)
class ScanHit:
    line: int
    shape: str
    text: str
    qualified_name: str | None = None


@dataclass
class ScanResult:
    hits: list[ScanHit] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
