from __future__ import annotations

from typing import List

from callshift.rewrite.model import (
    AbortReason,
    Aborted,
    BatchResult,
    RewriteRule,
    TextEdit,
    Valid,
)


class EditBatch:
    """Edits collected for one file, applied together or not at all."""

    def __init__(self) -> None:
        self._edits: List[TextEdit] = []
        self._rules: List[RewriteRule] = []
        self._aborted: Aborted | None = None

    @property
    def valid(self) -> bool:
        return self._aborted is None

    def __len__(self) -> int:
        return len(self._edits)

    def abort(self, reason: AbortReason, detail: str = "") -> None:
        if self._aborted is None:
            self._aborted = Aborted(reason=reason, detail=detail)

    def add(self, edit: TextEdit, rule: RewriteRule | None = None) -> bool:
        if self._aborted is not None:
            return False
        for existing in self._edits:
            if existing.overlaps(edit):
                self.abort(
                    AbortReason.OVERLAPPING_EDITS,
                    f"[{existing.start}, {existing.end}) and [{edit.start}, {edit.end})",
                )
                return False
        self._edits.append(edit)
        if rule is not None and rule not in self._rules:
            self._rules.append(rule)
        return True

    def result(self) -> BatchResult:
        if self._aborted is not None:
            return self._aborted
        return Valid(edits=tuple(self._edits), rules=tuple(self._rules))
