from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from callshift.rewrite.model import RewriteRule


class RewriteRuleDTO(BaseModel):
    method: str = Field(min_length=1)
    namespaces: List[str] = Field(min_length=1)
    outer: str = Field(min_length=1)
    inner: str = Field(min_length=1)
    old_import: Optional[str] = None
    new_import: Optional[str] = None

    def to_rule(self) -> RewriteRule:
        return RewriteRule(
            method_name=self.method,
            namespaces=tuple(self.namespaces),
            outer_template=self.outer,
            inner_template=self.inner,
            old_import=self.old_import,
            new_import=self.new_import,
        )


class FileReportDTO(BaseModel):
    path: str
    status: str
    edits: int = 0
    reason: Optional[str] = None
    detail: Optional[str] = None


class RewriteReportDTO(BaseModel):
    files: List[FileReportDTO]
    rewritten: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
