from __future__ import annotations

import concurrent.futures
import fnmatch
import logging
from pathlib import Path
from typing import Iterable, List, Sequence

import libcst as cst
from libcst.metadata import MetadataWrapper

from callshift.exceptions import ImportConflict, NeverThrown
from callshift.rewrite.batch import EditBatch
from callshift.rewrite.classify import CallShape, classify, undetermined_reason
from callshift.rewrite.edits import EditBuilder
from callshift.rewrite.imports import rewrite_imports
from callshift.rewrite.model import (
    AbortReason,
    Aborted,
    BatchResult,
    FileOutcome,
    FileStatus,
    RewriteRule,
    ScanHit,
    ScanResult,
    Valid,
)
from callshift.rewrite.patcher import apply_edits
from callshift.rewrite.resolver import ScopeSymbolResolver
from callshift.rewrite.walker import collect_calls, iter_call_sites

logger = logging.getLogger(__name__)

_ENCODING = "utf-8"


def _short(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def iter_source_files(paths: Iterable[Path | str], exclude: Sequence[str] = ()) -> list[Path]:
    def _excluded(path: Path) -> bool:
        for pattern in exclude:
            if pattern in path.parts or fnmatch.fnmatch(str(path), pattern):
                return True
        return False

    out: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for candidate in sorted(path.rglob("*.py")):
                if not _excluded(candidate):
                    out.append(candidate)
        elif not _excluded(path):
            out.append(path)
    return out


class RewriteEngine:
    def __init__(self, rules: Sequence[RewriteRule], *, insert_missing_imports: bool = True) -> None:
        if not rules:
            raise ValueError("at least one rewrite rule is required")
        self.rules = tuple(rules)
        self.insert_missing_imports = insert_missing_imports

    def _wrap(self, text: str) -> MetadataWrapper | Aborted:
        try:
            module = cst.parse_module(text)
        except cst.ParserSyntaxError as exc:
            return Aborted(reason=AbortReason.PARSE_FAILURE, detail=_short(str(exc), 120))
        return MetadataWrapper(module)

    def plan_source(self, text: str) -> BatchResult:
        wrapper = self._wrap(text)
        if isinstance(wrapper, Aborted):
            return wrapper
        source = text.encode(_ENCODING)
        resolver = ScopeSymbolResolver(wrapper)
        builder = EditBuilder(wrapper, source)
        calls = collect_calls(wrapper)
        batch = EditBatch()
        for rule in self.rules:
            for site in iter_call_sites(wrapper, rule, resolver, calls):
                shape = classify(site)
                if shape is CallShape.UNDETERMINED:
                    batch.abort(
                        AbortReason.SHAPE_AMBIGUOUS,
                        f"line {builder.line(site.node)}: {undetermined_reason(site)} "
                        f"in {_short(builder.text(site.node))}",
                    )
                    return batch.result()
                if not batch.add(builder.build(site, shape), rule):
                    return batch.result()
        return batch.result()

    def rewrite_source(self, text: str) -> tuple[BatchResult, str | None]:
        result = self.plan_source(text)
        if isinstance(result, Aborted) or not result.edits:
            return result, None
        try:
            updated = apply_edits(text, result.edits, encoding=_ENCODING)
        except NeverThrown as exc:
            return Aborted(reason=AbortReason.OVERLAPPING_EDITS, detail=str(exc)), None
        for rule in result.rules:
            if rule.old_import is None and rule.new_import is None:
                continue
            try:
                updated = rewrite_imports(
                    updated,
                    rule.old_import,
                    rule.new_import,
                    insert_missing=self.insert_missing_imports,
                )
            except ImportConflict as exc:
                return Aborted(reason=AbortReason.IMPORT_CONFLICT, detail=str(exc)), None
        return result, updated

    def scan_source(self, text: str) -> ScanResult:
        wrapper = self._wrap(text)
        if isinstance(wrapper, Aborted):
            return ScanResult(errors=[f"{wrapper.reason.value}: {wrapper.detail}"])
        builder = EditBuilder(wrapper, text.encode(_ENCODING))
        resolver = ScopeSymbolResolver(wrapper)
        calls = collect_calls(wrapper)
        hits: list[ScanHit] = []
        for rule in self.rules:
            for site in iter_call_sites(wrapper, rule, resolver, calls):
                hits.append(
                    ScanHit(
                        line=builder.line(site.node),
                        shape=classify(site).value,
                        text=builder.text(site.node),
                        qualified_name=site.qualified_name,
                    )
                )
        hits.sort(key=lambda hit: hit.line)
        return ScanResult(hits=hits)

    def process_file(self, path: Path, *, write: bool = True) -> FileOutcome:
        logger.debug("checking %s", path)
        try:
            text = path.read_bytes().decode(_ENCODING)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("cannot read %s: %s", path, exc)
            return FileOutcome(
                path=path,
                status=FileStatus.FAILED,
                reason=AbortReason.IO_FAILURE,
                detail=str(exc),
            )
        result, updated = self.rewrite_source(text)
        if isinstance(result, Aborted):
            status = (
                FileStatus.FAILED
                if result.reason is AbortReason.PARSE_FAILURE
                else FileStatus.SKIPPED
            )
            logger.warning("leaving %s untouched: %s %s", path, result.reason.value, result.detail)
            return FileOutcome(path=path, status=status, reason=result.reason, detail=result.detail)
        if updated is None or updated == text:
            return FileOutcome(path=path, status=FileStatus.UNCHANGED)
        outcome = FileOutcome(
            path=path,
            status=FileStatus.REWRITTEN,
            edits=len(result.edits) if isinstance(result, Valid) else 0,
            original=text,
            updated=updated,
        )
        if not write:
            return outcome
        logger.info("modifying %s %dx", path, outcome.edits)
        try:
            path.write_bytes(updated.encode(_ENCODING))
        except OSError as exc:
            logger.warning("cannot write %s: %s", path, exc)
            return FileOutcome(
                path=path,
                status=FileStatus.FAILED,
                reason=AbortReason.IO_FAILURE,
                detail=str(exc),
            )
        outcome.written = True
        return outcome

    def process_paths(
        self, paths: Sequence[Path], *, write: bool = True, jobs: int = 1
    ) -> List[FileOutcome]:
        if jobs <= 1 or len(paths) <= 1:
            return [self.process_file(path, write=write) for path in paths]
        with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
            futures = [executor.submit(self.process_file, path, write=write) for path in paths]
            return [future.result() for future in futures]
