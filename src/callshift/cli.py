from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from callshift.config import (
    as_bool,
    as_positive_int,
    load_rules,
    merge_payload,
    normalize_name_list,
    rewrite_defaults,
    rule_from_table,
)
from callshift.exceptions import ConfigError
from callshift.rewrite.engine import RewriteEngine, iter_source_files
from callshift.rewrite.model import FileOutcome, FileStatus, RewriteRule
from callshift.schema import FileReportDTO, RewriteReportDTO

app = typer.Typer(add_completion=False)

_CONFIG_ERROR_EXIT = 2


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _resolve_rules(
    *,
    root: Path,
    config: Optional[Path],
    method: Optional[str],
    namespace: Optional[List[str]],
    outer: Optional[str],
    inner: Optional[str],
    old_import: Optional[str],
    new_import: Optional[str],
) -> list[RewriteRule]:
    rules = load_rules(root=root, config_path=config)
    inline = [namespace, outer, inner, old_import, new_import]
    if method is None and any(value for value in inline):
        raise ConfigError("--method is required when defining a rule on the command line")
    if method is not None:
        rules.append(
            rule_from_table(
                {
                    "method": method,
                    "namespaces": list(namespace or []),
                    "outer": outer,
                    "inner": inner,
                    "old_import": old_import,
                    "new_import": new_import,
                }
            )
        )
    if not rules:
        raise ConfigError(
            "No rewrite rules configured; add [[rules]] to callshift.toml or pass --method."
        )
    return rules


def _build_engine(
    *,
    root: Path,
    config: Optional[Path],
    method: Optional[str],
    namespace: Optional[List[str]],
    outer: Optional[str],
    inner: Optional[str],
    old_import: Optional[str],
    new_import: Optional[str],
    insert_missing_imports: Optional[bool],
) -> tuple[RewriteEngine, dict[str, object]]:
    defaults = rewrite_defaults(root=root, config_path=config)
    rules = _resolve_rules(
        root=root,
        config=config,
        method=method,
        namespace=namespace,
        outer=outer,
        inner=inner,
        old_import=old_import,
        new_import=new_import,
    )
    settings = merge_payload({"insert_missing_imports": insert_missing_imports}, defaults)
    insert_missing = as_bool(settings.get("insert_missing_imports", True))
    return RewriteEngine(rules, insert_missing_imports=insert_missing), settings


def _report(outcomes: list[FileOutcome], *, dry_run: bool) -> RewriteReportDTO:
    counts = {status: 0 for status in FileStatus}
    files: list[FileReportDTO] = []
    for outcome in outcomes:
        counts[outcome.status] += 1
        files.append(
            FileReportDTO(
                path=str(outcome.path),
                status=outcome.status.value,
                edits=outcome.edits,
                reason=outcome.reason.value if outcome.reason is not None else None,
                detail=outcome.detail or None,
            )
        )
    return RewriteReportDTO(
        files=files,
        rewritten=counts[FileStatus.REWRITTEN],
        unchanged=counts[FileStatus.UNCHANGED],
        skipped=counts[FileStatus.SKIPPED],
        failed=counts[FileStatus.FAILED],
        dry_run=dry_run,
    )


@app.command("rewrite")
def rewrite(
    paths: List[Path] = typer.Argument(..., help="Files or directories to rewrite."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    method: Optional[str] = typer.Option(None, "--method"),
    namespace: Optional[List[str]] = typer.Option(
        None, "--namespace", help="Allowed declaring namespace (repeatable)."
    ),
    outer: Optional[str] = typer.Option(None, "--outer"),
    inner: Optional[str] = typer.Option(None, "--inner"),
    old_import: Optional[str] = typer.Option(None, "--old-import"),
    new_import: Optional[str] = typer.Option(None, "--new-import"),
    insert_missing_imports: Optional[bool] = typer.Option(
        None, "--insert-missing-imports/--no-insert-missing-imports"
    ),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude"),
    jobs: Optional[int] = typer.Option(None, "--jobs", min=1),
    dry_run: bool = typer.Option(False, "--dry-run"),
    check: bool = typer.Option(
        False, "--check", help="Exit 1 if any file would be rewritten; implies --dry-run."
    ),
    diff: bool = typer.Option(False, "--diff"),
    as_json: bool = typer.Option(False, "--json"),
    fail_on_skip: bool = typer.Option(False, "--fail-on-skip/--no-fail-on-skip"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Rewrite matching call sites in place, one summary line per file."""
    _configure_logging(verbose)
    try:
        engine, settings = _build_engine(
            root=root,
            config=config,
            method=method,
            namespace=namespace,
            outer=outer,
            inner=inner,
            old_import=old_import,
            new_import=new_import,
            insert_missing_imports=insert_missing_imports,
        )
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=_CONFIG_ERROR_EXIT)
    excluded = normalize_name_list(exclude) or normalize_name_list(settings.get("exclude"))
    worker_count = jobs if jobs is not None else as_positive_int(settings.get("jobs"), 1)
    write = not (dry_run or check)
    files = iter_source_files(paths, excluded)
    outcomes = engine.process_paths(files, write=write, jobs=worker_count)

    if as_json:
        report = _report(outcomes, dry_run=not write)
        typer.echo(json.dumps(report.model_dump(), indent=2, sort_keys=True))
    else:
        for outcome in outcomes:
            typer.echo(outcome.summary())
            if diff and outcome.status is FileStatus.REWRITTEN:
                typer.echo(outcome.diff(), nl=False)

    if check and any(outcome.status is FileStatus.REWRITTEN for outcome in outcomes):
        raise typer.Exit(code=1)
    if fail_on_skip and any(
        outcome.status in {FileStatus.SKIPPED, FileStatus.FAILED} for outcome in outcomes
    ):
        raise typer.Exit(code=1)


@app.command("scan")
def scan(
    paths: List[Path] = typer.Argument(..., help="Files or directories to scan."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    method: Optional[str] = typer.Option(None, "--method"),
    namespace: Optional[List[str]] = typer.Option(None, "--namespace"),
    outer: Optional[str] = typer.Option(None, "--outer"),
    inner: Optional[str] = typer.Option(None, "--inner"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List matching call sites and their shapes without editing files."""
    _configure_logging(verbose)
    try:
        engine, settings = _build_engine(
            root=root,
            config=config,
            method=method,
            namespace=namespace,
            outer=outer,
            inner=inner,
            old_import=None,
            new_import=None,
            insert_missing_imports=None,
        )
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=_CONFIG_ERROR_EXIT)
    excluded = normalize_name_list(exclude) or normalize_name_list(settings.get("exclude"))
    for path in iter_source_files(paths, excluded):
        try:
            text = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            typer.echo(f"{path}: failed (io-failure: {exc})", err=True)
            continue
        result = engine.scan_source(text)
        for error in result.errors:
            typer.echo(f"{path}: failed ({error})", err=True)
        for hit in result.hits:
            typer.echo(f"{path}:{hit.line}: {hit.shape.upper()} {' '.join(hit.text.split())}")


def main() -> None:
    app()
