from callshift.rewrite.batch import EditBatch
from callshift.rewrite.classify import CallShape, classify
from callshift.rewrite.edits import EditBuilder, render_literal
from callshift.rewrite.engine import RewriteEngine, iter_source_files
from callshift.rewrite.imports import rewrite_imports
from callshift.rewrite.model import (
    AbortReason,
    Aborted,
    BatchResult,
    CallSite,
    FileOutcome,
    FileStatus,
    RewriteRule,
    TextEdit,
    Valid,
)
from callshift.rewrite.patcher import apply_edits
from callshift.rewrite.resolver import ScopeSymbolResolver, SymbolResolver
from callshift.rewrite.walker import iter_call_sites

__all__ = [
    "AbortReason",
    "Aborted",
    "BatchResult",
    "CallShape",
    "CallSite",
    "EditBatch",
    "EditBuilder",
    "FileOutcome",
    "FileStatus",
    "RewriteEngine",
    "RewriteRule",
    "ScopeSymbolResolver",
    "SymbolResolver",
    "TextEdit",
    "Valid",
    "apply_edits",
    "classify",
    "iter_call_sites",
    "iter_source_files",
    "render_literal",
    "rewrite_imports",
]
