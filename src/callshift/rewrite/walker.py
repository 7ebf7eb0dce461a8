from __future__ import annotations

import logging
from typing import Iterator

import libcst as cst
from libcst.metadata import MetadataWrapper

from callshift.rewrite.model import CallSite, RewriteRule
from callshift.rewrite.resolver import SymbolResolver

logger = logging.getLogger(__name__)


def written_method_name(call: cst.Call) -> str | None:
    func = call.func
    if isinstance(func, cst.Name):
        return func.value
    if isinstance(func, cst.Attribute):
        return func.attr.value
    return None


class _CallCollector(cst.CSTVisitor):
    def __init__(self) -> None:
        self.calls: list[cst.Call] = []

    def visit_Call(self, node: cst.Call) -> bool:
        self.calls.append(node)
        return True


def collect_calls(wrapper: MetadataWrapper) -> list[cst.Call]:
    collector = _CallCollector()
    wrapper.module.visit(collector)
    return collector.calls


def iter_call_sites(
    wrapper: MetadataWrapper,
    rule: RewriteRule,
    resolver: SymbolResolver,
    calls: list[cst.Call] | None = None,
) -> Iterator[CallSite]:
    for call in calls if calls is not None else collect_calls(wrapper):
        written = written_method_name(call)
        resolution = resolver.resolve(call)
        named = written == rule.method_name or any(
            rule.matches_name(name) for name in resolution.qualified_names
        )
        if not named:
            continue
        allowed = [name for name in resolution.qualified_names if rule.in_namespace(name)]
        if not allowed:
            logger.debug(
                "dropping %s(...): declaring symbol %s outside %s",
                written,
                ", ".join(resolution.qualified_names) or "<unresolved>",
                ", ".join(rule.namespaces),
            )
            continue
        yield CallSite(
            node=call,
            rule=rule,
            qualified_name=allowed[0],
            receiver=resolution.receiver,
            arguments=tuple(call.args),
        )
