"""Symbol resolution for candidate call sites.

The resolver answers one question per call: which qualified names could
have declared the invoked callable, and which sub-expression (if any) is
the receiver the method is invoked on. Resolution is import based; local
names are followed one step to their annotation or factory call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Dict, Protocol, Tuple

import libcst as cst
from libcst.metadata import (
    Assignment,
    MetadataWrapper,
    ParentNodeProvider,
    QualifiedName,
    QualifiedNameProvider,
    QualifiedNameSource,
    Scope,
    ScopeProvider,
)


@dataclass(frozen=True)
class Resolution:
    qualified_names: Tuple[str, ...] = ()
    receiver: cst.BaseExpression | None = None


class SymbolResolver(Protocol):
    def resolve(self, call: cst.Call) -> Resolution: ...


def _imported(names: Collection[QualifiedName]) -> Tuple[str, ...]:
    found = {
        name.name
        for name in names
        if isinstance(name, QualifiedName) and name.source is QualifiedNameSource.IMPORT
    }
    return tuple(sorted(found))


class _SymbolIndex(cst.CSTVisitor):
    """Snapshot of the metadata the resolver reads, keyed by node.

    ``get_metadata`` is only usable while the wrapper drives a visit, and it
    is what materialises lazily computed qualified names.
    """

    METADATA_DEPENDENCIES = (QualifiedNameProvider, ScopeProvider, ParentNodeProvider)

    def __init__(self) -> None:
        self.qualified: Dict[cst.CSTNode, Collection[QualifiedName]] = {}
        self.scopes: Dict[cst.CSTNode, Scope | None] = {}
        self.parents: Dict[cst.CSTNode, cst.CSTNode | None] = {}

    def _record(self, node: cst.CSTNode) -> None:
        self.qualified[node] = self.get_metadata(QualifiedNameProvider, node, set())
        self.scopes[node] = self.get_metadata(ScopeProvider, node, None)
        self.parents[node] = self.get_metadata(ParentNodeProvider, node, None)

    def visit_Name(self, node: cst.Name) -> bool:
        self._record(node)
        return True

    def visit_Attribute(self, node: cst.Attribute) -> bool:
        self._record(node)
        return True

    def visit_AssignTarget(self, node: cst.AssignTarget) -> bool:
        self.parents[node] = self.get_metadata(ParentNodeProvider, node, None)
        return True


class ScopeSymbolResolver:
    def __init__(self, wrapper: MetadataWrapper) -> None:
        index = _SymbolIndex()
        wrapper.visit(index)
        self._qualified = index.qualified
        self._scopes = index.scopes
        self._parents = index.parents

    def resolve(self, call: cst.Call) -> Resolution:
        func = call.func
        if isinstance(func, cst.Name):
            return Resolution(qualified_names=self.imported_names(func))
        if not isinstance(func, cst.Attribute):
            return Resolution()
        receiver = func.value
        method = func.attr.value
        if isinstance(receiver, (cst.Name, cst.Attribute)) and self.imported_names(receiver):
            # mod.f(...) / Cls.f(...): the prefix is a namespace, not an operand.
            return Resolution(qualified_names=self.imported_names(func))
        if isinstance(receiver, cst.Call):
            owners = self.imported_names(receiver.func)
            return Resolution(
                qualified_names=tuple(f"{owner}.{method}" for owner in owners),
                receiver=receiver,
            )
        if isinstance(receiver, cst.Name):
            owners = self.binding_types(receiver)
            return Resolution(
                qualified_names=tuple(f"{owner}.{method}" for owner in owners),
                receiver=receiver,
            )
        return Resolution(receiver=receiver)

    def imported_names(self, node: cst.CSTNode) -> Tuple[str, ...]:
        return _imported(self._qualified.get(node, ()))

    def binding_types(self, name: cst.Name) -> Tuple[str, ...]:
        scope = self._scopes.get(name)
        if scope is None or name.value not in scope:
            return ()
        found: set[str] = set()
        for assignment in scope[name.value]:
            if not isinstance(assignment, Assignment):
                continue
            type_expr = self._type_expression(assignment.node)
            if type_expr is not None:
                found.update(self.imported_names(type_expr))
        return tuple(sorted(found))

    def _type_expression(self, node: cst.CSTNode) -> cst.BaseExpression | None:
        if isinstance(node, cst.Param):
            return node.annotation.annotation if node.annotation is not None else None
        if isinstance(node, cst.Name):
            parent = self._parents.get(node)
            if isinstance(parent, cst.AssignTarget):
                parent = self._parents.get(parent)
            return self._type_expression(parent) if parent is not None else None
        if isinstance(node, cst.AnnAssign):
            return node.annotation.annotation
        if isinstance(node, cst.Assign) and isinstance(node.value, cst.Call):
            return node.value.func
        return None
