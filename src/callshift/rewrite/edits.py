from __future__ import annotations

import ast
import json
import math
from typing import Any, Mapping

import libcst as cst
from libcst.metadata import ByteSpanPositionProvider, MetadataWrapper

from callshift.invariants import never
from callshift.rewrite.classify import CallShape
from callshift.rewrite.model import CallSite, TextEdit

_LITERAL_NODES = (
    cst.SimpleString,
    cst.ConcatenatedString,
    cst.Integer,
    cst.Float,
    cst.Imaginary,
)
_LITERAL_NAMES = {"True", "False", "None"}


def is_literal(node: cst.BaseExpression) -> bool:
    if isinstance(node, cst.Name):
        return node.value in _LITERAL_NAMES
    if isinstance(node, cst.ConcatenatedString):
        return is_literal(node.left) and is_literal(node.right)
    return isinstance(node, _LITERAL_NODES)


def _render_str(value: str) -> str | None:
    if any("\ud800" <= char <= "\udfff" for char in value):
        return None
    return json.dumps(value, ensure_ascii=False)


def render_literal(node: cst.BaseExpression, text: str) -> str | None:
    """Return the canonical form of a literal expression, or None.

    Strings come back as one double-quoted literal: implicit
    concatenations are merged, line continuations collapse and prefix or
    quoting style is dropped. Numbers and bytes use ``repr``.
    """
    if not is_literal(node):
        return None
    try:
        value = ast.literal_eval(f"({text.strip()})")
    except (ValueError, SyntaxError):
        return None
    if isinstance(value, str):
        return _render_str(value)
    if isinstance(value, (bool, type(None))):
        return repr(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, complex) and not (
        math.isfinite(value.real) and math.isfinite(value.imag)
    ):
        return None
    if isinstance(value, (bytes, int, float, complex)):
        return repr(value)
    return None


class EditBuilder:
    def __init__(self, wrapper: MetadataWrapper, source: bytes) -> None:
        self._module = wrapper.module
        self._spans: Mapping[cst.CSTNode, Any] = wrapper.resolve(ByteSpanPositionProvider)
        self._source = source

    def span(self, node: cst.CSTNode) -> tuple[int, int]:
        """Byte range of ``node`` without its own wrapping parentheses."""
        code_span = self._spans.get(node)
        if code_span is None:
            never("node has no byte span", node=type(node).__name__)
        # The recorded span is syntactic: it already leaves out lpar/rpar.
        return code_span.start, code_span.start + code_span.length

    def text(self, node: cst.CSTNode) -> str:
        start, end = self.span(node)
        return self._source[start:end].decode(self._module.encoding)

    def line(self, node: cst.CSTNode) -> int:
        start, _ = self.span(node)
        return self._source.count(b"\n", 0, start) + 1

    def operands(
        self, site: CallSite, shape: CallShape
    ) -> tuple[cst.BaseExpression, cst.BaseExpression]:
        if shape is CallShape.TERNARY:
            return site.arguments[0].value, site.arguments[1].value
        if shape is CallShape.BINARY and site.receiver is not None:
            return site.receiver, site.arguments[0].value
        never("operands requested for unclassified call", shape=str(shape))

    def target_range(self, site: CallSite, shape: CallShape) -> tuple[int, int]:
        call_start, call_end = self.span(site.node)
        if shape is CallShape.BINARY:
            return call_start, call_end
        func = site.node.func
        if isinstance(func, cst.Attribute):
            attr_start, _ = self.span(func.attr)
            return attr_start, call_end
        return call_start, call_end

    def render_right(self, node: cst.BaseExpression) -> str:
        raw = self.text(node)
        canonical = render_literal(node, raw)
        return canonical if canonical is not None else raw

    def build(self, site: CallSite, shape: CallShape) -> TextEdit:
        left, right = self.operands(site, shape)
        rule = site.rule
        replacement = (
            f"{rule.outer_template}({self.text(left)})"
            f".{rule.inner_template}({self.render_right(right)})"
        )
        start, end = self.target_range(site, shape)
        return TextEdit(start=start, end=end, replacement=replacement)
