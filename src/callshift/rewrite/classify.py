from __future__ import annotations

from enum import StrEnum

from callshift.rewrite.model import CallSite


class CallShape(StrEnum):
    TERNARY = "ternary"
    BINARY = "binary"
    UNDETERMINED = "undetermined"


def _positional_only(site: CallSite) -> bool:
    return all(not arg.star and arg.keyword is None for arg in site.arguments)


def classify(site: CallSite) -> CallShape:
    """Decide which rewrite template applies to ``site``.

    Two explicit arguments give the ternary form; one argument plus a
    receiver gives the binary form. Anything else, including calls whose
    operand order cannot be read positionally, is undetermined.
    """
    if not _positional_only(site):
        return CallShape.UNDETERMINED
    if len(site.arguments) == 2:
        return CallShape.TERNARY
    if len(site.arguments) == 1 and site.receiver is not None:
        return CallShape.BINARY
    return CallShape.UNDETERMINED


def undetermined_reason(site: CallSite) -> str:
    if not _positional_only(site):
        return "starred or keyword arguments"
    if len(site.arguments) == 1:
        return "missing receiver"
    return f"unexpected argument count {len(site.arguments)}"
