from __future__ import annotations

import libcst as cst

from callshift.rewrite.classify import CallShape, classify, undetermined_reason
from callshift.rewrite.model import CallSite


def _site(rule, code: str, *, with_receiver: bool) -> CallSite:
    call = cst.parse_expression(code)
    assert isinstance(call, cst.Call)
    receiver = None
    if with_receiver and isinstance(call.func, cst.Attribute):
        receiver = call.func.value
    return CallSite(
        node=call,
        rule=rule,
        qualified_name="testkit.mocking.returns",
        receiver=receiver,
        arguments=tuple(call.args),
    )


def test_two_arguments_are_ternary(mocking_rule) -> None:
    assert classify(_site(mocking_rule, "returns(a, b)", with_receiver=False)) is CallShape.TERNARY


def test_two_arguments_win_over_receiver(mocking_rule) -> None:
    site = _site(mocking_rule, "check().returns(a, b)", with_receiver=True)
    assert classify(site) is CallShape.TERNARY


def test_one_argument_with_receiver_is_binary(mocking_rule) -> None:
    assert classify(_site(mocking_rule, "obj.returns(5)", with_receiver=True)) is CallShape.BINARY


def test_one_argument_without_receiver_is_undetermined(mocking_rule) -> None:
    site = _site(mocking_rule, "returns(5)", with_receiver=False)
    assert classify(site) is CallShape.UNDETERMINED
    assert undetermined_reason(site) == "missing receiver"


def test_other_argument_counts_are_undetermined(mocking_rule) -> None:
    for code in ("obj.returns()", "obj.returns(a, b, c)"):
        site = _site(mocking_rule, code, with_receiver=True)
        assert classify(site) is CallShape.UNDETERMINED
        assert undetermined_reason(site).startswith("unexpected argument count")


def test_starred_and_keyword_arguments_are_undetermined(mocking_rule) -> None:
    for code in ("returns(*pair)", "returns(a, **kw)", "obj.returns(value=5)"):
        site = _site(mocking_rule, code, with_receiver=True)
        assert classify(site) is CallShape.UNDETERMINED
        assert undetermined_reason(site) == "starred or keyword arguments"
