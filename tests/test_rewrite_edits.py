from __future__ import annotations

import libcst as cst
import pytest

from callshift.rewrite.edits import is_literal, render_literal


def _render(code: str) -> str | None:
    return render_literal(cst.parse_expression(code), code)


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("'value'", '"value"'),
        ('"value"', '"value"'),
        ("u'value'", '"value"'),
        ("'it\\'s'", '"it\'s"'),
        ("'say \"hi\"'", '"say \\"hi\\""'),
        ("r'\\d+'", '"\\\\d+"'),
        ("'line\\n'", '"line\\n"'),
        ("'café'", '"café"'),
        ("'a' 'b'", '"ab"'),
        ("b'raw'", "b'raw'"),
        ("0x10", "16"),
        ("1_000", "1000"),
        ("2.5", "2.5"),
        ("3j", "3j"),
        ("True", "True"),
        ("None", "None"),
    ],
)
def test_render_literal_canonical_forms(code: str, expected: str) -> None:
    assert _render(code) == expected


def test_escaped_newline_in_string_collapses() -> None:
    code = "'first \\\nsecond'"
    node = cst.parse_expression(code)
    assert render_literal(node, code) == '"first second"'


@pytest.mark.parametrize("code", ["name", "f'{x}'", "-1", "[1, 2]", "call()", "'a' f'{b}'"])
def test_non_literals_are_not_rendered(code: str) -> None:
    assert _render(code) is None


def test_lone_surrogate_falls_back_to_source_text() -> None:
    assert _render("'\\ud800'") is None


def test_is_literal_checks_every_concatenated_part() -> None:
    assert is_literal(cst.parse_expression("'a' 'b' 'c'"))
    assert not is_literal(cst.parse_expression("'a' f'{b}'"))


@pytest.mark.parametrize("code", ["1e999", "1e999j", "1.5e400"])
def test_non_finite_numbers_keep_source_text(code: str) -> None:
    assert _render(code) is None


def test_large_finite_float_is_still_canonical() -> None:
    assert _render("1e308") == "1e+308"
