from __future__ import annotations

import pytest

from callshift.exceptions import NeverThrown
from callshift.rewrite.model import TextEdit
from callshift.rewrite.patcher import apply_edits, ordered_for_application


def _simultaneous(text: str, edits: list[TextEdit]) -> str:
    data = text.encode()
    out = bytearray()
    cursor = 0
    for edit in sorted(edits, key=lambda item: item.start):
        out += data[cursor:edit.start]
        out += edit.replacement.encode()
        cursor = edit.end
    out += data[cursor:]
    return out.decode()


def test_apply_edits_uses_original_offsets() -> None:
    edits = [TextEdit(1, 2, "XX"), TextEdit(4, 5, "Y")]
    assert apply_edits("abcdef", edits) == "aXXcdYf"


def test_application_order_is_descending_start() -> None:
    edits = [TextEdit(0, 1, "a"), TextEdit(6, 8, "b"), TextEdit(3, 4, "c")]
    assert [edit.start for edit in ordered_for_application(edits)] == [6, 3, 0]


@pytest.mark.parametrize(
    "edits",
    [
        [TextEdit(0, 3, ""), TextEdit(5, 9, "longer replacement")],
        [TextEdit(9, 12, "z"), TextEdit(0, 0, "prefix "), TextEdit(4, 6, "")],
        [TextEdit(12, 12, " suffix"), TextEdit(2, 11, "-")],
    ],
)
def test_descending_application_matches_simultaneous_substitution(edits) -> None:
    text = "alpha beta g"
    assert apply_edits(text, edits) == _simultaneous(text, edits)


def test_adjacent_edits_do_not_overlap() -> None:
    assert apply_edits("abcd", [TextEdit(0, 2, "X"), TextEdit(2, 4, "Y")]) == "XY"


def test_overlapping_edits_trip_the_invariant() -> None:
    with pytest.raises(NeverThrown):
        apply_edits("abcdef", [TextEdit(0, 3, "x"), TextEdit(2, 5, "y")])


def test_edit_past_end_of_text_trips_the_invariant() -> None:
    with pytest.raises(NeverThrown):
        apply_edits("abc", [TextEdit(2, 10, "x")])


def test_offsets_are_bytes_not_characters() -> None:
    text = "é = f(1)"
    start = len("é = ".encode())
    edit = TextEdit(start, start + len("f(1)"), "g(2)")
    assert apply_edits(text, [edit]) == "é = g(2)"
