from __future__ import annotations

from typing import Sequence

from callshift.invariants import never
from callshift.rewrite.model import TextEdit


def ordered_for_application(edits: Sequence[TextEdit]) -> list[TextEdit]:
    return sorted(edits, key=lambda edit: (edit.start, edit.end), reverse=True)


def apply_edits(text: str, edits: Sequence[TextEdit], *, encoding: str = "utf-8") -> str:
    """Splice ``edits`` into ``text``.

    Offsets are byte offsets into the original encoded text. Edits are
    applied right to left so that each splice leaves the offsets of the
    edits still pending untouched.
    """
    buffer = bytearray(text.encode(encoding))
    limit = len(buffer)
    for edit in ordered_for_application(edits):
        if edit.end > limit:
            never(
                "edit overlaps a previously applied edit or runs past the text",
                start=edit.start,
                end=edit.end,
                limit=limit,
            )
        buffer[edit.start:edit.end] = edit.replacement.encode(encoding)
        limit = edit.start
    return buffer.decode(encoding)
