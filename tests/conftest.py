from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest

from callshift.rewrite.model import RewriteRule


@pytest.fixture
def mocking_rule() -> RewriteRule:
    return RewriteRule(
        method_name="returns",
        namespaces=("testkit.mocking",),
        outer_template="whenever",
        inner_template="then_return",
        old_import="testkit.mocking.returns",
        new_import="testkit.mocking.whenever",
    )


@pytest.fixture
def shape_rule() -> RewriteRule:
    return RewriteRule(
        method_name="f",
        namespaces=("testkit",),
        outer_template="outer",
        inner_template="inner",
    )
