from __future__ import annotations

from pathlib import Path
import textwrap

import pytest

from callshift.config import (
    as_bool,
    as_positive_int,
    load_config,
    load_rules,
    merge_payload,
    normalize_name_list,
    rewrite_defaults,
    rule_from_table,
)
from callshift.exceptions import ConfigError


def _write_config(tmp_path: Path, body: str) -> Path:
    config_path = tmp_path / "callshift.toml"
    config_path.write_text(textwrap.dedent(body).strip() + "\n")
    return config_path


def test_rewrite_defaults_reads_toml(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
        [rewrite]
        exclude = ["build", ".venv"]
        jobs = 4
        insert_missing_imports = false
        """,
    )
    defaults = rewrite_defaults(root=tmp_path)
    assert defaults["exclude"] == ["build", ".venv"]
    assert defaults["jobs"] == 4
    assert defaults["insert_missing_imports"] is False


def test_missing_or_broken_config_is_empty(tmp_path: Path) -> None:
    assert load_config(root=tmp_path) == {}
    broken = tmp_path / "broken.toml"
    broken.write_text("[rewrite\nexclude = 1\n")
    assert load_config(config_path=broken) == {}
    assert load_rules(config_path=broken) == []


def test_rules_are_loaded_in_order(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [[rules]]
        method = "returns"
        namespaces = ["testkit.mocking"]
        outer = "whenever"
        inner = "then_return"
        old_import = "testkit.mocking.returns"
        new_import = "testkit.mocking.whenever"

        [[rules]]
        method = "raises"
        namespaces = "testkit.mocking, testkit.legacy"
        outer = "whenever"
        inner = "then_raise"
        """,
    )
    rules = load_rules(config_path=config_path)
    assert [rule.method_name for rule in rules] == ["returns", "raises"]
    assert rules[0].new_import == "testkit.mocking.whenever"
    assert rules[1].namespaces == ("testkit.mocking", "testkit.legacy")
    assert rules[1].old_import is None


@pytest.mark.parametrize(
    "table",
    [
        {"namespaces": ["testkit"], "outer": "o", "inner": "i"},
        {"method": "f", "namespaces": [], "outer": "o", "inner": "i"},
        {"method": "f", "namespaces": ["testkit"], "outer": "", "inner": "i"},
        {"method": "  ", "namespaces": ["testkit"], "outer": "o", "inner": "i"},
    ],
)
def test_invalid_rule_raises_config_error(table) -> None:
    with pytest.raises(ConfigError):
        rule_from_table(table)


def test_namespace_trailing_dot_is_dropped() -> None:
    rule = rule_from_table(
        {"method": "f", "namespaces": ["testkit."], "outer": "o", "inner": "i"}
    )
    assert rule.namespaces == ("testkit",)
    assert rule.in_namespace("testkit.f")
    assert not rule.in_namespace("testkitx.f")


def test_merge_payload_prefers_explicit_values() -> None:
    defaults = {"exclude": ["build"], "jobs": 2, "insert_missing_imports": True}
    merged = merge_payload(
        {"exclude": ["dist"], "jobs": None, "insert_missing_imports": False}, defaults
    )
    assert merged == {"exclude": ["dist"], "jobs": 2, "insert_missing_imports": False}


def test_value_coercions() -> None:
    assert normalize_name_list("a, b,,c") == ["a", "b", "c"]
    assert normalize_name_list(["a,b", 3, "c"]) == ["a", "b", "c"]
    assert normalize_name_list(None) == []
    assert as_bool("yes") is True
    assert as_bool("off") is False
    assert as_bool(0) is False
    assert as_positive_int(3, 1) == 3
    assert as_positive_int("8", 1) == 8
    assert as_positive_int(0, 1) == 1
    assert as_positive_int(True, 1) == 1
    assert as_positive_int("many", 2) == 2
