from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from pydantic import ValidationError

from callshift.exceptions import ConfigError
from callshift.rewrite.model import RewriteRule
from callshift.schema import RewriteRuleDTO

DEFAULT_CONFIG_NAME = "callshift.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def rewrite_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("rewrite", {})
    return section if isinstance(section, dict) else {}


def rule_tables(
    root: Path | None = None, config_path: Path | None = None
) -> list[TomlTable]:
    data = load_config(root=root, config_path=config_path)
    section = data.get("rules", [])
    if not isinstance(section, list):
        return []
    return [entry for entry in section if isinstance(entry, dict)]


def normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def as_positive_int(value: TomlValue, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else default
    return default


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def rule_from_table(table: TomlTable) -> RewriteRule:
    payload = dict(table)
    payload["namespaces"] = normalize_name_list(payload.get("namespaces"))
    try:
        dto = RewriteRuleDTO.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid rewrite rule {table!r}: {exc}") from exc
    try:
        return dto.to_rule()
    except ValueError as exc:
        raise ConfigError(f"Invalid rewrite rule {table!r}: {exc}") from exc


def load_rules(
    root: Path | None = None, config_path: Path | None = None
) -> list[RewriteRule]:
    return [
        rule_from_table(table)
        for table in rule_tables(root=root, config_path=config_path)
    ]
