"""Configuration loading for c-conform."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAMES = (".c-conform.toml", "c-conform.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("c_conform", "c-conform")
FAIL_ON_CHOICES = {"error", "warning", "info", "never"}

DEFAULT_VERBS = (
    "add",
    "calculate",
    "check",
    "clear",
    "close",
    "compute",
    "configure",
    "convert",
    "copy",
    "create",
    "decode",
    "delete",
    "deinit",
    "disable",
    "enable",
    "encode",
    "find",
    "flush",
    "format",
    "free",
    "get",
    "handle",
    "init",
    "initialize",
    "is",
    "load",
    "lock",
    "open",
    "parse",
    "poll",
    "process",
    "read",
    "receive",
    "register",
    "remove",
    "reset",
    "run",
    "save",
    "send",
    "set",
    "start",
    "stop",
    "toggle",
    "unlock",
    "update",
    "validate",
    "wait",
    "write",
)


@dataclass(slots=True)
class RuleConfig:
    """Options that change how individual rules evaluate a file."""

    indent_width: int = 2
    max_line_length: int = 80
    verbs: list[str] = field(default_factory=lambda: list(DEFAULT_VERBS))
    allowed_magic_numbers: list[int] = field(default_factory=lambda: [0, 1, -1])
    enabled_rules: list[str] | None = None
    disabled_rules: list[str] = field(default_factory=list)
    enable_packs: list[str] = field(default_factory=list)
    disable_packs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rules": {
                "enable": list(self.enabled_rules) if self.enabled_rules is not None else None,
                "disable": list(self.disabled_rules),
                "packs": {
                    "enable": list(self.enable_packs),
                    "disable": list(self.disable_packs),
                },
            },
            "options": {
                "indent_width": self.indent_width,
                "max_line_length": self.max_line_length,
                "verbs": list(self.verbs),
                "allowed_magic_numbers": list(self.allowed_magic_numbers),
            },
        }


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    fail_on: str = "error"
    jobs: int = 1
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    rules: RuleConfig = field(default_factory=RuleConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on": self.fail_on,
            "jobs": self.jobs,
            "include": list(self.include),
            "exclude": list(self.exclude),
            **self.rules.to_dict(),
            "source": self.source,
        }


def load_app_config(root: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or project-local files with precedence."""
    root = root.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (root / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = root / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = root / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'fail_on = "error"',
            "jobs = 4",
            'include = ["src/**", "include/**"]',
            'exclude = ["third_party/**"]',
            "",
            "[rules]",
            "# enable = [\"comparison-order\", \"switch-default\"]",
            "disable = []",
            "",
            "[rules.packs]",
            "# opt-in packs: doxygen, whitespace, design",
            'enable = ["doxygen"]',
            "disable = []",
            "",
            "[options]",
            "indent_width = 2",
            "max_line_length = 80",
            'verbs = ["get", "set", "init", "read", "write", "update", "check", "is"]',
            "allowed_magic_numbers = [0, 1, -1]",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    options_mapping = _as_table(mapping.get("options"), "options")

    jobs = _as_int(mapping.get("jobs", 1), "jobs")
    if jobs <= 0:
        raise ValueError("jobs must be > 0")

    return AppConfig(
        format=_as_choice(mapping.get("format", "human"), {"human", "json"}, "format"),
        fail_on=_as_choice(mapping.get("fail_on", "error"), FAIL_ON_CHOICES, "fail_on"),
        jobs=jobs,
        include=_as_str_list(mapping.get("include"), "include"),
        exclude=_as_str_list(mapping.get("exclude"), "exclude"),
        rules=_parse_rule_config(rules_mapping, options_mapping),
        source=source,
    )


def _parse_rule_config(rules: dict[str, Any], options: dict[str, Any]) -> RuleConfig:
    packs = _as_table(rules.get("packs"), "rules.packs")

    indent_width = _as_int(options.get("indent_width", 2), "options.indent_width")
    if indent_width <= 0:
        raise ValueError("options.indent_width must be > 0")
    max_line_length = _as_int(options.get("max_line_length", 80), "options.max_line_length")
    if max_line_length <= 0:
        raise ValueError("options.max_line_length must be > 0")

    raw_verbs = options.get("verbs")
    verbs = (
        list(DEFAULT_VERBS)
        if raw_verbs is None
        else [verb.lower() for verb in _as_str_list(raw_verbs, "options.verbs")]
    )

    raw_numbers = options.get("allowed_magic_numbers")
    numbers = (
        [0, 1, -1]
        if raw_numbers is None
        else _as_int_list(raw_numbers, "options.allowed_magic_numbers")
    )

    enabled = rules.get("enable")
    return RuleConfig(
        indent_width=indent_width,
        max_line_length=max_line_length,
        verbs=verbs,
        allowed_magic_numbers=numbers,
        enabled_rules=None if enabled is None else _as_str_list(enabled, "rules.enable"),
        disabled_rules=_as_str_list(rules.get("disable"), "rules.disable"),
        enable_packs=_as_str_list(packs.get("enable"), "rules.packs.enable"),
        disable_packs=_as_str_list(packs.get("disable"), "rules.packs.disable"),
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_int_list(value: Any, field_name: str) -> list[int]:
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of integers")
    return [_as_int(item, field_name) for item in value]


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw
