"""CLI entrypoint for c-conform."""

from __future__ import annotations

import fnmatch
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Annotated

import typer

from c_conform import __version__
from c_conform.config import FAIL_ON_CHOICES, AppConfig, default_config_template, load_app_config
from c_conform.engine import analyze_sources
from c_conform.output import render_human, render_json
from c_conform.rules import build_rules, list_rule_info
from c_conform.rules.base import SEVERITY_RANK, Rule

SOURCE_PATTERNS = ("*.c", "*.h")

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="c-conform",
    no_args_is_help=True,
    help="Check C sources against the embedded C coding and Doxygen standards.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("check")
def check_command(
    paths: Annotated[list[Path], typer.Argument(help="C files or directories to check.")],
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on: Annotated[
        str | None,
        typer.Option(
            help="Exit nonzero on findings at or above: error|warning|info|never.",
            show_default="error",
        ),
    ] = None,
    jobs: Annotated[int | None, typer.Option(help="Files analysed in parallel.")] = None,
    include: Annotated[list[str] | None, typer.Option(help="Include glob pattern.")] = None,
    exclude: Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress.")] = False,
) -> None:
    """Check C sources and report conformance findings."""
    _configure_logging(verbose)
    app_config = _load_config_or_raise(root, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    threshold = (fail_on or app_config.fail_on).lower()
    if threshold not in FAIL_ON_CHOICES:
        choices = ", ".join(sorted(FAIL_ON_CHOICES))
        raise typer.BadParameter(f"fail-on must be one of: {choices}", param_hint="--fail-on")
    worker_count = jobs if jobs is not None else app_config.jobs
    if worker_count <= 0:
        raise typer.BadParameter("jobs must be > 0", param_hint="--jobs")
    _build_configured_rules_or_raise(app_config)

    files = _discover_files(
        paths,
        includes=include if include is not None else app_config.include,
        excludes=exclude if exclude is not None else app_config.exclude,
    )
    unreadable: list[Path] = []
    result = analyze_sources(
        _read_sources(files, unreadable),
        app_config.rules,
        jobs=worker_count,
    )

    if output_format == "json":
        typer.echo(render_json(result, paths=[str(path) for path in files]))
    else:
        typer.echo(render_human(result))

    if unreadable:
        raise typer.Exit(code=2)
    if threshold != "never" and any(
        SEVERITY_RANK[finding.severity] >= SEVERITY_RANK[threshold] for finding in result.findings
    ):
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List available rules and whether the current config enables them."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    active_ids = {rule.rule_id for rule in active_rules}
    rule_info = list_rule_info()

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "name": item.name,
                    "description": item.description,
                    "strictness": item.strictness,
                    "severity": item.severity,
                    "packs": list(item.packs),
                    "default_enabled": item.default_enabled,
                    "enabled": item.rule_id in active_ids,
                }
                for item in rule_info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.rule_id in active_ids else "disabled"
        lines.append(f"- {item.rule_id} [{status}] ({item.strictness}) - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [rule.rule_id for rule in active_rules]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    options = payload["options"]
    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- fail_on: {payload['fail_on']}",
        f"- jobs: {payload['jobs']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- rules.packs: {payload['rules']['packs']}",
        f"- options.indent_width: {options['indent_width']}",
        f"- options.max_line_length: {options['max_line_length']}",
        f"- options.verbs: {options['verbs']}",
        f"- options.allowed_magic_numbers: {options['allowed_magic_numbers']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".c-conform.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter project config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    root: Annotated[Path, typer.Option(help="Project root used for config discovery.")] = Path(
        "."
    ),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".c-conform.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report active rules."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_rules = _build_configured_rules_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_rule_ids": [rule.rule_id for rule in active_rules],
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_rule_ids: {payload['active_rule_ids']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _discover_files(
    paths: list[Path], *, includes: list[str], excludes: list[str]
) -> list[Path]:
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            candidates = sorted(
                {item for pattern in SOURCE_PATTERNS for item in path.rglob(pattern)}
            )
            found.extend(item for item in candidates if item.is_file())
        else:
            found.append(path)
    return _filter_paths(found, includes=includes, excludes=excludes)


def _filter_paths(paths: list[Path], *, includes: list[str], excludes: list[str]) -> list[Path]:
    filtered: list[Path] = []
    for path in paths:
        name = path.as_posix()
        if includes and not any(fnmatch.fnmatch(name, pattern) for pattern in includes):
            continue
        if excludes and any(fnmatch.fnmatch(name, pattern) for pattern in excludes):
            continue
        filtered.append(path)
    return filtered


def _read_sources(files: list[Path], unreadable: list[Path]) -> Iterator[tuple[str, str]]:
    for path in files:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.debug("Read failed for %s", path, exc_info=True)
            typer.echo(f"error: cannot read {path}: {exc.strerror or exc}", err=True)
            unreadable.append(path)
            continue
        yield (str(path), text)


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_configured_rules_or_raise(app_config: AppConfig) -> list[Rule]:
    try:
        return build_rules(app_config.rules)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc
