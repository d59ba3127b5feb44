"""CLI tests for the check command and root options."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from c_conform import __version__
from c_conform.cli import app

runner = CliRunner()

CLEAN_SOURCE = "\n".join(
    [
        "/**",
        " * @brief Read the sensor.",
        " * @param channel Channel to read.",
        " * @return Sample value.",
        " */",
        "uint16_t ReadSensor(uint8_t channel)",
        "{",
        "  uint16_t sample = 0;",
        "  if( MAX_CHANNEL > channel )",
        "  {",
        "    sample = Sample(channel);",
        "  }",
        "  return sample;",
        "}",
        "",
    ]
)


def test_root_help_works() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Check C sources" in result.stdout
    assert "check" in result.stdout
    assert "rules" in result.stdout
    assert "config-init" in result.stdout
    assert "config-validate" in result.stdout


def test_check_help_works() -> None:
    result = runner.invoke(app, ["check", "--help"])
    assert result.exit_code == 0
    assert "--fail-on" in result.stdout
    assert "--jobs" in result.stdout


def test_version_option() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_check_clean_directory_exits_zero(tmp_path: Path) -> None:
    repo = _repo(tmp_path, {"src/sensor.c": CLEAN_SOURCE})

    result = runner.invoke(
        app, ["check", str(repo / "src"), "--root", str(repo), "--format", "json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["findings"] == []
    assert payload["summary"]["files_analyzed"] == 1
    assert payload["meta"]["paths"] == [str(repo / "src" / "sensor.c")]


def test_check_reports_violations_and_fails(tmp_path: Path) -> None:
    repo = _repo(
        tmp_path,
        {
            "src/sensor.c": CLEAN_SOURCE,
            "src/bad.c": "uint8_t bad_name = 0;\n",
            "src/notes.txt": "not C\n",
        },
    )

    result = runner.invoke(
        app, ["check", str(repo / "src"), "--root", str(repo), "--format", "json", "--jobs", "2"]
    )
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["summary"]["files_analyzed"] == 2
    assert [item["rule_id"] for item in payload["findings"]] == ["variable-naming"]
    finding = payload["findings"][0]
    assert finding["file_path"] == str(repo / "src" / "bad.c")
    assert (finding["line"], finding["column"]) == (1, 1)
    assert finding["suggested_fix"] == "Rename to 'badName'."


def test_check_fail_on_never_exits_zero(tmp_path: Path) -> None:
    repo = _repo(tmp_path, {"bad.c": "uint8_t bad_name = 0;\n"})

    result = runner.invoke(
        app, ["check", str(repo / "bad.c"), "--root", str(repo), "--fail-on", "never"]
    )
    assert result.exit_code == 0
    assert "variable 'bad_name' must be camelCase without underscores" in result.stdout
    assert "1 finding(s) in 1 file(s): 1 error(s), 0 warning(s), 0 info" in result.stdout


def test_check_warning_threshold_uses_config(tmp_path: Path) -> None:
    repo = _repo(
        tmp_path,
        {
            ".c-conform.toml": "\n".join(['fail_on = "warning"', 'format = "json"']),
            "run.c": "\n".join(["void Run(void)", "{", "  free(buffer);", "}", ""]),
        },
    )

    result = runner.invoke(app, ["check", str(repo / "run.c"), "--root", str(repo)])
    payload = json.loads(result.stdout)
    severities = {item["severity"] for item in payload["findings"]}
    assert "warning" in severities
    assert "error" in severities
    assert result.exit_code == 1


def test_check_exclude_pattern_skips_files(tmp_path: Path) -> None:
    repo = _repo(
        tmp_path,
        {"src/sensor.c": CLEAN_SOURCE, "vendor/bad.c": "uint8_t bad_name = 0;\n"},
    )

    result = runner.invoke(
        app,
        [
            "check",
            str(repo),
            "--root",
            str(repo),
            "--format",
            "json",
            "--exclude",
            "*/vendor/*",
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["summary"]["files_analyzed"] == 1


def test_check_missing_file_exits_two(tmp_path: Path) -> None:
    repo = _repo(tmp_path, {})

    result = runner.invoke(app, ["check", str(repo / "missing.c"), "--root", str(repo)])
    assert result.exit_code == 2
    assert "cannot read" in result.output


def test_check_rejects_invalid_format(tmp_path: Path) -> None:
    result = runner.invoke(app, ["check", str(tmp_path), "--format", "xml"])
    assert result.exit_code != 0


def _repo(tmp_path: Path, files: dict[str, str]) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    for relative, content in files.items():
        path = repo / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return repo
