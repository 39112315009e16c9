"""CLI parser and entrypoint tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from repoprofile.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "analyze"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "--verbose"])
    assert args.verbose is True
    assert args.command == "analyze"


def test_cli_accepts_analysis_limits() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["analyze", "some/repo", "--max-depth", "3", "--max-examples", "2", "--max-file-size-kb", "64", "-o", "out.json", "--quiet"]
    )
    assert args.path == "some/repo"
    assert args.max_depth == 3
    assert args.max_examples_per_category == 2
    assert args.max_file_size_kb == 64
    assert args.output == Path("out.json")
    assert args.quiet is True


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_main_prints_json_to_stdout(repo_builder, capsys) -> None:
    repo_builder.write({"src/app.py": "def main():\n    return 1\n"})

    main(["analyze", str(repo_builder.path())])

    data = json.loads(capsys.readouterr().out)
    assert data["repo_name"] == "repo"
    assert [tech["name"] for tech in data["technologies"]["languages"]] == ["Python"]


def test_main_writes_output_file(repo_builder, tmp_path, capsys) -> None:
    repo_builder.write({"README.md": "# Demo\n"})
    output = tmp_path / "analysis.json"

    main(["analyze", str(repo_builder.path()), "--output", str(output)])

    assert "Analysis written to" in capsys.readouterr().out
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["structure"]["important_files"] == ["README.md"]


def test_main_exits_with_error_for_missing_path(tmp_path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "repoprofile analyze failed" in capsys.readouterr().err


def test_main_rejects_negative_limits(repo_builder) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(repo_builder.path()), "--max-depth", "-1"])

    assert excinfo.value.code == 2


def test_main_reports_invalid_config(repo_builder) -> None:
    repo_builder.write({".repoprofile.yml": "max_depth: [1, 2]\n"})

    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(repo_builder.path())])

    assert excinfo.value.code == 1
