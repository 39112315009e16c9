"""Tests for quality metrics."""

from __future__ import annotations

from collections import Counter

import pytest

from repoprofile.analyzers.quality import (
    QualityMetricsCalculator,
    duplicate_percentage,
    iter_duplicate_keys,
    maintainability_index,
    normalize_block,
)
from repoprofile.config import AnalysisConfig

BLOCK = """\
function total(items) {
  let sum = 0;
  for (const item of items) {
    sum += item.price * item.quantity;
  }
  return sum;
}
"""

PADDING = "x = 1\n" * 20


def _metrics(repo_builder, config: AnalysisConfig | None = None):
    return QualityMetricsCalculator(config).calculate(repo_builder.snapshot(config))


def test_normalize_block_replaces_names_numbers_and_strings() -> None:
    assert normalize_block("const   total = 42;") == "VAR VAR = NUM;"
    assert normalize_block("x = 'a b'") == "VAR = STR"
    assert normalize_block("let  a = 1;\nlet b = 2;") == normalize_block("const c = 3; var d = 4;")


def test_comment_heavy_windows_are_skipped() -> None:
    lines = ["// a long comment line describing the code below it"] * 5

    assert list(iter_duplicate_keys(lines, "javascript")) == []


def test_short_windows_are_skipped() -> None:
    assert list(iter_duplicate_keys(PADDING.split("\n"), "python")) == []


def test_unique_windows_still_count_towards_duplicates(repo_builder) -> None:
    repo_builder.write({"src/a.js": BLOCK, "src/pad.py": PADDING})

    # four qualifying windows in BLOCK over 8 + 21 split lines
    assert _metrics(repo_builder).duplicate_code_percentage == pytest.approx(100 * 4 / 29)


def test_duplicate_percentage_grows_with_copies(repo_builder) -> None:
    repo_builder.write({"src/a.js": BLOCK, "src/b.js": BLOCK, "src/pad.py": PADDING})
    two_copies = _metrics(repo_builder).duplicate_code_percentage

    repo_builder.write({"src/c.js": BLOCK})
    three_copies = _metrics(repo_builder).duplicate_code_percentage

    assert 0.0 < two_copies < three_copies <= 100.0


def test_empty_repository_defaults(repo_builder) -> None:
    repo_builder.write({"README.md": "# docs only\n"})

    metrics = _metrics(repo_builder)

    assert metrics.total_lines == 0
    assert metrics.files_analyzed == 0
    assert metrics.comment_ratio == 0.0
    assert metrics.average_file_size == 0.0
    assert metrics.maintainability_index == 100.0
    assert metrics.duplicate_code_percentage == 0.0


def test_comment_ratio_and_maintainability(repo_builder) -> None:
    repo_builder.write({"src/a.py": "# one\n# two\nx = 1\n"})

    metrics = _metrics(repo_builder)

    assert metrics.total_lines == 4
    assert metrics.comment_ratio == pytest.approx(0.5)
    assert metrics.maintainability_index == pytest.approx(
        maintainability_index(
            metrics.complexity.cyclomatic, metrics.complexity.cognitive, metrics.comment_ratio
        )
    )


def test_average_file_size_in_bytes(repo_builder) -> None:
    repo_builder.write({"a.py": "x = 12345\n", "b.py": "y = 123456789012345\n"})

    metrics = _metrics(repo_builder)

    assert metrics.files_analyzed == 2
    assert metrics.average_file_size == pytest.approx(15.0)


def test_oversized_files_are_skipped(repo_builder) -> None:
    repo_builder.write({"small.py": "x = 1\n", "big.py": "y = 2\n" * 400})

    metrics = _metrics(repo_builder, AnalysisConfig(max_file_size_kb=1))

    assert metrics.files_analyzed == 1
    assert metrics.total_lines == 2


def test_sample_limit_caps_files(repo_builder) -> None:
    repo_builder.write({f"m{i}.py": "x = 1\n" for i in range(6)})

    metrics = _metrics(repo_builder, AnalysisConfig(quality_sample_limit=4))

    assert metrics.files_analyzed == 4


def test_scores_are_clamped() -> None:
    assert maintainability_index(100, 100, 0.0) == 0.0
    assert maintainability_index(0, 0, 1.0) == 100.0
    assert duplicate_percentage(Counter({"a": 50}), 10) == 100.0
    assert duplicate_percentage(Counter({"a": 1, "b": 1}), 10) == pytest.approx(20.0)
    assert duplicate_percentage(Counter({"a": 3}), 0) == 0.0
