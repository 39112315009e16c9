"""Tests for the shared complexity helpers."""

from __future__ import annotations

import itertools

from repoprofile.analyzers.complexity import (
    COMPLEXITY_TIERS,
    assess_complexity,
    cognitive_complexity,
    count_comment_lines,
    cyclomatic_complexity,
    is_code_file,
    language_for,
    tier_for,
)
from repoprofile.models import COMPLEXITY_RANK


def test_cyclomatic_counts_keywords_and_logical_operators() -> None:
    code = "if (a && b) { x() } else { y() }\nfor (;;) {}\n"

    # if, else, for, && plus the base path
    assert cyclomatic_complexity(code) == 5


def test_cyclomatic_ignores_keywords_inside_identifiers() -> None:
    assert cyclomatic_complexity("const lifecycle = iffy + format;") == 1


def test_cognitive_weighs_nesting() -> None:
    flat = "if (a) {\n}\nif (b) {\n}\n"
    nested = "if (a) {\n  if (b) {\n  }\n}\n"

    assert cognitive_complexity(flat) == 4
    assert cognitive_complexity(nested) > cognitive_complexity(flat)


def test_cognitive_nesting_never_negative() -> None:
    code = "}\n}\n}\nif (a) x()\n"

    assert cognitive_complexity(code) == 2


def test_comment_lines_are_language_aware() -> None:
    text = "// c-style\n# hash\n/* block */\n * star\ncode()\n"

    assert count_comment_lines(text, "javascript") == 3
    assert count_comment_lines(text, "python") == 1


def test_tier_thresholds() -> None:
    assert tier_for(15, 4) == "simple"
    assert tier_for(16, 0) == "moderate"
    assert tier_for(1, 5) == "moderate"
    assert tier_for(41, 0) == "complex"
    assert tier_for(1, 9) == "complex"


def test_tiering_is_monotonic() -> None:
    sizes = [0, 10, 15, 16, 30, 40, 41, 80]
    keywords = [0, 3, 4, 5, 8, 9, 20]
    points = list(itertools.product(sizes, keywords))
    for (lines_a, kw_a), (lines_b, kw_b) in itertools.product(points, points):
        if lines_a <= lines_b and kw_a <= kw_b:
            assert COMPLEXITY_RANK[tier_for(lines_a, kw_a)] <= COMPLEXITY_RANK[tier_for(lines_b, kw_b)]


def test_assess_complexity_returns_known_tier() -> None:
    code = "\n".join(f"if (x{i}) {{ y() }}" for i in range(10))

    assert assess_complexity(code) == "complex"
    assert assess_complexity("return 1") in COMPLEXITY_TIERS


def test_language_and_code_file_detection() -> None:
    assert language_for("src/App.TSX") == "typescript"
    assert language_for("prisma/schema.prisma") == "prisma"
    assert language_for("README") == "text"
    assert is_code_file("pkg/module.py")
    assert not is_code_file("styles/site.css")
