"""Rule list turning aggregated analysis results into qualitative insights."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from ..models import (
    CodeQualityMetrics,
    Insights,
    PatternDetection,
    StructureSummary,
    TechnologyProfile,
)

MAX_INSIGHTS_PER_BUCKET = 5

LINTERS = frozenset({"ESLint", "Ruff", "Flake8", "Pylint"})
FORMATTERS = frozenset({"Prettier", "Black", "Ruff"})
CI_TOOLS = frozenset({"GitHub Actions", "GitLab CI", "Jenkins", "CircleCI", "Travis CI"})


@dataclass(frozen=True)
class InsightContext:
    technologies: TechnologyProfile
    structure: StructureSummary
    patterns: Tuple[PatternDetection, ...]
    quality: CodeQualityMetrics

    def has_tool(self, names: frozenset) -> bool:
        return any(name in names for name in self.technologies.names("tools"))

    def has_pattern(self, fragment: str) -> bool:
        return any(fragment in pattern.name for pattern in self.patterns)

    def uses(self, name: str) -> bool:
        return any(
            name in self.technologies.names(kind) for kind in ("languages", "frameworks", "tools")
        )


@dataclass(frozen=True)
class InsightRule:
    bucket: str
    message: str
    applies: Callable[[InsightContext], bool]


INSIGHT_RULES: Tuple[InsightRule, ...] = (
    # strengths
    InsightRule(
        "strengths",
        "Good code documentation with adequate comments",
        lambda ctx: ctx.quality.comment_ratio > 0.15,
    ),
    InsightRule(
        "strengths",
        "High maintainability index indicates well-structured code",
        lambda ctx: ctx.quality.maintainability_index > 75,
    ),
    InsightRule(
        "strengths",
        "TypeScript usage provides type safety and better tooling",
        lambda ctx: ctx.uses("TypeScript"),
    ),
    InsightRule(
        "strengths",
        "Comprehensive testing patterns indicate good software practices",
        lambda ctx: ctx.has_pattern("Test"),
    ),
    # improvements
    InsightRule(
        "improvements",
        "Add more code comments to improve maintainability",
        lambda ctx: ctx.quality.comment_ratio < 0.1,
    ),
    InsightRule(
        "improvements",
        "Reduce cyclomatic complexity by breaking down large functions",
        lambda ctx: ctx.quality.complexity.cyclomatic > 10,
    ),
    InsightRule(
        "improvements",
        "Reduce code duplication by extracting common functionality",
        lambda ctx: ctx.quality.duplicate_code_percentage > 15,
    ),
    InsightRule(
        "improvements",
        "Implement consistent error handling patterns",
        lambda ctx: not ctx.has_pattern("Error"),
    ),
    # opportunities
    InsightRule(
        "opportunities",
        "Add a linter for code quality and consistency",
        lambda ctx: not ctx.has_tool(LINTERS),
    ),
    InsightRule(
        "opportunities",
        "Add an automatic formatter for consistent code formatting",
        lambda ctx: not ctx.has_tool(FORMATTERS),
    ),
    InsightRule(
        "opportunities",
        "Consider using custom hooks for reusable stateful logic",
        lambda ctx: ctx.uses("React") and not ctx.has_pattern("Hook"),
    ),
    InsightRule(
        "opportunities",
        "Implement CI/CD pipeline for automated testing and deployment",
        lambda ctx: not ctx.has_tool(CI_TOOLS),
    ),
    # risks
    InsightRule(
        "risks",
        "Low maintainability index may lead to technical debt",
        lambda ctx: ctx.quality.maintainability_index < 50,
    ),
    InsightRule(
        "risks",
        "High cognitive complexity makes code difficult to understand",
        lambda ctx: ctx.quality.complexity.cognitive > 15,
    ),
    InsightRule(
        "risks",
        "Lack of testing framework increases risk of bugs",
        lambda ctx: not ctx.structure.test_frameworks,
    ),
    InsightRule(
        "risks",
        "Large number of technologies may indicate over-engineering",
        lambda ctx: len(ctx.technologies.frameworks)
        + len(ctx.technologies.databases)
        + len(ctx.technologies.libraries)
        > 10,
    ),
)


class InsightSynthesizer:
    def __init__(self, rules: Sequence[InsightRule] = INSIGHT_RULES, limit: int = MAX_INSIGHTS_PER_BUCKET) -> None:
        self.rules = tuple(rules)
        self.limit = limit

    def synthesize(
        self,
        technologies: TechnologyProfile,
        structure: StructureSummary,
        patterns: Tuple[PatternDetection, ...],
        quality: CodeQualityMetrics,
    ) -> Insights:
        ctx = InsightContext(technologies, structure, patterns, quality)
        buckets: Dict[str, List[str]] = {
            "strengths": [],
            "improvements": [],
            "opportunities": [],
            "risks": [],
        }
        for rule in self.rules:
            bucket = buckets[rule.bucket]
            if len(bucket) < self.limit and rule.applies(ctx):
                bucket.append(rule.message)
        return Insights(**{name: tuple(items) for name, items in buckets.items()})


__all__ = ["INSIGHT_RULES", "InsightContext", "InsightRule", "InsightSynthesizer"]
