"""Quality metrics: comment density, complexity, maintainability and duplication."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from ..config import AnalysisConfig
from ..errors import FileReadError
from ..logging import get_logger, log_skipped
from ..models import CodeQualityMetrics, ComplexityMetrics, RepoSnapshot
from ..walker import read_source
from .complexity import (
    cognitive_complexity,
    count_comment_lines,
    cyclomatic_complexity,
    is_code_file,
    is_comment_line,
    language_for,
)

logger = get_logger("analyzers.quality")

DUPLICATE_WINDOW = 5
MIN_BLOCK_CHARS = 50

_WHITESPACE = re.compile(r"\s+")
_IDENTIFIER = re.compile(r"\b[a-zA-Z_$][a-zA-Z0-9_$]*\b")
_NUMBER = re.compile(r"\d+")
_STRING = re.compile(r"['\"`][^'\"`]*['\"`]")


def normalize_block(block: str) -> str:
    """Reduce a code window to its structural shape."""
    normalized = _WHITESPACE.sub(" ", block)
    normalized = _IDENTIFIER.sub("VAR", normalized)
    normalized = _NUMBER.sub("NUM", normalized)
    normalized = _STRING.sub("STR", normalized)
    return normalized.strip()


def _mostly_comments(window: Sequence[str], language: str) -> bool:
    content = [line for line in window if line.strip()]
    if not content:
        return True
    comments = sum(1 for line in content if is_comment_line(line, language))
    return comments * 2 > len(content)


def iter_duplicate_keys(lines: Sequence[str], language: str) -> Iterable[str]:
    """Yield the normalized key of every qualifying 5-line window."""
    for index in range(len(lines) - DUPLICATE_WINDOW + 1):
        window = lines[index : index + DUPLICATE_WINDOW]
        block = "\n".join(window).strip()
        if len(block) < MIN_BLOCK_CHARS or _mostly_comments(window, language):
            continue
        yield normalize_block(block)


def duplicate_percentage(blocks: Counter, total_lines: int) -> float:
    """Sum of every window occurrence over total lines.

    Unique windows count too, so the figure is an overlap-inclusive measure of
    block-sized code rather than of removable lines.
    """
    if total_lines <= 0:
        return 0.0
    return _clamp(100.0 * sum(blocks.values()) / total_lines)


def maintainability_index(cyclomatic: float, cognitive: float, comment_ratio: float) -> float:
    return _clamp(100 - 2 * cyclomatic - 1.5 * cognitive + 10 * comment_ratio)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


@dataclass
class _Accumulator:
    files: int = 0
    lines: int = 0
    comment_lines: int = 0
    bytes: int = 0
    cyclomatic: int = 0
    cognitive: int = 0
    blocks: Counter = field(default_factory=Counter)


class QualityMetricsCalculator:
    """Single pass over sampled code files producing `CodeQualityMetrics`."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()

    def sample(self, snapshot: RepoSnapshot) -> List[str]:
        code_files = [path for path in snapshot.files if is_code_file(path)]
        return code_files[: self.config.quality_sample_limit]

    def calculate(self, snapshot: RepoSnapshot) -> CodeQualityMetrics:
        acc = _Accumulator()
        for rel_path in self.sample(snapshot):
            try:
                text = read_source(snapshot.root, rel_path, self.config.max_file_size_bytes)
            except FileReadError as exc:
                log_skipped(logger, "quality metrics", rel_path, exc.reason)
                continue
            language = language_for(rel_path)
            lines = text.split("\n")
            acc.files += 1
            acc.lines += len(lines)
            acc.bytes += len(text.encode("utf-8"))
            acc.comment_lines += count_comment_lines(text, language)
            acc.cyclomatic += cyclomatic_complexity(text)
            acc.cognitive += cognitive_complexity(text)
            acc.blocks.update(iter_duplicate_keys(lines, language))

        processed = acc.files
        avg_cyclomatic = acc.cyclomatic / processed if processed else 0.0
        avg_cognitive = acc.cognitive / processed if processed else 0.0
        comment_ratio = acc.comment_lines / acc.lines if acc.lines else 0.0
        metrics = CodeQualityMetrics(
            average_file_size=acc.bytes / processed if processed else 0.0,
            total_lines=acc.lines,
            comment_ratio=comment_ratio,
            complexity=ComplexityMetrics(cyclomatic=avg_cyclomatic, cognitive=avg_cognitive),
            maintainability_index=maintainability_index(avg_cyclomatic, avg_cognitive, comment_ratio),
            duplicate_code_percentage=duplicate_percentage(acc.blocks, acc.lines),
            files_analyzed=processed,
        )
        logger.debug(
            "Quality over %d files: MI=%.1f duplicates=%.1f%%",
            processed,
            metrics.maintainability_index,
            metrics.duplicate_code_percentage,
        )
        return metrics


__all__ = [
    "QualityMetricsCalculator",
    "duplicate_percentage",
    "iter_duplicate_keys",
    "maintainability_index",
    "normalize_block",
]
