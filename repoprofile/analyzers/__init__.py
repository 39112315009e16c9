"""Analysis stages run by the engine over a walked repository snapshot."""

from __future__ import annotations

from .examples import CodeExampleExtractor
from .insights import InsightSynthesizer
from .patterns import PatternDetector
from .quality import QualityMetricsCalculator
from .structure import PathImportanceScorer, StructureAnalyzer
from .technology import TechnologyDetector, merge_technologies

__all__ = [
    "CodeExampleExtractor",
    "InsightSynthesizer",
    "PathImportanceScorer",
    "PatternDetector",
    "QualityMetricsCalculator",
    "StructureAnalyzer",
    "TechnologyDetector",
    "merge_technologies",
]
