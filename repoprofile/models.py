"""Core data models shared across repoprofile components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

IMPORTANCE_RANK = {"low": 1, "medium": 2, "high": 3}
COMPLEXITY_RANK = {"simple": 1, "moderate": 2, "complex": 3}


@dataclass(frozen=True)
class Technology:
    """A detected technology with a heuristic confidence weight."""

    name: str
    confidence: float
    evidence: Tuple[str, ...] = ()
    version: Optional[str] = None


@dataclass(frozen=True)
class FileNode:
    """File or directory entry of the annotated repository tree."""

    type: str
    name: str
    path: str
    importance: str = "low"
    size: Optional[int] = None
    children: Optional[Tuple["FileNode", ...]] = None

    @property
    def is_dir(self) -> bool:
        return self.type == "directory"

    def iter_files(self):
        """Yield every file node below (and including) this node, depth first."""
        if not self.is_dir:
            yield self
            return
        for child in self.children or ():
            yield from child.iter_files()


@dataclass(frozen=True)
class RepoSnapshot:
    """Walked view of the repository shared by every analysis stage."""

    root: str
    tree: FileNode
    files: Tuple[str, ...]


@dataclass(frozen=True)
class CodeExample:
    """Verbatim source fragment selected as representative of a category."""

    id: str
    title: str
    description: str
    file_path: str
    start_line: int
    end_line: int
    code: str
    language: str
    category: str
    complexity: str
    patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PatternDetection:
    """A named structural idiom with how often it appears."""

    name: str
    description: str
    frequency: int
    recommendation: str
    examples: Tuple[CodeExample, ...] = ()


@dataclass(frozen=True)
class ComplexityMetrics:
    cyclomatic: float = 0.0
    cognitive: float = 0.0


@dataclass(frozen=True)
class CodeQualityMetrics:
    """Aggregate quality figures computed from one pass over sampled sources."""

    average_file_size: float
    total_lines: int
    comment_ratio: float
    complexity: ComplexityMetrics
    maintainability_index: float
    duplicate_code_percentage: float
    files_analyzed: int = 0


@dataclass(frozen=True)
class TechnologyProfile:
    languages: Tuple[Technology, ...] = ()
    frameworks: Tuple[Technology, ...] = ()
    databases: Tuple[Technology, ...] = ()
    tools: Tuple[Technology, ...] = ()
    libraries: Tuple[Technology, ...] = ()

    def names(self, kind: str) -> Tuple[str, ...]:
        return tuple(tech.name for tech in getattr(self, kind))


@dataclass(frozen=True)
class StructureSummary:
    """Project characteristics inferred from layout and manifests."""

    project_type: str = "unknown"
    architecture: str = "monolith"
    build_system: Tuple[str, ...] = ()
    package_manager: str = "unknown"
    test_frameworks: Tuple[str, ...] = ()
    documentation: str = "poor"
    important_files: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ExampleSet:
    components: Tuple[CodeExample, ...] = ()
    functions: Tuple[CodeExample, ...] = ()
    tests: Tuple[CodeExample, ...] = ()
    configs: Tuple[CodeExample, ...] = ()
    apis: Tuple[CodeExample, ...] = ()
    models: Tuple[CodeExample, ...] = ()
    utils: Tuple[CodeExample, ...] = ()

    def all(self) -> Tuple[CodeExample, ...]:
        return (
            self.components
            + self.functions
            + self.tests
            + self.configs
            + self.apis
            + self.models
            + self.utils
        )


@dataclass(frozen=True)
class Insights:
    strengths: Tuple[str, ...] = ()
    improvements: Tuple[str, ...] = ()
    opportunities: Tuple[str, ...] = ()
    risks: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalysisProgress:
    """Coarse-grained progress event emitted between pipeline stages."""

    stage: str
    current: int
    total: int


@dataclass(frozen=True)
class CodebaseAnalysis:
    """Aggregate result handed to renderers; produced once per run."""

    repo_name: str
    repo_path: str
    analyzed_at: datetime
    technologies: TechnologyProfile
    structure: StructureSummary
    file_structure: FileNode
    examples: ExampleSet
    patterns: Tuple[PatternDetection, ...]
    quality: CodeQualityMetrics
    insights: Insights = field(default_factory=Insights)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable mapping of the analysis."""
        data = asdict(self)
        data["analyzed_at"] = self.analyzed_at.isoformat().replace("+00:00", "Z")
        return _lists(data)


def _lists(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _lists(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_lists(item) for item in value]
    return value


__all__ = [
    "AnalysisProgress",
    "CodeExample",
    "CodeQualityMetrics",
    "CodebaseAnalysis",
    "ComplexityMetrics",
    "COMPLEXITY_RANK",
    "ExampleSet",
    "FileNode",
    "IMPORTANCE_RANK",
    "Insights",
    "PatternDetection",
    "RepoSnapshot",
    "StructureSummary",
    "Technology",
    "TechnologyProfile",
]
