"""Pipeline that turns a repository path into a `CodebaseAnalysis`."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .analyzers import (
    CodeExampleExtractor,
    InsightSynthesizer,
    PatternDetector,
    QualityMetricsCalculator,
    StructureAnalyzer,
    TechnologyDetector,
)
from .config import AnalysisConfig, load_config
from .errors import PathError
from .logging import get_logger
from .models import AnalysisProgress, CodebaseAnalysis

ProgressCallback = Callable[[AnalysisProgress], None]

STAGES = (
    "walk",
    "technologies",
    "structure",
    "examples",
    "patterns",
    "quality",
    "insights",
)


class CodebaseAnalyzer:
    """Runs every analysis stage in sequence over one repository snapshot.

    Stages only read the repository; the result is assembled once all of them
    finish, so a failure never yields a partial analysis.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        progress: Optional[ProgressCallback] = None,
        *,
        use_repo_config: bool = True,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config = config
        self.progress = progress
        self.use_repo_config = use_repo_config
        self.overrides = dict(overrides or {})
        self.logger = get_logger("engine")

    def analyze(self, path: str | Path) -> CodebaseAnalysis:
        repo_path = Path(path).expanduser()
        if not repo_path.exists():
            raise PathError(f"Repository path does not exist: {repo_path}")
        if not repo_path.is_dir():
            raise PathError(f"Repository path is not a directory: {repo_path}")
        repo_path = repo_path.resolve()

        config = self._effective_config(repo_path)
        self.logger.info("Analyzing %s", repo_path)

        structure_analyzer = StructureAnalyzer(config)

        self._report("walk", 0)
        snapshot = structure_analyzer.build_snapshot(repo_path)
        self.logger.debug("Walked %d files", len(snapshot.files))

        self._report("technologies", 1)
        technologies = TechnologyDetector().analyze(snapshot)

        self._report("structure", 2)
        structure = structure_analyzer.analyze(snapshot)

        self._report("examples", 3)
        examples = CodeExampleExtractor(config).extract(snapshot)

        self._report("patterns", 4)
        patterns = PatternDetector(config).detect(snapshot)

        self._report("quality", 5)
        quality = QualityMetricsCalculator(config).calculate(snapshot)

        self._report("insights", 6)
        insights = InsightSynthesizer().synthesize(technologies, structure, patterns, quality)

        self._report("complete", len(STAGES))
        self.logger.info(
            "Analysis complete: %d files, %d patterns, %d examples",
            len(snapshot.files),
            len(patterns),
            len(examples.all()),
        )
        return CodebaseAnalysis(
            repo_name=repo_path.name,
            repo_path=str(repo_path),
            analyzed_at=datetime.now(UTC),
            technologies=technologies,
            structure=structure,
            file_structure=snapshot.tree,
            examples=examples,
            patterns=patterns,
            quality=quality,
            insights=insights,
        )

    def _effective_config(self, repo_path: Path) -> AnalysisConfig:
        config = self.config or AnalysisConfig()
        if self.use_repo_config:
            config = load_config(repo_path, config)
        return config.with_overrides(**self.overrides)

    def _report(self, stage: str, index: int) -> None:
        if stage != "complete":
            self.logger.info("Stage %d/%d: %s", index + 1, len(STAGES), stage)
        if self.progress is not None:
            self.progress(AnalysisProgress(stage=stage, current=index, total=len(STAGES)))


def analyze_repository(
    path: str | Path,
    config: AnalysisConfig | None = None,
    progress: Optional[ProgressCallback] = None,
) -> CodebaseAnalysis:
    """Convenience wrapper around `CodebaseAnalyzer.analyze`."""
    return CodebaseAnalyzer(config, progress).analyze(path)


__all__ = ["CodebaseAnalyzer", "ProgressCallback", "STAGES", "analyze_repository"]
