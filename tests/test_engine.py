"""End-to-end tests for the analysis pipeline."""

from __future__ import annotations

import json
import os

import pytest

from repoprofile.engine import STAGES, CodebaseAnalyzer, analyze_repository
from repoprofile.errors import PathError

EXPRESS_SERVER = """
    const express = require('express');
    const app = express();

    app.use(express.json());

    app.get('/health', (req, res) => {
      res.json({ status: 'ok' });
    });

    app.listen(3000);
"""


def _express_repo(repo_builder):
    repo_builder.write(
        {
            "package.json": json.dumps({"name": "api", "dependencies": {"express": "^4.18.0"}}),
            "server.js": EXPRESS_SERVER,
        }
    )
    return repo_builder.path()


def _stable(analysis) -> dict:
    data = analysis.to_dict()
    data.pop("analyzed_at")
    return data


def test_express_backend_end_to_end(repo_builder) -> None:
    root = _express_repo(repo_builder)

    analysis = CodebaseAnalyzer().analyze(root)

    assert analysis.repo_name == "repo"
    assert analysis.repo_path == str(root.resolve())
    express = next(tech for tech in analysis.technologies.frameworks if tech.name == "Express.js")
    assert express.confidence >= 0.7
    assert analysis.structure.project_type == "backend"
    assert analysis.structure.package_manager == "npm"

    routes = next(p for p in analysis.patterns if p.name == "Express Route Handlers")
    assert routes.frequency >= 1
    assert any(example.file_path == "server.js" for example in routes.examples)
    assert [example.file_path for example in analysis.examples.apis] == ["server.js"]
    assert analysis.quality.files_analyzed == 1


def test_results_respect_ordering_rules(repo_builder) -> None:
    analysis = CodebaseAnalyzer().analyze(_express_repo(repo_builder))

    for kind in ("languages", "frameworks", "databases", "tools", "libraries"):
        confidences = [tech.confidence for tech in getattr(analysis.technologies, kind)]
        assert confidences == sorted(confidences, reverse=True)
    frequencies = [pattern.frequency for pattern in analysis.patterns]
    assert frequencies == sorted(frequencies, reverse=True)
    assert 0.0 <= analysis.quality.maintainability_index <= 100.0
    assert 0.0 <= analysis.quality.duplicate_code_percentage <= 100.0


def test_empty_repository(repo_builder) -> None:
    analysis = CodebaseAnalyzer().analyze(repo_builder.path())

    assert analysis.technologies.languages == ()
    assert analysis.structure.project_type == "unknown"
    assert analysis.structure.documentation == "poor"
    assert analysis.examples.all() == ()
    assert analysis.patterns == ()
    assert analysis.quality.total_lines == 0
    assert analysis.quality.maintainability_index == 100.0
    assert analysis.quality.duplicate_code_percentage == 0.0
    assert analysis.file_structure.path == "."
    assert analysis.file_structure.children == ()


def test_missing_path_raises_path_error(tmp_path) -> None:
    with pytest.raises(PathError):
        CodebaseAnalyzer().analyze(tmp_path / "nope")


def test_file_path_raises_path_error(tmp_path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("hello\n", encoding="utf-8")

    with pytest.raises(PathError):
        CodebaseAnalyzer().analyze(target)


def test_progress_events_follow_stage_order(repo_builder) -> None:
    events = []

    CodebaseAnalyzer(progress=events.append).analyze(_express_repo(repo_builder))

    assert [event.stage for event in events] == list(STAGES) + ["complete"]
    assert [event.current for event in events] == list(range(len(STAGES) + 1))
    assert all(event.total == len(STAGES) for event in events)


def test_repeated_runs_are_identical(repo_builder) -> None:
    root = _express_repo(repo_builder)

    first = CodebaseAnalyzer().analyze(root)
    second = CodebaseAnalyzer().analyze(root)

    assert _stable(first) == _stable(second)


def test_repository_config_file_is_applied(repo_builder) -> None:
    _express_repo(repo_builder)
    repo_builder.write({".repoprofile.yml": "max_examples_per_category: 0\n"})

    analysis = CodebaseAnalyzer().analyze(repo_builder.path())
    ignored = CodebaseAnalyzer(use_repo_config=False).analyze(repo_builder.path())

    assert analysis.examples.all() == ()
    assert ignored.examples.apis != ()


def test_overrides_take_precedence_over_config_file(repo_builder) -> None:
    _express_repo(repo_builder)
    repo_builder.write({".repoprofile.yml": "max_examples_per_category: 0\n"})

    analysis = CodebaseAnalyzer(overrides={"max_examples_per_category": 1}).analyze(
        repo_builder.path()
    )

    assert len(analysis.examples.apis) == 1


def test_to_dict_is_json_serialisable(repo_builder) -> None:
    analysis = analyze_repository(_express_repo(repo_builder))

    data = json.loads(json.dumps(analysis.to_dict()))

    assert data["analyzed_at"].endswith("Z")
    assert data["file_structure"]["type"] == "directory"
    assert set(data["examples"]) == {
        "components",
        "functions",
        "tests",
        "configs",
        "apis",
        "models",
        "utils",
    }
    assert isinstance(data["patterns"], list)


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0,
    reason="directory permissions are not enforced for root",
)
def test_unsearchable_directory_does_not_abort_analysis(repo_builder) -> None:
    root = _express_repo(repo_builder)
    repo_builder.write({"src/App.jsx": "export default function App() { return null }\n"})
    locked = root / "src"
    locked.chmod(0o000)
    try:
        analysis = CodebaseAnalyzer().analyze(root)
    finally:
        locked.chmod(0o755)

    assert analysis.structure.project_type == "backend"
    assert "src/App.jsx" not in analysis.structure.important_files
    assert analysis.quality.files_analyzed == 1
