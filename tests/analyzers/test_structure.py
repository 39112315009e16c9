"""Tests for the structure analyzer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from repoprofile.analyzers.structure import PathImportanceScorer, StructureAnalyzer


def _analyze(repo_builder):
    return StructureAnalyzer().analyze(repo_builder.snapshot())


@pytest.mark.parametrize(
    ("name", "path", "expected"),
    [
        ("package.json", "package.json", "high"),
        ("index.ts", "src/index.ts", "high"),
        ("vite.config.ts", "vite.config.ts", "high"),
        ("__main__.py", "pkg/__main__.py", "high"),
        ("user.service.ts", "src/user.service.ts", "medium"),
        ("test_api.py", "tests/test_api.py", "medium"),
        ("client.js", "src/api/client.js", "medium"),
        ("helpers.js", "src/utils/helpers.js", "medium"),
        ("notes.txt", "notes.txt", "low"),
    ],
)
def test_file_importance_tables(name: str, path: str, expected: str) -> None:
    assert PathImportanceScorer().file_importance(name, path) == expected


def test_directory_importance_tables() -> None:
    scorer = PathImportanceScorer()

    assert scorer.directory_importance("src", ()) == "high"
    assert scorer.directory_importance("hooks", ()) == "medium"
    assert scorer.directory_importance("misc", ()) == "low"


def test_fullstack_when_frontend_and_backend_present(repo_builder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps({"dependencies": {"react": "18", "express": "4"}}),
            "server.js": "require('express')\n",
            "src/App.tsx": "export default () => null\n",
        }
    )

    summary = _analyze(repo_builder)

    assert summary.project_type == "fullstack"
    assert summary.architecture == "monolith"
    assert summary.package_manager == "npm"


def test_project_type_picks_highest_score(repo_builder) -> None:
    repo_builder.write({"package.json": json.dumps({"dependencies": {"electron": "30"}})})

    assert _analyze(repo_builder).project_type == "desktop"


def test_unknown_project_type_and_defaults_for_empty_repo(repo_builder) -> None:
    summary = _analyze(repo_builder)

    assert summary.project_type == "unknown"
    assert summary.architecture == "monolith"
    assert summary.build_system == ()
    assert summary.package_manager == "unknown"
    assert summary.test_frameworks == ()
    assert summary.documentation == "poor"
    assert summary.important_files == ()


def test_microservices_needs_two_indicators(repo_builder) -> None:
    repo_builder.write({"docker-compose.yml": "services: {}\n"})
    assert _analyze(repo_builder).architecture == "monolith"

    repo_builder.mkdir("k8s")
    assert _analyze(repo_builder).architecture == "microservices"


def test_jamstack_boost_from_next_dependency(repo_builder) -> None:
    repo_builder.write({"package.json": json.dumps({"dependencies": {"next": "14"}})})

    assert _analyze(repo_builder).architecture == "jamstack"


def test_mvc_layout(repo_builder) -> None:
    repo_builder.mkdir("app/models", "app/controllers")

    assert _analyze(repo_builder).architecture == "mvc"


def test_build_systems_deduplicated_and_from_scripts(repo_builder) -> None:
    repo_builder.write(
        {
            "vite.config.ts": "export default {}\n",
            "Makefile": "all:\n",
            "pyproject.toml": "[project]\nname = 'x'\n",
            "setup.cfg": "[metadata]\n",
            "package.json": json.dumps({"scripts": {"dev": "vite", "bundle": "rollup -c"}}),
        }
    )

    summary = _analyze(repo_builder)

    assert summary.build_system == ("Vite", "Make", "setuptools", "Rollup")


@pytest.mark.parametrize(
    ("files", "expected"),
    [
        ({"yarn.lock": "", "package.json": "{}"}, "yarn"),
        ({"package.json": "{}"}, "npm"),
        ({"poetry.lock": "", "requirements.txt": ""}, "poetry"),
        ({"requirements.txt": "flask\n"}, "pip"),
        ({"go.mod": "module x\n"}, "go mod"),
    ],
)
def test_package_manager_resolution(repo_builder, files, expected) -> None:
    repo_builder.write(files)

    assert _analyze(repo_builder).package_manager == expected


def test_test_frameworks_from_dependencies_and_config(repo_builder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps({"devDependencies": {"jest": "29", "@testing-library/react": "14"}}),
            "jest.config.js": "module.exports = {}\n",
            "playwright.config.ts": "export default {}\n",
            "requirements.txt": "pytest\n",
        }
    )

    summary = _analyze(repo_builder)

    assert summary.test_frameworks == ("Jest", "Testing Library", "pytest", "Playwright")


def test_documentation_scoring(repo_builder) -> None:
    repo_builder.write(
        {
            "README.md": "# Project\n",
            "CHANGELOG.md": "## 1.0\n",
            "LICENSE": "MIT\n",
            "docs/guide.md": "Guide\n",
            "package.json": json.dumps({"description": "demo", "keywords": ["demo"]}),
            "src/lib.js": "// add numbers\n// returns a sum\nexport const add = (a, b) => a + b\n",
        }
    )

    # README 2 + three aux docs + comment density 2 + description + keywords
    assert _analyze(repo_builder).documentation == "excellent"


def test_documentation_moderate_with_readme_only(repo_builder) -> None:
    repo_builder.write({"README.md": "# Project\n", "main.py": "print('hi')\n"})

    assert _analyze(repo_builder).documentation == "moderate"


def test_important_files_follow_table_order(repo_builder) -> None:
    repo_builder.write(
        {
            "README.md": "# x\n",
            "server.js": "\n",
            "package.json": "{}\n",
            "pyproject.toml": "[project]\nname = 'x'\n",
        }
    )

    assert _analyze(repo_builder).important_files == (
        "package.json",
        "pyproject.toml",
        "server.js",
        "README.md",
    )


def test_unsearchable_directory_markers_count_as_absent(repo_builder, monkeypatch) -> None:
    repo_builder.write(
        {
            "server.js": "require('http')\n",
            "src/App.tsx": "export default () => null\n",
            "src/components/Button.tsx": "export const Button = () => null\n",
        }
    )
    root = repo_builder.path()
    snapshot = repo_builder.snapshot()
    original_exists = Path.exists
    original_is_dir = Path.is_dir

    def _inside_src(path: Path) -> bool:
        return root in path.parents and "src" in path.relative_to(root).parts

    def _exists(self, *args, **kwargs):
        if _inside_src(self):
            raise PermissionError(13, "Permission denied", str(self))
        return original_exists(self, *args, **kwargs)

    def _is_dir(self, *args, **kwargs):
        if _inside_src(self):
            raise PermissionError(13, "Permission denied", str(self))
        return original_is_dir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "exists", _exists)
    monkeypatch.setattr(Path, "is_dir", _is_dir)
    summary = StructureAnalyzer().analyze(snapshot)

    assert summary.project_type == "backend"
    assert summary.important_files == ("server.js",)
