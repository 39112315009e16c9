"""Tests for dependency manifest loading."""

from __future__ import annotations

import json

from repoprofile.analyzers.manifests import load_package_json, load_python_manifest


def test_package_json_merges_dev_dependencies(repo_builder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps(
                {
                    "description": "Demo app",
                    "keywords": ["demo", "web"],
                    "scripts": {"build": "vite build"},
                    "dependencies": {"react": "18.2.0"},
                    "devDependencies": {"vite": "5.0.0"},
                }
            )
        }
    )

    manifest = load_package_json(repo_builder.path())

    assert manifest.present
    assert manifest.dependencies == {"react": "18.2.0", "vite": "5.0.0"}
    assert manifest.scripts == {"build": "vite build"}
    assert manifest.description == "Demo app"
    assert manifest.keywords == ("demo", "web")


def test_package_json_non_object_is_ignored(repo_builder) -> None:
    repo_builder.write({"package.json": "[1, 2, 3]\n"})

    manifest = load_package_json(repo_builder.path())

    assert not manifest.present


def test_missing_manifests_are_empty(repo_builder) -> None:
    assert not load_package_json(repo_builder.path()).present
    python = load_python_manifest(repo_builder.path())
    assert python.dependencies == frozenset()
    assert python.sources == ()


def test_python_manifest_reads_pipfile_and_poetry(repo_builder) -> None:
    repo_builder.write(
        {
            "Pipfile": """
                [packages]
                Flask = "*"

                [dev-packages]
                pytest = "*"
            """,
            "pyproject.toml": """
                [tool.poetry]
                name = "svc"
                description = "Service"
                keywords = ["api"]

                [tool.poetry.dependencies]
                python = "^3.11"
                SQLAlchemy = "^2.0"

                [tool.poetry.group.dev.dependencies]
                black = "^24.0"

                [project]
                description = "Service"
                keywords = ["api"]
            """,
        }
    )

    manifest = load_python_manifest(repo_builder.path())

    assert manifest.dependencies == frozenset({"flask", "pytest", "sqlalchemy", "black"})
    assert manifest.sources == ("Pipfile", "pyproject.toml")
    assert manifest.description == "Service"
    assert manifest.keywords == ("api",)


def test_requirements_skip_options_and_extras(repo_builder) -> None:
    repo_builder.write(
        {
            "requirements.txt": """
                --index-url https://example.invalid/simple
                uvicorn[standard]>=0.29
                requests ; python_version > "3.8"
                # pinned below
                numpy==1.26.4
            """
        }
    )

    manifest = load_python_manifest(repo_builder.path())

    assert manifest.dependencies == frozenset({"uvicorn", "requests", "numpy"})
