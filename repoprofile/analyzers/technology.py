"""Technology detection from file extensions, manifests and marker files."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import RepoSnapshot, Technology, TechnologyProfile
from .manifests import PackageManifest, PythonManifest, load_package_json, load_python_manifest

logger = get_logger("analyzers.technology")


@dataclass(frozen=True)
class LanguageRule:
    name: str
    extensions: Tuple[str, ...]
    ceiling: float


@dataclass(frozen=True)
class TechRule:
    """One row of a detection table.

    `confidence` applies to manifest hits, `marker_confidence` to marker files.
    With `proportional` the marker weight is scaled by found/total markers.
    """

    name: str
    confidence: float = 0.0
    packages: Tuple[str, ...] = ()
    python_packages: Tuple[str, ...] = ()
    markers: Tuple[str, ...] = ()
    marker_confidence: float = 0.0
    proportional: bool = False


LANGUAGE_RULES: Tuple[LanguageRule, ...] = (
    LanguageRule("TypeScript", (".ts", ".tsx"), 0.9),
    LanguageRule("JavaScript", (".js", ".jsx", ".mjs"), 0.9),
    LanguageRule("Python", (".py", ".pyx"), 0.9),
    LanguageRule("Java", (".java",), 0.9),
    LanguageRule("C#", (".cs",), 0.9),
    LanguageRule("Go", (".go",), 0.9),
    LanguageRule("Rust", (".rs",), 0.9),
    LanguageRule("PHP", (".php",), 0.9),
    LanguageRule("Ruby", (".rb",), 0.9),
    LanguageRule("Swift", (".swift",), 0.9),
    LanguageRule("Kotlin", (".kt", ".kts"), 0.9),
    LanguageRule("Dart", (".dart",), 0.9),
    LanguageRule("HTML", (".html", ".htm"), 0.8),
    LanguageRule("CSS", (".css", ".scss", ".sass", ".less"), 0.8),
    LanguageRule("SQL", (".sql",), 0.8),
    LanguageRule("Shell", (".sh", ".bash"), 0.7),
    LanguageRule("YAML", (".yml", ".yaml"), 0.6),
    LanguageRule("JSON", (".json",), 0.6),
)

FRAMEWORK_RULES: Tuple[TechRule, ...] = (
    TechRule("React", 0.9, packages=("react", "@types/react"),
             markers=("src/App.jsx", "src/App.tsx", "public/index.html"),
             marker_confidence=0.8, proportional=True),
    TechRule("Vue.js", 0.9, packages=("vue", "@vue/cli"),
             markers=("src/App.vue", "vue.config.js"), marker_confidence=0.8, proportional=True),
    TechRule("Angular", 0.9, packages=("@angular/core", "@angular/cli"),
             markers=("angular.json", "src/app/app.component.ts"),
             marker_confidence=0.9, proportional=True),
    TechRule("Svelte", 0.9, packages=("svelte",)),
    TechRule("Express.js", 0.9, packages=("express",)),
    TechRule("Fastify", 0.9, packages=("fastify",)),
    TechRule("Koa", 0.9, packages=("koa",)),
    TechRule("NestJS", 0.9, packages=("@nestjs/core",)),
    TechRule("Next.js", 0.9, packages=("next",)),
    TechRule("Nuxt.js", 0.9, packages=("nuxt",)),
    TechRule("Gatsby", 0.9, packages=("gatsby",)),
    TechRule("React Native", 0.9, packages=("react-native", "@react-native/metro-config")),
    TechRule("Electron", 0.8, packages=("electron",)),
    TechRule("Django", 0.9, python_packages=("django",),
             markers=("manage.py",), marker_confidence=0.8, proportional=True),
    TechRule("Flask", 0.9, python_packages=("flask",)),
    TechRule("FastAPI", 0.9, python_packages=("fastapi",)),
    TechRule("Tornado", 0.8, python_packages=("tornado",)),
    TechRule("Pyramid", 0.8, python_packages=("pyramid",)),
    TechRule("Laravel", markers=("artisan", "app/Http/Controllers"),
             marker_confidence=0.9, proportional=True),
    TechRule("Ruby on Rails", markers=("Gemfile", "config/routes.rb", "app/controllers"),
             marker_confidence=0.9, proportional=True),
    TechRule("Spring Boot", markers=("pom.xml", "src/main/java"),
             marker_confidence=0.8, proportional=True),
)

DATABASE_RULES: Tuple[TechRule, ...] = (
    TechRule("PostgreSQL", 0.9, packages=("pg", "postgres", "@types/pg"),
             python_packages=("psycopg2", "psycopg2-binary", "psycopg", "asyncpg"),
             markers=("postgresql.conf", "pg_hba.conf"), marker_confidence=0.7),
    TechRule("MySQL", 0.9, packages=("mysql", "mysql2"),
             python_packages=("pymysql", "mysqlclient", "mysql-connector-python"),
             markers=("my.cnf", "mysql.cnf"), marker_confidence=0.7),
    TechRule("MongoDB", 0.9, packages=("mongodb", "mongoose"),
             python_packages=("pymongo", "motor", "mongoengine"),
             markers=("mongod.conf",), marker_confidence=0.7),
    TechRule("Redis", 0.8, packages=("redis", "ioredis"), python_packages=("redis",),
             markers=("redis.conf",), marker_confidence=0.7),
    TechRule("SQLite", 0.8, packages=("sqlite3", "better-sqlite3"), python_packages=("aiosqlite",)),
    TechRule("Elasticsearch", 0.8, packages=("@elastic/elasticsearch",),
             python_packages=("elasticsearch",)),
)

TOOL_RULES: Tuple[TechRule, ...] = (
    # build tools and bundlers
    TechRule("Webpack", 0.7, packages=("webpack",),
             markers=("webpack.config.js", "webpack.config.ts"), marker_confidence=0.8),
    TechRule("Vite", 0.7, packages=("vite",),
             markers=("vite.config.js", "vite.config.ts"), marker_confidence=0.8),
    TechRule("Rollup", 0.7, packages=("rollup",), markers=("rollup.config.js",), marker_confidence=0.8),
    TechRule("Parcel", 0.7, packages=("parcel",), markers=(".parcelrc",), marker_confidence=0.8),
    TechRule("ESBuild", 0.7, packages=("esbuild",), markers=("esbuild.config.js",), marker_confidence=0.8),
    TechRule("Babel", 0.7, packages=("@babel/core",),
             markers=(".babelrc", "babel.config.js"), marker_confidence=0.8),
    TechRule("TypeScript", 0.7, packages=("typescript",), markers=("tsconfig.json",), marker_confidence=0.8),
    # development tools
    TechRule("ESLint", 0.7, packages=("eslint",),
             markers=(".eslintrc.js", ".eslintrc.json", ".eslintrc", "eslint.config.js"),
             marker_confidence=0.8),
    TechRule("Prettier", 0.7, packages=("prettier",),
             markers=(".prettierrc", "prettier.config.js"), marker_confidence=0.8),
    TechRule("Jest", 0.7, packages=("jest",), markers=("jest.config.js",), marker_confidence=0.8),
    TechRule("Vitest", 0.7, packages=("vitest",), markers=("vitest.config.ts",), marker_confidence=0.8),
    TechRule("Cypress", 0.7, packages=("cypress",), markers=("cypress.config.js",), marker_confidence=0.8),
    TechRule("Playwright", 0.7, packages=("@playwright/test",),
             markers=("playwright.config.ts",), marker_confidence=0.8),
    TechRule("Storybook", 0.7, packages=("@storybook/core",),
             markers=(".storybook/main.js",), marker_confidence=0.8),
    TechRule("Ruff", 0.7, python_packages=("ruff",),
             markers=("ruff.toml", ".ruff.toml"), marker_confidence=0.8),
    TechRule("Black", 0.7, python_packages=("black",)),
    TechRule("Flake8", 0.7, python_packages=("flake8",), markers=(".flake8",), marker_confidence=0.8),
    TechRule("Pylint", 0.7, python_packages=("pylint",), markers=(".pylintrc",), marker_confidence=0.8),
    TechRule("mypy", 0.7, python_packages=("mypy",), markers=("mypy.ini",), marker_confidence=0.8),
    TechRule("pytest", 0.7, python_packages=("pytest",),
             markers=("pytest.ini", "conftest.py"), marker_confidence=0.8),
    TechRule("tox", 0.7, python_packages=("tox",), markers=("tox.ini",), marker_confidence=0.8),
    TechRule("pre-commit", 0.7, python_packages=("pre-commit",),
             markers=(".pre-commit-config.yaml",), marker_confidence=0.8),
    # containers
    TechRule("Docker", markers=("Dockerfile", "docker-compose.yml"), marker_confidence=0.8),
    TechRule("Kubernetes", markers=("k8s", "kubernetes"), marker_confidence=0.8),
    # CI/CD
    TechRule("GitHub Actions", markers=(".github/workflows",), marker_confidence=0.9),
    TechRule("GitLab CI", markers=(".gitlab-ci.yml",), marker_confidence=0.9),
    TechRule("Jenkins", markers=("Jenkinsfile",), marker_confidence=0.9),
    TechRule("CircleCI", markers=(".circleci/config.yml",), marker_confidence=0.9),
    TechRule("Travis CI", markers=(".travis.yml",), marker_confidence=0.9),
)

LIBRARY_RULES: Tuple[TechRule, ...] = (
    TechRule("UI Libraries", 0.8,
             packages=("@mui/material", "antd", "react-bootstrap", "semantic-ui-react", "chakra-ui")),
    TechRule("State Management", 0.8,
             packages=("redux", "zustand", "recoil", "mobx", "vuex", "pinia")),
    TechRule("HTTP Client", 0.7, packages=("axios", "superagent", "got", "node-fetch"),
             python_packages=("requests", "httpx", "aiohttp")),
    TechRule("Testing", 0.7, packages=("@testing-library/react", "enzyme", "sinon", "mocha", "chai"),
             python_packages=("hypothesis", "pytest-mock", "factory-boy")),
    TechRule("Styling", 0.6, packages=("styled-components", "@emotion/react", "tailwindcss", "sass")),
    TechRule("Date/Time", 0.6, packages=("moment", "dayjs", "date-fns", "luxon"),
             python_packages=("arrow", "pendulum", "python-dateutil")),
    TechRule("Validation", 0.7, packages=("joi", "yup", "zod", "ajv"),
             python_packages=("pydantic", "marshmallow", "cerberus")),
    TechRule("ORM/ODM", 0.8, packages=("prisma", "typeorm", "sequelize", "mongoose", "knex"),
             python_packages=("sqlalchemy", "peewee", "tortoise-orm", "sqlmodel")),
)

# Directory segments and suffixes that indicate schema or migration files.
_SCHEMA_SUFFIXES = (".sql",)
_SCHEMA_NAMES = ("schema.rb",)
_SCHEMA_DIRS = ("migrations",)


@dataclass(frozen=True)
class _Evidence:
    """Everything a rule may consult, gathered once per run."""

    root: Path
    package: PackageManifest
    python: PythonManifest

    def marker_exists(self, relative: str) -> bool:
        try:
            return (self.root / relative).exists()
        except OSError as exc:
            logger.debug("Cannot check marker %s: %s", relative, exc)
            return False


class TechnologyDetector:
    """Classifies languages, frameworks, datastores, tools and libraries."""

    def analyze(self, snapshot: RepoSnapshot) -> TechnologyProfile:
        root = Path(snapshot.root)
        evidence = _Evidence(
            root=root,
            package=load_package_json(root),
            python=load_python_manifest(root),
        )
        if evidence.python.sources:
            logger.debug("Python dependencies read from %s", ", ".join(evidence.python.sources))

        databases = evaluate_rules(DATABASE_RULES, evidence)
        schema_files = _schema_files(snapshot.files)
        if schema_files:
            databases.append(
                Technology(
                    name="SQL Database",
                    confidence=0.6,
                    evidence=(f"Found {len(schema_files)} schema/migration files",),
                )
            )

        profile = TechnologyProfile(
            languages=rank(self.detect_languages(snapshot.files)),
            frameworks=rank(evaluate_rules(FRAMEWORK_RULES, evidence)),
            databases=rank(databases),
            tools=rank(evaluate_rules(TOOL_RULES, evidence)),
            libraries=rank(evaluate_rules(LIBRARY_RULES, evidence)),
        )
        logger.debug(
            "Detected %d languages, %d frameworks, %d databases, %d tools, %d libraries",
            len(profile.languages),
            len(profile.frameworks),
            len(profile.databases),
            len(profile.tools),
            len(profile.libraries),
        )
        return profile

    @staticmethod
    def detect_languages(files: Sequence[str]) -> List[Technology]:
        histogram = Counter(
            PurePosixPath(path).suffix.lower() for path in files if PurePosixPath(path).suffix
        )
        languages: List[Technology] = []
        for rule in LANGUAGE_RULES:
            matched = [ext for ext in rule.extensions if histogram.get(ext)]
            if not matched:
                continue
            count = sum(histogram[ext] for ext in matched)
            languages.append(
                Technology(
                    name=rule.name,
                    confidence=min(rule.ceiling, count / 10),
                    evidence=(f"Found {count} {', '.join(matched)} files",),
                )
            )
        return languages


def evaluate_rules(rules: Iterable[TechRule], evidence: _Evidence) -> List[Technology]:
    """Run every table row against the gathered evidence, one candidate per signal."""
    candidates: List[Technology] = []
    node_deps = evidence.package.dependencies
    python_deps = evidence.python.dependencies
    for rule in rules:
        found = [pkg for pkg in rule.packages if pkg in node_deps]
        if found:
            candidates.append(
                Technology(
                    name=rule.name,
                    confidence=rule.confidence,
                    version=node_deps[found[0]],
                    evidence=(f"Found packages: {', '.join(found)}",),
                )
            )
        found_py = [pkg for pkg in rule.python_packages if pkg in python_deps]
        if found_py:
            candidates.append(
                Technology(
                    name=rule.name,
                    confidence=rule.confidence,
                    evidence=(f"Found Python dependencies: {', '.join(found_py)}",),
                )
            )
        markers = [marker for marker in rule.markers if evidence.marker_exists(marker)]
        if markers:
            weight = rule.marker_confidence
            if rule.proportional:
                weight *= len(markers) / len(rule.markers)
            candidates.append(
                Technology(
                    name=rule.name,
                    confidence=weight,
                    evidence=(f"Found indicator files: {', '.join(markers)}",),
                )
            )
    return merge_technologies(candidates)


def merge_technologies(candidates: Iterable[Technology]) -> List[Technology]:
    """Collapse candidates sharing a name: max confidence, evidence unioned in order."""
    merged: Dict[str, Technology] = {}
    for candidate in candidates:
        current = merged.get(candidate.name)
        if current is None:
            merged[candidate.name] = candidate
            continue
        evidence = current.evidence + tuple(
            item for item in candidate.evidence if item not in current.evidence
        )
        best = candidate if candidate.confidence > current.confidence else current
        version: Optional[str] = best.version or current.version or candidate.version
        merged[candidate.name] = Technology(
            name=current.name,
            confidence=best.confidence,
            evidence=evidence,
            version=version,
        )
    return list(merged.values())


def rank(technologies: Iterable[Technology]) -> Tuple[Technology, ...]:
    """Merge duplicates and order by descending confidence, then name."""
    merged = merge_technologies(technologies)
    return tuple(sorted(merged, key=lambda tech: (-tech.confidence, tech.name)))


def _schema_files(files: Sequence[str]) -> List[str]:
    matches: List[str] = []
    for path in files:
        pure = PurePosixPath(path)
        if (
            pure.suffix.lower() in _SCHEMA_SUFFIXES
            or pure.name in _SCHEMA_NAMES
            or any(part in _SCHEMA_DIRS for part in pure.parts[:-1])
        ):
            matches.append(path)
    return matches


__all__ = [
    "DATABASE_RULES",
    "FRAMEWORK_RULES",
    "LANGUAGE_RULES",
    "LIBRARY_RULES",
    "TOOL_RULES",
    "LanguageRule",
    "TechRule",
    "TechnologyDetector",
    "evaluate_rules",
    "merge_technologies",
    "rank",
]
