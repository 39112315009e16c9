"""Analyzer that infers project layout, architecture and documentation quality."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Sequence, Tuple

from ..config import AnalysisConfig
from ..errors import FileReadError
from ..logging import get_logger, log_skipped
from ..models import FileNode, RepoSnapshot, StructureSummary
from ..walker import FileTreeWalker, read_source
from .complexity import is_comment_line, language_for
from .manifests import PackageManifest, PythonManifest, load_package_json, load_python_manifest

logger = get_logger("analyzers.structure")

HIGH_IMPORTANCE_FILES = frozenset(
    {
        "package.json",
        "tsconfig.json",
        "webpack.config.js",
        "vite.config.ts",
        "next.config.js",
        "nuxt.config.js",
        "vue.config.js",
        "angular.json",
        "Dockerfile",
        "docker-compose.yml",
        "README.md",
        "CHANGELOG.md",
        "LICENSE",
        ".gitignore",
        ".env",
        ".env.example",
        "schema.prisma",
        "schema.sql",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "requirements.txt",
        "Pipfile",
        "manage.py",
    }
)

HIGH_IMPORTANCE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"^(index|main|app)\.(js|ts|jsx|tsx|py)$"),
    re.compile(r"^App\.(vue|jsx|tsx)$"),
    re.compile(r"^_app\.(js|ts|jsx|tsx)$"),
    re.compile(r"^_document\.(js|ts|jsx|tsx)$"),
    re.compile(r"^__main__\.py$"),
    re.compile(r"\.config\.(js|ts)$"),
    re.compile(r"\.d\.ts$"),
)

MEDIUM_IMPORTANCE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"\.(component|service|controller|model|util|helper)\.(js|ts|jsx|tsx)$"),
    re.compile(r"\.(test|spec)\.(js|ts|jsx|tsx)$"),
    re.compile(r"(^|/)test_\w+\.py$"),
    re.compile(r"_test\.py$"),
    re.compile(r"\.stories\.(js|ts|jsx|tsx)$"),
    re.compile(r"routes?\.(js|ts|py)$"),
    re.compile(r"(^|/)api/.*\.(js|ts|py)$"),
    re.compile(r"(^|/)middleware/.*\.(js|ts|py)$"),
    re.compile(r"\.md$"),
)

MEDIUM_IMPORTANCE_SEGMENTS = ("/api/", "/components/", "/services/", "/utils/")

HIGH_IMPORTANCE_DIRS = frozenset(
    {
        "src", "app", "lib", "pages", "components", "api", "server", "backend",
        "frontend", "services", "controllers", "models", "routes", "middleware",
        "config", "database", "schemas",
    }
)

MEDIUM_IMPORTANCE_DIRS = frozenset(
    {
        "utils", "helpers", "hooks", "context", "store", "types", "interfaces",
        "constants", "assets", "public", "static", "tests", "__tests__", "test",
        "spec", "cypress", "e2e",
    }
)

IMPORTANT_FILE_CANDIDATES: Tuple[str, ...] = (
    # configuration
    "package.json", "tsconfig.json", "webpack.config.js", "vite.config.ts",
    "next.config.js", "nuxt.config.js", "vue.config.js", "angular.json",
    "jest.config.js", "cypress.config.js", "tailwind.config.js",
    "postcss.config.js", ".eslintrc.js", ".prettierrc",
    "pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "Pipfile", "tox.ini",
    "Dockerfile", "docker-compose.yml", ".dockerignore",
    "schema.prisma", "prisma/schema.prisma",
    ".github/workflows", ".gitlab-ci.yml", "Jenkinsfile",
    # entry points
    "src/index.js", "src/index.ts", "src/main.js", "src/main.ts",
    "src/App.js", "src/App.ts", "src/App.jsx", "src/App.tsx",
    "src/App.vue", "pages/_app.js", "pages/_app.ts",
    "server.js", "server.ts", "app.js", "app.ts",
    "index.js", "index.ts", "main.js", "main.ts",
    "manage.py", "main.py", "app.py", "wsgi.py", "asgi.py",
    # documentation
    "README.md", "CHANGELOG.md", "CONTRIBUTING.md", "LICENSE",
    "docs/README.md", "documentation/README.md",
)

PROJECT_TYPES: Tuple[str, ...] = ("frontend", "backend", "mobile", "desktop", "library")

PROJECT_TYPE_MARKERS: Dict[str, Tuple[str, ...]] = {
    "frontend": (
        "src/App.jsx", "src/App.tsx", "src/App.vue", "pages/_app.js",
        "public/index.html", "src/components", "components/",
    ),
    "backend": (
        "server.js", "app.js", "src/server.js", "routes/", "controllers/",
        "middleware/", "api/", "src/api/", "manage.py", "wsgi.py", "asgi.py",
    ),
    "mobile": ("App.js", "App.tsx", "android/", "ios/", "lib/main.dart"),
    "desktop": ("src-tauri/", "public/electron.js"),
    "library": ("lib/", "src/index.ts", "dist/", "rollup.config.js", "lib/index.js", "setup.py"),
}

PROJECT_TYPE_PACKAGES: Dict[str, Tuple[str, ...]] = {
    "frontend": ("react", "vue", "angular", "svelte", "@angular/core"),
    "backend": ("express", "fastify", "koa", "nestjs", "hapi"),
    "mobile": ("react-native", "flutter", "ionic", "@react-native/metro-config"),
    "desktop": ("electron", "tauri", "nwjs"),
    "library": ("rollup", "microbundle", "tsdx"),
}

PROJECT_TYPE_PYTHON_PACKAGES: Dict[str, Tuple[str, ...]] = {
    "backend": ("django", "flask", "fastapi", "tornado", "pyramid"),
    "mobile": ("kivy",),
    "desktop": ("pyqt5", "pyqt6", "pyside6"),
}


@dataclass(frozen=True)
class ArchitectureRule:
    """Indicator set for one architecture style; selected at `threshold` hits."""

    name: str
    markers: Tuple[str, ...]
    boost_packages: Tuple[str, ...] = ()
    boost: int = 2
    threshold: int = 2


ARCHITECTURE_RULES: Tuple[ArchitectureRule, ...] = (
    ArchitectureRule(
        "microservices",
        ("docker-compose.yml", "kubernetes/", "k8s/", "services/", "microservices/"),
    ),
    ArchitectureRule(
        "serverless",
        ("serverless.yml", "netlify.toml", "vercel.json", "functions/", "lambda/", "api/"),
        boost_packages=("serverless", "@serverless/compose", "zappa", "chalice"),
    ),
    ArchitectureRule(
        "jamstack",
        ("static/", "public/", "_site/", "dist/", "gatsby-config.js", "next.config.js", "nuxt.config.js"),
        boost_packages=("next", "gatsby", "nuxt"),
    ),
    ArchitectureRule(
        "mvc",
        ("models/", "views/", "controllers/", "app/models/", "app/views/", "app/controllers/"),
    ),
)

BUILD_SYSTEM_FILES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Webpack", ("webpack.config.js", "webpack.config.ts")),
    ("Vite", ("vite.config.js", "vite.config.ts")),
    ("Rollup", ("rollup.config.js", "rollup.config.ts")),
    ("Parcel", (".parcelrc", "parcel.config.js")),
    ("ESBuild", ("esbuild.config.js",)),
    ("Gulp", ("gulpfile.js", "gulpfile.ts")),
    ("Grunt", ("Gruntfile.js",)),
    ("Make", ("Makefile",)),
    ("Bazel", ("BUILD", "WORKSPACE")),
    ("Rush", ("rush.json",)),
    ("Lerna", ("lerna.json",)),
    ("Nx", ("nx.json", "workspace.json")),
    ("Maven", ("pom.xml",)),
    ("Gradle", ("build.gradle", "build.gradle.kts")),
    ("Cargo", ("Cargo.toml",)),
    ("setuptools", ("setup.py", "setup.cfg")),
    ("Poetry", ("poetry.lock",)),
)

SCRIPT_BUILD_SYSTEMS: Tuple[Tuple[str, str], ...] = (
    ("webpack", "Webpack"),
    ("vite", "Vite"),
    ("rollup", "Rollup"),
    ("parcel", "Parcel"),
)

NODE_LOCK_FILES: Tuple[Tuple[str, str], ...] = (
    ("npm", "package-lock.json"),
    ("yarn", "yarn.lock"),
    ("pnpm", "pnpm-lock.yaml"),
    ("bun", "bun.lockb"),
)

OTHER_PACKAGE_MANAGERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("poetry", ("poetry.lock",)),
    ("pipenv", ("Pipfile.lock",)),
    ("pip", ("requirements.txt", "Pipfile")),
    ("conda", ("environment.yml", "conda.yml")),
    ("maven", ("pom.xml",)),
    ("gradle", ("build.gradle", "build.gradle.kts")),
    ("composer", ("composer.json",)),
    ("cargo", ("Cargo.toml",)),
    ("go mod", ("go.mod",)),
)

TEST_FRAMEWORK_PACKAGES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Jest", ("jest", "@types/jest")),
    ("Vitest", ("vitest",)),
    ("Mocha", ("mocha",)),
    ("Jasmine", ("jasmine",)),
    ("Cypress", ("cypress",)),
    ("Playwright", ("@playwright/test",)),
    ("Puppeteer", ("puppeteer",)),
    ("Testing Library", ("@testing-library/react", "@testing-library/vue")),
    ("Enzyme", ("enzyme",)),
    ("Karma", ("karma",)),
    ("Protractor", ("protractor",)),
)

TEST_FRAMEWORK_PYTHON_PACKAGES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("pytest", ("pytest",)),
    ("nose2", ("nose2",)),
    ("Hypothesis", ("hypothesis",)),
)

TEST_FRAMEWORK_FILES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Jest", ("jest.config.js", "jest.config.ts")),
    ("Cypress", ("cypress.config.js", "cypress.config.ts")),
    ("Playwright", ("playwright.config.ts",)),
    ("Vitest", ("vitest.config.ts", "vitest.config.js")),
    ("pytest", ("pytest.ini", "conftest.py", "tests/conftest.py")),
)

README_FILES = ("README.md", "readme.md", "README.txt", "README.rst")
AUXILIARY_DOCS = (
    "CHANGELOG.md",
    "CONTRIBUTING.md",
    "LICENSE",
    "CODE_OF_CONDUCT.md",
    "SECURITY.md",
    "API.md",
    "docs/",
    "documentation/",
)
DOC_SAMPLE_EXTENSIONS = (".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".cs", ".go", ".rs", ".php", ".rb")
DOC_SAMPLES_PER_EXTENSION = 3


class PathImportanceScorer:
    """Classifies files and directories as high, medium or low importance."""

    def file_importance(self, name: str, path: str) -> str:
        if name in HIGH_IMPORTANCE_FILES or any(p.search(name) for p in HIGH_IMPORTANCE_PATTERNS):
            return "high"
        anchored = f"/{path}"
        if any(p.search(path) for p in MEDIUM_IMPORTANCE_PATTERNS) or any(
            segment in anchored for segment in MEDIUM_IMPORTANCE_SEGMENTS
        ):
            return "medium"
        return "low"

    def directory_importance(self, name: str, children: Sequence[FileNode]) -> str:
        if name in HIGH_IMPORTANCE_DIRS:
            return "high"
        if any(child.importance == "high" for child in children):
            return "medium"
        if name in MEDIUM_IMPORTANCE_DIRS:
            return "medium"
        return "low"


class StructureAnalyzer:
    """Infers project characteristics from the layout and manifests."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()
        self.scorer = PathImportanceScorer()

    def build_snapshot(self, root: Path | str) -> RepoSnapshot:
        """Walk `root` and annotate the tree with importance levels."""
        return FileTreeWalker(self.config).snapshot(root, self.scorer)

    def analyze(self, snapshot: RepoSnapshot) -> StructureSummary:
        root = Path(snapshot.root)
        package = load_package_json(root)
        python = load_python_manifest(root)
        summary = StructureSummary(
            project_type=self.project_type(root, package, python),
            architecture=self.architecture(root, package, python),
            build_system=self.build_systems(root, package),
            package_manager=self.package_manager(root),
            test_frameworks=self.test_frameworks(root, package, python),
            documentation=self.documentation(snapshot, package, python),
            important_files=tuple(
                candidate for candidate in IMPORTANT_FILE_CANDIDATES if _exists(root, candidate)
            ),
        )
        logger.debug(
            "Structure: type=%s architecture=%s package_manager=%s documentation=%s",
            summary.project_type,
            summary.architecture,
            summary.package_manager,
            summary.documentation,
        )
        return summary

    @staticmethod
    def project_type(root: Path, package: PackageManifest, python: PythonManifest) -> str:
        scores: Dict[str, int] = {}
        for kind in PROJECT_TYPES:
            score = sum(1 for marker in PROJECT_TYPE_MARKERS.get(kind, ()) if _exists(root, marker))
            score += 2 * sum(1 for dep in PROJECT_TYPE_PACKAGES.get(kind, ()) if dep in package.dependencies)
            score += 2 * sum(
                1 for dep in PROJECT_TYPE_PYTHON_PACKAGES.get(kind, ()) if dep in python.dependencies
            )
            scores[kind] = score

        best = max(scores.values())
        if best == 0:
            return "unknown"
        if scores["frontend"] > 0 and scores["backend"] > 0:
            return "fullstack"
        return next(kind for kind in PROJECT_TYPES if scores[kind] == best)

    @staticmethod
    def architecture(root: Path, package: PackageManifest, python: PythonManifest) -> str:
        deps = package.dependencies
        if "express" in deps and "react" in deps:
            return "monolith"
        for rule in ARCHITECTURE_RULES:
            score = sum(1 for marker in rule.markers if _exists(root, marker))
            if any(pkg in deps or pkg in python.dependencies for pkg in rule.boost_packages):
                score += rule.boost
            if score >= rule.threshold:
                return rule.name
        return "monolith"

    @staticmethod
    def build_systems(root: Path, package: PackageManifest) -> Tuple[str, ...]:
        systems: List[str] = []
        for name, markers in BUILD_SYSTEM_FILES:
            if any(_exists(root, marker) for marker in markers):
                systems.append(name)

        scripts = " ".join(list(package.scripts) + list(package.scripts.values()))
        for needle, name in SCRIPT_BUILD_SYSTEMS:
            if needle in scripts and name not in systems:
                systems.append(name)
        return tuple(systems)

    @staticmethod
    def package_manager(root: Path) -> str:
        for manager, lock_file in NODE_LOCK_FILES:
            if _exists(root, lock_file):
                return manager
        if _exists(root, "package.json"):
            return "npm"
        for manager, markers in OTHER_PACKAGE_MANAGERS:
            if any(_exists(root, marker) for marker in markers):
                return manager
        return "unknown"

    @staticmethod
    def test_frameworks(
        root: Path, package: PackageManifest, python: PythonManifest
    ) -> Tuple[str, ...]:
        frameworks: List[str] = []
        for name, packages in TEST_FRAMEWORK_PACKAGES:
            if any(pkg in package.dependencies for pkg in packages):
                frameworks.append(name)
        for name, packages in TEST_FRAMEWORK_PYTHON_PACKAGES:
            if any(pkg in python.dependencies for pkg in packages):
                frameworks.append(name)
        for name, markers in TEST_FRAMEWORK_FILES:
            if name not in frameworks and any(_exists(root, marker) for marker in markers):
                frameworks.append(name)
        return tuple(frameworks)

    def documentation(
        self, snapshot: RepoSnapshot, package: PackageManifest, python: PythonManifest
    ) -> str:
        root = Path(snapshot.root)
        score = 0
        if any(_exists(root, readme) for readme in README_FILES):
            score += 2
        score += sum(1 for doc in AUXILIARY_DOCS if _exists(root, doc))

        ratio = self._sampled_comment_ratio(snapshot)
        if ratio is not None:
            if ratio > 0.1:
                score += 1
            if ratio > 0.2:
                score += 1

        if package.description or python.description:
            score += 1
        if package.keywords or python.keywords:
            score += 1

        if score >= 8:
            return "excellent"
        if score >= 5:
            return "good"
        if score >= 2:
            return "moderate"
        return "poor"

    def _sampled_comment_ratio(self, snapshot: RepoSnapshot) -> float | None:
        sample: List[str] = []
        for suffix in DOC_SAMPLE_EXTENSIONS:
            matches = [path for path in snapshot.files if PurePosixPath(path).suffix == suffix]
            sample.extend(matches[:DOC_SAMPLES_PER_EXTENSION])
        sample = sample[: self.config.documentation_sample_limit]

        ratios: List[float] = []
        for rel_path in sample:
            try:
                text = read_source(snapshot.root, rel_path, self.config.max_file_size_bytes)
            except FileReadError as exc:
                log_skipped(logger, "documentation sampling", rel_path, exc.reason)
                continue
            lines = text.split("\n")
            language = language_for(rel_path)
            comments = sum(1 for line in lines if is_comment_line(line, language))
            ratios.append(comments / len(lines))
        if not ratios:
            return None
        return sum(ratios) / len(ratios)


def _exists(root: Path, marker: str) -> bool:
    """Trailing `/` marks a directory-only marker."""
    try:
        if marker.endswith("/"):
            return (root / marker.rstrip("/")).is_dir()
        return (root / marker).exists()
    except OSError as exc:
        logger.debug("Cannot check marker %s: %s", marker, exc)
        return False


__all__ = [
    "ARCHITECTURE_RULES",
    "ArchitectureRule",
    "PathImportanceScorer",
    "StructureAnalyzer",
]
