"""Catalog-driven detection of recurring structural and architectural patterns."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import AnalysisConfig
from ..errors import FileReadError
from ..logging import get_logger, log_skipped
from ..models import CodeExample, PatternDetection, RepoSnapshot
from ..walker import read_source, slice_lines
from .complexity import assess_complexity, is_code_file, language_for, line_index_at

logger = get_logger("analyzers.patterns")

MAX_PATTERN_EXAMPLES = 3
CONTEXT_BEFORE = 5
CONTEXT_AFTER = 15
FILE_EXAMPLE_LINES = 20

_SYMBOL_NAME = re.compile(
    r"(?:export\s+(?:default\s+)?)?(?:async\s+)?(?:function|const|let|def)\s+([a-zA-Z_$][a-zA-Z0-9_$]*)"
)
_CLASS_NAME = re.compile(r"class\s+([a-zA-Z_$][a-zA-Z0-9_$]*)")


@dataclass(frozen=True)
class PatternSpec:
    """Catalog entry; at least one of `file_pattern` / `code_pattern` is set."""

    name: str
    description: str
    recommendation: str
    file_pattern: Optional[re.Pattern[str]] = None
    code_pattern: Optional[re.Pattern[str]] = None


def _spec(
    name: str,
    description: str,
    recommendation: str,
    *,
    files: str | None = None,
    code: str | None = None,
) -> PatternSpec:
    return PatternSpec(
        name=name,
        description=description,
        recommendation=recommendation,
        file_pattern=re.compile(files) if files else None,
        code_pattern=re.compile(code, re.MULTILINE) if code else None,
    )


PATTERN_CATALOG: Tuple[PatternSpec, ...] = (
    # React
    _spec(
        "Custom React Hooks",
        "Reusable stateful logic using custom hooks",
        "Custom hooks are a great way to share stateful logic between components",
        files=r"use[A-Z][a-zA-Z]*\.(js|ts|jsx|tsx)$",
        code=r"export\s+(const|function)\s+use[A-Z][a-zA-Z]*\s*[=\(]",
    ),
    _spec(
        "Higher-Order Components (HOC)",
        "Components that wrap other components to enhance functionality",
        "HOCs are useful for cross-cutting concerns, but consider hooks for simpler cases",
        code=r"with[A-Z][a-zA-Z]*\s*=\s*\([^)]*\)\s*=>\s*\([^)]*\)\s*=>",
    ),
    _spec(
        "React Context Pattern",
        "Global state management using React Context",
        "Context is great for avoiding prop drilling, but be mindful of performance",
        code=r"createContext\s*\(|useContext\s*\(",
    ),
    _spec(
        "Component Composition",
        "Building complex UIs by composing simpler components",
        "Composition is preferred over inheritance in React",
        code=r"children\s*[:\}]|React\.Children|cloneElement",
    ),
    # Vue
    _spec(
        "Vue Composition API",
        "Using setup() function and composition functions",
        "Composition API provides better TypeScript support and code reusability",
        files=r"\.(vue|js|ts)$",
        code=r"setup\s*\(\s*\)|\bref\s*\(|\breactive\s*\(|\bcomputed\s*\(",
    ),
    _spec(
        "Vue Composables",
        "Reusable composition functions",
        "Composables are the Vue 3 equivalent of custom hooks",
        files=r"composables/.*\.(js|ts)$|use[A-Z][a-zA-Z]*\.(js|ts)$",
        code=r"export\s+(const|function)\s+use[A-Z][a-zA-Z]*",
    ),
    # Express and HTTP routing
    _spec(
        "Express Middleware Pattern",
        "Functions that execute during request-response cycle",
        "Middleware is essential for cross-cutting concerns in Express",
        code=r"\(req,\s*res,\s*next\)\s*=>",
    ),
    _spec(
        "Express Route Handlers",
        "Routes and middleware registered on an app or router",
        "Group related routes into routers and keep handlers thin",
        files=r"\.(js|ts|mjs|cjs)$",
        code=r"\b(app|router)\.(get|post|put|delete|patch|use)\s*\(",
    ),
    _spec(
        "Route Decorators",
        "HTTP handlers registered through framework route decorators",
        "Keep decorated handlers thin and move logic into services",
        files=r"\.py$",
        code=r"^\s*@\w+\.(get|post|put|delete|patch|route)\s*\(",
    ),
    _spec(
        "Route Controllers",
        "Separating route logic into controller functions",
        "Controllers help organize and test route logic",
        files=r"controllers?/.*\.(js|ts)$",
        code=r"exports?\.[a-zA-Z]+\s*=|export\s+(const|function)\s+[a-zA-Z]+",
    ),
    _spec(
        "Error Handling Middleware",
        "Centralized error handling in Express",
        "Centralized error handling improves maintainability",
        code=r"\(err,\s*req,\s*res,\s*next\)\s*=>",
    ),
    # Testing
    _spec(
        "Page Object Model",
        "Encapsulating page interactions in test objects",
        "Page Object Model improves test maintainability",
        files=r"pages?/.*\.(js|ts)$|.*\.page\.(js|ts)$",
        code=r"class\s+[A-Z][a-zA-Z]*Page|export\s+(class|const)\s+[A-Z][a-zA-Z]*Page",
    ),
    _spec(
        "Test Factory Pattern",
        "Functions that create test data objects",
        "Factories make tests more readable and maintainable",
        files=r"factories?/.*\.(js|ts|py)$|.*\.factory\.(js|ts)$",
        code=r"create[A-Z][a-zA-Z]*|build[A-Z][a-zA-Z]*|make[A-Z][a-zA-Z]*",
    ),
    _spec(
        "Test Utilities",
        "Helper functions for testing",
        "Test utilities reduce duplication in test code",
        files=r"test-utils|testing-utils|spec-helpers",
        code=r"render[A-Z][a-zA-Z]*|setup[A-Z][a-zA-Z]*|mock[A-Z][a-zA-Z]*",
    ),
    _spec(
        "Pytest Fixtures",
        "Shared test setup expressed as pytest fixtures",
        "Fixtures keep test setup reusable and explicit",
        files=r"\.py$",
        code=r"@pytest\.fixture",
    ),
    # Design patterns
    _spec(
        "Singleton Pattern",
        "Ensuring only one instance of a class exists",
        "Be cautious with singletons as they can make testing difficult",
        code=r"class\s+[A-Z][a-zA-Z]*[\s\S]*?private\s+static\s+instance|getInstance\s*\(\s*\)",
    ),
    _spec(
        "Factory Pattern",
        "Creating objects without specifying exact classes",
        "Factories provide flexibility in object creation",
        code=r"create[A-Z][a-zA-Z]*\s*\(|[A-Z][a-zA-Z]*Factory",
    ),
    _spec(
        "Observer Pattern",
        "Objects watching and reacting to state changes",
        "Observer pattern is great for loose coupling between components",
        code=r"addEventListener|removeEventListener|\bsubscribe|\bunsubscribe|\bemit\b|\bon\s*\(",
    ),
    _spec(
        "Strategy Pattern",
        "Encapsulating algorithms and making them interchangeable",
        "Strategy pattern promotes code reusability and testing",
        code=r"Strategy\s*\{|implements\s+.*Strategy|extends\s+.*Strategy",
    ),
    _spec(
        "Dataclass Models",
        "Plain data containers declared with dataclasses",
        "Prefer frozen dataclasses for values passed between layers",
        files=r"\.py$",
        code=r"^\s*@dataclass\b",
    ),
    # Architecture
    _spec(
        "Model-View-Controller (MVC)",
        "Separating concerns into models, views, and controllers",
        "MVC helps organize code and separate concerns",
        files=r"(models?|views?|controllers?)/",
    ),
    _spec(
        "Repository Pattern",
        "Abstracting data access logic",
        "Repository pattern makes data access testable and swappable",
        files=r"repositories?/.*\.(js|ts|py)$|.*Repository\.(js|ts)$",
        code=r"class\s+[A-Z][a-zA-Z]*Repository|Repository\s*\{",
    ),
    _spec(
        "Service Layer Pattern",
        "Encapsulating business logic in service classes",
        "Service layer helps organize business logic",
        files=r"services?/.*\.(js|ts|py)$|.*Service\.(js|ts)$",
        code=r"class\s+[A-Z][a-zA-Z]*Service|Service\s*\{",
    ),
    _spec(
        "Dependency Injection",
        "Injecting dependencies rather than creating them internally",
        "Dependency injection improves testability and flexibility",
        code=r"constructor\s*\([^)]*[A-Z][a-zA-Z]*[^)]*\)|@Inject|@Injectable",
    ),
    # Data access
    _spec(
        "ORM/ODM Pattern",
        "Object-relational mapping for database operations",
        "ORMs can simplify database operations but watch for N+1 queries",
        code=r"\.findOne\(|\.findMany\(|\.create\(|\.update\(|\.delete\(|Model\.",
    ),
    _spec(
        "Database Migrations",
        "Version-controlled database schema changes",
        "Migrations help manage database schema changes across environments",
        files=r"migrations?/",
    ),
    _spec(
        "Database Seeding",
        "Populating database with initial or test data",
        "Seeding helps maintain consistent test and development data",
        files=r"seeds?/|seeders?/",
        code=r"seed\s*\(|createMany\s*\(",
    ),
    # Security
    _spec(
        "Authentication Middleware",
        "Protecting routes with authentication checks",
        "Always validate authentication on protected routes",
        code=r"requireAuth|isAuthenticated|checkAuth|authenticate",
    ),
    _spec(
        "Input Validation",
        "Validating and sanitizing user input",
        "Always validate input to prevent security vulnerabilities",
        code=r"validate|sanitize|Joi\.|yup\.|zod\.",
    ),
    _spec(
        "Rate Limiting",
        "Limiting request frequency to prevent abuse",
        "Rate limiting helps prevent abuse and DDoS attacks",
        code=r"rateLimit|rateLimiter|express-rate-limit",
    ),
)


def category_for_path(rel_path: str) -> str:
    """Guess the example category of a file from its name and directory."""
    pure = PurePosixPath(rel_path)
    file_name = pure.name.lower()
    dir_name = str(pure.parent).lower()
    if "test" in file_name or "spec" in file_name or "test" in dir_name:
        return "test"
    if "config" in file_name or "config" in dir_name:
        return "config"
    if "component" in dir_name or "component" in file_name:
        return "component"
    if "api" in dir_name or "route" in dir_name:
        return "api"
    if "model" in dir_name or "schema" in dir_name:
        return "model"
    if "util" in dir_name or "helper" in dir_name:
        return "util"
    return "function"


def symbol_name(matched: str) -> str:
    found = _SYMBOL_NAME.search(matched)
    if found:
        return found.group(1)
    found = _CLASS_NAME.search(matched)
    if found:
        return found.group(1)
    return "pattern-usage"


class PatternDetector:
    """Scans code files against `PATTERN_CATALOG`."""

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        catalog: Sequence[PatternSpec] = PATTERN_CATALOG,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.catalog = tuple(catalog)

    def detect(self, snapshot: RepoSnapshot) -> Tuple[PatternDetection, ...]:
        sources = self._load_sources(snapshot)
        detections = [
            detection
            for detection in (evaluate_pattern(spec, sources) for spec in self.catalog)
            if detection is not None
        ]
        detections.sort(key=lambda item: (-item.frequency, item.name))
        logger.debug("Detected %d patterns across %d files", len(detections), len(sources))
        return tuple(detections)

    def _load_sources(self, snapshot: RepoSnapshot) -> Dict[str, str]:
        sources: Dict[str, str] = {}
        for rel_path in snapshot.files:
            if not is_code_file(rel_path):
                continue
            try:
                sources[rel_path] = read_source(
                    snapshot.root, rel_path, self.config.max_file_size_bytes
                )
            except FileReadError as exc:
                log_skipped(logger, "pattern detection", rel_path, exc.reason)
        return sources


def evaluate_pattern(spec: PatternSpec, sources: Dict[str, str]) -> PatternDetection | None:
    """Count occurrences of one catalog entry and capture up to three examples."""
    frequency = 0
    examples: List[CodeExample] = []
    for rel_path, content in sources.items():
        if spec.file_pattern is not None and not spec.file_pattern.search(rel_path):
            continue
        if spec.code_pattern is None:
            frequency += 1
            if len(examples) < MAX_PATTERN_EXAMPLES:
                examples.append(_file_example(spec, rel_path, content))
            continue

        matches = list(spec.code_pattern.finditer(content))
        if not matches:
            continue
        frequency += len(matches)
        if len(examples) < MAX_PATTERN_EXAMPLES:
            examples.append(_match_example(spec, rel_path, content, matches[0]))

    if frequency == 0:
        return None
    return PatternDetection(
        name=spec.name,
        description=spec.description,
        frequency=frequency,
        recommendation=spec.recommendation,
        examples=tuple(examples),
    )


def _match_example(
    spec: PatternSpec, rel_path: str, content: str, match: re.Match[str]
) -> CodeExample:
    lines = content.split("\n")
    match_line = line_index_at(content, match.start())
    start = max(0, match_line - CONTEXT_BEFORE) + 1
    end = min(len(lines), match_line + 1 + CONTEXT_AFTER)
    code = slice_lines(lines, start, end)
    basename = PurePosixPath(rel_path).name
    return CodeExample(
        id=f"{rel_path}-{match_line}",
        title=f"{symbol_name(match.group(0))} in {basename}",
        description=f"Example of {spec.name}",
        file_path=rel_path,
        start_line=start,
        end_line=end,
        code=code,
        language=language_for(rel_path),
        category=category_for_path(rel_path),
        complexity=assess_complexity(code),
        patterns=(spec.name,),
    )


def _file_example(spec: PatternSpec, rel_path: str, content: str) -> CodeExample:
    lines = content.split("\n")
    end = min(FILE_EXAMPLE_LINES, len(lines))
    code = slice_lines(lines, 1, end)
    basename = PurePosixPath(rel_path).name
    return CodeExample(
        id=f"{rel_path}-file",
        title=basename,
        description=f"File following the {spec.name} layout",
        file_path=rel_path,
        start_line=1,
        end_line=end,
        code=code,
        language=language_for(rel_path),
        category=category_for_path(rel_path),
        complexity=assess_complexity(code),
        patterns=(spec.name,),
    )


__all__ = [
    "PATTERN_CATALOG",
    "PatternDetector",
    "PatternSpec",
    "category_for_path",
    "evaluate_pattern",
    "symbol_name",
]
