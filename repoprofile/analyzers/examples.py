"""Selection and ranking of representative code fragments per category."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..config import AnalysisConfig
from ..errors import FileReadError
from ..logging import get_logger, log_skipped
from ..models import COMPLEXITY_RANK, CodeExample, ExampleSet, RepoSnapshot
from ..walker import compile_glob, matches_any, read_source, slice_lines
from .complexity import assess_complexity, language_for, line_index_at

logger = get_logger("analyzers.examples")

CATEGORY_WEIGHTS: Dict[str, int] = {
    "component": 3,
    "api": 3,
    "function": 2,
    "test": 2,
    "model": 2,
    "config": 1,
    "util": 1,
}

MAX_FUNCTIONS_PER_FILE = 3
FUNCTION_LINE_CAP = 30
INTERESTING_WINDOW = 500
TRIVIAL_NAMES = frozenset({"get", "set", "is", "has", "can"})
INTERESTING_TOKENS: Tuple[str, ...] = (
    "async", "await", "try", "catch", "if", "for", "while", "return", "throw",
    "Promise", "map", "filter", "reduce", "except", "raise", "yield",
)

_JS_FUNCTIONS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"export\s+(?:async\s+)?function\s+([a-zA-Z_$][a-zA-Z0-9_$]*)\s*\("),
    re.compile(r"export\s+const\s+([a-zA-Z_$][a-zA-Z0-9_$]*)\s*=\s*(?:async\s+)?\("),
    re.compile(r"(?:async\s+)?function\s+([a-zA-Z_$][a-zA-Z0-9_$]*)\s*\("),
    re.compile(r"const\s+([a-zA-Z_$][a-zA-Z0-9_$]*)\s*=\s*(?:async\s+)?\("),
)
_PY_FUNCTION = re.compile(r"^([ \t]*)(?:async\s+)?def\s+([a-zA-Z_]\w*)\s*\(", re.MULTILINE)

_REACT_COMPONENT = re.compile(
    r"export\s+(?:default\s+)?(?:function|const)\s+([A-Z][a-zA-Z]*)"
    r"|function\s+([A-Z][a-zA-Z]*)\s*\("
    r"|class\s+([A-Z][a-zA-Z]*)\s+extends"
)
_VUE_COMPONENT = re.compile(r"<script[^>]*>[\s\S]*?</script>|export\s+default\s*\{")

_JS_TEST = re.compile(r"(?:describe|test|it)\s*\(\s*['\"`]([^'\"`]*?)['\"`]")
_PY_TEST = re.compile(r"^\s*(?:async\s+)?def\s+(test_\w+)|^class\s+(Test\w+)", re.MULTILINE)

_API_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"app\.(get|post|put|delete|patch)\s*\("),
    re.compile(r"router\.(get|post|put|delete|patch)\s*\("),
    re.compile(r"export\s+(?:async\s+)?function\s+([a-zA-Z]*(?:Controller|Handler|Route))"),
    re.compile(r"@(?:Get|Post|Put|Delete|Patch)\s*\("),
    re.compile(r"@\w+\.(?:get|post|put|delete|patch|route)\s*\("),
)

_PRISMA_MODEL = re.compile(r"model\s+([A-Z][a-zA-Z]*)\s*\{")
_JS_MODELS: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?:export\s+)?interface\s+([A-Z][a-zA-Z]*)"), "Interface"),
    (re.compile(r"(?:export\s+)?type\s+([A-Z][a-zA-Z]*)"), "Type"),
    (re.compile(r"(?:export\s+)?class\s+([A-Z][a-zA-Z]*)"), "Type"),
)
_PY_MODEL = re.compile(r"^class\s+([A-Z]\w*)", re.MULTILINE)

_JS_UTIL = re.compile(r"export\s+(?:const|function)\s+([a-zA-Z_$][a-zA-Z0-9_$]*)")
_PY_UTIL = re.compile(r"^def\s+([a-zA-Z_]\w*)", re.MULTILINE)


@dataclass(frozen=True)
class CategorySpec:
    """Path globs selecting candidate files for one example category."""

    category: str
    include: Tuple[str, ...]
    exclude: Tuple[str, ...] = ()

    def compiled(self) -> Tuple[Tuple[re.Pattern[str], ...], Tuple[re.Pattern[str], ...]]:
        return (
            tuple(compile_glob(glob) for glob in self.include),
            tuple(compile_glob(glob) for glob in self.exclude),
        )


_TEST_EXCLUDES = ("**/*.test.*", "**/*.spec.*", "**/test_*.py", "**/*_test.py", "**/tests/**")

CATEGORY_SPECS: Tuple[CategorySpec, ...] = (
    CategorySpec(
        "component",
        (
            "**/components/**/*.{js,ts,jsx,tsx,vue}",
            "**/*.component.{js,ts,jsx,tsx}",
            "**/pages/**/*.{js,ts,jsx,tsx,vue}",
            "**/views/**/*.{js,ts,jsx,tsx,vue}",
        ),
    ),
    CategorySpec(
        "function",
        (
            "**/src/**/*.{js,ts,py}",
            "**/lib/**/*.{js,ts,py}",
            "**/utils/**/*.{js,ts,py}",
            "**/helpers/**/*.{js,ts,py}",
            "**/services/**/*.{js,ts,py}",
        ),
        _TEST_EXCLUDES + ("**/components/**", "**/pages/**"),
    ),
    CategorySpec(
        "test",
        (
            "**/*.test.{js,ts,jsx,tsx}",
            "**/*.spec.{js,ts,jsx,tsx}",
            "**/tests/**/*.{js,ts,jsx,tsx,py}",
            "**/__tests__/**/*.{js,ts,jsx,tsx}",
            "**/cypress/**/*.{js,ts}",
            "**/e2e/**/*.{js,ts}",
            "**/test_*.py",
            "**/*_test.py",
        ),
    ),
    CategorySpec(
        "config",
        (
            "**/webpack.config.{js,ts}",
            "**/vite.config.{js,ts}",
            "**/next.config.{js,ts}",
            "**/nuxt.config.{js,ts}",
            "**/vue.config.{js,ts}",
            "**/jest.config.{js,ts}",
            "**/cypress.config.{js,ts}",
            "**/tailwind.config.{js,ts}",
            "**/rollup.config.{js,ts}",
            "**/.eslintrc.{js,ts}",
            "**/babel.config.{js,ts}",
            "**/prettier.config.{js,ts}",
            "**/settings.py",
            "**/conftest.py",
            "**/pyproject.toml",
            "**/setup.cfg",
            "**/tox.ini",
        ),
    ),
    CategorySpec(
        "api",
        (
            "**/api/**/*.{js,ts,py}",
            "**/routes/**/*.{js,ts,py}",
            "**/controllers/**/*.{js,ts}",
            "**/endpoints/**/*.{js,ts,py}",
            "**/server/**/*.{js,ts}",
            "**/backend/**/*.{js,ts}",
            "**/server.{js,ts}",
            "**/app.{js,ts,py}",
            "**/main.py",
            "**/views.py",
        ),
        _TEST_EXCLUDES,
    ),
    CategorySpec(
        "model",
        (
            "**/models/**/*.{js,ts,py}",
            "**/schemas/**/*.{js,ts,py}",
            "**/entities/**/*.{js,ts}",
            "**/types/**/*.{js,ts}",
            "**/interfaces/**/*.{js,ts}",
            "**/*.model.{js,ts}",
            "**/*.schema.{js,ts}",
            "**/models.py",
            "**/schemas.py",
            "**/prisma/schema.prisma",
        ),
    ),
    CategorySpec(
        "util",
        (
            "**/utils/**/*.{js,ts,py}",
            "**/helpers/**/*.{js,ts,py}",
            "**/lib/**/*.{js,ts}",
            "**/common/**/*.{js,ts}",
            "**/shared/**/*.{js,ts}",
            "**/utils.py",
        ),
        _TEST_EXCLUDES + ("**/components/**",),
    ),
)


def score_example(example: CodeExample) -> int:
    """Ranking score: complexity tier, tag count, length and category weight."""
    score = COMPLEXITY_RANK[example.complexity]
    score += len(example.patterns)
    score += min(2, len(example.code.split("\n")) // 10)
    score += CATEGORY_WEIGHTS.get(example.category, 1)
    return score


def identify_patterns(code: str, category: str, language: str) -> Tuple[str, ...]:
    tags: List[str] = []
    if "async" in code and "await" in code:
        tags.append("async-await")
    if "try" in code and ("catch" in code or "except" in code):
        tags.append("error-handling")
    if language == "typescript" and ("interface" in code or "type " in code):
        tags.append("typescript")
    if language == "python" and "->" in code:
        tags.append("type-hints")

    if category == "component":
        if "useState" in code:
            tags.append("react-hooks")
        if "useEffect" in code:
            tags.append("lifecycle")
        if "props" in code:
            tags.append("component-props")
        if "children" in code:
            tags.append("composition")
    elif category == "api":
        if "router." in code:
            tags.append("express-router")
        if "middleware" in code:
            tags.append("middleware")
        if "req" in code and "res" in code:
            tags.append("request-response")
        if re.search(r"@\w+\.(get|post|put|delete|patch|route)\s*\(", code):
            tags.append("route-decorators")
    elif category == "test":
        if "describe" in code or "it(" in code or "def test_" in code:
            tags.append("test-structure")
        if "expect" in code or "assert" in code:
            tags.append("assertions")
        if "mock" in code.lower():
            tags.append("mocking")
        if "@pytest.fixture" in code:
            tags.append("fixtures")
    elif category == "function":
        if "map" in code or "filter" in code or "reduce" in code:
            tags.append("functional-programming")
        if "Promise" in code or ".then" in code:
            tags.append("promises")
    return tuple(tags)


def is_interesting_function(name: str, content: str, offset: int) -> bool:
    """Reject trivial accessors and bodies with too little control flow."""
    if len(name) < 3 or name in TRIVIAL_NAMES:
        return False
    window = content[offset : offset + INTERESTING_WINDOW]
    if len(window.split("\n")) < 3:
        return False
    hits = sum(1 for token in INTERESTING_TOKENS if token in window)
    return hits >= 2


def brace_block_end(lines: Sequence[str], start: int, cap: int = FUNCTION_LINE_CAP) -> int:
    """Return the exclusive 0-based end of the brace block opening at `start`."""
    end = start + 1
    depth = 0
    opened = False
    index = start
    while index < len(lines) and end - start < cap:
        line = lines[index]
        if "{" in line:
            depth += line.count("{")
            opened = True
        if "}" in line:
            depth -= line.count("}")
        end = index + 1
        if opened and depth == 0:
            break
        index += 1
    return end


def indented_block_end(lines: Sequence[str], start: int, cap: int = FUNCTION_LINE_CAP) -> int:
    """Return the exclusive end of the indentation block headed by line `start`."""
    header = lines[start]
    indent = len(header) - len(header.lstrip())
    end = start + 1
    index = start + 1
    while index < len(lines) and index - start < cap:
        line = lines[index]
        if line.strip():
            if len(line) - len(line.lstrip()) <= indent:
                break
            end = index + 1
        index += 1
    return end


class CodeExampleExtractor:
    """Extracts ranked `CodeExample` fragments for each category."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()
        self._extractors: Dict[str, Callable[[str, str], List[CodeExample]]] = {
            "component": self._component,
            "function": self._functions,
            "test": self._test,
            "config": self._config_file,
            "api": self._api,
            "model": self._model,
            "util": self._util,
        }

    def extract(self, snapshot: RepoSnapshot) -> ExampleSet:
        results: Dict[str, Tuple[CodeExample, ...]] = {}
        cache: Dict[str, Optional[str]] = {}
        for spec in CATEGORY_SPECS:
            results[spec.category] = self._extract_category(spec, snapshot, cache)
        examples = ExampleSet(
            components=results["component"],
            functions=results["function"],
            tests=results["test"],
            configs=results["config"],
            apis=results["api"],
            models=results["model"],
            utils=results["util"],
        )
        logger.debug("Extracted %d code examples", len(examples.all()))
        return examples

    def candidate_files(self, spec: CategorySpec, files: Sequence[str]) -> List[str]:
        include, exclude = spec.compiled()
        return [
            path
            for path in files
            if matches_any(path, include) and not matches_any(path, exclude)
        ]

    def _extract_category(
        self, spec: CategorySpec, snapshot: RepoSnapshot, cache: Dict[str, Optional[str]]
    ) -> Tuple[CodeExample, ...]:
        limit = self.config.max_examples_per_category
        if limit <= 0:
            return ()
        candidates = self.candidate_files(spec, snapshot.files)[: self.config.quality_sample_limit]
        extractor = self._extractors[spec.category]

        collected: List[CodeExample] = []
        seen: set[Tuple[str, int]] = set()
        for rel_path in candidates:
            content = self._read(snapshot, rel_path, cache)
            if content is None:
                continue
            for example in extractor(rel_path, content):
                key = (example.file_path, example.start_line)
                if key in seen:
                    continue
                seen.add(key)
                collected.append(example)

        collected.sort(key=lambda item: (-score_example(item), item.file_path, item.start_line))
        return tuple(collected[:limit])

    def _read(
        self, snapshot: RepoSnapshot, rel_path: str, cache: Dict[str, Optional[str]]
    ) -> Optional[str]:
        if rel_path not in cache:
            try:
                cache[rel_path] = read_source(
                    snapshot.root, rel_path, self.config.max_file_size_bytes
                )
            except FileReadError as exc:
                log_skipped(logger, "example extraction", rel_path, exc.reason)
                cache[rel_path] = None
        return cache[rel_path]

    # Category extractors. Each returns zero or more examples for one file.

    def _component(self, rel_path: str, content: str) -> List[CodeExample]:
        language = language_for(rel_path)
        stem = PurePosixPath(rel_path).stem
        if language == "vue":
            match = _VUE_COMPONENT.search(content)
            name = stem
        else:
            match = _REACT_COMPONENT.search(content)
            name = (match and (match.group(1) or match.group(2) or match.group(3))) or stem
        if match is None:
            return []
        lines = content.split("\n")
        line = line_index_at(content, match.start())
        end = min(len(lines), line + 50)
        return [
            _build(
                rel_path,
                lines,
                1,
                end,
                category="component",
                example_id=f"component-{rel_path}-{name}",
                title=f"{name} Component",
                description="UI component demonstrating component patterns",
            )
        ]

    def _functions(self, rel_path: str, content: str) -> List[CodeExample]:
        lines = content.split("\n")
        python = language_for(rel_path) == "python"
        found: List[CodeExample] = []
        used_lines: set[int] = set()

        if python:
            candidates = [(m.start(2), m.group(2)) for m in _PY_FUNCTION.finditer(content)]
        else:
            candidates = [
                (m.start(), m.group(1)) for pattern in _JS_FUNCTIONS for m in pattern.finditer(content)
            ]

        for offset, name in candidates:
            if len(found) >= MAX_FUNCTIONS_PER_FILE:
                break
            line = line_index_at(content, offset)
            if line in used_lines or not is_interesting_function(name, content, offset):
                continue
            used_lines.add(line)
            end = indented_block_end(lines, line) if python else brace_block_end(lines, line)
            found.append(
                _build(
                    rel_path,
                    lines,
                    line + 1,
                    end,
                    category="function",
                    example_id=f"function-{rel_path}-{name}",
                    title=f"{name} Function",
                    description="Function demonstrating business logic patterns",
                )
            )
        return found

    def _test(self, rel_path: str, content: str) -> List[CodeExample]:
        pattern = _PY_TEST if language_for(rel_path) == "python" else _JS_TEST
        match = pattern.search(content)
        if match is None:
            return []
        basename = PurePosixPath(rel_path).name
        label = next((group for group in match.groups() if group), "") or basename
        lines = content.split("\n")
        return [
            _build(
                rel_path,
                lines,
                1,
                min(40, len(lines)),
                category="test",
                example_id=f"test-{rel_path}",
                title=f"{label} Tests",
                description="Test suite demonstrating testing patterns",
            )
        ]

    def _config_file(self, rel_path: str, content: str) -> List[CodeExample]:
        basename = PurePosixPath(rel_path).name
        lines = content.split("\n")
        return [
            _build(
                rel_path,
                lines,
                1,
                min(50, len(lines)),
                category="config",
                example_id=f"config-{rel_path}",
                title=f"{basename} Configuration",
                description="Configuration file showing project setup patterns",
            )
        ]

    def _api(self, rel_path: str, content: str) -> List[CodeExample]:
        offsets = [m.start() for m in (p.search(content) for p in _API_PATTERNS) if m]
        if not offsets:
            return []
        lines = content.split("\n")
        line = line_index_at(content, min(offsets))
        basename = PurePosixPath(rel_path).name
        return [
            _build(
                rel_path,
                lines,
                max(0, line - 5) + 1,
                min(len(lines), line + 30),
                category="api",
                example_id=f"api-{rel_path}",
                title=f"{basename} API Endpoint",
                description="API endpoint demonstrating backend patterns",
            )
        ]

    def _model(self, rel_path: str, content: str) -> List[CodeExample]:
        lines = content.split("\n")
        language = language_for(rel_path)
        if language == "prisma":
            match = _PRISMA_MODEL.search(content)
            if match is None:
                return []
            line = line_index_at(content, match.start())
            end = _prisma_block_end(lines, line)
            name = match.group(1)
            return [
                _build(
                    rel_path,
                    lines,
                    line + 1,
                    end,
                    category="model",
                    example_id=f"model-{rel_path}-{name}",
                    title=f"{name} Model",
                    description="Prisma model defining data structure",
                    patterns=("prisma-model",),
                )
            ]

        if language == "python":
            candidates = ((_PY_MODEL, "Class", "python-classes"),)
        else:
            candidates = tuple((pattern, kind, "typescript-types") for pattern, kind in _JS_MODELS)
        for pattern, kind, tag in candidates:
            match = pattern.search(content)
            if match is None:
                continue
            line = line_index_at(content, match.start())
            name = match.group(1)
            return [
                _build(
                    rel_path,
                    lines,
                    line + 1,
                    min(len(lines), line + 20),
                    category="model",
                    example_id=f"model-{rel_path}-{name}",
                    title=f"{name} {kind}",
                    description="Data structure definition",
                    patterns=(tag,),
                )
            ]
        return []

    def _util(self, rel_path: str, content: str) -> List[CodeExample]:
        pattern = _PY_UTIL if language_for(rel_path) == "python" else _JS_UTIL
        match = pattern.search(content)
        if match is None:
            return []
        lines = content.split("\n")
        line = line_index_at(content, match.start())
        name = match.group(1)
        return [
            _build(
                rel_path,
                lines,
                max(0, line - 2) + 1,
                min(len(lines), line + 25),
                category="util",
                example_id=f"util-{rel_path}-{name}",
                title=f"{name} Utility",
                description="Utility function for common operations",
            )
        ]


def _prisma_block_end(lines: Sequence[str], start: int) -> int:
    depth = 0
    for index in range(start, len(lines)):
        if "{" in lines[index]:
            depth += 1
        if "}" in lines[index]:
            depth -= 1
        if depth == 0 and index > start:
            return index + 1
    return len(lines)


def _build(
    rel_path: str,
    lines: Sequence[str],
    start: int,
    end: int,
    *,
    category: str,
    example_id: str,
    title: str,
    description: str,
    patterns: Tuple[str, ...] | None = None,
) -> CodeExample:
    """Create an example whose `code` is exactly lines `start..end` (1-based)."""
    end = max(start, end)
    code = slice_lines(lines, start, end)
    language = language_for(rel_path)
    return CodeExample(
        id=example_id,
        title=title,
        description=description,
        file_path=rel_path,
        start_line=start,
        end_line=end,
        code=code,
        language=language,
        category=category,
        complexity=assess_complexity(code),
        patterns=patterns if patterns is not None else identify_patterns(code, category, language),
    )


__all__ = [
    "CATEGORY_SPECS",
    "CATEGORY_WEIGHTS",
    "CategorySpec",
    "CodeExampleExtractor",
    "brace_block_end",
    "identify_patterns",
    "indented_block_end",
    "is_interesting_function",
    "score_example",
]
