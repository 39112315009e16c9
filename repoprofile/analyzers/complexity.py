"""Line-based complexity, comment and language heuristics shared by analyzers."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Dict

LANGUAGE_BY_SUFFIX: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".vue": "vue",
    ".py": "python",
    ".java": "java",
    ".kt": "kotlin",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".sh": "shell",
    ".prisma": "prisma",
    ".json": "json",
    ".toml": "toml",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".cfg": "ini",
    ".ini": "ini",
}

# Extensions whose files count as source code for sampling and metrics.
CODE_SUFFIXES = frozenset(
    {".js", ".ts", ".jsx", ".tsx", ".vue", ".py", ".java", ".cs", ".go", ".rs", ".php", ".rb"}
)

C_STYLE_LANGUAGES = frozenset(
    {"javascript", "typescript", "java", "kotlin", "csharp", "go", "rust", "php", "swift", "c", "cpp"}
)
HASH_STYLE_LANGUAGES = frozenset({"python", "ruby", "shell", "yaml", "toml"})

COMPLEXITY_TIERS = ("simple", "moderate", "complex")

_DECISION_KEYWORDS = re.compile(
    r"\b(?:if|else|elif|for|while|switch|case|catch|except|do|try|finally)\b"
)
_LOGICAL_OPERATORS = re.compile(r"&&|\|\|")
_NESTING_KEYWORDS = re.compile(r"\b(?:if|for|while|try)\b")
_CONTROL_KEYWORDS = re.compile(r"\b(?:if|else|elif|for|while|switch|case|catch|except)\b")


def language_for(path: str) -> str:
    return LANGUAGE_BY_SUFFIX.get(PurePosixPath(path).suffix.lower(), "text")


def is_code_file(path: str) -> bool:
    return PurePosixPath(path).suffix.lower() in CODE_SUFFIXES


def is_comment_line(line: str, language: str | None = None) -> bool:
    stripped = line.strip()
    if language in C_STYLE_LANGUAGES:
        return stripped.startswith(("//", "/*", "*"))
    if language in HASH_STYLE_LANGUAGES:
        return stripped.startswith("#")
    return stripped.startswith(("//", "#", "/*"))


def count_comment_lines(text: str, language: str | None = None) -> int:
    return sum(1 for line in text.split("\n") if is_comment_line(line, language))


def count_decision_points(code: str) -> int:
    """Count branching/looping keywords and logical operators."""
    return len(_DECISION_KEYWORDS.findall(code)) + len(_LOGICAL_OPERATORS.findall(code))


def cyclomatic_complexity(code: str) -> int:
    return count_decision_points(code) + 1


def cognitive_complexity(code: str) -> int:
    """Nesting-aware complexity: control keywords weigh 1 + current nesting depth."""
    complexity = 0
    nesting = 0
    for line in code.split("\n"):
        stripped = line.strip()
        if "{" in stripped or _NESTING_KEYWORDS.search(stripped):
            nesting += 1
        if "}" in stripped:
            nesting = max(0, nesting - 1)
        if _CONTROL_KEYWORDS.search(stripped):
            complexity += 1 + nesting
        complexity += len(_LOGICAL_OPERATORS.findall(stripped))
    return complexity


def tier_for(line_count: int, keyword_count: int) -> str:
    """Map a fragment's size and decision count onto simple/moderate/complex."""
    if line_count > 40 or keyword_count > 8:
        return "complex"
    if line_count > 15 or keyword_count > 4:
        return "moderate"
    return "simple"


def assess_complexity(code: str) -> str:
    return tier_for(len(code.split("\n")), cyclomatic_complexity(code))


def line_index_at(content: str, offset: int) -> int:
    """Return the 0-based line index containing character `offset`."""
    return content.count("\n", 0, offset)


__all__ = [
    "CODE_SUFFIXES",
    "COMPLEXITY_TIERS",
    "LANGUAGE_BY_SUFFIX",
    "assess_complexity",
    "cognitive_complexity",
    "count_comment_lines",
    "count_decision_points",
    "cyclomatic_complexity",
    "is_code_file",
    "is_comment_line",
    "language_for",
    "line_index_at",
    "tier_for",
]
