"""Repository walking, ignore rules and safe file reading."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from .config import AnalysisConfig
from .errors import FileReadError
from .logging import get_logger
from .models import IMPORTANCE_RANK, FileNode, RepoSnapshot

logger = get_logger("walker")


class ImportanceScorer(Protocol):
    """Assigns importance levels while the tree is built."""

    def file_importance(self, name: str, path: str) -> str: ...

    def directory_importance(self, name: str, children: Sequence[FileNode]) -> str: ...


class _FlatScorer:
    def file_importance(self, name: str, path: str) -> str:
        return "low"

    def directory_importance(self, name: str, children: Sequence[FileNode]) -> str:
        return "low"


@dataclass(frozen=True)
class IgnoreRule:
    """A single ignore pattern, either a literal or a `*` glob."""

    pattern: str

    @property
    def is_glob(self) -> bool:
        return "*" in self.pattern or "?" in self.pattern

    def matches(self, rel_path: str) -> bool:
        pattern = self.pattern.rstrip("/")
        if not pattern:
            return False
        parts = rel_path.split("/")
        if self.is_glob:
            if fnmatchcase(rel_path, pattern):
                return True
            return any(fnmatchcase(part, pattern) for part in parts)
        if "/" in pattern:
            return pattern in rel_path
        return pattern in parts


def build_ignore_rules(patterns: Sequence[str]) -> Tuple[IgnoreRule, ...]:
    return tuple(IgnoreRule(pattern.strip()) for pattern in patterns if pattern.strip())


def should_ignore(rel_path: str, rules: Sequence[IgnoreRule]) -> bool:
    return any(rule.matches(rel_path) for rule in rules)


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a `**`/`*`/`{a,b}` path glob into an anchored regex."""
    index = 0
    out: List[str] = []
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            out.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            out.append(".*")
            index += 2
            continue
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "{":
            close = pattern.find("}", index)
            if close == -1:
                out.append(re.escape(char))
            else:
                options = pattern[index + 1 : close].split(",")
                out.append("(?:" + "|".join(re.escape(option) for option in options) + ")")
                index = close + 1
                continue
        else:
            out.append(re.escape(char))
        index += 1
    return re.compile("^" + "".join(out) + "$")


def matches_any(rel_path: str, globs: Sequence[re.Pattern[str]]) -> bool:
    return any(glob.match(rel_path) for glob in globs)


def read_source(root: Path | str, rel_path: str, max_bytes: Optional[int] = None) -> str:
    """Return the text of a repository file or raise `FileReadError`."""
    path = Path(root) / rel_path
    try:
        if max_bytes is not None and path.stat().st_size > max_bytes:
            raise FileReadError(rel_path, "file exceeds size limit")
        data = path.read_bytes()
    except OSError as exc:
        raise FileReadError(rel_path, str(exc)) from exc
    if b"\x00" in data:
        raise FileReadError(rel_path, "binary content")
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FileReadError(rel_path, "not valid UTF-8") from exc
    return text


def slice_lines(lines: Sequence[str], start: int, end: int) -> str:
    """Return lines `start..end` (1-based, inclusive) joined with newlines."""
    return "\n".join(lines[start - 1 : end])


class FileTreeWalker:
    """Enumerates repository entries subject to ignore rules and a depth limit."""

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self.config = config or AnalysisConfig()
        self._rules = build_ignore_rules(self.config.ignore_patterns)

    def walk(self, root: Path | str, scorer: ImportanceScorer | None = None) -> FileNode:
        """Return the annotated tree rooted at `root`."""
        root_path = Path(root)
        return self._build_directory(root_path, "", 0, scorer or _FlatScorer())

    def snapshot(self, root: Path | str, scorer: ImportanceScorer | None = None) -> RepoSnapshot:
        root_path = Path(root)
        tree = self.walk(root_path, scorer)
        files = tuple(sorted(node.path for node in tree.iter_files()))
        logger.debug("Walker discovered %d files under %s", len(files), root_path)
        return RepoSnapshot(root=str(root_path), tree=tree, files=files)

    def _build_directory(
        self, directory: Path, rel_path: str, depth: int, scorer: ImportanceScorer
    ) -> FileNode:
        children: List[FileNode] = []
        if depth < self.config.max_depth:
            for entry in self._list_entries(directory):
                child_rel = f"{rel_path}/{entry.name}" if rel_path else entry.name
                if should_ignore(child_rel, self._rules):
                    continue
                child = self._build_entry(entry, child_rel, depth + 1, scorer)
                if child is not None:
                    children.append(child)

        children.sort(
            key=lambda node: (
                0 if node.is_dir else 1,
                -IMPORTANCE_RANK[node.importance],
                node.name,
            )
        )
        name = directory.name if rel_path else (directory.name or str(directory))
        return FileNode(
            type="directory",
            name=name,
            path=rel_path or ".",
            importance=scorer.directory_importance(name, children),
            children=tuple(children),
        )

    def _build_entry(
        self, entry: os.DirEntry, rel_path: str, depth: int, scorer: ImportanceScorer
    ) -> FileNode | None:
        if depth > self.config.max_depth:
            return None
        try:
            if entry.is_dir(follow_symlinks=False):
                return self._build_directory(Path(entry.path), rel_path, depth, scorer)
            if not entry.is_file():
                return None
            size = entry.stat().st_size
        except OSError as exc:
            logger.debug("Skipping inaccessible entry %s: %s", rel_path, exc)
            return None
        return FileNode(
            type="file",
            name=entry.name,
            path=rel_path,
            importance=scorer.file_importance(entry.name, rel_path),
            size=size,
        )

    @staticmethod
    def _list_entries(directory: Path) -> List[os.DirEntry]:
        try:
            with os.scandir(directory) as iterator:
                return sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return []


__all__ = [
    "FileTreeWalker",
    "IgnoreRule",
    "ImportanceScorer",
    "build_ignore_rules",
    "compile_glob",
    "matches_any",
    "read_source",
    "should_ignore",
    "slice_lines",
]
