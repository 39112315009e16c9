"""Dependency manifest loading shared by the technology and structure analyzers."""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from ..errors import ManifestParseError
from ..logging import get_logger

logger = get_logger("analyzers.manifests")

_REQUIREMENT_SPLIT = re.compile(r"[<>=!~;\[\s@]")


@dataclass(frozen=True)
class PackageManifest:
    """Relevant parts of a package.json."""

    dependencies: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)
    description: str = ""
    keywords: tuple = ()

    @property
    def present(self) -> bool:
        return bool(self.dependencies or self.scripts or self.description or self.keywords)


@dataclass(frozen=True)
class PythonManifest:
    """Python dependency names (lowercased) plus pyproject metadata."""

    dependencies: frozenset = frozenset()
    sources: tuple = ()
    description: str = ""
    keywords: tuple = ()


def load_package_json(root: Path) -> PackageManifest:
    """Return the parsed package.json, or an empty manifest when absent or malformed."""
    path = root / "package.json"
    if not path.is_file():
        return PackageManifest()
    try:
        data = _parse_json(path)
    except ManifestParseError as exc:
        logger.debug("Ignoring malformed manifest: %s", exc)
        return PackageManifest()

    dependencies: Dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            for name, version in section.items():
                dependencies[str(name)] = str(version)

    scripts = data.get("scripts")
    keywords = data.get("keywords")
    description = data.get("description")
    return PackageManifest(
        dependencies=dependencies,
        scripts={str(k): str(v) for k, v in scripts.items()} if isinstance(scripts, dict) else {},
        description=description if isinstance(description, str) else "",
        keywords=tuple(str(item) for item in keywords) if isinstance(keywords, list) else (),
    )


def load_python_manifest(root: Path) -> PythonManifest:
    """Collect Python dependencies from requirements.txt, Pipfile and pyproject.toml."""
    deps: set[str] = set()
    sources: List[str] = []
    description = ""
    keywords: tuple = ()

    requirements = root / "requirements.txt"
    if requirements.is_file():
        deps.update(_parse_requirements(_read(requirements)))
        sources.append("requirements.txt")

    pipfile = root / "Pipfile"
    if pipfile.is_file():
        try:
            data = _parse_toml(pipfile)
        except ManifestParseError as exc:
            logger.debug("Ignoring malformed manifest: %s", exc)
        else:
            for section in ("packages", "dev-packages"):
                packages = data.get(section)
                if isinstance(packages, dict):
                    deps.update(str(name).lower() for name in packages)
            sources.append("Pipfile")

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = _parse_toml(pyproject)
        except ManifestParseError as exc:
            logger.debug("Ignoring malformed manifest: %s", exc)
        else:
            deps.update(_pyproject_dependencies(data))
            project = data.get("project")
            if isinstance(project, dict):
                if isinstance(project.get("description"), str):
                    description = project["description"]
                if isinstance(project.get("keywords"), list):
                    keywords = tuple(str(item) for item in project["keywords"])
            sources.append("pyproject.toml")

    deps.discard("python")
    return PythonManifest(
        dependencies=frozenset(deps),
        sources=tuple(sources),
        description=description,
        keywords=keywords,
    )


def _parse_requirements(text: str) -> List[str]:
    packages: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        name = _REQUIREMENT_SPLIT.split(stripped, 1)[0].strip()
        if name:
            packages.append(name.lower())
    return packages


def _pyproject_dependencies(data: Dict[str, Any]) -> List[str]:
    entries: List[Any] = []
    project = data.get("project")
    if isinstance(project, dict):
        entries.extend(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        if isinstance(optional, dict):
            for values in optional.values():
                entries.extend(values or [])

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        for section in ("dependencies", "dev-dependencies"):
            values = poetry.get(section)
            if isinstance(values, dict):
                entries.extend(values.keys())
        groups = poetry.get("group")
        if isinstance(groups, dict):
            for group in groups.values():
                if isinstance(group, dict) and isinstance(group.get("dependencies"), dict):
                    entries.extend(group["dependencies"].keys())

    names: List[str] = []
    for entry in entries:
        if isinstance(entry, str):
            name = _REQUIREMENT_SPLIT.split(entry.strip(), 1)[0].strip()
            if name:
                names.append(name.lower())
    return names


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Unable to read %s: %s", path.name, exc)
        return ""


def _parse_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(_read(path))
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"{path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestParseError(f"{path.name}: expected a JSON object")
    return data


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        return tomllib.loads(_read(path))
    except tomllib.TOMLDecodeError as exc:
        raise ManifestParseError(f"{path.name}: {exc}") from exc


__all__ = [
    "PackageManifest",
    "PythonManifest",
    "load_package_json",
    "load_python_manifest",
]
