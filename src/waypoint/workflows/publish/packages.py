"""Workspace packages: discovery, manifests and changelogs.

A package is a directory under ``<root>/<packages_dir>/`` holding a
``package.json`` with at least ``name`` and ``version``, and optionally a
``CHANGELOG.md`` whose ``## Unpublished`` section collects entries for the
next release.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from waypoint.contracts import ReleaseType

MANIFEST_FILE = "package.json"
CHANGELOG_FILE = "CHANGELOG.md"
UNPUBLISHED_HEADING = "## Unpublished"

BREAKING_CHANGES_HEADING = "### 🛠 Breaking changes"
NEW_FEATURES_HEADING = "### 🎉 New features"
BUG_FIXES_HEADING = "### 🐛 Bug fixes"
OTHERS_HEADING = "### 💡 Others"

_UNPUBLISHED_TEMPLATE = "\n\n".join(
    [
        UNPUBLISHED_HEADING,
        BREAKING_CHANGES_HEADING,
        NEW_FEATURES_HEADING,
        BUG_FIXES_HEADING,
        OTHERS_HEADING,
    ]
)

_ENTRY_PATTERN = re.compile(r"^\s*[-*]\s+\S", re.MULTILINE)


@dataclass(frozen=True)
class Package:
    """A publishable package in the workspace."""

    name: str
    path: Path
    version: str
    dependencies: tuple[str, ...] = ()

    @property
    def manifest_path(self) -> Path:
        return self.path / MANIFEST_FILE

    @property
    def changelog_path(self) -> Path:
        return self.path / CHANGELOG_FILE


def read_manifest(path: Path) -> dict[str, Any]:
    """Read a package.json.

    Raises:
        ValueError: If the manifest is not a JSON object with name and version
    """
    manifest = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(manifest, dict):
        raise ValueError(f"{path} must contain a JSON object")
    for key in ("name", "version"):
        if not isinstance(manifest.get(key), str):
            raise ValueError(f"{path} is missing a string '{key}' field")
    return manifest


def write_manifest_version(package: Package, version: str) -> None:
    """Rewrite the version field of the package's manifest, keeping other keys in order."""
    manifest = read_manifest(package.manifest_path)
    manifest["version"] = version
    package.manifest_path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")


def load_package(path: Path) -> Package:
    manifest = read_manifest(path / MANIFEST_FILE)
    dependencies = manifest.get("dependencies") or {}
    return Package(
        name=manifest["name"],
        path=path,
        version=manifest["version"],
        dependencies=tuple(sorted(dependencies)),
    )


def discover_packages(packages_path: Path) -> list[Package]:
    """Find all packages below ``packages_path``, sorted by name.

    Raises:
        FileNotFoundError: If the packages directory does not exist
        ValueError: If two packages declare the same name
    """
    if not packages_path.is_dir():
        raise FileNotFoundError(f"Packages directory not found: {packages_path}")

    packages: dict[str, Package] = {}
    for child in sorted(packages_path.iterdir()):
        if not (child / MANIFEST_FILE).is_file():
            continue
        package = load_package(child)
        if package.name in packages:
            raise ValueError(f"Package name '{package.name}' is declared by both {packages[package.name].path} and {child}")
        packages[package.name] = package
    return sorted(packages.values(), key=lambda p: p.name)


def read_changelog(package: Package) -> str | None:
    if not package.changelog_path.is_file():
        return None
    return package.changelog_path.read_text(encoding="utf-8")


def unpublished_section(changelog: str) -> str | None:
    """Return the body of the ``## Unpublished`` section, or None if absent."""
    start = changelog.find(UNPUBLISHED_HEADING)
    if start == -1:
        return None
    body_start = start + len(UNPUBLISHED_HEADING)
    next_heading = re.search(r"^## ", changelog[body_start:], re.MULTILINE)
    body_end = body_start + next_heading.start() if next_heading else len(changelog)
    return changelog[body_start:body_end]


def _subsection(section: str, heading: str) -> str:
    start = section.find(heading)
    if start == -1:
        return ""
    body_start = start + len(heading)
    next_heading = re.search(r"^### ", section[body_start:], re.MULTILINE)
    return section[body_start : body_start + next_heading.start()] if next_heading else section[body_start:]


def has_unpublished_changes(package: Package) -> bool:
    """Whether the package's changelog has at least one unpublished entry."""
    changelog = read_changelog(package)
    if changelog is None:
        return False
    section = unpublished_section(changelog)
    return section is not None and _ENTRY_PATTERN.search(section) is not None


def suggested_release_type(package: Package) -> ReleaseType:
    """Release type implied by the unpublished changelog entries."""
    changelog = read_changelog(package) or ""
    section = unpublished_section(changelog) or ""
    if _ENTRY_PATTERN.search(_subsection(section, BREAKING_CHANGES_HEADING)):
        return ReleaseType.MAJOR
    if _ENTRY_PATTERN.search(_subsection(section, NEW_FEATURES_HEADING)):
        return ReleaseType.MINOR
    return ReleaseType.PATCH


def cut_off_changelog(package: Package, version: str, today: date) -> bool:
    """Turn the unpublished section into a released ``## <version>`` section.

    A fresh, empty unpublished section is inserted above it. If the
    changelog already has a section for ``version`` it is left as is.

    Returns:
        False if the package has no changelog or no unpublished section
    """
    changelog = read_changelog(package)
    if changelog is None or UNPUBLISHED_HEADING not in changelog:
        return False
    if re.search(rf"^## {re.escape(version)}( |$)", changelog, re.MULTILINE):
        return True
    released_heading = f"## {version} — {today.isoformat()}"
    updated = changelog.replace(UNPUBLISHED_HEADING, f"{_UNPUBLISHED_TEMPLATE}\n\n{released_heading}", 1)
    package.changelog_path.write_text(updated, encoding="utf-8")
    return True
