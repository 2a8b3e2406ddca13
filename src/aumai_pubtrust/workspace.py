"""Discover publishable npm packages in a workspace."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import yaml

from aumai_pubtrust.errors import PubtrustError

logger = logging.getLogger(__name__)

MANIFEST = "package.json"
PNPM_WORKSPACE = "pnpm-workspace.yaml"


class WorkspaceError(PubtrustError):
    """A workspace or package manifest could not be read."""


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise WorkspaceError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise WorkspaceError(f"Expected a JSON object in {path}")
    return data


def _workspace_patterns(root: Path) -> list[str]:
    """Globs declared by pnpm-workspace.yaml or package.json ``workspaces``."""
    pnpm = root / PNPM_WORKSPACE
    if pnpm.is_file():
        try:
            data = yaml.safe_load(pnpm.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise WorkspaceError(f"Cannot parse {pnpm}: {exc}") from exc
        packages = data.get("packages") if isinstance(data, dict) else None
        if packages is None:
            return []
        if not isinstance(packages, list):
            raise WorkspaceError(f"Expected a list of globs under packages in {pnpm}")
        return [str(p) for p in packages]

    manifest = root / MANIFEST
    if manifest.is_file():
        workspaces = _read_json(manifest).get("workspaces")
        if isinstance(workspaces, dict):
            workspaces = workspaces.get("packages")
        if isinstance(workspaces, list):
            return [str(p) for p in workspaces]
    return []


def _glob(root: Path, pattern: str) -> list[Path]:
    path = Path(pattern)
    if path.is_absolute():
        # Path.glob only accepts relative patterns.
        anchor = Path(path.anchor)
        return sorted(anchor.glob(str(path.relative_to(anchor))))
    return sorted(root.glob(pattern))


def _manifests(root: Path, patterns: Iterable[str]) -> list[Path]:
    included: list[Path] = []
    excluded: set[Path] = set()
    for pattern in patterns:
        negate = pattern.startswith("!")
        pattern = (pattern[1:] if negate else pattern).removeprefix("./").rstrip("/")
        if not pattern:
            continue
        found: list[Path] = []
        matches = [root] if pattern == "." else _glob(root, pattern)
        for match in matches:
            candidate = match / MANIFEST if match.is_dir() else match
            if candidate.name == MANIFEST and candidate.is_file():
                found.append(candidate.resolve())
        if negate:
            excluded.update(found)
        else:
            included.extend(found)
    return [path for path in included if path not in excluded]


def find_packages(
    directory: Path | str | None, patterns: Sequence[str] = ()
) -> list[str]:
    """Return the names of publishable packages under *directory*.

    Args:
        directory: Workspace root; ``None`` means the current directory.
        patterns: ``package.json`` files or package directories, glob
            patterns allowed, relative to *directory*. When empty the
            workspace declaration (pnpm, then npm/yarn ``workspaces``) is
            used, falling back to the root package.

    Returns:
        Package names, deduplicated, in first-seen order. Private and
        unnamed packages are left out.

    Raises:
        WorkspaceError: if a manifest cannot be read, or if no publishable
            package remains. The message lists every manifest that was
            filtered out and why.
    """
    root = Path(directory) if directory is not None else Path.cwd()
    globs = list(patterns) or _workspace_patterns(root)
    manifests = _manifests(root, globs) if globs else [(root / MANIFEST).resolve()]

    names: list[str] = []
    filtered: list[str] = []
    for manifest in manifests:
        if not manifest.is_file():
            continue
        data = _read_json(manifest)
        name = data.get("name")
        if not isinstance(name, str) or not name:
            logger.debug("skipping unnamed package %s", manifest)
            filtered.append(f"- {manifest} (missing name)")
            continue
        if data.get("private") is True:
            logger.debug("skipping private package %s", name)
            filtered.append(f"- {manifest} (private=true)")
            continue
        if name not in names:
            names.append(name)

    if not names:
        message = "No publishable package found."
        if filtered:
            message += "\n Filtered package.json files:\n" + "\n".join(filtered)
        raise WorkspaceError(message)
    logger.debug("found %d publishable package(s) under %s", len(names), root)
    return names


__all__ = ["WorkspaceError", "find_packages"]
