"""
Plopfile resolver — locate and classify a project's generator config.

Resolution is a pure function of the file system at call time.  Nothing
here is cached: callers re-resolve on every operation so a renamed or
newly-added plopfile is picked up immediately.

Precedence is the order of ``PLOPFILE_CANDIDATES``, not alphabetical.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from plopctl.core.models.generator import GeneratorConfig, ModuleKind

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"

PLOPFILE_CANDIDATES: tuple[str, ...] = (
    "plopfile.mts",
    "plopfile.cts",
    "plopfile.ts",
    "plopfile.mjs",
    "plopfile.cjs",
    "plopfile.js",
)

# Extensions whose module kind is fixed regardless of package.json
_FIXED_KIND: dict[str, ModuleKind] = {
    ".mjs": ModuleKind.ESM,
    ".mts": ModuleKind.ESM,
    ".cjs": ModuleKind.COMMONJS,
    ".cts": ModuleKind.COMMONJS,
}

# Extensions Node can't load without a transpiling loader
SOURCE_DIALECT_EXTENSIONS = frozenset({".ts", ".mts", ".cts"})

_MAX_WALK = 20  # safety limit for upward searches


def find_plopfile(root: Path) -> Path | None:
    """Return the highest-precedence plopfile in ``root``, or None."""
    for name in PLOPFILE_CANDIDATES:
        candidate = root / name
        try:
            if candidate.is_file():
                return candidate
        except OSError:
            continue
    return None


def nearest_package_type(start_dir: Path, boundary: Path | None = None) -> str:
    """Read ``"type"`` from the nearest package.json walking upward.

    Stops at the filesystem root, or after checking ``boundary``.
    The nearest manifest wins even when it is unreadable; anything
    other than ``"module"`` means ``"commonjs"``.
    """
    current = start_dir.resolve()
    stop = boundary.resolve() if boundary else None

    while True:
        pkg = current / PACKAGE_MANIFEST
        if pkg.is_file():
            try:
                data = json.loads(pkg.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.debug("Unreadable %s, assuming commonjs: %s", pkg, e)
                return "commonjs"
            if isinstance(data, dict) and data.get("type") == "module":
                return "module"
            return "commonjs"

        if stop is not None and current == stop:
            break
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return "commonjs"


def classify_module_kind(
    plopfile: Path,
    root: Path,
    boundary: Path | None = None,
) -> ModuleKind:
    """Module kind from extension, falling back to package.json."""
    ext = plopfile.suffix.lower()
    if ext in _FIXED_KIND:
        return _FIXED_KIND[ext]
    if nearest_package_type(root, boundary) == "module":
        return ModuleKind.ESM
    return ModuleKind.COMMONJS


def resolve_generator_config(
    root: Path,
    boundary: Path | None = None,
) -> GeneratorConfig | None:
    """Resolve the plopfile for ``root``.

    Args:
        root: Project root directory.
        boundary: Optional directory at which the package.json search
            stops (inclusive).  Defaults to the filesystem root.

    Returns:
        GeneratorConfig, or None when the root has no plopfile.
        Never raises.
    """
    try:
        root = Path(root).resolve()
        plopfile = find_plopfile(root)
        if plopfile is None:
            logger.debug("No plopfile found in %s", root)
            return None

        return GeneratorConfig(
            path=plopfile.absolute(),
            module_kind=classify_module_kind(plopfile, root, boundary),
            is_source_dialect=plopfile.suffix.lower() in SOURCE_DIALECT_EXTENSIONS,
        )
    except OSError as e:
        logger.warning("Failed to resolve plopfile in %s: %s", root, e)
        return None


def watch_paths(root: Path) -> list[Path]:
    """Paths whose change should invalidate the generator cache.

    The resolved plopfile (when present) and the root package.json.
    """
    root = Path(root).resolve()
    paths: list[Path] = []
    config = resolve_generator_config(root)
    if config is not None:
        paths.append(config.path)
    paths.append(root / PACKAGE_MANIFEST)
    return paths


def watch_candidates(root: Path) -> list[Path]:
    """Every file whose appearance, removal or edit can change resolution.

    All plopfile candidates (present or not) plus the root package.json,
    so a deleted plopfile or a new higher-precedence one shows up as an
    mtime change on a stable set of paths.
    """
    root = Path(root).resolve()
    return [root / name for name in PLOPFILE_CANDIDATES] + [root / PACKAGE_MANIFEST]


# ── Project roots ───────────────────────────────────────────────


def is_project_root(path: Path) -> bool:
    """A generator boundary holds both a package.json and a plopfile."""
    return (path / PACKAGE_MANIFEST).is_file() and find_plopfile(path) is not None


def find_project_root(start_dir: Path | None = None) -> Path | None:
    """Search upward from ``start_dir`` (default: cwd) for a project root."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(_MAX_WALK):
        if is_project_root(current):
            return current
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def discover_project_roots(workspace: Path, max_depth: int = 4) -> list[Path]:
    """List every project root under ``workspace`` (monorepos).

    Skips ``node_modules`` and dot-directories.  Results are sorted.
    """
    workspace = Path(workspace).resolve()
    base_depth = len(workspace.parts)
    roots: list[Path] = []

    for dirpath, dirnames, _filenames in os.walk(workspace):
        current = Path(dirpath)
        if is_project_root(current):
            roots.append(current)
        if len(current.parts) - base_depth >= max_depth:
            dirnames[:] = []
            continue
        dirnames[:] = [
            d for d in dirnames
            if d != "node_modules" and not d.startswith(".")
        ]

    return sorted(roots)
