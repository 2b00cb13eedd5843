"""
Runtime strategy — which Node flags a plopfile dialect needs.

Native JavaScript plopfiles run with no extra flags.  TypeScript
plopfiles need a transpiling loader installed in the project; the
first one found (walking up through ``node_modules``) wins:

    1. tsx             --import tsx  (Node >= 22)  /  --loader tsx
    2. ts-node         -r ts-node/register/transpile-only
    3. @swc/register   -r @swc/register

The Node major version is probed against the interpreter actually in
use on every call.  Loader flags changed in Node 22 and the project's
interpreter can change between calls.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from plopctl.adapters.base import Adapter
from plopctl.core.models.generator import GeneratorConfig

logger = logging.getLogger(__name__)

IMPORT_FLAG_MIN_MAJOR = 22
"""First Node major that attaches tsx with ``--import`` instead of ``--loader``."""

# Fixed flags for the non-tsx loaders
TS_NODE_FLAGS = ["-r", "ts-node/register/transpile-only"]
SWC_FLAGS = ["-r", "@swc/register"]

_VERSION_RE = re.compile(r"^\s*v?(\d+)")


def parse_major_version(version: str | None) -> int:
    """Leading numeric token of a version string; 0 when unparseable.

    >>> parse_major_version("v22.3.0")
    22
    """
    if not version:
        return 0
    match = _VERSION_RE.match(version)
    if not match:
        return 0
    return int(match.group(1))


def node_major_version(adapter: Adapter, interpreter: str) -> int:
    """Ask ``interpreter`` for its version and return the major number."""
    try:
        return parse_major_version(adapter.version(interpreter))
    except Exception as e:
        logger.debug("Node version probe raised: %s", e)
        return 0


def find_node_package(root: Path, package: str) -> Path | None:
    """Find ``node_modules/<package>`` walking upward from ``root``.

    Scoped names (``@swc/register``) map to nested directories.  A
    package only counts when its own package.json exists.
    """
    current = Path(root).resolve()
    while True:
        pkg_dir = current / "node_modules" / package
        if (pkg_dir / "package.json").is_file():
            return pkg_dir
        parent = current.parent
        if parent == current:
            return None
        current = parent


def tsx_flags(major: int) -> list[str]:
    if major >= IMPORT_FLAG_MIN_MAJOR:
        return ["--import", "tsx"]
    return ["--loader", "tsx"]


def select_node_flags(
    config: GeneratorConfig,
    interpreter: str,
    root: Path,
    adapter: Adapter,
) -> list[str]:
    """Return the flags to place before the script path.

    Returns an empty list for native dialects, and also when no loader
    is installed; the engine script then fails to load the plopfile and
    that failure surfaces through the normal soft-failure paths.
    """
    if not config.is_source_dialect:
        return []

    if find_node_package(root, "tsx") is not None:
        major = node_major_version(adapter, interpreter)
        flags = tsx_flags(major)
        logger.debug("Using tsx loader for %s (node major=%d)", config.path, major)
        return flags

    if find_node_package(root, "ts-node") is not None:
        logger.debug("Using ts-node loader for %s", config.path)
        return list(TS_NODE_FLAGS)

    if find_node_package(root, "@swc/register") is not None:
        logger.debug("Using @swc/register loader for %s", config.path)
        return list(SWC_FLAGS)

    logger.debug("No TypeScript loader found for %s; running without flags", config.path)
    return []
