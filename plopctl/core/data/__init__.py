"""
Bundled engine scripts.

The Node helper scripts under ``plopctl/core/data/scripts/`` are the
engine side of the list / describe / run protocol.  They ship as
package data and are copied to a temporary file before each run, so
Node never executes them from inside an installed wheel or zip.

Usage::

    from plopctl.core.data import ENGINE_SCRIPTS, read_script

    source = read_script(ENGINE_SCRIPTS["list"])
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent
_SCRIPTS_DIR = _DATA_DIR / "scripts"

# Engine operation → bundled script filename
ENGINE_SCRIPTS: dict[str, str] = {
    "list": "list-generators.js",
    "describe": "describe-generator.js",
    "run": "run-generator.js",
}


def script_path(name: str) -> Path:
    """Location of a bundled script inside the package."""
    return _SCRIPTS_DIR / name


def read_script(name: str) -> str:
    """Read a bundled script's source.

    Raises:
        FileNotFoundError: If the script is not bundled.
    """
    path = script_path(name)
    if not path.is_file():
        logger.warning("Engine script not found: %s", path)
        raise FileNotFoundError(f"Resource not found: scripts/{name}")
    return path.read_text(encoding="utf-8")
