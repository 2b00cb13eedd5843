"""
Shared test fixtures and configuration.
"""

import json
import logging
from pathlib import Path

import pytest

from plopctl.adapters.mock import MockAdapter
from plopctl.core.services.interpreter import Available, StaticInterpreterResolver
from plopctl.core.services.plop_ops import PlopOps

GENERATORS_JSON = json.dumps([
    {"name": "component", "description": "React component"},
    {"name": "store", "description": "Redux store"},
])


def write_project(
    root: Path,
    plopfile: str = "plopfile.js",
    package: dict | None = None,
) -> Path:
    """Create a package.json and an (empty) plopfile under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(json.dumps(package or {"name": root.name}))
    if plopfile:
        (root / plopfile).write_text("module.exports = function (plop) {};\n")
    return root


@pytest.fixture
def make_project():
    """Factory: ``make_project(root, plopfile=..., package=...)``."""
    return write_project


@pytest.fixture
def plop_project(tmp_path: Path) -> Path:
    """A CommonJS project with a plopfile.js."""
    return write_project(tmp_path / "app")


@pytest.fixture
def generators_json() -> str:
    """Engine ``list`` output with two generators."""
    return GENERATORS_JSON


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def node_resolver() -> StaticInterpreterResolver:
    return StaticInterpreterResolver(Available("/usr/bin/node"))


@pytest.fixture
def notices() -> list[tuple[str, str]]:
    """Messages passed to the pipeline's notifier."""
    return []


@pytest.fixture
def ops(node_resolver, mock_adapter, notices, tmp_path):
    plop_ops = PlopOps(
        node_resolver,
        mock_adapter,
        notifier=lambda message, level: notices.append((message, level)),
        boundary=tmp_path,
    )
    yield plop_ops
    plop_ops.close()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI invocations reconfigure logging; put the root logger back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
