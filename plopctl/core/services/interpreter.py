"""
Interpreter resolution — where is the Node executable?

The pipeline depends only on ``InterpreterResolver.resolve()``, which
answers with either ``Available(path)`` or ``Unavailable(reason, kind)``.
Hosts pick the concrete resolver: an explicitly configured path, or a
lookup on ``PATH``.

An ``Unavailable`` result is a configuration problem the user has to
fix, so the pipeline escalates it to a notification instead of just
logging it.
"""

from __future__ import annotations

import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Union

from plopctl.core.config.loader import PlopSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Available:
    """A usable interpreter."""

    path: str


@dataclass(frozen=True)
class Unavailable:
    """No usable interpreter.

    ``kind`` is ``integration_missing`` when Node isn't installed at
    all, ``not_configured`` when a configured path is unusable.
    """

    reason: str
    kind: Literal["integration_missing", "not_configured"] = "not_configured"


InterpreterStatus = Union[Available, Unavailable]


class InterpreterResolver(ABC):
    """Capability: find the Node interpreter for a project."""

    @abstractmethod
    def resolve(self) -> InterpreterStatus:
        """Resolve the interpreter.  Must never raise."""


class ConfiguredInterpreterResolver(InterpreterResolver):
    """An explicitly configured interpreter path."""

    def __init__(self, path: str):
        self._path = path

    def resolve(self) -> InterpreterStatus:
        if not self._path:
            return Unavailable("No Node.js interpreter configured", "not_configured")

        candidate = Path(self._path).expanduser()
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return Available(str(candidate))

        # Bare command names ("node22") are looked up on PATH
        found = shutil.which(self._path)
        if found:
            return Available(found)

        logger.warning("Configured Node.js interpreter is not usable: %s", self._path)
        return Unavailable(
            f"Configured Node.js interpreter not found: {self._path}",
            "not_configured",
        )


class PathInterpreterResolver(InterpreterResolver):
    """Look the interpreter up on ``PATH``."""

    def __init__(self, command: str = "node"):
        self._command = command

    def resolve(self) -> InterpreterStatus:
        found = shutil.which(self._command)
        if found:
            return Available(found)
        logger.warning("Node.js is not installed or not on PATH")
        return Unavailable(
            "Node.js is not installed or not on PATH",
            "integration_missing",
        )


class StaticInterpreterResolver(InterpreterResolver):
    """Always answers with a fixed status (tests, embedding hosts)."""

    def __init__(self, status: InterpreterStatus):
        self._status = status

    def resolve(self) -> InterpreterStatus:
        return self._status


def interpreter_resolver_from_settings(settings: PlopSettings) -> InterpreterResolver:
    """Configured path when set, otherwise ``node`` on PATH."""
    if settings.node:
        return ConfiguredInterpreterResolver(settings.node)
    return PathInterpreterResolver()
