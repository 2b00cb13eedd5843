"""
Engine adapter contract.

Everything that touches a Node process goes through an ``Adapter``.
Callers build an :class:`Action`, wrap it in an :class:`ExecutionContext`
and read the outcome off the returned :class:`Receipt`.  Swapping the
adapter (``MockAdapter`` in tests) swaps the whole process boundary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from plopctl.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An engine action bound to the project directory it runs in."""

    action: Action
    project_root: str = "."

    @property
    def working_dir(self) -> str:
        """Directory the engine process is started in."""
        return self.project_root


class Adapter(ABC):
    """Runs engine actions against a project.

    ``execute`` reports every outcome (bad input, spawn error, timeout,
    non-zero exit) as a failed ``Receipt``; it does not raise.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier recorded on receipts."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when the default interpreter can be found."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Pre-flight check: ``(ok, reason)``; reason is ``""`` when ok."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action and describe what happened."""

    @abstractmethod
    def version(self, interpreter: str) -> str | None:
        """``interpreter --version`` output, or None if it cannot be read."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
