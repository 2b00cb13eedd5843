"""
Engine actions and their receipts.

An ``Action`` is one Node process to start: interpreter, loader flags,
helper script and its arguments.  A ``Receipt`` is what came back:
stdout, or an error tagged with a ``FailureKind``.  Adapters turn the
first into the second and never raise.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


class FailureKind(str, Enum):
    """Why an engine operation fell back to its default value."""

    CONFIG_NOT_FOUND = "config_not_found"
    RUNTIME_UNAVAILABLE = "runtime_unavailable"
    PROCESS_FAILURE = "process_failure"
    MALFORMED_OUTPUT = "malformed_output"
    GENERATOR_NOT_FOUND = "generator_not_found"


class Action(BaseModel):
    """A requested engine invocation.

    ``id`` names the engine operation (``list``, ``describe``, ``run``,
    ``version``).  The command line is assembled by the adapter as::

        interpreter [node_flags...] script [args...]
    """

    id: str
    adapter: str = "node"
    interpreter: str = "node"
    node_flags: list[str] = Field(default_factory=list)
    script: str = ""
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    timeout: int = 120

    @property
    def command(self) -> list[str]:
        """Full argv for the process."""
        cmd = [self.interpreter, *self.node_flags]
        if self.script:
            cmd.append(self.script)
        return cmd + list(self.args)


class Receipt(BaseModel):
    """Outcome of one engine action.

    ``metadata`` carries process details when there was a process:
    ``return_code``, ``stderr`` and the command line.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"
    finished_at: str = Field(default_factory=_timestamp)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    failure_kind: FailureKind | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def return_code(self) -> int | None:
        return self.metadata.get("return_code")

    @property
    def stderr(self) -> str:
        return self.metadata.get("stderr", "")

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        """Receipt for an action whose stdout should be parsed."""
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        kind: FailureKind = FailureKind.PROCESS_FAILURE,
        **kwargs: Any,
    ) -> Receipt:
        """Receipt for an action that produced nothing usable."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            failure_kind=kind,
            **kwargs,
        )
