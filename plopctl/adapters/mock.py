"""
Mock adapter — test double for engine invocations.

Simulates Node without touching the system.  Configurable per engine
operation (``list``, ``describe``, ``run``) with canned stdout or a
failure, and can hold executions on a gate so tests can observe
in-flight behaviour.
"""

from __future__ import annotations

import threading

from plopctl.adapters.base import Adapter, ExecutionContext
from plopctl.core.models.action import Receipt


class MockAdapter(Adapter):
    """Scripted stand-in for ``NodeAdapter``.

    Operations without a canned response succeed with empty stdout.
    """

    def __init__(
        self,
        adapter_name: str = "node",
        available: bool = True,
        node_version: str | None = "v20.11.0",
        gate: threading.Event | None = None,
    ):
        self._name = adapter_name
        self._available = available
        self._node_version = node_version
        self._gate = gate
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """Snapshot of every context passed to ``execute``."""
        with self._lock:
            return list(self._call_log)

    @property
    def call_count(self) -> int:
        """How many actions have run."""
        with self._lock:
            return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def version(self, interpreter: str = "node") -> str | None:
        return self._node_version

    def set_output(self, action_id: str, stdout: str) -> None:
        """Canned stdout (exit 0) for an operation."""
        self._responses[action_id] = Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=stdout,
            metadata={"return_code": 0, "stderr": ""},
        )

    def set_failure(
        self,
        action_id: str,
        error: str = "Mock failure",
        return_code: int = 1,
    ) -> None:
        """Configure an operation to exit non-zero."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
            metadata={"return_code": return_code, "stderr": error},
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        with self._lock:
            self._call_log.append(context)

        if self._gate is not None:
            self._gate.wait(timeout=10)

        if context.action.id in self._responses:
            return self._responses[context.action.id]

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output="",
            metadata={"mock": True, "return_code": 0, "stderr": ""},
        )

    def reset(self) -> None:
        """Clear call history and canned responses."""
        with self._lock:
            self._call_log.clear()
        self._responses.clear()
