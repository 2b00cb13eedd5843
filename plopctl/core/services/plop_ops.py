"""
Plop operations — the resolve → invoke → parse pipeline.

Three operations, one shape:

    resolve plopfile → resolve interpreter → select loader flags
        → run engine script → parse stdout

Every step soft-fails into the operation's default value (empty list,
empty description, unsuccessful RunResult).  The only failure that is
escalated to the user is an unusable Node interpreter; it goes through
the notifier because the user has to fix their setup.

The ``*_async`` variants run on a background pool and hand the result
to a callback.  Pass ``dispatch`` to marshal that callback onto the
host's interactive thread.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from plopctl.adapters.base import Adapter
from plopctl.adapters.languages.node import NodeAdapter
from plopctl.core.config.resolver import resolve_generator_config
from plopctl.core.models.action import FailureKind
from plopctl.core.models.generator import (
    GeneratorConfig,
    GeneratorDescription,
    GeneratorSummary,
    RunResult,
)
from plopctl.core.services.engine_invoker import DEFAULT_TIMEOUT_S, EngineInvoker
from plopctl.core.services.interpreter import (
    InterpreterResolver,
    InterpreterStatus,
    Unavailable,
)
from plopctl.core.services.result_parser import (
    parse_generator_description,
    parse_generator_list,
    parse_run_result,
)
from plopctl.core.services.runtime_strategy import select_node_flags

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]
"""``notifier(message, level)`` — show a message to the user."""

Dispatch = Callable[[Callable[[], None]], None]
"""Schedules a zero-arg callable on the host's interactive thread."""

MSG_NO_PLOPFILE = "No plopfile found in project"
MSG_NO_INTERPRETER = "Node.js interpreter not configured"
MSG_PREPARE_FAILED = "Failed to prepare Plop runner script"
MSG_EXEC_FAILED = "Failed to execute Node to run generator"


def _log_notifier(message: str, level: str) -> None:
    logger.error("Plop: %s", message)


@dataclass(frozen=True)
class PreparedCall:
    """Everything needed to spawn the engine for one root."""

    root: Path
    config: GeneratorConfig
    interpreter: str
    node_flags: list[str]

    def base_args(self) -> list[str]:
        return [str(self.root), str(self.config.path), self.config.module_kind.value]


@dataclass(frozen=True)
class PrepareFailure:
    kind: FailureKind
    reason: str


def answers_for(description: GeneratorDescription, raw: Mapping[str, Any]) -> dict[str, Any]:
    """Order collected answers by the description's prompt order.

    Unnamed prompts can't be answered and are skipped; answers for names
    the generator doesn't ask are dropped.
    """
    ordered: dict[str, Any] = {}
    for name in description.prompt_names():
        if name in raw:
            ordered[name] = raw[name]
    return ordered


def serialize_answers(answers: Mapping[str, Any]) -> str:
    try:
        return json.dumps(dict(answers), default=str)
    except (TypeError, ValueError) as e:
        logger.warning("Failed to serialize answers to JSON: %s", e)
        return "{}"


class PlopOps:
    """Runs list / describe / run for project roots."""

    def __init__(
        self,
        interpreter_resolver: InterpreterResolver,
        adapter: Adapter | None = None,
        *,
        timeout: int = DEFAULT_TIMEOUT_S,
        notifier: Notifier | None = None,
        executor: Executor | None = None,
        boundary: Path | None = None,
    ):
        self._resolver = interpreter_resolver
        self._invoker = EngineInvoker(adapter or NodeAdapter(), timeout=timeout)
        self._notifier = notifier or _log_notifier
        self._boundary = boundary
        self._executor = executor
        self._owns_executor = executor is None
        self._executor_lock = threading.Lock()
        self._last_notice: str | None = None

    @property
    def adapter(self) -> Adapter:
        return self._invoker.adapter

    # ── Preparation ─────────────────────────────────────────────

    def interpreter_status(self) -> InterpreterStatus:
        return self._resolver.resolve()

    def prepare(self, root: Path) -> PreparedCall | PrepareFailure:
        """Resolve plopfile, interpreter and loader flags for ``root``."""
        root = Path(root).resolve()

        config = resolve_generator_config(root, self._boundary)
        if config is None:
            logger.debug("No plopfile found in %s", root)
            return PrepareFailure(FailureKind.CONFIG_NOT_FOUND, MSG_NO_PLOPFILE)

        status = self._resolver.resolve()
        if isinstance(status, Unavailable):
            self._notify_once(status.reason)
            return PrepareFailure(FailureKind.RUNTIME_UNAVAILABLE, MSG_NO_INTERPRETER)
        self._last_notice = None

        flags = select_node_flags(config, status.path, root, self.adapter)
        return PreparedCall(root=root, config=config, interpreter=status.path, node_flags=flags)

    def _notify_once(self, message: str) -> None:
        # Background refreshes repeat; only tell the user once per problem
        if message == self._last_notice:
            logger.debug("Suppressing repeated notification: %s", message)
            return
        self._last_notice = message
        try:
            self._notifier(message, "error")
        except Exception as e:
            logger.warning("Notifier failed: %s", e)

    # ── Operations ──────────────────────────────────────────────

    def list_generators(self, root: Path) -> list[GeneratorSummary]:
        """Generators defined by ``root``'s plopfile; ``[]`` on any failure."""
        prepared = self.prepare(root)
        if isinstance(prepared, PrepareFailure):
            return []

        receipt = self._invoker.invoke(
            "list", prepared.root, prepared.interpreter, prepared.node_flags,
            prepared.base_args(),
        )
        if not receipt.ok:
            logger.warning(
                "Listing generators failed in %s (exit %s): %s",
                prepared.root, receipt.return_code, receipt.error,
            )
            return []

        generators = parse_generator_list(receipt.output)
        if not generators:
            logger.info("No Plop generators found in %s", prepared.root)
        return generators

    def describe_generator(self, root: Path, name: str) -> GeneratorDescription:
        """Prompts for one generator; empty description on any failure."""
        prepared = self.prepare(root)
        if isinstance(prepared, PrepareFailure):
            return GeneratorDescription.empty(name)

        receipt = self._invoker.invoke(
            "describe", prepared.root, prepared.interpreter, prepared.node_flags,
            [*prepared.base_args(), name],
        )
        if not receipt.ok:
            logger.warning(
                "Describing generator '%s' failed (exit %s): %s",
                name, receipt.return_code, receipt.error,
            )
            return GeneratorDescription.empty(name)

        return parse_generator_description(receipt.output, requested_name=name)

    def run_generator(
        self,
        root: Path,
        name: str,
        answers: Mapping[str, Any],
    ) -> RunResult:
        """Run a generator with collected answers."""
        prepared = self.prepare(root)
        if isinstance(prepared, PrepareFailure):
            return RunResult(success=False, message=prepared.reason)

        receipt = self._invoker.invoke(
            "run", prepared.root, prepared.interpreter, prepared.node_flags,
            [*prepared.base_args(), name, serialize_answers(answers)],
        )
        if not receipt.ok:
            if receipt.metadata.get("stage") == "materialize":
                return RunResult(success=False, message=MSG_PREPARE_FAILED)
            code = receipt.return_code
            if code is None:
                logger.warning("Failed to execute Node to run generator '%s': %s", name, receipt.error)
                return RunResult(success=False, message=MSG_EXEC_FAILED)
            logger.warning("Run script for '%s' exited with code %s: %s", name, code, receipt.error)
            return RunResult(
                success=False,
                message=f"Plop generator failed to run (exit {code}). See logs for details.",
            )

        result = parse_run_result(receipt.output)
        logger.info("Generator '%s' finished: %s", name, result.message)
        return result

    # ── Background variants ─────────────────────────────────────

    def _pool(self) -> Executor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(thread_name_prefix="plop-ops")
            return self._executor

    def _submit(
        self,
        fn: Callable[[], Any],
        callback: Callable[[Any], None] | None,
        fallback: Any,
        dispatch: Dispatch | None,
    ) -> Future:
        def task() -> Any:
            try:
                return fn()
            except Exception as e:
                logger.warning("Background plop operation failed: %s", e)
                return fallback

        future = self._pool().submit(task)
        if callback is not None:
            def _done(f: Future) -> None:
                result = f.result()
                if dispatch is not None:
                    dispatch(lambda: callback(result))
                else:
                    callback(result)

            future.add_done_callback(_done)
        return future

    def describe_async(
        self,
        root: Path,
        name: str,
        callback: Callable[[GeneratorDescription], None] | None = None,
        dispatch: Dispatch | None = None,
    ) -> Future:
        return self._submit(
            lambda: self.describe_generator(root, name),
            callback,
            GeneratorDescription.empty(name),
            dispatch,
        )

    def run_async(
        self,
        root: Path,
        name: str,
        answers: Mapping[str, Any],
        callback: Callable[[RunResult], None] | None = None,
        dispatch: Dispatch | None = None,
    ) -> Future:
        return self._submit(
            lambda: self.run_generator(root, name, answers),
            callback,
            RunResult(success=False, message=MSG_EXEC_FAILED),
            dispatch,
        )

    def close(self) -> None:
        """Shut down the background pool if this instance created it."""
        with self._executor_lock:
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
