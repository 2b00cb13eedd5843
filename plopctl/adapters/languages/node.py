"""
Node.js adapter — runs engine helper scripts under a Node interpreter.

This is the only place plopctl spawns processes.  Every call captures
stdout, stderr and the exit code, never reads from stdin, and honours
a timeout.  Failures come back as failed Receipts, never exceptions.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from plopctl.adapters.base import Adapter, ExecutionContext
from plopctl.core.models.action import FailureKind, Receipt

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 1000


def _preview(text: str) -> str:
    if len(text) > _PREVIEW_CHARS:
        return text[:_PREVIEW_CHARS] + "..."
    return text


class NodeAdapter(Adapter):
    """Node.js interpreter adapter.

    Action fields used:
        interpreter (str): Path to the node executable.
        node_flags (list[str]): Loader flags placed before the script.
        script (str): Script to run.
        args (list[str]): Trailing script arguments.
        env (dict): Extra environment variables.
        timeout (int): Timeout in seconds.
    """

    @property
    def name(self) -> str:
        return "node"

    def is_available(self) -> bool:
        return shutil.which("node") is not None

    def version(self, interpreter: str = "node") -> str | None:
        """Detect the Node.js version string (e.g. ``v22.3.0``)."""
        try:
            result = subprocess.run(
                [interpreter, "--version"],
                capture_output=True,
                text=True,
                stdin=subprocess.DEVNULL,
                timeout=10,
            )
            if result.returncode == 0:
                return result.stdout.strip()
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("Node version probe failed for %s: %s", interpreter, e)
        return None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        action = context.action
        if not action.interpreter:
            return False, "Missing interpreter"
        if not action.script:
            return False, "Missing script"
        if not Path(action.script).is_file():
            return False, f"Script does not exist: {action.script}"
        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action

        is_valid, error_msg = self.validate(context)
        if not is_valid:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        cmd = action.command
        env = {**os.environ, **action.env} if action.env else None

        logger.debug(
            "Executing %s: %s (cwd=%s)", action.id, " ".join(cmd), context.working_dir,
        )
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                cwd=context.working_dir,
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=action.timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Command timed out after {action.timeout}s",
                metadata={"command": " ".join(cmd), "timeout": action.timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=f"Failed to start node: {e}",
                metadata={"command": " ".join(cmd)},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout or ""
        stderr = result.stderr or ""

        logger.debug(
            "Node %s finished: exitCode=%d, stdout.length=%d, stderr.length=%d",
            action.id, result.returncode, len(stdout), len(stderr),
        )
        if stderr.strip():
            logger.debug("Node %s stderr:\n%s", action.id, stderr)
        if stdout.strip():
            logger.debug("Node %s stdout (preview):\n%s", action.id, _preview(stdout))
        else:
            logger.debug("Node %s stdout is blank", action.id)

        metadata = {
            "command": " ".join(cmd),
            "return_code": result.returncode,
            "stderr": stderr,
        }

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=action.id,
                output=stdout,
                duration_ms=elapsed_ms,
                metadata=metadata,
            )

        logger.warning(
            "Node %s exited with non-zero code: %d. stderr=%s. stdout=%s",
            action.id, result.returncode, stderr.strip(), _preview(stdout.strip()),
        )
        return Receipt.failure(
            adapter=self.name,
            action_id=action.id,
            error=stderr.strip() or f"Exit code {result.returncode}",
            kind=FailureKind.PROCESS_FAILURE,
            duration_ms=elapsed_ms,
            metadata={**metadata, "stdout": stdout},
        )
