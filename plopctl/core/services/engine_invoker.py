"""
Engine invoker — run one bundled engine script against a project.

Each invocation copies the operation's script into a fresh temporary
directory, runs it through the Node adapter with the project root as
working directory, and removes the directory again on every exit path.
Removal failures are logged and swallowed.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from plopctl.adapters.base import Adapter, ExecutionContext
from plopctl.core.data import ENGINE_SCRIPTS, read_script
from plopctl.core.models.action import Action, FailureKind, Receipt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120


def materialize_script(operation: str) -> tuple[Path, Path]:
    """Write the operation's script to a new temp dir.

    Returns:
        (temp_dir, script_path)

    Raises:
        KeyError: Unknown operation.
        OSError: Script missing or temp dir not writable.
    """
    name = ENGINE_SCRIPTS[operation]
    source = read_script(name)
    tmp_dir = Path(tempfile.mkdtemp(prefix="plop-script"))
    script = tmp_dir / name
    try:
        script.write_text(source, encoding="utf-8")
    except OSError:
        cleanup_dir(tmp_dir)
        raise
    return tmp_dir, script


def cleanup_dir(path: Path) -> None:
    """Best-effort removal of a temporary script directory."""
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.debug("Failed to delete temp script dir %s: %s", path, e)


class EngineInvoker:
    """Runs engine operations through an adapter."""

    def __init__(self, adapter: Adapter, timeout: int = DEFAULT_TIMEOUT_S):
        self._adapter = adapter
        self._timeout = timeout

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    def invoke(
        self,
        operation: str,
        root: Path,
        interpreter: str,
        node_flags: list[str],
        args: list[str],
    ) -> Receipt:
        """Execute ``interpreter [node_flags] script [args]`` in ``root``.

        Never raises.  A failed receipt means the operation produced no
        usable output.
        """
        try:
            tmp_dir, script = materialize_script(operation)
        except (KeyError, OSError) as e:
            logger.warning("Failed to extract engine script for '%s': %s", operation, e)
            return Receipt.failure(
                adapter=self._adapter.name,
                action_id=operation,
                error=f"Failed to prepare engine script: {e}",
                metadata={"stage": "materialize"},
            )

        action = Action(
            id=operation,
            adapter=self._adapter.name,
            interpreter=interpreter,
            node_flags=list(node_flags),
            script=str(script),
            args=[str(a) for a in args],
            timeout=self._timeout,
        )

        logger.debug(
            "About to execute engine '%s': node='%s', script='%s', workDir='%s', params='%s'",
            operation, interpreter, script, root, " ".join(node_flags),
        )

        try:
            return self._adapter.execute(
                ExecutionContext(action=action, project_root=str(root)),
            )
        except Exception as e:
            # Adapter contract broken; keep the receipt shape
            logger.error("Adapter %s raised during '%s': %s", self._adapter.name, operation, e)
            return Receipt.failure(
                adapter=self._adapter.name,
                action_id=operation,
                error=f"Unexpected error: {e}",
                kind=FailureKind.PROCESS_FAILURE,
            )
        finally:
            cleanup_dir(tmp_dir)
