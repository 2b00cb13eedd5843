"""
Staleness Watcher — background mtime polling for cache invalidation.

Every ``poll_interval`` seconds, stats the watch paths of every root
the cache knows about: each plopfile candidate name and ``package.json``,
whether or not the file exists.  Paths whose mtime moved, or which
appeared or disappeared since the previous poll, are handed to
``GeneratorCacheService.on_paths_changed``.

The first poll only records a baseline.  The thread is a daemon and
also stops when ``stop`` is set.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 5.0
"""Seconds between poll cycles."""


class WatchTarget(Protocol):
    def known_roots(self) -> list[Path]: ...

    def watch_paths(self, root: Path) -> list[Path]: ...

    def on_paths_changed(self, paths: list[Path]) -> list[Path]: ...


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def snapshot_mtimes(target: WatchTarget) -> dict[Path, float | None]:
    """mtime (``None`` when missing) of every watched path."""
    mtimes: dict[Path, float | None] = {}
    for root in target.known_roots():
        for path in target.watch_paths(root):
            mtimes[path] = _mtime(path)
    return mtimes


def changed_paths(
    before: dict[Path, float | None],
    after: dict[Path, float | None],
) -> list[Path]:
    """Paths whose mtime differs between snapshots.

    A missing file has mtime ``None``, so creation and deletion count as
    changes.  Paths that left the watch set are reported too.  Paths
    only seen in ``after`` belong to newly known roots and are not.
    """
    moved = [p for p, m in after.items() if p in before and before[p] != m]
    dropped = [p for p in before if p not in after]
    return moved + dropped


def poll_once(target: WatchTarget, previous: dict[Path, float | None]) -> dict[Path, float | None]:
    """One poll cycle.  Returns the new baseline."""
    current = snapshot_mtimes(target)
    changed = changed_paths(previous, current)
    if changed:
        logger.info("Plop config changed: %s", ", ".join(str(p) for p in changed))
        target.on_paths_changed(changed)
    return current


def start_watcher(
    target: WatchTarget,
    poll_interval: float = POLL_INTERVAL_S,
    stop: threading.Event | None = None,
) -> tuple[threading.Thread, threading.Event]:
    """Start a daemon thread that polls ``target``'s watch paths.

    Returns:
        (thread, stop_event). Set the event to end the loop.
    """
    stop = stop or threading.Event()
    t = threading.Thread(
        target=_poll_loop,
        args=(target, poll_interval, stop),
        daemon=True,
        name="staleness-watcher",
    )
    t.start()
    logger.info("Staleness watcher started (poll every %.1fs)", poll_interval)
    return t, stop


def _poll_loop(target: WatchTarget, poll_interval: float, stop: threading.Event) -> None:
    previous = snapshot_mtimes(target)
    while not stop.wait(poll_interval):
        try:
            previous = poll_once(target, previous)
        except Exception as e:
            logger.warning("Staleness poll failed: %s", e)
    logger.debug("Staleness watcher stopped")
