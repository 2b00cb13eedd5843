"""
Generator cache — per-root generator lists, refreshed in the background.

Readers never block: ``get_generators`` returns whatever is cached and
kicks off a refresh when that is empty.  Refreshes for one root are
coalesced (at most one in flight), and their result is installed by
swapping the root's frozen ``CacheEntry``.

Hand-off to the host happens through listeners (``add_listener``) and
``generators:*`` events on the event bus.

Usage::

    with GeneratorCacheService(ops, bus=bus) as cache:
        cache.get_generators(root)          # [] on first call, refresh started
        ...
        cache.get_generators(root)          # populated once the refresh lands
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable

from plopctl.core.config import resolver
from plopctl.core.models.generator import CacheEntry, GeneratorSummary
from plopctl.core.services.event_bus import EventBus
from plopctl.core.services.plop_ops import PlopOps

logger = logging.getLogger(__name__)

Listener = Callable[[Path, CacheEntry], None]
"""``listener(root, entry)`` — called after every completed refresh."""


def _key(root: Path) -> Path:
    return Path(root).resolve()


def _relative_parts(path: Path) -> tuple[str, ...]:
    parts = path.parts
    return parts[1:] if path.anchor else parts


def path_matches(changed: Path, watched: Path) -> bool:
    """Does a changed path refer to a watched file?

    Exact resolved equality, a component-wise suffix match in either
    direction, or equal basenames.
    """
    changed = Path(changed)
    watched = Path(watched)
    try:
        if changed.resolve() == watched.resolve():
            return True
    except OSError:
        pass

    a, b = _relative_parts(changed), _relative_parts(watched)
    if a and b:
        shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
        if longer[len(longer) - len(shorter):] == shorter:
            return True

    return bool(changed.name) and changed.name == watched.name


class GeneratorCacheService:
    """Caches generator lists per project root."""

    def __init__(
        self,
        ops: PlopOps,
        executor: Executor | None = None,
        bus: EventBus | None = None,
    ):
        self._ops = ops
        self._bus = bus
        self._executor = executor or ThreadPoolExecutor(thread_name_prefix="plop-cache")
        self._owns_executor = executor is None
        self._entries: dict[Path, CacheEntry] = {}
        self._guard = threading.Lock()  # compare-and-set of refresh_in_flight only
        self._listeners: list[Listener] = []
        self._closed = False

    # ── Reading ─────────────────────────────────────────────────

    def entry(self, root: Path) -> CacheEntry:
        return self._entries.get(_key(root), CacheEntry())

    def get_generators(self, root: Path) -> list[GeneratorSummary]:
        """Cached generators for ``root``; never blocks.

        An empty cache schedules a refresh and returns ``[]``.
        """
        current = self.entry(root)
        if not current.generators:
            self.refresh_async(root)
        return list(current.generators)

    def is_initialized_for_root(self, root: Path) -> bool:
        return self.entry(root).initialized

    def is_refreshing(self, root: Path) -> bool:
        return self.entry(root).refresh_in_flight

    def known_roots(self) -> list[Path]:
        return list(self._entries)

    # ── Refresh ─────────────────────────────────────────────────

    def refresh_async(self, root: Path) -> Future | None:
        """Start a background refresh unless one is already running.

        Returns the refresh's Future, or ``None`` when coalesced into
        the one in flight.
        """
        key = _key(root)
        with self._guard:
            if self._closed:
                logger.debug("Cache closed; not refreshing %s", key)
                return None
            current = self._entries.get(key, CacheEntry())
            if current.refresh_in_flight:
                logger.debug("Refresh already in flight for %s", key)
                return None
            self._entries[key] = current.model_copy(update={"refresh_in_flight": True})

        logger.debug("Refreshing generators for %s", key)
        self._publish("generators:refresh", key)
        try:
            return self._executor.submit(self._refresh, key)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning("Could not schedule refresh for %s: %s", key, e)
            self._clear_in_flight(key)
            return None

    def _refresh(self, key: Path) -> list[GeneratorSummary]:
        generators: list[GeneratorSummary] = []
        try:
            generators = self._ops.list_generators(key)
        except Exception as e:
            logger.warning("Failed to load generators for %s: %s", key, e)
        finally:
            with self._guard:
                self._entries[key] = CacheEntry(
                    generators=tuple(generators),
                    initialized=True,
                    refresh_in_flight=False,
                )
        logger.info("Loaded %d generator(s) for %s", len(generators), key)
        self._notify(key)
        return generators

    def _clear_in_flight(self, key: Path) -> None:
        with self._guard:
            current = self._entries.get(key, CacheEntry())
            self._entries[key] = current.model_copy(update={"refresh_in_flight": False})

    def invalidate_and_refresh(self, root: Path) -> Future | None:
        """Drop the cached list for ``root`` and reload it."""
        key = _key(root)
        with self._guard:
            current = self._entries.get(key, CacheEntry())
            self._entries[key] = CacheEntry(refresh_in_flight=current.refresh_in_flight)
        logger.info("Invalidated generator cache for %s", key)
        self._publish("generators:invalidated", key)
        return self.refresh_async(key)

    # ── Change hook ─────────────────────────────────────────────

    def watch_paths(self, root: Path) -> list[Path]:
        """Plopfile candidates and package.json of ``root``, existing or not."""
        return resolver.watch_candidates(_key(root))

    def on_paths_changed(self, paths: Iterable[Path]) -> list[Path]:
        """Invalidate every known root whose watched files changed.

        Returns the roots that were invalidated.
        """
        changed = [Path(p) for p in paths]
        if not changed:
            return []

        hit: list[Path] = []
        for key in self.known_roots():
            watched = self.watch_paths(key)
            if any(path_matches(c, w) for c in changed for w in watched):
                hit.append(key)

        for key in hit:
            self.invalidate_and_refresh(key)
        return hit

    # ── Hand-off ────────────────────────────────────────────────

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self, key: Path) -> None:
        current = self.entry(key)
        for listener in list(self._listeners):
            try:
                listener(key, current)
            except Exception as e:
                logger.warning("Generator cache listener failed: %s", e)
        self._publish(
            "generators:done",
            key,
            {
                "initialized": current.initialized,
                "generators": [g.model_dump() for g in current.generators],
            },
        )

    def _publish(self, event_type: str, key: Path, data: dict | None = None) -> None:
        if self._bus is not None:
            self._bus.publish(event_type, key=str(key), data=data)

    # ── Lifecycle ───────────────────────────────────────────────

    def close(self) -> None:
        with self._guard:
            self._closed = True
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def __enter__(self) -> GeneratorCacheService:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
