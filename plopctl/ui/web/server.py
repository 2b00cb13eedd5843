"""
Web server — Flask app factory.

Serves the generator JSON API for one project root.  The app owns one
pipeline (``PlopOps``), one generator cache, one event bus and,
optionally, a staleness watcher; ``app.config["PLOP_SHUTDOWN"]``
stops them again.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask

from plopctl.core.config.loader import PlopSettings
from plopctl.core.services.event_bus import EventBus
from plopctl.core.services.generator_cache import GeneratorCacheService
from plopctl.core.services.plop_ops import PlopOps

logger = logging.getLogger(__name__)

WAIT_MARGIN_S = 5
"""Extra seconds a request waits beyond the engine timeout."""


def create_app(
    project_root: Path | None = None,
    settings: PlopSettings | None = None,
    *,
    ops: PlopOps | None = None,
    cache: GeneratorCacheService | None = None,
    bus: EventBus | None = None,
    watch: bool = True,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        project_root: Default root for requests without ``?root=``.
        settings: Resolved settings (default: built-in defaults).
        ops: Pipeline to use (tests pass one with a mock adapter).
        cache: Generator cache (default: a new one over ``ops``).
        bus: Event bus (default: a new one).
        watch: Start the staleness watcher.

    Returns:
        Configured Flask application.
    """
    settings = settings or PlopSettings()
    bus = bus or EventBus()

    if ops is None:
        from plopctl.core.services.interpreter import interpreter_resolver_from_settings

        def _notify(message: str, level: str) -> None:
            logger.error("Plop: %s", message)
            bus.publish("notify:error", data={"message": message, "level": level})

        ops = PlopOps(
            interpreter_resolver_from_settings(settings),
            timeout=settings.timeout_s,
            notifier=_notify,
        )
    cache = cache or GeneratorCacheService(ops, bus=bus)

    app = Flask(__name__)
    app.config["PROJECT_ROOT"] = str(Path(project_root or Path.cwd()).resolve())
    app.config["PLOP_OPS"] = ops
    app.config["PLOP_CACHE"] = cache
    app.config["PLOP_BUS"] = bus
    app.config["PLOP_WAIT_S"] = settings.timeout_s + WAIT_MARGIN_S

    stop_watcher = None
    if watch:
        from plopctl.core.services.staleness_watcher import start_watcher

        # Seed the default root so the watcher has something to poll
        cache.get_generators(Path(app.config["PROJECT_ROOT"]))
        _thread, stop_watcher = start_watcher(cache, poll_interval=settings.poll_interval_s)

    def _shutdown() -> None:
        if stop_watcher is not None:
            stop_watcher.set()
        cache.close()
        ops.close()

    app.config["PLOP_SHUTDOWN"] = _shutdown

    from plopctl.ui.web.routes_events import events_bp
    from plopctl.ui.web.routes_generators import generators_bp

    app.register_blueprint(generators_bp, url_prefix="/api")
    app.register_blueprint(events_bp, url_prefix="/api")

    logger.info("Web app created (root=%s)", app.config["PROJECT_ROOT"])
    return app
