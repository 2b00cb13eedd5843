"""
Generator routes — list, describe and run Plop generators.

Blueprint: generators_bp
Prefix: /api

Thin HTTP wrappers over the generator cache and ``PlopOps``.  Engine
calls run on the pipeline's background pool; describe and run wait for
the result up to the engine timeout (504 after that).  Every endpoint
accepts ``?root=`` (absolute, or relative to the server's project root).

Endpoints:
    GET  /generators              — cached list (never blocks)
    POST /generators/refresh      — invalidate and reload the list
    GET  /generators/<name>       — prompts for one generator
    POST /generators/<name>/run   — run with {"answers": {...}}
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request

from plopctl.core.models.generator import RunResult
from plopctl.core.services.plop_ops import answers_for

logger = logging.getLogger(__name__)

generators_bp = Blueprint("generators", __name__)


def _root() -> Path:
    base = Path(current_app.config["PROJECT_ROOT"])
    requested = request.args.get("root")
    if not requested:
        body = request.get_json(silent=True)
        if isinstance(body, dict):
            requested = body.get("root")
    return (base / requested).resolve() if requested else base


def _cache():  # type: ignore[no-untyped-def]
    return current_app.config["PLOP_CACHE"]


def _ops():  # type: ignore[no-untyped-def]
    return current_app.config["PLOP_OPS"]


# ── List ────────────────────────────────────────────────────────────


@generators_bp.route("/generators")
def generators_list():  # type: ignore[no-untyped-def]
    """Cached generators; an empty cache starts a refresh."""
    root = _root()
    cache = _cache()
    generators = cache.get_generators(root)
    return jsonify({
        "root": str(root),
        "initialized": cache.is_initialized_for_root(root),
        "refreshing": cache.is_refreshing(root),
        "generators": [g.model_dump() for g in generators],
    })


@generators_bp.route("/generators/refresh", methods=["POST"])
def generators_refresh():  # type: ignore[no-untyped-def]
    """Drop the cached list and reload it in the background."""
    root = _root()
    _cache().invalidate_and_refresh(root)
    return jsonify({"root": str(root), "refreshing": True}), 202


# ── Describe / run ──────────────────────────────────────────────────


def _await(future: Future, what: str):  # type: ignore[no-untyped-def]
    """Block this request on a background engine call, bounded by the engine timeout."""
    try:
        return future.result(timeout=current_app.config["PLOP_WAIT_S"])
    except FutureTimeout:
        logger.warning("Timed out waiting for %s", what)
        return None


@generators_bp.route("/generators/<name>")
def generator_describe(name: str):  # type: ignore[no-untyped-def]
    """Prompts for one generator."""
    description = _await(_ops().describe_async(_root(), name), f"describe '{name}'")
    if description is None:
        return jsonify({"error": f"Timed out describing '{name}'"}), 504
    return jsonify(description.model_dump(mode="json"))


@generators_bp.route("/generators/<name>/run", methods=["POST"])
def generator_run(name: str):  # type: ignore[no-untyped-def]
    """Run a generator with the posted answers.

    The result is also published as a ``generator:run`` event, including
    when the request gave up waiting for it.
    """
    body = request.get_json(silent=True) or {}
    answers = body.get("answers", {}) if isinstance(body, dict) else None
    if not isinstance(answers, dict):
        return jsonify({"error": "'answers' must be a JSON object"}), 400

    root = _root()
    ops = _ops()
    bus = current_app.config["PLOP_BUS"]

    description = _await(ops.describe_async(root, name), f"describe '{name}'")
    if description is None:
        return jsonify({"error": f"Timed out describing '{name}'"}), 504
    ordered = answers_for(description, answers) if description.prompts else answers

    def _publish(result: RunResult) -> None:
        bus.publish("generator:run", key=str(root), data={"name": name, **result.model_dump()})

    result = _await(ops.run_async(root, name, ordered, callback=_publish), f"run '{name}'")
    if result is None:
        return jsonify({"error": f"Timed out running '{name}'", "root": str(root)}), 504
    return jsonify(result.model_dump())
