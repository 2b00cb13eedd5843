"""
SSE event stream endpoint.

``GET /api/events`` streams the app's event bus as Server-Sent Events::

    event: generators:done
    id: 12
    data: {"v":1,"ts":...,"seq":12,"type":"generators:done","key":"/abs/root","data":{...}}

Browsers reconnect with ``Last-Event-Id`` and get the missed events
replayed from the bus's buffer.
"""

from __future__ import annotations

import json

from flask import Blueprint, Response, current_app, request

events_bp = Blueprint("events", __name__)

_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def format_sse(event: dict) -> str:
    """One event as an SSE frame (``event``/``id``/``data`` lines)."""
    payload = json.dumps(event, default=str)
    return f"event: {event['type']}\nid: {event['seq']}\ndata: {payload}\n\n"


def _resume_point() -> int:
    """Larger of ``?since=`` and a numeric ``Last-Event-Id`` header."""
    since = request.args.get("since", 0, type=int)
    header = request.headers.get("Last-Event-Id", "")
    return max(since, int(header)) if header.isdigit() else since


@events_bp.route("/events")
def event_stream():  # type: ignore[no-untyped-def]
    bus = current_app.config["PLOP_BUS"]
    stream = bus.subscribe(since=_resume_point())
    return Response(
        (format_sse(event) for event in stream),
        mimetype="text/event-stream",
        headers=_STREAM_HEADERS,
    )
