"""
Result parser — engine stdout → typed results.

Parsing is structural only.  Empty or malformed output yields the
operation's default value, missing fields become empty strings or
lists, and prompt types are passed through without validation.
Nothing here raises on bad input.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from plopctl.core.models.action import FailureKind
from plopctl.core.models.generator import (
    GeneratorDescription,
    GeneratorSummary,
    PromptSpec,
    RunResult,
)

logger = logging.getLogger(__name__)

_MISSING = object()

MSG_INVALID_RUN_JSON = "Invalid JSON from Plop run script"
MSG_COMPLETED = "Plop: generator completed"
MSG_FAILED = "Plop: generator failed"

# Keys a change record may carry its file path under
_CHANGE_PATH_KEYS = ("path", "file", "dest", "absPath")


def _load(stdout: str | None, what: str) -> Any:
    """Decode JSON, or ``_MISSING`` for blank / malformed output."""
    if stdout is None or not stdout.strip():
        logger.debug("Engine %s output is blank", what)
        return _MISSING
    try:
        return json.loads(stdout)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning(
            "Failed to parse %s JSON (%s): %s", what, FailureKind.MALFORMED_OUTPUT.value, e,
        )
        return _MISSING


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return _text(value)


# ── list ────────────────────────────────────────────────────────


def parse_generator_list(stdout: str | None) -> list[GeneratorSummary]:
    """``[{name, description}, ...]`` → summaries; ``[]`` on any problem."""
    data = _load(stdout, "generators")
    if data is _MISSING:
        return []
    if not isinstance(data, list):
        logger.warning("Expected a JSON array of generators, got %s", type(data).__name__)
        return []

    generators: list[GeneratorSummary] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        generators.append(GeneratorSummary(
            name=_text(item.get("name")),
            description=_text(item.get("description")),
        ))
    logger.debug("Parsed %d plop generators from script output", len(generators))
    return generators


# ── describe ────────────────────────────────────────────────────


def _parse_prompt(item: Any) -> PromptSpec | None:
    if not isinstance(item, dict):
        return None
    prompt_type = item.get("type")
    return PromptSpec(
        type=_text(prompt_type) if prompt_type else "input",
        name=_optional_text(item.get("name")) or None,
        message=_optional_text(item.get("message")),
        default=item.get("default"),
        choices=item.get("choices"),
    )


def parse_generator_description(
    stdout: str | None,
    requested_name: str = "",
) -> GeneratorDescription:
    """``{name, description, prompts}`` → description.

    Falls back to an empty description for ``requested_name``.  Duplicate
    prompt names keep their first occurrence.
    """
    data = _load(stdout, "generator description")
    if data is _MISSING:
        return GeneratorDescription.empty(requested_name)
    if not isinstance(data, dict):
        logger.warning("Expected a JSON object for generator description, got %s",
                       type(data).__name__)
        return GeneratorDescription.empty(requested_name)

    if data.get("found") is False:
        logger.info(
            "Generator not found (%s): %s",
            FailureKind.GENERATOR_NOT_FOUND.value, requested_name or data.get("name"),
        )
        return GeneratorDescription.empty(requested_name)

    raw_prompts = data.get("prompts")
    prompts: list[PromptSpec] = []
    seen: set[str] = set()
    if isinstance(raw_prompts, list):
        for item in raw_prompts:
            prompt = _parse_prompt(item)
            if prompt is None:
                continue
            if prompt.name:
                if prompt.name in seen:
                    logger.warning("Duplicate prompt name '%s' ignored", prompt.name)
                    continue
                seen.add(prompt.name)
            prompts.append(prompt)

    description = GeneratorDescription(
        name=_text(data.get("name")),
        description=_text(data.get("description")),
        prompts=prompts,
    )
    logger.debug("Parsed %d prompts for generator '%s'", len(prompts), description.name)
    return description


# ── run ─────────────────────────────────────────────────────────


def _change_path(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        for key in _CHANGE_PATH_KEYS:
            value = item.get(key)
            if value:
                return _text(value)
        return ""
    if item is None:
        return ""
    return str(item)


def default_run_message(success: bool, changed: int) -> str:
    if not success:
        return MSG_FAILED
    if changed > 0:
        return f"Plop: {changed} file(s) generated"
    return MSG_COMPLETED


def parse_run_result(stdout: str | None) -> RunResult:
    """``{ok|success, message?, changes?}`` → RunResult.

    Both success spellings are honoured (``ok`` first).  A blank message
    is replaced by a generic one derived from the outcome.
    """
    data = _load(stdout, "run result")
    if data is _MISSING or not isinstance(data, dict):
        if data is not _MISSING:
            logger.warning("Expected a JSON object for run result, got %s", type(data).__name__)
        return RunResult(success=False, message=MSG_INVALID_RUN_JSON)

    ok = data.get("ok")
    if not isinstance(ok, bool):
        ok = data.get("success")
    success = ok if isinstance(ok, bool) else False

    changes = data.get("changes")
    changed_paths: list[str] = []
    if isinstance(changes, (list, tuple)):
        changed_paths = [p for p in (_change_path(c) for c in changes) if p]

    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        message = default_run_message(success, len(changed_paths))

    return RunResult(success=success, message=message, changed_paths=changed_paths)
