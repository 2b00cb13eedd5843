"""
Tests for the execution contract and generator models.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from plopctl.core.models import (
    Action,
    CacheEntry,
    FailureKind,
    GeneratorConfig,
    GeneratorDescription,
    GeneratorSummary,
    ModuleKind,
    PromptSpec,
    Receipt,
    RunResult,
)


class TestAction:
    def test_command(self):
        action = Action(
            id="run", interpreter="node", node_flags=["-r", "ts-node/register/transpile-only"],
            script="/tmp/run-generator.js", args=["/app", "/app/plopfile.ts", "cjs"],
        )
        assert action.command == [
            "node", "-r", "ts-node/register/transpile-only",
            "/tmp/run-generator.js", "/app", "/app/plopfile.ts", "cjs",
        ]

    def test_defaults(self):
        action = Action(id="list")
        assert action.timeout == 120
        assert action.command == ["node"]


class TestReceipt:
    def test_success(self):
        r = Receipt.success(adapter="node", action_id="list", output="[]")
        assert r.ok and not r.failed
        assert r.failure_kind is None

    def test_failure_kind(self):
        r = Receipt.failure(
            adapter="node", action_id="list", error="x", kind=FailureKind.MALFORMED_OUTPUT,
        )
        assert r.failed
        assert r.failure_kind is FailureKind.MALFORMED_OUTPUT

    def test_metadata_accessors(self):
        r = Receipt.failure(
            adapter="node", action_id="run", error="x",
            metadata={"return_code": 1, "stderr": "boom"},
        )
        assert r.return_code == 1
        assert r.stderr == "boom"

    def test_finished_at_is_utc(self):
        r = Receipt.success(adapter="node", action_id="list")
        assert r.finished_at.endswith("+00:00")


class TestGeneratorModels:
    def test_config_is_frozen(self):
        config = GeneratorConfig(path=Path("/app/plopfile.js"))
        assert config.module_kind is ModuleKind.COMMONJS
        with pytest.raises(ValidationError):
            config.is_source_dialect = True

    def test_module_kind_tokens(self):
        assert ModuleKind.COMMONJS.value == "cjs"
        assert ModuleKind.ESM.value == "esm"

    def test_prompt_label(self):
        assert PromptSpec(name="n", message="Name?").display_label == "Name?"
        assert PromptSpec(name="n").display_label == "n"
        assert PromptSpec().display_label == "input"

    def test_empty_description(self):
        d = GeneratorDescription.empty("component")
        assert d.name == "component"
        assert d.prompt_names() == []

    def test_run_result_defaults(self):
        r = RunResult()
        assert r.success is False
        assert r.changed_paths == []


class TestCacheEntry:
    def test_states(self):
        assert CacheEntry().state == "empty"
        assert CacheEntry(refresh_in_flight=True).state == "refreshing"
        populated = CacheEntry(generators=(GeneratorSummary(name="a"),), initialized=True)
        assert populated.state == "populated"

    def test_frozen(self):
        entry = CacheEntry()
        with pytest.raises(ValidationError):
            entry.initialized = True
        assert entry.model_copy(update={"initialized": True}).initialized is True
