"""
Tests for engine script materialization and invocation.
"""

from pathlib import Path

import pytest

from plopctl.adapters.base import Adapter, ExecutionContext
from plopctl.adapters.mock import MockAdapter
from plopctl.core.data import ENGINE_SCRIPTS, read_script, script_path
from plopctl.core.models.action import Receipt
from plopctl.core.services import engine_invoker
from plopctl.core.services.engine_invoker import EngineInvoker, materialize_script


class _RaisingAdapter(Adapter):
    @property
    def name(self) -> str:
        return "node"

    def is_available(self) -> bool:
        return True

    def validate(self, context):
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        raise RuntimeError("boom")

    def version(self, interpreter: str):
        return None


class TestBundledScripts:
    @pytest.mark.parametrize("operation", sorted(ENGINE_SCRIPTS))
    def test_scripts_are_bundled(self, operation):
        assert script_path(ENGINE_SCRIPTS[operation]).is_file()
        assert "node-plop" in read_script(ENGINE_SCRIPTS[operation])

    def test_missing_script(self):
        with pytest.raises(FileNotFoundError):
            read_script("nope.js")


class TestMaterialize:
    def test_writes_copy_to_temp_dir(self):
        tmp_dir, script = materialize_script("list")
        try:
            assert script.parent == tmp_dir
            assert tmp_dir.name.startswith("plop-script")
            assert script.read_text() == read_script("list-generators.js")
        finally:
            engine_invoker.cleanup_dir(tmp_dir)
        assert not tmp_dir.exists()

    def test_unknown_operation(self):
        with pytest.raises(KeyError):
            materialize_script("explode")


class TestEngineInvoker:
    def test_command_line_shape(self, plop_project: Path):
        adapter = MockAdapter()
        adapter.set_output("run", '{"ok": true}')
        receipt = EngineInvoker(adapter, timeout=30).invoke(
            "run", plop_project, "/usr/bin/node", ["--import", "tsx"], ["a", "b"],
        )
        assert receipt.ok
        ctx = adapter.call_log[0]
        action = ctx.action
        assert action.command[:3] == ["/usr/bin/node", "--import", "tsx"]
        assert action.command[3].endswith("run-generator.js")
        assert action.command[4:] == ["a", "b"]
        assert action.timeout == 30
        assert ctx.working_dir == str(plop_project)

    def test_temp_dir_removed_after_success(self, plop_project: Path):
        adapter = MockAdapter()
        EngineInvoker(adapter).invoke("list", plop_project, "node", [], [])
        script = Path(adapter.call_log[0].action.script)
        assert not script.parent.exists()

    def test_temp_dir_removed_after_failure(self, plop_project: Path):
        adapter = MockAdapter()
        adapter.set_failure("list", "crash", return_code=2)
        receipt = EngineInvoker(adapter).invoke("list", plop_project, "node", [], [])
        assert receipt.failed
        assert receipt.return_code == 2
        assert not Path(adapter.call_log[0].action.script).parent.exists()

    def test_adapter_exception_becomes_receipt(self, plop_project: Path, monkeypatch):
        created: list[Path] = []
        real = engine_invoker.materialize_script

        def tracking(operation):
            tmp_dir, script = real(operation)
            created.append(tmp_dir)
            return tmp_dir, script

        monkeypatch.setattr(engine_invoker, "materialize_script", tracking)
        receipt = EngineInvoker(_RaisingAdapter()).invoke("list", plop_project, "node", [], [])
        assert receipt.failed
        assert "boom" in receipt.error
        assert created and not created[0].exists()

    def test_materialize_failure(self, plop_project: Path, monkeypatch):
        def fail(operation):
            raise OSError("disk full")

        monkeypatch.setattr(engine_invoker, "materialize_script", fail)
        adapter = MockAdapter()
        receipt = EngineInvoker(adapter).invoke("run", plop_project, "node", [], [])
        assert receipt.failed
        assert receipt.metadata["stage"] == "materialize"
        assert adapter.call_count == 0

    def test_cleanup_failure_is_swallowed(self, plop_project: Path, monkeypatch):
        def fail(path, *a, **kw):
            raise OSError("busy")

        monkeypatch.setattr(engine_invoker.shutil, "rmtree", fail)
        adapter = MockAdapter()
        adapter.set_output("list", "[]")
        receipt = EngineInvoker(adapter).invoke("list", plop_project, "node", [], [])
        assert receipt.ok
