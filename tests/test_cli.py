"""
Tests for CLI commands — list, describe, run, config, and global options.
"""

import json
from pathlib import Path

from click.testing import CliRunner

from plopctl.main import cli

DESCRIBE_JSON = json.dumps({
    "name": "component",
    "description": "React component",
    "prompts": [
        {"type": "input", "name": "name", "message": "Component name?"},
        {"type": "confirm", "name": "tests", "message": "Add tests?", "default": True},
    ],
})


def _invoke(args, ops=None, **kw):
    obj = {"ops": ops} if ops is not None else {}
    return CliRunner().invoke(cli, args, obj=obj, **kw)


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = _invoke(["--help"])
        assert result.exit_code == 0
        assert "Plop generators" in result.output

    def test_version(self):
        result = _invoke(["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestListCommand:
    def test_list(self, ops, mock_adapter, plop_project, generators_json):
        mock_adapter.set_output("list", generators_json)
        result = _invoke(["--root", str(plop_project), "list"], ops)
        assert result.exit_code == 0
        assert "component" in result.output
        assert "Redux store" in result.output

    def test_list_json(self, ops, mock_adapter, plop_project, generators_json):
        mock_adapter.set_output("list", generators_json)
        result = _invoke(["--root", str(plop_project), "list", "--json"], ops)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [g["name"] for g in data] == ["component", "store"]

    def test_list_empty(self, ops, tmp_path):
        result = _invoke(["--root", str(tmp_path), "list"], ops)
        assert result.exit_code == 0
        assert "No Plop generators found" in result.output


class TestDescribeCommand:
    def test_describe(self, ops, mock_adapter, plop_project):
        mock_adapter.set_output("describe", DESCRIBE_JSON)
        result = _invoke(["--root", str(plop_project), "describe", "component"], ops)
        assert result.exit_code == 0
        assert "name [input]" in result.output
        assert "tests [confirm]" in result.output

    def test_describe_json(self, ops, mock_adapter, plop_project):
        mock_adapter.set_output("describe", DESCRIBE_JSON)
        result = _invoke(["--root", str(plop_project), "describe", "component", "--json"], ops)
        assert json.loads(result.output)["prompts"][0]["name"] == "name"


class TestRunCommand:
    def test_run_with_preset_answers(self, ops, mock_adapter, plop_project):
        mock_adapter.set_output("describe", DESCRIBE_JSON)
        mock_adapter.set_output("run", '{"ok": true, "changes": [{"path": "src/Button.jsx"}]}')
        result = _invoke(
            ["--root", str(plop_project), "run", "component",
             "--answer", "name=Button", "--no-input"],
            ops,
        )
        assert result.exit_code == 0, result.output
        assert "Plop: 1 file(s) generated" in result.output
        assert "src/Button.jsx" in result.output

        run_ctx = [c for c in mock_adapter.call_log if c.action.id == "run"][0]
        answers = json.loads(run_ctx.action.args[-1])
        assert answers == {"name": "Button", "tests": True}

    def test_run_prompts_interactively(self, ops, mock_adapter, plop_project):
        mock_adapter.set_output("describe", DESCRIBE_JSON)
        mock_adapter.set_output("run", '{"ok": true}')
        result = _invoke(
            ["--root", str(plop_project), "run", "component"], ops, input="Card\nn\n",
        )
        assert result.exit_code == 0, result.output
        run_ctx = [c for c in mock_adapter.call_log if c.action.id == "run"][0]
        assert json.loads(run_ctx.action.args[-1]) == {"name": "Card", "tests": False}

    def test_run_answers_json(self, ops, mock_adapter, plop_project):
        mock_adapter.set_output("describe", DESCRIBE_JSON)
        mock_adapter.set_output("run", '{"ok": true}')
        result = _invoke(
            ["--root", str(plop_project), "run", "component", "--json",
             "--answers-json", '{"name": "Nav", "tests": false}'],
            ops,
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["success"] is True

    def test_preset_answers_kept_when_describe_fails(self, ops, mock_adapter, plop_project):
        mock_adapter.set_failure("describe", "boom")
        mock_adapter.set_output("run", '{"ok": true}')
        result = _invoke(
            ["--root", str(plop_project), "run", "component", "--no-input",
             "--answer", "name=Button", "--answers-json", '{"tests": false}'],
            ops,
        )
        assert result.exit_code == 0, result.output
        run_ctx = [c for c in mock_adapter.call_log if c.action.id == "run"][0]
        assert json.loads(run_ctx.action.args[-1]) == {"tests": False, "name": "Button"}

    def test_run_failure_exits_1(self, ops, mock_adapter, plop_project):
        mock_adapter.set_failure("run", "boom", return_code=1)
        result = _invoke(["--root", str(plop_project), "run", "component", "--no-input"], ops)
        assert result.exit_code == 1
        assert "Plop generator failed to run (exit 1)" in result.output

    def test_bad_answer_pair(self, ops, plop_project):
        result = _invoke(
            ["--root", str(plop_project), "run", "component", "--answer", "oops"], ops,
        )
        assert result.exit_code == 2

    def test_bad_answers_json(self, ops, plop_project):
        result = _invoke(
            ["--root", str(plop_project), "run", "component", "--answers-json", "[1]"], ops,
        )
        assert result.exit_code == 2


class TestConfigCommand:
    def test_config_json(self, ops, plop_project: Path):
        result = _invoke(["--root", str(plop_project), "config", "--json"], ops)
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["plopfile"].endswith("plopfile.js")
        assert data["module_kind"] == "cjs"
        assert data["node"] == "/usr/bin/node"
        assert data["node_flags"] == []
        assert data["settings"]["timeout_s"] == 120

    def test_config_text_without_plopfile(self, ops, tmp_path):
        result = _invoke(["--root", str(tmp_path), "config"], ops)
        assert result.exit_code == 0
        assert "No plopfile found in project" in result.output

    def test_invalid_settings_file(self, plop_project: Path):
        (plop_project / ".plopctl.yml").write_text("timeout_s: [\n")
        result = _invoke(["--root", str(plop_project), "list"])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestRootsCommand:
    def test_roots_json(self, tmp_path, make_project):
        make_project(tmp_path / "apps" / "web")
        make_project(tmp_path / "node_modules" / "dep")
        result = _invoke(["roots", str(tmp_path), "--json"])
        assert result.exit_code == 0
        assert [Path(p).name for p in json.loads(result.output)] == ["web"]

    def test_roots_none(self, tmp_path):
        result = _invoke(["roots", str(tmp_path)])
        assert "No Plop projects found" in result.output
