"""
Tests for engine output parsing.
"""

import json

import pytest

from plopctl.core.services.result_parser import (
    MSG_COMPLETED,
    MSG_FAILED,
    MSG_INVALID_RUN_JSON,
    default_run_message,
    parse_generator_description,
    parse_generator_list,
    parse_run_result,
)


class TestParseGeneratorList:
    def test_parses_entries(self, generators_json):
        result = parse_generator_list(generators_json)
        assert [g.name for g in result] == ["component", "store"]
        assert result[0].description == "React component"

    @pytest.mark.parametrize("stdout", ["", "   \n", None, "not json", "{}", "42"])
    def test_bad_output_is_empty(self, stdout):
        assert parse_generator_list(stdout) == []

    def test_missing_fields_become_empty_strings(self):
        result = parse_generator_list('[{"name": "a"}, {"description": "b"}, "junk"]')
        assert [(g.name, g.description) for g in result] == [("a", ""), ("", "b")]


class TestParseGeneratorDescription:
    def test_full_description(self):
        stdout = json.dumps({
            "name": "component",
            "description": "React component",
            "prompts": [
                {"type": "input", "name": "name", "message": "Component name?"},
                {"type": "list", "name": "style", "choices": ["css", "scss"], "default": "css"},
                {"type": "confirm", "name": "test", "default": True},
            ],
        })
        d = parse_generator_description(stdout, "component")
        assert d.name == "component"
        assert [p.type for p in d.prompts] == ["input", "list", "confirm"]
        assert d.prompts[1].choices == ["css", "scss"]
        assert d.prompts[2].default is True

    def test_empty_output_uses_requested_name(self):
        d = parse_generator_description("", "component")
        assert d.name == "component"
        assert d.prompts == []

    def test_malformed_json_uses_requested_name(self):
        d = parse_generator_description("{oops", "store")
        assert d.name == "store"
        assert d.description == ""
        assert d.prompts == []

    def test_not_found(self):
        d = parse_generator_description('{"found": false, "name": "x"}', "x")
        assert d.name == "x"
        assert d.prompts == []

    def test_prompt_missing_type_defaults_to_input(self):
        d = parse_generator_description('{"name": "g", "prompts": [{"name": "a"}]}')
        assert d.prompts[0].type == "input"

    def test_unknown_prompt_type_passed_through(self):
        d = parse_generator_description(
            '{"name": "g", "prompts": [{"type": "autocomplete", "name": "a"}]}'
        )
        assert d.prompts[0].type == "autocomplete"

    def test_duplicate_prompt_names_keep_first(self):
        stdout = json.dumps({
            "name": "g",
            "prompts": [
                {"name": "a", "message": "first"},
                {"name": "a", "message": "second"},
                {"name": "b"},
            ],
        })
        d = parse_generator_description(stdout)
        assert [p.message for p in d.prompts] == ["first", None]
        assert d.prompt_names() == ["a", "b"]

    def test_prompts_not_a_list(self):
        d = parse_generator_description('{"name": "g", "prompts": "nope"}')
        assert d.prompts == []

    def test_name_only(self):
        d = parse_generator_description('{"name": "x"}')
        assert d.name == "x"
        assert d.description == ""
        assert d.prompts == []


class TestParseRunResult:
    def test_changes_produce_default_message(self):
        r = parse_run_result('{"ok": true, "changes": [{"path": "a"}, {"path": "b"}]}')
        assert r.success is True
        assert r.changed_paths == ["a", "b"]
        assert r.message == "Plop: 2 file(s) generated"

    def test_success_spelling(self):
        r = parse_run_result('{"success": true, "message": "done"}')
        assert r.success is True
        assert r.message == "done"

    def test_ok_takes_precedence(self):
        assert parse_run_result('{"ok": false, "success": true}').success is False

    def test_non_boolean_ok_falls_back_to_success(self):
        assert parse_run_result('{"ok": "yes", "success": true}').success is True

    def test_neither_flag_is_failure(self):
        r = parse_run_result('{"message": ""}')
        assert r.success is False
        assert r.message == MSG_FAILED

    def test_success_without_changes(self):
        assert parse_run_result('{"ok": true}').message == MSG_COMPLETED

    def test_string_changes_and_alternate_keys(self):
        r = parse_run_result(json.dumps({
            "ok": True,
            "changes": ["x.js", {"file": "y.js"}, {"dest": "z.js"}, {"absPath": "/w.js"}, {}],
        }))
        assert r.changed_paths == ["x.js", "y.js", "z.js", "/w.js"]

    @pytest.mark.parametrize("stdout", ["", "not json", "[]"])
    def test_invalid_output(self, stdout):
        r = parse_run_result(stdout)
        assert r.success is False
        assert r.message == MSG_INVALID_RUN_JSON


class TestDefaultRunMessage:
    def test_messages(self):
        assert default_run_message(True, 3) == "Plop: 3 file(s) generated"
        assert default_run_message(True, 0) == MSG_COMPLETED
        assert default_run_message(False, 5) == MSG_FAILED
