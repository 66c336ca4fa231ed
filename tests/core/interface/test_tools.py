"""Tests for tool declaration and tool choice formatting."""

import logging

import pytest

from genai_bridge.core.interface.tools import (
    FunctionTool,
    InteractionsTool,
    StandardTool,
    coerce_tool,
    format_interactions_tool_choice,
    format_interactions_tools,
    format_standard_tool_config,
    format_standard_tools,
)

WEATHER_PARAMS = {"type": "object", "properties": {"city": {"type": "string"}}}


class TestCoerceTool:
    def test_openai_style(self) -> None:
        tool = coerce_tool(
            {"type": "function", "function": {"name": "weather", "description": "d", "parameters": WEATHER_PARAMS}}
        )
        assert tool == FunctionTool(name="weather", description="d", parameters=WEATHER_PARAMS)

    def test_bare_declaration(self) -> None:
        assert coerce_tool({"name": "weather"}) == FunctionTool(name="weather")

    def test_standard_builtin(self) -> None:
        assert coerce_tool({"googleSearch": {}}) == StandardTool(spec={"googleSearch": {}})

    def test_interactions_builtin(self) -> None:
        assert coerce_tool({"type": "google_search"}) == InteractionsTool(spec={"type": "google_search"})

    def test_interactions_function(self) -> None:
        tool = coerce_tool({"type": "function", "name": "f"})
        assert isinstance(tool, InteractionsTool)

    def test_tagged_dict(self) -> None:
        assert coerce_tool({"kind": "function", "name": "f"}) == FunctionTool(name="f")

    def test_invalid_tagged_dict(self) -> None:
        assert coerce_tool({"kind": "function"}) is None

    def test_unrecognized(self) -> None:
        assert coerce_tool({"type": "mystery"}) is None
        assert coerce_tool("search") is None


class TestFormatStandardTools:
    def test_none(self) -> None:
        assert format_standard_tools(None) is None
        assert format_standard_tools([]) is None

    def test_functions_collected(self) -> None:
        result = format_standard_tools(
            [FunctionTool(name="a", parameters=WEATHER_PARAMS), {"name": "b", "description": "bee"}]
        )
        assert result == [
            {
                "functionDeclarations": [
                    {"name": "a", "parameters": WEATHER_PARAMS},
                    {"name": "b", "description": "bee"},
                ]
            }
        ]

    def test_builtins_first(self) -> None:
        result = format_standard_tools([{"name": "a"}, {"codeExecution": {}}])
        assert result == [{"codeExecution": {}}, {"functionDeclarations": [{"name": "a"}]}]

    def test_interactions_builtin_converted(self) -> None:
        assert format_standard_tools([{"type": "url_context"}]) == [{"urlContext": {}}]

    def test_unrecognized_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            result = format_standard_tools([{"type": "mystery"}, {"name": "a"}])
        assert result == [{"functionDeclarations": [{"name": "a"}]}]
        assert "Skipping unrecognized tool" in caplog.text


class TestFormatInteractionsTools:
    def test_function(self) -> None:
        result = format_interactions_tools([FunctionTool(name="a", description="d", parameters=WEATHER_PARAMS)])
        assert result == [{"type": "function", "name": "a", "description": "d", "parameters": WEATHER_PARAMS}]

    def test_standard_expanded(self) -> None:
        result = format_interactions_tools(
            [{"functionDeclarations": [{"name": "a"}, {"name": "b"}]}, {"googleSearch": {}}]
        )
        assert result == [
            {"type": "function", "name": "a"},
            {"type": "function", "name": "b"},
            {"type": "google_search"},
        ]

    def test_pass_through(self) -> None:
        assert format_interactions_tools([{"type": "code_execution"}]) == [{"type": "code_execution"}]

    def test_nameless_declaration_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        tools = [
            {"type": "function", "name": "ok"},
            {"functionDeclarations": [{"description": "no name"}, "bogus", {"name": "kept"}]},
        ]
        with caplog.at_level(logging.WARNING):
            result = format_interactions_tools(tools)
        assert result == [{"type": "function", "name": "ok"}, {"type": "function", "name": "kept"}]
        assert "without a name" in caplog.text


class TestStandardToolConfig:
    def test_string_modes(self) -> None:
        assert format_standard_tool_config("auto") == {"functionCallingConfig": {"mode": "AUTO"}}
        assert format_standard_tool_config("ANY") == {"functionCallingConfig": {"mode": "ANY"}}

    def test_explicit_config_wins(self) -> None:
        config = {"functionCallingConfig": {"mode": "NONE"}}
        assert format_standard_tool_config("auto", config) == config

    def test_mode_dict_wrapped(self) -> None:
        result = format_standard_tool_config({"mode": "ANY", "allowedFunctionNames": ["f"]})
        assert result == {"functionCallingConfig": {"mode": "ANY", "allowedFunctionNames": ["f"]}}

    def test_interactions_choice_translated(self) -> None:
        result = format_standard_tool_config({"allowed_tools": {"mode": "any", "tools": ["f"]}})
        assert result == {"functionCallingConfig": {"mode": "ANY", "allowedFunctionNames": ["f"]}}

    def test_unrecognized(self) -> None:
        assert format_standard_tool_config("sometimes") is None
        assert format_standard_tool_config(None) is None


class TestInteractionsToolChoice:
    def test_string(self) -> None:
        assert format_interactions_tool_choice("any") == {"allowed_tools": {"mode": "any"}}

    def test_standard_config_translated(self) -> None:
        result = format_interactions_tool_choice(
            {"functionCallingConfig": {"mode": "ANY", "allowedFunctionNames": ["f"]}}
        )
        assert result == {"allowed_tools": {"mode": "any", "tools": ["f"]}}

    def test_tool_config_fallback(self) -> None:
        result = format_interactions_tool_choice(None, {"functionCallingConfig": {"mode": "NONE"}})
        assert result == {"allowed_tools": {"mode": "none"}}

    def test_pass_through(self) -> None:
        choice = {"allowed_tools": {"mode": "validated"}}
        assert format_interactions_tool_choice(choice) == choice

    def test_unrecognized(self) -> None:
        assert format_interactions_tool_choice("sometimes") is None
        assert format_interactions_tool_choice(None) is None
