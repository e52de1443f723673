"""Tests for ToolRegistry — directory loading, validation, snapshots, resolve."""

from __future__ import annotations

import pytest

from conftest import WEATHER_TOOL, write_tool
from tool_agent.errors import (
    DirectoryAccessError,
    FileImportError,
    InvalidToolError,
    ToolConfigurationError,
    ToolNotFoundError,
    ValidationError,
)
from tool_agent.tools.registry import ToolRegistry


def _schema_source(name: str, **function_fields) -> str:
    fields = {"name": name, **function_fields}
    symbol = "".join(c if c.isalnum() else "_" for c in name)
    return f"{symbol}_schema = {{'type': 'function', 'function': {fields!r}}}\n"


# -- tests ------------------------------------------------------------------

class TestLoad:
    def test_load_publishes_snapshot(self, tools_dir):
        registry = ToolRegistry()
        snapshot = registry.load(tools_dir)

        assert registry.snapshot is snapshot
        assert snapshot.names == ["add", "get_weather"]
        assert set(snapshot.implementations) == {"add", "get_weather"}
        assert registry.source == str(tools_dir)

    def test_non_python_entries_are_skipped(self, tools_dir):
        # README.md and the package.py directory would otherwise fail the scan
        snapshot = ToolRegistry().load(tools_dir)
        assert len(snapshot.definitions) == 2

    def test_imported_helpers_are_not_tools(self, registry):
        # math_tools.py imports json and os.path.join and defines _helper
        assert "join" not in registry.snapshot.implementations
        assert "_helper" not in registry.snapshot.implementations

    def test_snapshot_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.snapshot.implementations["evil"] = print  # type: ignore[index]

    def test_count_mismatch_keeps_previous_snapshot(self, registry, tools_dir):
        previous = registry.snapshot
        write_tool(tools_dir, "orphan.py", "def orphan(args):\n    return 'x'\n")

        with pytest.raises(ToolConfigurationError, match="Mismatch"):
            registry.load(tools_dir)

        assert registry.snapshot is previous

    def test_unmatched_definition_fails(self, tmp_path):
        write_tool(tmp_path, "tool.py", _schema_source("foo") + "def bar(args):\n    return 1\n")

        registry = ToolRegistry()
        with pytest.raises(ToolConfigurationError, match="Missing function implementation for tool: foo"):
            registry.load(tmp_path)
        assert registry.snapshot is None
        assert registry.source is None

    def test_unmatched_definition_keeps_previous_snapshot(self, registry, tmp_path):
        previous = registry.snapshot
        write_tool(tmp_path, "tool.py", _schema_source("foo") + "def bar(args):\n    return 1\n")

        with pytest.raises(ToolConfigurationError):
            registry.load(tmp_path)
        assert registry.snapshot is previous

    @pytest.mark.parametrize(
        "source, constraint",
        [
            (_schema_source("bad name!"), "function.name"),
            (_schema_source("x" * 65), "function.name"),
            (_schema_source("ok", description=42), "function.description"),
            (_schema_source("ok", strict="yes"), "function.strict"),
            (_schema_source("ok", parameters=None), "non-null object"),
            ("ok_schema = {'type': 'tool', 'function': {'name': 'ok'}}\n", "type"),
        ],
    )
    def test_invalid_definition_names_the_constraint(self, tmp_path, source, constraint):
        write_tool(tmp_path, "bad.py", source)

        with pytest.raises(InvalidToolError, match=constraint) as exc_info:
            ToolRegistry().load(tmp_path)
        assert exc_info.value.path.endswith("bad.py")

    def test_all_exports_must_be_tools(self, tmp_path):
        write_tool(tmp_path, "tool.py", "__all__ = ['VERSION']\nVERSION = 3\n")

        with pytest.raises(InvalidToolError, match="neither a function nor a tool definition"):
            ToolRegistry().load(tmp_path)

    def test_explicit_all_limits_exports(self, tmp_path):
        write_tool(
            tmp_path,
            "tool.py",
            "__all__ = ['ping', 'ping_schema']\n"
            + _schema_source("ping")
            + "def ping(args):\n    return 'pong'\n"
            + "def not_exported(args):\n    return None\n",
        )
        snapshot = ToolRegistry().load(tmp_path)
        assert set(snapshot.implementations) == {"ping"}

    def test_undefined_export_is_invalid_tool(self, tmp_path):
        write_tool(tmp_path, "tool.py", "__all__ = ['ghost']\n")

        with pytest.raises(InvalidToolError, match="Exported symbol is not defined") as exc_info:
            ToolRegistry().load(tmp_path)
        assert exc_info.value.symbol == "ghost"
        assert isinstance(exc_info.value.__cause__, AttributeError)

    def test_explicit_exports_accept_any_callable(self, tmp_path):
        write_tool(
            tmp_path,
            "tool.py",
            "import functools\n"
            "__all__ = ['scale', 'scale_schema', 'greet', 'greet_schema']\n"
            + _schema_source("scale")
            + _schema_source("greet")
            + "def _multiply(factor, args):\n    return args['x'] * factor\n"
            + "scale = functools.partial(_multiply, 3)\n"
            + "class _Greeter:\n    def __call__(self, args):\n        return 'hi ' + args['name']\n"
            + "greet = _Greeter()\n",
        )

        snapshot = ToolRegistry().load(tmp_path)

        assert snapshot.implementations["scale"]({"x": 2}) == 6
        assert snapshot.implementations["greet"]({"name": "Ada"}) == "hi Ada"

    def test_missing_directory(self, tmp_path):
        with pytest.raises(DirectoryAccessError, match="access the directory"):
            ToolRegistry().load(tmp_path / "nope")

    def test_import_failure_is_wrapped(self, tmp_path):
        write_tool(tmp_path, "broken.py", "raise RuntimeError('boom at import')\n")

        with pytest.raises(FileImportError) as exc_info:
            ToolRegistry().load(tmp_path)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_duplicate_names_last_loaded_wins(self, tmp_path):
        for filename, answer in (("a_first.py", "first"), ("b_second.py", "second")):
            write_tool(
                tmp_path,
                filename,
                _schema_source("get_time") + f"def get_time(args):\n    return {answer!r}\n",
            )

        snapshot = ToolRegistry().load(tmp_path)
        assert snapshot.names == ["get_time"]
        assert snapshot.implementations["get_time"]({}) == "second"

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            ToolRegistry().load("")


class TestResolve:
    def test_resolve_all_names_returns_all_schemas(self, registry):
        selection = registry.resolve(["get_weather", "add"])

        assert [d.name for d in selection.definitions] == ["get_weather", "add"]
        assert set(selection.implementations) == {"add", "get_weather"}

    def test_resolve_subset_still_returns_every_implementation(self, registry):
        selection = registry.resolve(["add"])
        assert [d.name for d in selection.definitions] == ["add"]
        assert "get_weather" in selection.implementations

    def test_all_missing_names_reported(self, registry):
        with pytest.raises(ToolNotFoundError) as exc_info:
            registry.resolve(["nope", "add", "missing"])

        assert exc_info.value.names == ["nope", "missing"]
        assert "nope, missing" in str(exc_info.value)

    def test_lazy_load_from_recorded_source(self, tools_dir):
        registry = ToolRegistry(source=tools_dir)
        assert registry.snapshot is None

        selection = registry.resolve(["get_weather"])

        assert selection.definitions[0].name == "get_weather"
        assert registry.snapshot is not None

    def test_no_source_configured(self):
        with pytest.raises(ValidationError, match="Tools directory path not set"):
            ToolRegistry().resolve(["get_weather"])


class TestRegister:
    def test_register_without_directory(self):
        registry = ToolRegistry()
        registry.register(
            {"type": "function", "function": {"name": "echo", "parameters": {"type": "object"}}},
            lambda args: args,
        )

        selection = registry.resolve(["echo"])
        assert selection.implementations["echo"]({"a": 1}) == {"a": 1}

    def test_register_publishes_new_snapshot(self, registry):
        previous = registry.snapshot
        registry.register(
            {"type": "function", "function": {"name": "echo"}},
            lambda args: args,
        )

        assert registry.snapshot is not previous
        assert "echo" not in previous.implementations
        assert registry.snapshot.names == ["add", "get_weather", "echo"]

    def test_register_invalid_definition(self, registry):
        previous = registry.snapshot
        with pytest.raises(ValidationError, match="function.name"):
            registry.register({"type": "function", "function": {"name": ""}}, lambda args: args)
        assert registry.snapshot is previous

    def test_register_requires_callable(self):
        with pytest.raises(ValidationError, match="callable"):
            ToolRegistry().register({"type": "function", "function": {"name": "x"}}, "not callable")

    def test_weather_fixture_source_is_valid(self, tmp_path):
        write_tool(tmp_path, "weather.py", WEATHER_TOOL)
        assert ToolRegistry().load(tmp_path).names == ["get_weather"]
