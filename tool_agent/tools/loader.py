"""Directory scanner — imports ``*.py`` tool files and classifies their exports.

A tool file exports plain functions (implementations) and dicts shaped like
OpenAI tool schemas (definitions). Example::

    get_weather_schema = {
        "type": "function",
        "function": {"name": "get_weather", "parameters": {...}},
    }

    async def get_weather(args: dict) -> str: ...

The implementation is keyed by its symbol name, the definition by
``function.name``; the two must match.
"""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from tool_agent.engine.models import ToolDefinition, describe_validation_error
from tool_agent.errors import (
    DirectoryAccessError,
    FileImportError,
    FileReadError,
    InvalidToolError,
)

logger = logging.getLogger(__name__)

MODULE_NAMESPACE = "tool_agent_sources"


@dataclass
class ScanResult:
    definitions: dict[str, ToolDefinition] = field(default_factory=dict)
    implementations: dict[str, Callable[..., Any]] = field(default_factory=dict)


def parse_definition(value: Any) -> ToolDefinition:
    """Validate a raw schema dict. Raises pydantic's ValidationError."""
    if isinstance(value, ToolDefinition):
        return value
    return ToolDefinition.model_validate(value)


def scan_directory(dir_path: str | os.PathLike[str]) -> ScanResult:
    """Import every eligible file under *dir_path* (non-recursive).

    Later files override earlier ones on name clashes; files are visited in
    sorted order so the outcome is deterministic.
    """
    path = Path(dir_path)
    if not path.is_dir():
        raise DirectoryAccessError(str(path))

    try:
        entries = sorted(path.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise FileReadError(str(path)) from exc

    result = ScanResult()
    for entry in entries:
        if entry.suffix != ".py":
            continue
        try:
            if not entry.is_file():
                continue
        except OSError as exc:
            raise FileReadError(str(entry)) from exc

        module = _import_file(entry)
        explicit = hasattr(module, "__all__")
        for name, value in _exports(entry, module):
            _classify(entry, name, value, result, explicit=explicit)

    return result


def _import_file(file_path: Path) -> ModuleType:
    digest = hashlib.sha1(str(file_path.resolve()).encode()).hexdigest()[:12]
    module_name = f"{MODULE_NAMESPACE}.{file_path.stem}_{digest}"
    try:
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"no loader for {file_path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise FileImportError(str(file_path)) from exc
    return module


def _exports(file_path: Path, module: ModuleType) -> list[tuple[str, Any]]:
    """``__all__`` when declared, else public functions defined here and dicts."""
    explicit = getattr(module, "__all__", None)
    if explicit is not None:
        out = []
        for name in explicit:
            try:
                out.append((name, getattr(module, name)))
            except AttributeError as exc:
                raise InvalidToolError(str(file_path), name, "Exported symbol is not defined") from exc
        return out

    out: list[tuple[str, Any]] = []
    for name, value in vars(module).items():
        if name.startswith("_"):
            continue
        if inspect.isfunction(value) and value.__module__ == module.__name__:
            out.append((name, value))
        elif isinstance(value, dict):
            out.append((name, value))
    return out


def _classify(file_path: Path, name: str, value: Any, result: ScanResult, *, explicit: bool = False) -> None:
    # declared exports may be any callable (partials, callable instances)
    if inspect.isfunction(value) or (explicit and callable(value)):
        if name in result.implementations:
            logger.warning("Duplicate tool implementation %s in %s overrides earlier one", name, file_path)
        result.implementations[name] = value
        return

    if not isinstance(value, (dict, ToolDefinition)):
        raise InvalidToolError(str(file_path), name, "Export is neither a function nor a tool definition")

    try:
        definition = parse_definition(value)
    except PydanticValidationError as exc:
        raise InvalidToolError(
            str(file_path), name, f"Invalid tool definition: {describe_validation_error(exc)}"
        ) from exc

    if definition.name in result.definitions:
        logger.warning("Duplicate tool definition %s in %s overrides earlier one", definition.name, file_path)
    result.definitions[definition.name] = definition
