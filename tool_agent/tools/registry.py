"""Tool registry — validated, immutable snapshots of definitions + implementations."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from pydantic import ValidationError as PydanticValidationError

from tool_agent.engine.models import ToolDefinition, describe_validation_error
from tool_agent.errors import ToolConfigurationError, ToolNotFoundError, ValidationError
from tool_agent.tools.loader import parse_definition, scan_directory

logger = logging.getLogger(__name__)

ToolImplementation = Callable[..., Any]


@dataclass(frozen=True)
class ToolSnapshot:
    """Point-in-time view of the registry. Never mutated after publication."""

    definitions: tuple[ToolDefinition, ...] = ()
    implementations: Mapping[str, ToolImplementation] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, name: str) -> ToolDefinition | None:
        return next((d for d in self.definitions if d.name == name), None)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self.definitions]


@dataclass(frozen=True)
class ToolSelection:
    """Result of ``resolve``: the requested schemas and the full implementation map."""

    definitions: list[ToolDefinition]
    implementations: Mapping[str, ToolImplementation]


def validate_tool_configuration(
    definitions: Mapping[str, ToolDefinition],
    implementations: Mapping[str, ToolImplementation],
) -> None:
    if len(definitions) != len(implementations):
        raise ToolConfigurationError(
            f"Mismatch between number of function definitions ({len(definitions)}) "
            f"and implementations ({len(implementations)})"
        )
    missing = [name for name in definitions if name not in implementations]
    if missing:
        raise ToolConfigurationError(
            f"Missing function implementation for tool: {', '.join(missing)}"
        )


class ToolRegistry:
    """Holds exactly one active ``ToolSnapshot``.

    Writers (``load``, ``register``) build and validate a complete snapshot
    before swapping the reference, so a failed write leaves the previous
    snapshot in place and readers never see a half-built one.
    """

    def __init__(self, source: str | os.PathLike[str] | None = None) -> None:
        self._snapshot: ToolSnapshot | None = None
        self._source: str | None = os.fspath(source) if source else None
        self._write_lock = threading.Lock()

    @property
    def snapshot(self) -> ToolSnapshot | None:
        return self._snapshot

    @property
    def source(self) -> str | None:
        return self._source

    # -- loading -------------------------------------------------------------

    def load(self, source: str | os.PathLike[str]) -> ToolSnapshot:
        """Scan *source*, validate, and publish a new snapshot."""
        source = os.fspath(source)
        if not source:
            raise ValidationError("Tools directory path required.")

        with self._write_lock:
            scanned = scan_directory(source)
            validate_tool_configuration(scanned.definitions, scanned.implementations)
            snapshot = ToolSnapshot(
                definitions=tuple(scanned.definitions.values()),
                implementations=MappingProxyType(dict(scanned.implementations)),
            )
            self._snapshot = snapshot
            self._source = source

        logger.info("Loaded %d tool(s) from %s: %s", len(snapshot.definitions), source, snapshot.names)
        return snapshot

    def register(
        self,
        definition: ToolDefinition | Mapping[str, Any],
        implementation: ToolImplementation,
    ) -> ToolSnapshot:
        """Add or replace one tool without touching the filesystem."""
        try:
            parsed = parse_definition(definition)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid tool definition: {describe_validation_error(exc)}") from exc
        if not callable(implementation):
            raise ValidationError(f"Implementation for tool {parsed.name} must be callable")

        with self._write_lock:
            current = self._snapshot or ToolSnapshot()
            definitions = {d.name: d for d in current.definitions}
            implementations = dict(current.implementations)
            definitions[parsed.name] = parsed
            implementations[parsed.name] = implementation
            validate_tool_configuration(definitions, implementations)
            snapshot = ToolSnapshot(
                definitions=tuple(definitions.values()),
                implementations=MappingProxyType(implementations),
            )
            self._snapshot = snapshot

        logger.info("Registered tool %s", parsed.name)
        return snapshot

    # -- lookup --------------------------------------------------------------

    def resolve(self, names: list[str]) -> ToolSelection:
        """Return the schemas for *names* (in order) plus every implementation.

        Loads lazily from the recorded source when nothing is published yet.
        All unknown names are reported together.
        """
        snapshot = self._snapshot
        if snapshot is None:
            if not self._source:
                raise ValidationError(
                    "Tools directory path not set. Call load() with your tools directory path first."
                )
            snapshot = self.load(self._source)

        selected: list[ToolDefinition] = []
        missing: list[str] = []
        for name in names:
            definition = snapshot.get(name)
            if definition is None:
                missing.append(name)
            else:
                selected.append(definition)
        if missing:
            raise ToolNotFoundError(missing)

        return ToolSelection(definitions=selected, implementations=snapshot.implementations)
