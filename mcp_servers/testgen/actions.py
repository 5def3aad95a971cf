"""
Action records and the per-session action log.

Two record shapes feed the script generator:

- DriverAction: produced by the driver while executing a tool. Carries the
  literal script lines that replay exactly what happened (e.g. the selector
  that actually matched).
- ToolCallAction: an orchestrator-level ``{name, arguments}`` pair, as planned
  by the language model. Translated to script lines per tool name.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Union


class ActionKind(str, Enum):
    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    INSPECT = "inspect"
    SEARCH = "search"
    CUSTOM = "custom"


def _freeze(data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True, slots=True)
class DriverAction:
    kind: ActionKind
    target: str
    extra: Mapping[str, Any] = field(default_factory=dict)
    source: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", _freeze(self.extra))
        object.__setattr__(self, "source", tuple(self.source))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "target": self.target,
            "extra": dict(self.extra),
            "source": list(self.source),
        }


@dataclass(frozen=True, slots=True)
class ToolCallAction:
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", _freeze(self.arguments))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": dict(self.arguments)}


ActionRecord = Union[DriverAction, ToolCallAction]


def coerce_action(obj: Any) -> ActionRecord:
    """
    Turn a wire-level mapping into an action record.

    ``{name, arguments}`` becomes a ToolCallAction; ``{kind, target, extra,
    source}`` (the shape of ``DriverAction.to_dict``) becomes a DriverAction.
    A ``custom`` record is how callers pass literal script lines.
    """
    if isinstance(obj, (DriverAction, ToolCallAction)):
        return obj
    if isinstance(obj, Mapping):
        if "kind" in obj and "name" not in obj:
            try:
                kind = ActionKind(obj["kind"])
            except ValueError:
                raise ValueError(f"Unknown action kind: {obj['kind']!r}") from None
            source = obj.get("source") or ()
            if isinstance(source, str) or not all(isinstance(line, str) for line in source):
                raise ValueError("Action source must be a list of script lines")
            extra = obj.get("extra")
            return DriverAction(
                kind,
                str(obj.get("target") or ""),
                extra if isinstance(extra, Mapping) else {},
                tuple(source),
            )
        name = obj.get("name")
        if isinstance(name, str) and name.strip():
            args = obj.get("arguments")
            return ToolCallAction(name=name.strip(), arguments=args if isinstance(args, Mapping) else {})
    raise ValueError(f"Not an action record: {obj!r}")


class ActionLog:
    """Append-only log of executed actions for one browser session."""

    def __init__(self) -> None:
        self._records: list[ActionRecord] = []

    def append(self, record: ActionRecord) -> None:
        self._records.append(record)

    def records(self) -> tuple[ActionRecord, ...]:
        return tuple(self._records)

    def clear(self) -> None:
        self._records = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ActionRecord]:
        return iter(tuple(self._records))
