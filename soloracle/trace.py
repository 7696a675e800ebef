"""Event trace — the ground truth compared against compiled-execution output."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from . import constants
from .values import BoolValue, IntegerValue

logger = logging.getLogger(__name__)


def value_to_json(value: Any) -> Any:
    """External (JSON) representation of an evaluated Value."""
    if isinstance(value, BoolValue):
        return value.value
    if isinstance(value, IntegerValue):
        return value.value
    raise TypeError(f"No JSON representation for {value!r}")


class EmittedEvent(BaseModel):
    """One emitted event; ``args`` holds (slot, Value) pairs in declaration order."""

    model_config = ConfigDict(frozen=True)

    event: str
    args: list[tuple[str, Any]] = []

    def to_json_object(self) -> dict[str, Any]:
        return {
            constants.TRACE_EVENT_KEY: self.event,
            constants.TRACE_ARGS_KEY: {slot: value_to_json(v) for slot, v in self.args},
        }


class TraceSink:
    """Ordered list of emitted events, serialized once at the end of a run."""

    def __init__(self):
        self._events: list[EmittedEvent] = []

    @property
    def events(self) -> tuple[EmittedEvent, ...]:
        return tuple(self._events)

    def record(self, event: EmittedEvent):
        self._events.append(event)

    def truncate(self, length: int):
        """Drop every event recorded after the first *length* ones."""
        del self._events[length:]

    def clear(self):
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def to_json(self) -> str:
        return json.dumps([e.to_json_object() for e in self._events], indent=2)

    def write(self, path: str | Path):
        Path(path).write_text(self.to_json() + "\n", encoding="utf-8")
        logger.info("Wrote %d events to %s", len(self._events), path)
