"""Normalize event query results into a flat list of ``EventRecord``.

The events endpoints answer in one of two shapes: an object wrapping the
records under ``items`` (a Kubernetes ``EventList``), or a bare list of
records. Anything else is reported as ``MalformedEventsError`` rather than
being passed off as "no events".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .documents import parse
from .errors import MalformedEventsError, ParseError

TIMESTAMP_FALLBACKS = ("lastTimestamp", "eventTime", "firstTimestamp")


@dataclass(frozen=True)
class EventRecord:
    """A single event, reduced to the fields shown to the model."""

    type: str = ""
    reason: str = ""
    message: str = ""
    timestamp: str = ""

    @classmethod
    def from_mapping(cls, raw: Any) -> "EventRecord":
        """Project a raw event onto the canonical fields.

        Unknown fields are dropped. Non-mapping input yields an empty record.
        """
        if not isinstance(raw, dict):
            return cls()

        timestamp = raw.get("timestamp")
        if timestamp in (None, ""):
            for key in TIMESTAMP_FALLBACKS:
                if raw.get(key) not in (None, ""):
                    timestamp = raw[key]
                    break

        return cls(
            type=_text(raw.get("type")),
            reason=_text(raw.get("reason")),
            message=_text(raw.get("message")),
            timestamp=_text(timestamp),
        )

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type,
            "reason": self.reason,
            "message": self.message,
            "timestamp": self.timestamp,
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _wrapped_list(raw: Any) -> Optional[list]:
    if isinstance(raw, dict) and "items" in raw:
        items = raw["items"]
        if items is None:
            return []
        if isinstance(items, list):
            return items
    return None


def _direct_list(raw: Any) -> Optional[list]:
    if isinstance(raw, list):
        return raw
    return None


# Tried in order; the first recognizer returning a list wins.
SHAPE_RECOGNIZERS: tuple[Callable[[Any], Optional[list]], ...] = (
    _wrapped_list,
    _direct_list,
)


def normalize(raw: Any) -> list[EventRecord]:
    """Normalize an events payload.

    Args:
        raw: Decoded JSON, or JSON text / bytes which is parsed first.

    Returns:
        Event records in payload order.

    Raises:
        MalformedEventsError: if the payload matches no known shape.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = parse(raw)
        except ParseError as e:
            raise MalformedEventsError(f"events payload is not JSON: {e}") from e

    for recognize in SHAPE_RECOGNIZERS:
        items = recognize(raw)
        if items is not None:
            return [EventRecord.from_mapping(item) for item in items]

    raise MalformedEventsError(
        f"unrecognized events payload of type {type(raw).__name__}"
    )
