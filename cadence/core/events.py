"""
Diagnostic events for Cadence.

The protocol layer never logs decode problems directly. Instead it hands
structured events to a caller-supplied sink, so applications decide where
forward-compatibility warnings and connection notices end up.

Event types:
- connection.connected: Greeting received from the server
- connection.reconnect: A reconnect attempt is about to be made
- decode.discarded_line: A reply line without a "key: value" shape was ignored
- decode.unknown_keys: Reply fields left over after materializing an entity
- decode.malformed_field: A field failed to parse and fell back to its default

Usage:
    from cadence.core.events import DiagnosticBus

    bus = DiagnosticBus()
    bus.subscribe("decode.*", lambda event: print(event.to_dict()))

    client = MpdClient(sink=bus)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Type alias for event sinks and bus handlers
DiagnosticSink = Callable[["Event"], None]


@dataclass
class Event:
    """Base class for all diagnostic events."""

    event_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {"type": self.event_type}


@dataclass
class ConnectedEvent(Event):
    """Fired when the server greeting has been read."""

    event_type: str = field(default="connection.connected", init=False)
    address: str = ""
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "address": self.address,
            "version": self.version,
        }


@dataclass
class ReconnectEvent(Event):
    """Fired right before a reconnect attempt."""

    event_type: str = field(default="connection.reconnect", init=False)
    address: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "address": self.address,
        }


@dataclass
class DiscardedLineEvent(Event):
    """Fired when a reply line is ignored."""

    event_type: str = field(default="decode.discarded_line", init=False)
    line: str = ""
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "line": self.line,
            "reason": self.reason,
        }


@dataclass
class UnknownKeysEvent(Event):
    """Fired when fields remain after an entity was fully extracted."""

    event_type: str = field(default="decode.unknown_keys", init=False)
    entity: str = ""
    fields: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "entity": self.entity,
            "fields": self.fields,
        }


@dataclass
class MalformedFieldEvent(Event):
    """Fired when a non-essential field failed to parse and was defaulted."""

    event_type: str = field(default="decode.malformed_field", init=False)
    entity: str = ""
    key: str = ""
    value: str = ""
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "entity": self.entity,
            "key": self.key,
            "value": self.value,
            "error": self.error,
        }


def log_event(event: Event) -> None:
    """
    Default sink: forward an event to the standard logging system.

    Decode problems are warnings, connection notices are debug output.
    """
    if event.event_type.startswith("decode."):
        logger.warning("%s: %s", event.event_type, event.to_dict())
    else:
        logger.debug("%s: %s", event.event_type, event.to_dict())


def null_sink(event: Event) -> None:
    """Sink that drops every event."""
    return None


class DiagnosticBus:
    """
    Simple synchronous pub/sub sink.

    Supports:
    - Multiple handlers per event type
    - Wildcard subscriptions (e.g., "decode.*")
    - Error isolation (one handler failing doesn't affect others)

    An instance is itself a valid sink and can be passed to MpdClient.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[DiagnosticSink]] = {}

    def subscribe(self, event_type: str, handler: DiagnosticSink) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event type to subscribe to. Use ".*" suffix for wildcards.
            handler: Function to call when an event is published.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed to %s: %s", event_type, handler)

    def unsubscribe(self, event_type: str, handler: DiagnosticSink) -> bool:
        """
        Unsubscribe a handler from an event type.

        Returns True if handler was found and removed.
        """
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed from %s: %s", event_type, handler)
            return True
        return False

    def publish(self, event: Event) -> int:
        """
        Publish an event to all subscribed handlers.

        Args:
            event: The event to publish.

        Returns:
            Number of handlers that received the event.
        """
        event_type = event.event_type
        matching_handlers: list[DiagnosticSink] = []

        for pattern, handlers in self._handlers.items():
            if pattern == event_type or pattern == "*":
                matching_handlers.extend(handlers)
            elif pattern.endswith(".*") and event_type.startswith(pattern[:-1]):
                matching_handlers.extend(handlers)

        handlers_called = 0
        for handler in matching_handlers:
            try:
                handler(event)
                handlers_called += 1
            except Exception as e:
                logger.exception("Error in diagnostic handler for %s: %s", event_type, e)

        return handlers_called

    def __call__(self, event: Event) -> None:
        self.publish(event)

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
