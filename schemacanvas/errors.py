"""
Error types for SchemaCanvas.

Most failure modes in the diagram core are deliberately silent: stale
references, history underflow and incomplete generator input all degrade to
no-ops or minimal output. The exceptions below cover the remaining cases:
- SchemaCanvasError: Base exception
- EventDecodeError: Wire payload is not a valid event
- DiagramFormatError: Persistence payload cannot be parsed
- ChannelError / ChannelClosedError: Collaboration transport misuse

Invariants:
    - All errors inherit from SchemaCanvasError
    - Errors carry a stable code plus a details dict for debugging
"""

from __future__ import annotations

from typing import Any


class SchemaCanvasError(Exception):
    """Base exception for all SchemaCanvas errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SCHEMACANVAS_ERROR"
        self.details = details or {}


class EventDecodeError(SchemaCanvasError):
    """A wire payload could not be turned into an event.

    Raised when:
    - The ``type`` tag is missing or unknown
    - A variant-specific field is missing
    """

    def __init__(
        self,
        message: str,
        event_type: str | None = None,
        missing: list[str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code="EVENT_DECODE_ERROR",
            details={"event_type": event_type, "missing": missing or []},
        )
        self.event_type = event_type
        self.missing = missing or []


class DiagramFormatError(SchemaCanvasError):
    """A persisted diagram could not be parsed."""

    def __init__(self, message: str, source_format: str | None = None) -> None:
        super().__init__(
            message,
            code="DIAGRAM_FORMAT_ERROR",
            details={"format": source_format},
        )
        self.source_format = source_format


class ChannelError(SchemaCanvasError):
    """Collaboration channel failure."""

    def __init__(self, message: str, diagram_id: str | None = None) -> None:
        super().__init__(
            message,
            code="CHANNEL_ERROR",
            details={"diagram_id": diagram_id},
        )
        self.diagram_id = diagram_id


class ChannelClosedError(ChannelError):
    """Operation attempted on a channel that has been closed."""

    pass
