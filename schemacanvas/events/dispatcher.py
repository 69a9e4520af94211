"""
Event dispatcher for SchemaCanvas.

The EventDispatcher is the only component that changes a diagram. It:
1. Optionally snapshots the current state for undo
2. Stamps local events with diagram id, actor id and timestamp
3. Applies the event through the pure reducer
4. Forwards local events to the collaboration channel

Remote events arrive through receive(): they keep their original stamps and
are applied once, with no snapshot and no outbound echo.

Invariants:
    - Events are applied in the order dispatch()/receive() is called
    - A dispatch issued while another is running is queued, never nested
    - The snapshot for an event is taken strictly before it is applied
    - The dispatcher does not deduplicate; stale events are reducer no-ops

How to change safely:
    - Keep dispatch() synchronous; the core has no suspension points
    - Never call the channel before the local state is updated
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from ..errors import ChannelError
from ..model.diagram import DiagramModel
from .reducer import reduce
from .types import DiagramEvent, now_ms

if TYPE_CHECKING:
    from ..channel.base import CollaborationChannel
    from ..history.stack import HistoryStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _QueuedEvent:
    event: DiagramEvent
    should_snapshot: bool
    rebroadcast: bool
    remote: bool


class EventDispatcher:
    """Single mutation entry point for one diagram.

    Attributes:
        model: Diagram state being mutated
        history: Undo/redo stack, or None to disable snapshots
        channel: Outbound collaboration channel, or None when offline
        actor_id: Actor stamped on locally-originated events

    Thread safety:
        Not thread-safe. One dispatcher per diagram, driven from one thread.

    Example:
        >>> dispatcher = EventDispatcher(model, history, channel, actor_id="user:42")
        >>> dispatcher.dispatch(EntityDeleted(entity_id="t1"))
    """

    def __init__(
        self,
        model: DiagramModel,
        history: HistoryStack | None = None,
        channel: CollaborationChannel | None = None,
        actor_id: str = "local",
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.model = model
        self.history = history
        self.channel = channel
        self.actor_id = actor_id
        self._clock = clock

        self._queue: deque[_QueuedEvent] = deque()
        self._dispatching = False
        self._applied_count = 0
        self._noop_count = 0
        self._remote_count = 0
        self._dropped_count = 0

    def dispatch(
        self,
        event: DiagramEvent,
        should_snapshot: bool = True,
        rebroadcast: bool = True,
    ) -> None:
        """Apply a locally-originated event.

        Args:
            event: Event to apply; its envelope is overwritten
            should_snapshot: Push an undo snapshot first. Pass False for
                continuous input such as per-keystroke renames.
            rebroadcast: Forward the event to the collaboration channel
        """
        self._enqueue(_QueuedEvent(event, should_snapshot, rebroadcast, remote=False))

    def receive(self, event: DiagramEvent) -> None:
        """Apply a remote event delivered by the collaboration channel.

        Equivalent to dispatch(event, should_snapshot=False, rebroadcast=False)
        except that the event keeps its original stamps.
        """
        self._enqueue(_QueuedEvent(event, should_snapshot=False, rebroadcast=False, remote=True))

    def _enqueue(self, item: _QueuedEvent) -> None:
        self._queue.append(item)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                self._process(self._queue.popleft())
        finally:
            self._dispatching = False

    def _process(self, item: _QueuedEvent) -> None:
        event = item.event

        if item.remote:
            if event.diagram_id and event.diagram_id != self.model.diagram_id:
                self._dropped_count += 1
                logger.warning(
                    "Dropping event for another diagram",
                    extra={
                        "diagram_id": self.model.diagram_id,
                        "event_diagram_id": event.diagram_id,
                        "event_type": event.type.value,
                    },
                )
                return
            self._remote_count += 1
        else:
            event = event.stamped(self.model.diagram_id, self.actor_id, self._clock())

        if item.should_snapshot and self.history is not None:
            self.history.snapshot()

        before = self.model.state
        self.model.state = reduce(before, event)

        if self.model.state is before:
            self._noop_count += 1
        else:
            self._applied_count += 1

        logger.debug(
            "Applied event",
            extra={
                "diagram_id": self.model.diagram_id,
                "event_type": event.type.value,
                "actor_id": event.actor_id,
                "remote": item.remote,
            },
        )

        if item.rebroadcast and self.channel is not None:
            try:
                self.channel.send(event)
            except ChannelError as e:
                logger.warning(
                    f"Failed to send event: {e}",
                    extra={"diagram_id": self.model.diagram_id, "event_type": event.type.value},
                )

    @property
    def stats(self) -> dict[str, Any]:
        """Get dispatcher statistics."""
        return {
            "applied_count": self._applied_count,
            "noop_count": self._noop_count,
            "remote_count": self._remote_count,
            "dropped_count": self._dropped_count,
        }
