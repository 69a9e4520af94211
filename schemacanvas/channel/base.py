"""
Collaboration channel protocol.

The channel is the bidirectional transport between collaborators editing the
same diagram. The core only needs two things from it: a way to publish a
locally-originated event, and a registration point for inbound events.

Delivery contract assumed by the core:
    - At-least-once delivery to connected peers
    - No ordering guarantee across peers
    - No echo of an event back to its sender
    - Retries and dropped sends are the transport's business

How to change safely:
    - Transports must implement CollaborationChannel
    - Inbound payloads must go through events.codec so all peers agree on
      the wire format
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Callable, Protocol, runtime_checkable

from ..events.types import DiagramEvent

EventHandler = Callable[[DiagramEvent], None]


@runtime_checkable
class CollaborationChannel(Protocol):
    """Protocol for collaboration transports.

    Example:
        >>> channel = hub.join("diagram-1")
        >>> channel.register(dispatcher.receive)
        >>> channel.send(event)
    """

    @abstractmethod
    def send(self, event: DiagramEvent) -> None:
        """Publish a locally-originated event to the other peers.

        Fire-and-forget: returns once the event is handed to the transport.

        Raises:
            ChannelClosedError: If the channel has been closed
        """
        ...

    @abstractmethod
    def register(self, handler: EventHandler) -> None:
        """Set the callback invoked for every inbound remote event."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Leave the session; no further events are sent or received."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the channel can still send and receive."""
        ...
