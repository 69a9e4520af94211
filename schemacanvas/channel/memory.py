"""
In-memory collaboration channel for testing.

This module provides a hub that connects several peers editing the same
diagram inside one process, for:
- Unit and integration tests of convergence between sessions
- Local development without a real transport

Events cross the hub as encoded bytes, exactly as they would on a socket.

Invariants:
    - A sender never receives its own event
    - Peers only receive events for the diagram they joined
    - With auto_deliver=True, delivery is synchronous and in send order

How to change safely:
    - This is test-only infrastructure; keep it compatible with
      CollaborationChannel
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass

from ..errors import ChannelClosedError, EventDecodeError
from ..events.codec import decode_event, encode_event
from ..events.types import DiagramEvent
from .base import EventHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingDelivery:
    """An encoded event waiting to be handed to one recipient."""

    recipient: InMemoryChannel
    payload: bytes


class InMemoryChannel:
    """One peer's connection to an InMemoryHub.

    Attributes:
        hub: Hub this peer joined
        diagram_id: Diagram whose events this peer exchanges
        peer_id: Identifier of this peer within the hub
    """

    def __init__(self, hub: InMemoryHub, diagram_id: str, peer_id: str) -> None:
        self.hub = hub
        self.diagram_id = diagram_id
        self.peer_id = peer_id
        self._handler: EventHandler | None = None
        self._connected = True
        self.sent_count = 0
        self.received_count = 0

    @property
    def is_connected(self) -> bool:
        return self._connected

    def register(self, handler: EventHandler) -> None:
        self._handler = handler

    def send(self, event: DiagramEvent) -> None:
        if not self._connected:
            raise ChannelClosedError("Channel is closed", diagram_id=self.diagram_id)
        self.hub.publish(self, encode_event(event))
        self.sent_count += 1

    def close(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self.hub.leave(self)
        logger.debug(
            "Peer left hub",
            extra={"diagram_id": self.diagram_id, "peer_id": self.peer_id},
        )

    def deliver(self, payload: bytes) -> None:
        """Decode an inbound payload and hand it to the registered handler."""
        if not self._connected:
            return
        try:
            event = decode_event(payload)
        except EventDecodeError as e:
            logger.warning(
                f"Dropping undecodable event: {e}",
                extra={"diagram_id": self.diagram_id, "peer_id": self.peer_id},
            )
            return
        if self._handler is None:
            logger.debug("No handler registered, dropping event", extra={"peer_id": self.peer_id})
            return
        self.received_count += 1
        self._handler(event)


class InMemoryHub:
    """Routes events between in-process peers.

    Example:
        >>> hub = InMemoryHub()
        >>> alice = hub.join("diagram-1", "alice")
        >>> bob = hub.join("diagram-1", "bob")
        >>> bob.register(print)
        >>> alice.send(event)  # bob's handler is called

    With ``auto_deliver=False`` deliveries queue up in ``pending`` so tests
    can reorder, duplicate or drop them before calling ``flush()``.
    """

    def __init__(self, auto_deliver: bool = True) -> None:
        self.auto_deliver = auto_deliver
        self._peers: dict[str, list[InMemoryChannel]] = defaultdict(list)
        self._ids = itertools.count(1)
        self.pending: list[PendingDelivery] = []

    def join(self, diagram_id: str, peer_id: str | None = None) -> InMemoryChannel:
        """Connect a new peer to a diagram."""
        channel = InMemoryChannel(self, diagram_id, peer_id or f"peer-{next(self._ids)}")
        self._peers[diagram_id].append(channel)
        logger.debug(
            "Peer joined hub",
            extra={"diagram_id": diagram_id, "peer_id": channel.peer_id},
        )
        return channel

    def leave(self, channel: InMemoryChannel) -> None:
        peers = self._peers.get(channel.diagram_id, [])
        if channel in peers:
            peers.remove(channel)
        self.pending = [p for p in self.pending if p.recipient is not channel]

    def peers(self, diagram_id: str) -> list[InMemoryChannel]:
        return list(self._peers.get(diagram_id, []))

    def publish(self, sender: InMemoryChannel, payload: bytes) -> None:
        """Fan a payload out to every other peer of the sender's diagram."""
        recipients = [p for p in self._peers.get(sender.diagram_id, []) if p is not sender]
        for recipient in recipients:
            if self.auto_deliver:
                recipient.deliver(payload)
            else:
                self.pending.append(PendingDelivery(recipient, payload))

    def flush(self, reverse: bool = False) -> int:
        """Deliver every queued payload.

        Args:
            reverse: Deliver newest first, to simulate reordering

        Returns:
            Number of deliveries made
        """
        batch, self.pending = self.pending, []
        if reverse:
            batch.reverse()
        for item in batch:
            item.recipient.deliver(item.payload)
        return len(batch)

    def redeliver(self, item: PendingDelivery) -> None:
        """Deliver a payload again, to simulate at-least-once duplicates."""
        item.recipient.deliver(item.payload)
