"""
Collaboration channel abstraction for SchemaCanvas.

This module provides the transport contract between collaborators:
- CollaborationChannel protocol (send + inbound registration)
- In-memory hub for tests and local development

Invariants:
    - The core never retries; delivery is the transport's concern
    - Inbound events are applied without snapshotting or re-broadcast
"""

from .base import CollaborationChannel, EventHandler
from .memory import InMemoryChannel, InMemoryHub, PendingDelivery

__all__ = [
    # Protocol and types
    "CollaborationChannel",
    "EventHandler",
    # Implementations
    "InMemoryHub",
    "InMemoryChannel",
    "PendingDelivery",
]
