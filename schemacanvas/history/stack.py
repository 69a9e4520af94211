"""
Undo/redo history over diagram snapshots.

Callers take a snapshot *before* a mutation they want to be individually
reversible. Continuous input (typing a name) snapshots once on focus rather
than per keystroke; discrete toggles snapshot every time.

Invariants:
    - len(past) <= max_depth; the oldest snapshot is evicted first
    - snapshot() clears the future stack
    - undo() followed by redo() restores the state present before undo()
    - Only entities and relationships are restored; selection and metadata
      are left as they are

How to change safely:
    - Snapshots must stay immutable; HistorySnapshot holds frozen records
    - Snapshotting after mutating is a caller bug (undo would replay the
      mutated state), not something this class can detect
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace

from ..model.diagram import DiagramModel, DiagramState
from ..model.types import Entity, Relationship

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 50


@dataclass(frozen=True)
class HistorySnapshot:
    """Entities and relationships at one point in time."""

    entities: tuple[Entity, ...]
    relationships: tuple[Relationship, ...]

    @classmethod
    def capture(cls, state: DiagramState) -> HistorySnapshot:
        return cls(entities=state.entities, relationships=state.relationships)

    def restore_into(self, state: DiagramState) -> DiagramState:
        return replace(state, entities=self.entities, relationships=self.relationships)


class HistoryStack:
    """Bounded past/future stacks bound to one DiagramModel.

    Example:
        >>> history = HistoryStack(model, max_depth=50)
        >>> history.snapshot()
        >>> # ... mutate model via the dispatcher ...
        >>> history.undo()
    """

    def __init__(self, model: DiagramModel, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize the history stack.

        Args:
            model: Model whose state is captured and restored
            max_depth: Maximum number of undo steps kept
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.model = model
        self.max_depth = max_depth
        self._past: deque[HistorySnapshot] = deque(maxlen=max_depth)
        # Index 0 is the next state redo() restores
        self._future: deque[HistorySnapshot] = deque()

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def past_depth(self) -> int:
        return len(self._past)

    @property
    def future_depth(self) -> int:
        return len(self._future)

    def snapshot(self) -> None:
        """Push the current state onto the past stack and drop redo history."""
        self._past.append(HistorySnapshot.capture(self.model.state))
        self._future.clear()

    def undo(self) -> bool:
        """Restore the most recent snapshot.

        Returns:
            True if a snapshot was restored, False if there was nothing to undo
        """
        if not self._past:
            return False
        previous = self._past.pop()
        self._future.appendleft(HistorySnapshot.capture(self.model.state))
        self.model.state = previous.restore_into(self.model.state)
        logger.debug(
            "Undo",
            extra={"diagram_id": self.model.diagram_id, "past": len(self._past)},
        )
        return True

    def redo(self) -> bool:
        """Re-apply the earliest undone state.

        Returns:
            True if a state was restored, False if there was nothing to redo
        """
        if not self._future:
            return False
        following = self._future.popleft()
        self._past.append(HistorySnapshot.capture(self.model.state))
        self.model.state = following.restore_into(self.model.state)
        logger.debug(
            "Redo",
            extra={"diagram_id": self.model.diagram_id, "future": len(self._future)},
        )
        return True

    def clear(self) -> None:
        """Forget all history, e.g. after loading a different diagram."""
        self._past.clear()
        self._future.clear()
