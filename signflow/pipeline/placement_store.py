"""Owned, single-writer placement sequence for one open document."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, List, Tuple

from ..models.placement import Placement

logger = logging.getLogger(__name__)

Snapshot = Tuple[Placement, ...]
Subscriber = Callable[[Snapshot], None]


class PlacementNotFoundError(Exception):
    """Raised when a mark references a placement id that does not exist."""
    pass


class PlacementStore:
    """Holds the placement sequence of one document and applies mark updates.

    Every mutation swaps in a new immutable snapshot. Placements that did not
    change are the same objects in the new snapshot, so a presentation layer
    can compare by identity to decide what to re-render. Subscribers are
    notified with each new snapshot.

    Marks are attached one placement at a time; there is no bulk replace.
    """

    def __init__(self, placements: Iterable[Placement] = ()):
        """Initialize store.

        Args:
            placements: Detected placements in detection order

        Raises:
            ValueError: If placement ids are not unique
        """
        snapshot = tuple(placements)
        ids = [p.id for p in snapshot]
        if len(ids) != len(set(ids)):
            raise ValueError("Placement ids must be unique within a document")
        self._snapshot: Snapshot = snapshot
        self._subscribers: List[Subscriber] = []

    @property
    def placements(self) -> Snapshot:
        """Current snapshot."""
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def __iter__(self) -> Iterator[Placement]:
        return iter(self._snapshot)

    def get(self, placement_id: str) -> Placement:
        """Look up a placement by id.

        Raises:
            PlacementNotFoundError: If no placement has that id
        """
        for placement in self._snapshot:
            if placement.id == placement_id:
                return placement
        raise PlacementNotFoundError(f"Placement {placement_id} not found")

    def attach_mark(self, placement_id: str, mark: bytes) -> Snapshot:
        """Attach (or overwrite) the mark of one placement.

        Args:
            placement_id: Id of the target placement
            mark: Raster image bytes

        Returns:
            The new snapshot

        Raises:
            PlacementNotFoundError: If no placement has that id (store unchanged)
        """
        target = self.get(placement_id)
        updated = target.with_mark(mark)
        self._snapshot = tuple(
            updated if p is target else p for p in self._snapshot
        )
        logger.debug("Mark attached to placement %s (page %d)", placement_id, target.page_index + 1)
        self._notify()
        return self._snapshot

    def is_complete(self) -> bool:
        """True iff every placement has a mark (vacuously true when empty)."""
        return all(p.mark is not None for p in self._snapshot)

    def signed_count(self) -> int:
        return sum(1 for p in self._snapshot if p.mark is not None)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for new snapshots.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self._snapshot)
