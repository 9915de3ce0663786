from abc import ABC, abstractmethod

from planeseam.seam_types import SegmentEventType


class BaseRenderContext(ABC):
    """
    Consumes segment events on behalf of the presentation layer.

    Subclasses own whatever represents a seam line on their side; the core only
    hands them keys and endpoints. Register apply() as a tracker listener, or
    call it with each ReconcileResult.
    """

    def apply(self, result):
        """Dispatch every event of a ReconcileResult, in order."""
        for event in result.events:
            self.apply_event(event)

    def apply_event(self, event):
        points = (event.start_point, event.end_point)
        if event.type == SegmentEventType.CREATED:
            self.create_line(event.pair_key, points)
        elif event.type == SegmentEventType.UPDATED:
            self.update_line(event.pair_key, points)
        elif event.type == SegmentEventType.DELETED:
            self.destroy_line(event.pair_key)

    def __call__(self, result):
        self.apply(result)

    @abstractmethod
    def create_line(self, key, points):
        """Creates a line with the given key and (start, end) points."""

    @abstractmethod
    def update_line(self, key, points):
        """Moves an existing line to new (start, end) points."""

    @abstractmethod
    def destroy_line(self, key):
        """Removes the line with the given key."""

    def clear(self):
        pass
