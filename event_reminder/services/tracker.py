from __future__ import annotations


class NotificationTracker:
    """Ids of events that already raised a reminder in this process."""

    def __init__(self) -> None:
        self._fired: set[int] = set()

    def has_fired(self, event_id: int) -> bool:
        return event_id in self._fired

    def mark_fired(self, event_id: int) -> None:
        self._fired.add(event_id)

    def forget(self, event_id: int) -> None:
        self._fired.discard(event_id)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._fired

    def __len__(self) -> int:
        return len(self._fired)
