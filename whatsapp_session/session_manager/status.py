"""Process-wide readiness snapshot shared with the HTTP layer."""

from __future__ import annotations

from typing import Optional

from ..models.session import LifecycleState, StatusSnapshot


class StatusPublisher:
    """Single writer (the lifecycle controller), any number of readers.

    Each update swaps in a new frozen snapshot, so readers never see a
    half-updated record.
    """

    def __init__(self):
        self._snapshot = StatusSnapshot()

    @property
    def snapshot(self) -> StatusSnapshot:
        return self._snapshot

    @property
    def ready(self) -> bool:
        return self._snapshot.ready

    def publish(self, state: LifecycleState, ready: bool, last_error: Optional[str] = None) -> StatusSnapshot:
        self._snapshot = StatusSnapshot(ready=ready, state=state, last_error=last_error)
        return self._snapshot

    def set_ready(self) -> StatusSnapshot:
        return self.publish(LifecycleState.READY, True)

    def set_not_ready(self, state: LifecycleState, error: Optional[str] = None) -> StatusSnapshot:
        # Keep the last error visible through the launch that follows it.
        if error is None:
            error = self._snapshot.last_error
        return self.publish(state, False, error)
