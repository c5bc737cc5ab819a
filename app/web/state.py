import threading
from dataclasses import dataclass, field

from app.extraction.models import ExtractionResult
from app.extraction.upload_queue import UploadQueue


@dataclass
class DashboardState:
    """What one user currently has queued and on screen."""

    queue: UploadQueue = field(default_factory=UploadQueue)
    displayed: list[ExtractionResult] = field(default_factory=list)
    active_bulk_job_id: str | None = None

    def show(self, results: list[ExtractionResult] | None) -> None:
        self.displayed = list(results or [])

    def forget(self, document_id: str) -> None:
        """Drop the displayed document if it is the one that was deleted."""
        if len(self.displayed) == 1 and self.displayed[0].id == document_id:
            self.displayed = []


class DashboardStateStore:
    """In-memory per-user dashboard state, keyed by user id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, DashboardState] = {}

    def for_user(self, user_id: str) -> DashboardState:
        with self._lock:
            state = self._states.get(user_id)
            if state is None:
                state = DashboardState()
                self._states[user_id] = state
            return state
