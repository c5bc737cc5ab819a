import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.config.settings import Settings
from app.extraction.api_client import ExtractionApiClient
from app.extraction.exceptions import ExtractionApiError
from app.extraction.models import BulkUploadJob, ExtractionResult, progress_percent
from app.logging.logger import Log


@dataclass
class BulkProgress:
    """Latest known state of a bulk job, as shown to the user."""

    job_id: str
    total_files: int
    processed_files: int = 0
    status: str = "uploading"
    percent: int = 0
    finished: bool = False
    error: str | None = None
    results: list[ExtractionResult] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "total_files": self.total_files,
            "processed_files": self.processed_files,
            "status": self.status,
            "percent": self.percent,
            "finished": self.finished,
            "error": self.error,
            "results": [r.to_dict() for r in self.results] if self.results else None,
        }


class BulkProgressTracker:
    """Progress snapshots shared between poll loops and request handlers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._progress: dict[str, BulkProgress] = {}
        self._cancelled: set[str] = set()

    def start(self, job: BulkUploadJob) -> BulkProgress:
        with self._lock:
            progress = BulkProgress(
                job_id=job.job_id,
                total_files=job.total_files,
                processed_files=job.processed_files,
                status=job.status,
                percent=progress_percent(job.processed_files, job.total_files),
            )
            self._progress[job.job_id] = progress
            return progress

    def track(self, job: BulkUploadJob) -> BulkProgress:
        """Start tracking unless the job is already known. Keeps a pending cancel."""
        with self._lock:
            progress = self._progress.get(job.job_id)
        return progress if progress is not None else self.start(job)

    def update(self, job: BulkUploadJob) -> BulkProgress:
        """Apply a status response. Counts and percentage never go backwards."""
        with self._lock:
            progress = self._progress.get(job.job_id)
            if progress is None:
                progress = BulkProgress(job_id=job.job_id, total_files=job.total_files)
                self._progress[job.job_id] = progress
            if job.total_files > 0:
                progress.total_files = job.total_files
            progress.processed_files = max(progress.processed_files, job.processed_files)
            progress.percent = max(
                progress.percent,
                progress_percent(progress.processed_files, progress.total_files),
            )
            progress.status = job.status
            if job.is_terminal:
                progress.finished = True
                progress.results = job.results
            return progress

    def fail(self, job_id: str, error: str) -> BulkProgress:
        with self._lock:
            progress = self._progress.setdefault(
                job_id, BulkProgress(job_id=job_id, total_files=0)
            )
            progress.finished = True
            progress.error = error
            return progress

    def get(self, job_id: str) -> BulkProgress | None:
        """Latest snapshot. A finished job is forgotten once it has been read."""
        with self._lock:
            progress = self._progress.get(job_id)
            if progress is not None and progress.finished:
                del self._progress[job_id]
                self._cancelled.discard(job_id)
            return progress

    def cancel(self, job_id: str) -> None:
        with self._lock:
            progress = self._progress.get(job_id)
            if progress is not None and not progress.finished:
                self._cancelled.add(job_id)

    def is_cancelled(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._cancelled


class BulkUploadPoller:
    """Poll loop for one bulk job: sleep -> fetch status -> record progress.

    Stops on a terminal status, on the first failed status request, when the
    job is cancelled, or after the configured number of polls.
    """

    def __init__(
        self,
        client: ExtractionApiClient,
        tracker: BulkProgressTracker,
        settings: Settings,
    ) -> None:
        self._client = client
        self._tracker = tracker
        self._settings = settings

    def run(
        self,
        job: BulkUploadJob,
        on_complete: Callable[[BulkUploadJob], None] | None = None,
    ) -> BulkProgress:
        Log.info("Polling bulk job", job_id=job.job_id, total_files=job.total_files)
        self._tracker.track(job)
        polls = 0
        while polls < self._settings.bulk_max_polls:
            if self._tracker.is_cancelled(job.job_id):
                Log.info("Stopped polling bulk job: cancelled", job_id=job.job_id)
                return self._tracker.fail(job.job_id, "Polling cancelled")

            time.sleep(self._settings.bulk_poll_interval_seconds)
            polls += 1

            try:
                status = self._client.get_bulk_status(job.job_id)
            except ExtractionApiError as exc:
                Log.error(f"Error polling bulk job: {exc}", job_id=job.job_id)
                return self._tracker.fail(job.job_id, "Failed to check processing status")

            progress = self._tracker.update(status)
            if status.is_terminal:
                Log.info(
                    f"Bulk job {job.job_id} {status.status}: "
                    f"{status.processed_files}/{status.total_files} files"
                )
                if status.status == "completed" and on_complete is not None:
                    on_complete(status)
                return progress

        Log.warning("Gave up on bulk job", job_id=job.job_id, polls=polls)
        return self._tracker.fail(job.job_id, "Timed out waiting for bulk processing")
