import base64
from typing import Any

import httpx

from app.extraction.exceptions import ExtractionApiError, ExtractionNetworkError
from app.extraction.models import BulkUploadJob, ExtractionResult, UploadedFile
from app.logging.logger import Log


def encode_file(file: UploadedFile, *, with_metadata: bool = True) -> dict[str, Any]:
    """Serialise a file for the extraction API (content as base64)."""
    payload: dict[str, Any] = {
        "name": file.name,
        "content": base64.b64encode(file.content).decode("ascii"),
    }
    if with_metadata:
        payload["type"] = file.content_type
        payload["size"] = file.size
    return payload


class ExtractionApiClient:
    """Client for the remote document extraction API."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int = 120,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def process_files(
        self, files: list[UploadedFile], extraction_type: str = "all"
    ) -> list[ExtractionResult]:
        """POST /process-ocr and return one result per file."""
        Log.info(f"Submitting {len(files)} files for extraction ({extraction_type})")
        data = self._post(
            "/process-ocr",
            {
                "files": [encode_file(f) for f in files],
                "extractionType": extraction_type,
            },
            action="processing files",
        )
        try:
            return [ExtractionResult.from_api(item) for item in data.get("results") or []]
        except (ValueError, TypeError, AttributeError) as exc:
            raise ExtractionApiError("Unexpected response while processing files") from exc

    def start_bulk_upload(
        self, files: list[UploadedFile], extraction_type: str = "all"
    ) -> BulkUploadJob:
        """POST /bulk-upload. The returned job starts as 'uploading'."""
        Log.info(f"Starting bulk upload of {len(files)} files")
        data = self._post(
            "/bulk-upload",
            {
                "files": [encode_file(f, with_metadata=False) for f in files],
                "extractionType": extraction_type,
            },
            action="starting bulk upload",
        )
        job_id = data.get("job_id")
        if not job_id:
            raise ExtractionApiError("Bulk upload response did not include a job_id")
        try:
            total_files = int(data.get("total_files") or len(files))
        except (ValueError, TypeError) as exc:
            raise ExtractionApiError("Unexpected response while starting bulk upload") from exc
        return BulkUploadJob(
            job_id=str(job_id),
            total_files=total_files,
            processed_files=0,
            status="uploading",
        )

    def get_bulk_status(self, job_id: str) -> BulkUploadJob:
        response = self._send("GET", f"/bulk-upload/{job_id}/status")
        action = "checking bulk upload status"
        self._raise_for_status(response, action)
        try:
            job = BulkUploadJob.from_api(response.json())
        except (ValueError, TypeError, AttributeError) as exc:
            Log.error(f"Malformed bulk status for {job_id}: {response.text[:200]!r}")
            raise ExtractionApiError(f"Unexpected response while {action}") from exc
        Log.debug(
            f"Bulk job {job_id}: {job.processed_files}/{job.total_files} {job.status}"
        )
        return job

    def export_users_csv(self) -> str:
        """GET /users/csv, returned as text."""
        response = self._send("GET", "/users/csv")
        self._raise_for_status(response, "fetching CSV")
        return response.text

    def _post(self, path: str, body: dict[str, Any], *, action: str) -> dict[str, Any]:
        response = self._send("POST", path, json=body)
        self._raise_for_status(response, action)
        try:
            data = response.json()
        except ValueError as exc:
            Log.error(f"Non-JSON response while {action}: {response.text[:200]!r}")
            raise ExtractionApiError(f"Unexpected response while {action}") from exc
        if not isinstance(data, dict):
            raise ExtractionApiError(f"Unexpected response while {action}")
        return data

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, f"{self._base_url}{path}", **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ExtractionNetworkError(f"Extraction API unreachable: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ExtractionNetworkError(f"Extraction API transport error: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        Log.error(f"Extraction API error response: {response.text[:500]!r}")
        raise ExtractionApiError(f"Error {action}: {response.reason_phrase}")
