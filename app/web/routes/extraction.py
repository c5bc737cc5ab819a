from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from app.export.exceptions import NothingToExportError
from app.export.text_export import build_results_csv, build_text_export, text_export_filename
from app.extraction.models import BulkUploadJob, UploadedFile
from app.extraction.upload_queue import QueueAddOutcome
from app.logging.logger import Log
from app.web.container import Container
from app.web.dependencies import dashboard_state, get_container, require_user
from app.web.notices import Notice, plural, with_notices
from app.web.state import DashboardState

router = APIRouter(prefix="/ocr", tags=["extraction"], dependencies=[Depends(require_user)])


def _read_uploads(uploads: list[UploadFile]) -> list[UploadedFile]:
    return [
        UploadedFile(
            name=upload.filename or "unnamed",
            content=upload.file.read(),
            content_type=upload.content_type or "application/octet-stream",
        )
        for upload in uploads
    ]


def _file_listing(files: list[UploadedFile]) -> list[dict]:
    return [{"name": f.name, "size": f.size, "type": f.content_type} for f in files]


def _queue_payload(state: DashboardState) -> dict:
    return {
        "files": _file_listing(state.queue.files),
        "folder_files": _file_listing(state.queue.folder_files),
        "folder_source": state.queue.folder_source,
    }


def _results_payload(state: DashboardState) -> dict:
    return {"results": [r.to_dict() for r in state.displayed]}


def _duplicate_notice(outcome: QueueAddOutcome) -> Notice:
    names = ", ".join(f.name for f in outcome.duplicates)
    verb = "has" if len(outcome.duplicates) == 1 else "have"
    return Notice("Duplicate files detected", f"{names} {verb} already been processed", "destructive")


@router.post("/queue")
def add_to_queue(
    files: list[UploadFile] = File(...),
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    outcome = state.queue.add(_read_uploads(files), container.extraction.processed_file_names())
    notices = []
    if outcome.duplicates:
        notices.append(_duplicate_notice(outcome))
    if outcome.added:
        count = len(outcome.added)
        notices.append(Notice("Files added", f"{count} {plural(count, 'file')} added successfully"))
    return with_notices(_queue_payload(state), *notices)


@router.get("/queue")
def get_queue(state: DashboardState = Depends(dashboard_state)) -> dict:
    return with_notices(_queue_payload(state))


@router.delete("/queue")
def clear_queue(state: DashboardState = Depends(dashboard_state)) -> dict:
    state.queue.clear()
    return with_notices(_queue_payload(state), Notice("Files cleared", "All files have been removed"))


@router.post("/folder")
def select_folder(
    files: list[UploadFile] = File(...),
    source: str | None = Form(None),
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    outcome = state.queue.add_folder(
        _read_uploads(files), container.extraction.processed_file_names(), source
    )
    notices = []
    if outcome.duplicates:
        count = len(outcome.duplicates)
        notices.append(
            Notice(
                "Duplicate files detected",
                f"{count} {plural(count, 'file')} already processed and will be skipped",
                "warning",
            )
        )
    count = len(outcome.added)
    notices.append(Notice("Folder selected", f"{count} {plural(count, 'file')} ready for processing"))
    return with_notices(_queue_payload(state), *notices)


@router.delete("/folder")
def clear_folder(state: DashboardState = Depends(dashboard_state)) -> dict:
    state.queue.clear_folder()
    return with_notices(
        _queue_payload(state), Notice("Folder cleared", "Folder selection has been removed")
    )


@router.post("/process")
def process_queue(
    extraction_type: str = "all",
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    outcome = container.extraction.process_files(state.queue.files, extraction_type)
    state.queue.clear()
    state.show(outcome.results)
    count = len(outcome.results)
    notices = [Notice("Processing complete", f"Successfully processed {count} {plural(count, 'file')}")]
    for file_name, error in outcome.save_failures.items():
        notices.append(Notice("Database Error", f"Failed to save {file_name}: {error}", "destructive"))
    return with_notices(
        {**_results_payload(state), "saved_ids": outcome.saved_ids}, *notices
    )


@router.post("/bulk", status_code=202)
def start_bulk(
    background_tasks: BackgroundTasks,
    extraction_type: str = "all",
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    files = state.queue.folder_files
    if not files:
        raise HTTPException(status_code=400, detail="Select a folder with supported files first")
    job = container.extraction_client.start_bulk_upload(files, extraction_type)
    state.active_bulk_job_id = job.job_id
    progress = container.tracker.start(job)

    def show_results(finished: BulkUploadJob) -> None:
        state.show(finished.results)

    background_tasks.add_task(container.poller.run, job, show_results)
    count = job.total_files
    return with_notices(
        progress.to_dict(),
        Notice("Bulk upload started", f"Processing {count} {plural(count, 'file')}"),
    )


@router.get("/bulk/{job_id}")
def bulk_status(job_id: str, container: Container = Depends(get_container)) -> dict:
    progress = container.tracker.get(job_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="Unknown bulk job")
    notices = []
    if progress.error:
        notices.append(Notice("Error checking status", progress.error, "destructive"))
    elif progress.finished and progress.status == "completed":
        notices.append(
            Notice("Bulk processing complete", f"Processed {progress.processed_files} files")
        )
    elif progress.finished:
        notices.append(Notice("Bulk processing failed", "The bulk job did not complete", "destructive"))
    return with_notices(progress.to_dict(), *notices)


@router.delete("/bulk/{job_id}")
def cancel_bulk(
    job_id: str,
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    container.tracker.cancel(job_id)
    if state.active_bulk_job_id == job_id:
        state.active_bulk_job_id = None
    return with_notices({"job_id": job_id}, Notice("Bulk upload cancelled", "Stopped following the job"))


@router.get("/history")
def history(container: Container = Depends(get_container)) -> dict:
    records = container.extraction.history()
    return with_notices({"history": [r.to_dict() for r in records]})


@router.delete("/history")
def clear_history(
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    container.extraction.clear_history()
    state.show([])
    return with_notices({"history": []}, Notice("History cleared", "All processed documents were deleted"))


@router.get("/history/{document_id}")
def load_history_item(
    document_id: str,
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    result = container.extraction.load_history_item(document_id)
    state.show([result])
    return with_notices(
        _results_payload(state), Notice("History item loaded", f"Loaded {result.file_name}")
    )


@router.delete("/history/{document_id}")
def delete_history_item(
    document_id: str,
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    container.extraction.delete(document_id)
    state.forget(document_id)
    return with_notices({"id": document_id}, Notice("Record Deleted", "The document was removed"))


@router.get("/search")
def search(
    q: str = "",
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> dict:
    if not q.strip():
        raise HTTPException(status_code=400, detail="Enter a search term")
    results = container.extraction.search(q.strip())
    state.show(results)
    count = len(results)
    return with_notices(
        _results_payload(state),
        Notice("Search results", f"Found {count} matching {plural(count, 'document')}"),
    )


@router.post("/setup-database")
def setup_database(container: Container = Depends(get_container)) -> dict:
    seeded = container.extraction.setup_database()
    return with_notices(
        {"seeded": seeded},
        Notice("Database setup complete", f"Inserted {seeded} sample {plural(seeded, 'document')}"),
    )


@router.get("/results")
def displayed_results(state: DashboardState = Depends(dashboard_state)) -> dict:
    return with_notices(_results_payload(state))


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 name (RFC 6266)."""
    fallback = "".join(c if 32 <= ord(c) < 127 and c not in "\"\\" else "_" for c in filename)
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def _attachment(content: str, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.get("/export/txt")
def export_txt(state: DashboardState = Depends(dashboard_state)) -> Response:
    content = build_text_export(state.displayed)
    return _attachment(content, text_export_filename(state.displayed, date.today()), "text/plain")


@router.get("/export/csv")
def export_users_csv(
    state: DashboardState = Depends(dashboard_state),
    container: Container = Depends(get_container),
) -> Response:
    if not state.displayed:
        raise NothingToExportError("Process files first")
    Log.info("Exporting users CSV")
    return _attachment(container.extraction_client.export_users_csv(), "user_data_export.csv", "text/csv")


@router.get("/export/results-csv")
def export_results_csv(state: DashboardState = Depends(dashboard_state)) -> Response:
    return _attachment(build_results_csv(state.displayed), "ocr_results.csv", "text/csv")
