from unittest.mock import MagicMock
from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from app.auth.exceptions import NotAuthenticatedError
from app.auth.models import Session, User
from app.config.settings import Settings
from app.database.exceptions import RecordNotFoundError, TableMissingError
from app.database.models import DocumentRecord
from app.extraction.bulk_poller import BulkProgressTracker
from app.extraction.models import BulkUploadJob, Entities, ExtractionResult
from app.extraction.service import ProcessOutcome
from app.scraper.models import ScrapedData, ScrapeResult, ScrapingMode
from app.web.app import create_app
from app.web.container import Container
from app.web.dependencies import require_user
from app.web.state import DashboardStateStore

USER = User(id="user-1", email="asha@example.com")


def _make_container() -> Container:
    container = Container(
        settings=Settings(),
        auth=MagicMock(),
        extraction_client=MagicMock(),
        extraction=MagicMock(),
        scraper=MagicMock(),
        tracker=BulkProgressTracker(),
        poller=MagicMock(),
        states=DashboardStateStore(),
    )
    container.extraction.processed_file_names.return_value = set()
    return container


def _result(file_name: str = "a.pdf") -> ExtractionResult:
    return ExtractionResult(
        id="r1",
        file_name=file_name,
        timestamp="2024-03-05T10:15:30Z",
        entities=Entities(name="Asha Verma", suid="SU-1"),
    )


@pytest.fixture()
def container() -> Container:
    return _make_container()


@pytest.fixture()
def client(container: Container) -> TestClient:
    app = create_app(container)
    app.dependency_overrides[require_user] = lambda: USER
    return TestClient(app)


@pytest.fixture()
def anonymous_client(container: Container) -> TestClient:
    return TestClient(create_app(container))


def _upload(*names: str) -> list:
    return [("files", (name, b"data", "application/pdf")) for name in names]


class TestHealth:
    def test_ok(self, anonymous_client: TestClient) -> None:
        response = anonymous_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAuthRoutes:
    def test_protected_route_without_session(self, anonymous_client: TestClient) -> None:
        response = anonymous_client.get("/ocr/queue")

        assert response.status_code == 401
        assert response.json()["notices"][0]["title"] == "Authentication required"

    def test_expired_session_is_rejected(
        self, anonymous_client: TestClient, container: Container
    ) -> None:
        container.auth.get_user.side_effect = NotAuthenticatedError("Session expired")
        anonymous_client.cookies.set(container.settings.session_cookie_name, "stale")

        assert anonymous_client.get("/auth/session").status_code == 401

    def test_login_redirects_and_stores_verifier(
        self, anonymous_client: TestClient, container: Container
    ) -> None:
        container.auth.authorize_url.return_value = "https://auth.example/authorize?x=1"

        response = anonymous_client.get("/auth/login", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "https://auth.example/authorize?x=1"
        assert "pkce_verifier" in response.cookies

    def test_sign_in_sets_session_cookie(
        self, anonymous_client: TestClient, container: Container
    ) -> None:
        container.auth.sign_in_with_password.return_value = Session(
            access_token="access-1", refresh_token="r", expires_at=None, user=USER
        )

        response = anonymous_client.post(
            "/auth/sign-in", json={"email": "asha@example.com", "password": "pw"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == "user-1"
        assert response.cookies[container.settings.session_cookie_name] == "access-1"

    def test_sign_out_revokes_token(
        self, anonymous_client: TestClient, container: Container
    ) -> None:
        anonymous_client.cookies.set(container.settings.session_cookie_name, "access-1")

        response = anonymous_client.post("/auth/sign-out")

        assert response.status_code == 200
        container.auth.sign_out.assert_called_once_with("access-1")


class TestQueueRoutes:
    def test_adds_files(self, client: TestClient) -> None:
        response = client.post("/ocr/queue", files=_upload("a.pdf", "b.pdf"))

        body = response.json()
        assert [f["name"] for f in body["files"]] == ["a.pdf", "b.pdf"]
        assert body["notices"][0]["title"] == "Files added"

    def test_duplicates_are_rejected_with_warning(
        self, client: TestClient, container: Container
    ) -> None:
        container.extraction.processed_file_names.return_value = {"a.pdf"}

        body = client.post("/ocr/queue", files=_upload("a.pdf", "b.pdf")).json()

        assert [f["name"] for f in body["files"]] == ["b.pdf"]
        duplicate = body["notices"][0]
        assert duplicate["title"] == "Duplicate files detected"
        assert duplicate["variant"] == "destructive"
        assert "a.pdf has already been processed" in duplicate["description"]

    def test_clear(self, client: TestClient) -> None:
        client.post("/ocr/queue", files=_upload("a.pdf"))

        body = client.delete("/ocr/queue").json()

        assert body["files"] == []

    def test_folder_selection(self, client: TestClient) -> None:
        files = _upload("a.pdf", "notes.txt")

        body = client.post("/ocr/folder", files=files, data={"source": "scans"}).json()

        assert [f["name"] for f in body["folder_files"]] == ["a.pdf"]
        assert body["folder_source"] == "scans"

        body = client.delete("/ocr/folder").json()
        assert body["folder_files"] == []
        assert body["folder_source"] is None


class TestProcessRoute:
    def test_processes_queue_and_shows_results(
        self, client: TestClient, container: Container
    ) -> None:
        container.extraction.process_files.return_value = ProcessOutcome(
            results=[_result()], saved_ids={"a.pdf": "id-1"}
        )
        client.post("/ocr/queue", files=_upload("a.pdf"))

        body = client.post("/ocr/process").json()

        assert body["results"][0]["file_name"] == "a.pdf"
        assert body["notices"][0]["title"] == "Processing complete"
        assert client.get("/ocr/results").json()["results"][0]["id"] == "r1"
        assert client.get("/ocr/queue").json()["files"] == []

    def test_save_failures_become_notices(
        self, client: TestClient, container: Container
    ) -> None:
        container.extraction.process_files.return_value = ProcessOutcome(
            results=[_result()], save_failures={"a.pdf": "table missing"}
        )
        client.post("/ocr/queue", files=_upload("a.pdf"))

        notices = client.post("/ocr/process").json()["notices"]

        assert notices[1]["title"] == "Database Error"

    def test_table_missing_maps_to_503(self, client: TestClient, container: Container) -> None:
        container.extraction.history.side_effect = TableMissingError("missing")

        response = client.get("/ocr/history")

        assert response.status_code == 503
        assert response.json()["notices"][0]["title"] == "Database Table Missing"


class TestBulkRoutes:
    def test_start_requires_folder(self, client: TestClient) -> None:
        response = client.post("/ocr/bulk")

        assert response.status_code == 400
        assert response.json()["notices"]

    def test_start_schedules_poller(self, client: TestClient, container: Container) -> None:
        job = BulkUploadJob(job_id="job-1", total_files=1)
        container.extraction_client.start_bulk_upload.return_value = job
        client.post("/ocr/folder", files=_upload("a.pdf"))

        response = client.post("/ocr/bulk")

        assert response.status_code == 202
        assert response.json()["job_id"] == "job-1"
        assert container.poller.run.call_args.args[0] == job

    def test_status_and_unknown_job(self, client: TestClient, container: Container) -> None:
        container.tracker.start(BulkUploadJob(job_id="job-1", total_files=4))
        container.tracker.update(BulkUploadJob(job_id="job-1", total_files=4, processed_files=1))

        body = client.get("/ocr/bulk/job-1").json()

        assert body["percent"] == 25
        assert client.get("/ocr/bulk/nope").status_code == 404

    def test_cancel(self, client: TestClient, container: Container) -> None:
        container.tracker.start(BulkUploadJob(job_id="job-1", total_files=1))

        client.delete("/ocr/bulk/job-1")

        assert container.tracker.is_cancelled("job-1")

    def test_finished_job_is_reported_once(self, client: TestClient, container: Container) -> None:
        container.tracker.start(BulkUploadJob(job_id="job-1", total_files=1))
        container.tracker.update(
            BulkUploadJob(job_id="job-1", total_files=1, processed_files=1, status="completed")
        )

        body = client.get("/ocr/bulk/job-1").json()

        assert body["notices"][0]["title"] == "Bulk processing complete"
        assert client.get("/ocr/bulk/job-1").status_code == 404


class TestHistoryRoutes:
    def test_list(self, client: TestClient, container: Container) -> None:
        container.extraction.history.return_value = [DocumentRecord(id="d1", file_name="a.pdf")]

        body = client.get("/ocr/history").json()

        assert body["history"][0]["id"] == "d1"

    def test_load_missing_item(self, client: TestClient, container: Container) -> None:
        container.extraction.load_history_item.side_effect = RecordNotFoundError(
            "Document d9 not found"
        )

        assert client.get("/ocr/history/d9").status_code == 404

    def test_delete_clears_displayed_item(self, client: TestClient, container: Container) -> None:
        container.extraction.load_history_item.return_value = _result()
        client.get("/ocr/history/r1")

        client.delete("/ocr/history/r1")

        container.extraction.delete.assert_called_once_with("r1")
        assert client.get("/ocr/results").json()["results"] == []

    def test_search_requires_query(self, client: TestClient) -> None:
        assert client.get("/ocr/search", params={"q": "  "}).status_code == 400


class TestExportRoutes:
    def test_txt_without_results(self, client: TestClient) -> None:
        response = client.get("/ocr/export/txt")

        assert response.status_code == 400
        assert response.json()["notices"][0]["title"] == "No data to export"

    def test_txt_download(self, client: TestClient, container: Container) -> None:
        container.extraction.load_history_item.return_value = _result()
        client.get("/ocr/history/r1")

        response = client.get("/ocr/export/txt")

        assert response.status_code == 200
        assert 'filename="SU-1_Asha Verma.txt"' in response.headers["content-disposition"]
        assert response.text.startswith("File: a.pdf")

    def test_txt_download_with_non_latin_name(
        self, client: TestClient, container: Container
    ) -> None:
        result = _result()
        result.entities = Entities(name="सदानंद सरवणकर", suid="SU-1")
        container.extraction.load_history_item.return_value = result
        client.get("/ocr/history/r1")

        response = client.get("/ocr/export/txt")

        header = response.headers["content-disposition"]
        assert response.status_code == 200
        assert header.isascii()
        assert "filename*=UTF-8''" + quote("SU-1_सदानंद सरवणकर.txt", safe="") in header
        assert 'filename="SU-1_' in header

    def test_users_csv_passthrough(self, client: TestClient, container: Container) -> None:
        container.extraction.load_history_item.return_value = _result()
        container.extraction_client.export_users_csv.return_value = "name\nAsha\n"
        client.get("/ocr/history/r1")

        response = client.get("/ocr/export/csv")

        assert response.text == "name\nAsha\n"
        assert "user_data_export.csv" in response.headers["content-disposition"]


class TestScraperRoutes:
    def test_scrape_success(self, client: TestClient, container: Container) -> None:
        container.scraper.scrape_website.return_value = ScrapeResult(
            success=True,
            message="Scraping completed successfully",
            data=ScrapedData(
                id="s1",
                url="https://example.com",
                timestamp="",
                mode=ScrapingMode.FULL_PAGE,
                content="<html></html>",
            ),
        )

        body = client.post("/scraper/scrape", json={"url": "https://example.com"}).json()

        assert body["success"] is True
        assert body["data"]["mode"] == "full_page"
        assert body["notices"][0]["title"] == "Scraping Complete"
        config = container.scraper.scrape_website.call_args.args[0]
        assert config.url == "https://example.com"

    def test_scrape_failure_notice(self, client: TestClient, container: Container) -> None:
        container.scraper.scrape_website.return_value = ScrapeResult(
            success=False, message="Please enter a URL to scrape"
        )

        body = client.post("/scraper/scrape", json={}).json()

        assert body["success"] is False
        assert body["notices"][0]["variant"] == "destructive"

    def test_stored_search(self, client: TestClient, container: Container) -> None:
        container.scraper.query_scraped_data.return_value = []

        body = client.get("/stored/search", params={"q": "price"}).json()

        assert body["items"] == []
        container.scraper.query_scraped_data.assert_called_once_with("price")


class TestThemeRoutes:
    def test_defaults_to_system(self, anonymous_client: TestClient) -> None:
        response = anonymous_client.get(
            "/settings/theme", headers={"Sec-CH-Prefers-Color-Scheme": "dark"}
        )

        assert response.json()["theme"] == "system"
        assert response.json()["effective"] == "dark"
        assert response.headers["accept-ch"] == "Sec-CH-Prefers-Color-Scheme"

    def test_selection_persists_in_cookie(self, anonymous_client: TestClient) -> None:
        response = anonymous_client.put("/settings/theme", json={"theme": "light"})

        assert response.json()["notices"][0]["description"] == "Theme has been set to light mode"

        body = anonymous_client.get(
            "/settings/theme", headers={"Sec-CH-Prefers-Color-Scheme": "dark"}
        ).json()
        assert body["theme"] == "light"
        assert body["effective"] == "light"

    def test_rejects_unknown_theme(self, anonymous_client: TestClient) -> None:
        assert anonymous_client.put("/settings/theme", json={"theme": "purple"}).status_code == 422
