import httpx
import pytest

from health_portal.services.backend_client import BackendClient
from health_portal.services.portal_service import (
    CATEGORIES_KEY, DASHBOARD_KEY, QUIZZES_KEY, REPORTS_KEY, PortalService,
)
from health_portal.services.query_cache import QueryCache

_REPORT = {
    "id": "r1",
    "reportType": "blood_test",
    "fileName": "esami.pdf",
    "createdAt": "2024-03-01T09:00:00",
}


@pytest.fixture
def calls():
    return []


@pytest.fixture
def portal(calls):
    def handler(request):
        calls.append((request.method, request.url.path))
        if request.url.path == "/api/health-score/reports/my":
            return httpx.Response(200, json=[_REPORT])
        if request.url.path == "/api/health-score/upload":
            return httpx.Response(200, json={"report": _REPORT})
        if request.url.path == "/api/admin/generate-questions":
            return httpx.Response(200, json={"jobId": "g1"})
        if request.url.path == "/api/admin/generation-jobs/g1":
            return httpx.Response(200, json={"status": "completed", "generatedCount": 4})
        if request.url.path == "/api/health-score/jobs/u1":
            return httpx.Response(200, json={"status": "completed"})
        return httpx.Response(200, json={})

    client = BackendClient(base_url="http://backend.test", transport=httpx.MockTransport(handler))
    return PortalService(client, QueryCache())


def test_reports_are_cached_until_deletion(portal, calls):
    portal.reports()
    portal.reports()
    assert calls.count(("GET", "/api/health-score/reports/my")) == 1

    portal.delete_report("r1")
    portal.reports()
    assert calls.count(("GET", "/api/health-score/reports/my")) == 2


def test_quiz_submission_invalidates_dashboard(portal):
    portal.cache.set(DASHBOARD_KEY, {"stale": True})
    portal.submit_quiz_attempt({"quizId": "quiz-1"})

    assert DASHBOARD_KEY not in portal.cache


def test_admin_quiz_change_invalidates_catalogue(portal):
    portal.cache.set(CATEGORIES_KEY, [])
    portal.cache.set(QUIZZES_KEY + ("quiz-1",), {})
    portal.cache.set(("/api/admin", "quizzes"), [])

    portal.admin_update("quizzes", "quiz-1", {"title": "Nuovo"})

    assert CATEGORIES_KEY not in portal.cache
    assert QUIZZES_KEY + ("quiz-1",) not in portal.cache
    assert ("/api/admin", "quizzes") not in portal.cache


def test_generation_poller_is_not_started(portal):
    poller = portal.start_question_generation("quiz-1", 3, "easy")

    assert poller.job_id == "g1"
    assert poller.active is False


def test_report_upload_invalidates_reports(portal):
    portal.reports()
    portal.upload_report("esami.pdf", b"%PDF", "application/pdf")

    assert REPORTS_KEY not in portal.cache


def test_job_notices_describe_their_own_job(portal):
    generation = portal.start_question_generation("quiz-1", 4, "easy")
    upload = portal.report_job_poller("u1")

    assert generation.run_once() is False
    assert upload.run_once() is False

    assert generation.notices[0].title == "Generazione completata!"
    assert generation.notices[0].message == "4 domande sono state generate con successo."
    assert upload.notices[0].title == "Analisi completata"
    assert "domande" not in upload.notices[0].message
