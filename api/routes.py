"""
api/routes.py — FastAPI 엔드포인트

세션별 상태 머신(뷰어, 퀴즈, 리포트 목록)을 구동한다.
백엔드 호출이 있는 동작은 asyncio.to_thread로 실행한다.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from config import REPORTS_PAGE_SIZE, SUPPORTED_LANGUAGES
from health_portal.models.finding_model import Finding
from health_portal.models.job_model import GenerationJob
from health_portal.models.report_model import HealthReport, ReportQuery, SortMode
from health_portal.models.session_state import QuizStatus
from health_portal.services.errors import (
    BackendError, JobFailedError, PortalError, QuizStateError,
    UpgradeRequiredError, UploadValidationError,
)
from health_portal.services.marker_mapper import map_findings_to_markers, report_urgency
from health_portal.services.quiz_service import performance_level
from health_portal.services.quiz_session import QuizSessionMachine
from health_portal.services.report_view import paginate, view_reports

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class FindingsBody(BaseModel):
    report_id: str
    findings: List[Finding] = []

class StartQuizBody(BaseModel):
    limit: Optional[int] = None
    language: Optional[str] = None

class SaveAnswerBody(BaseModel):
    question_id: str
    answer: str = ""

class NavigateBody(BaseModel):
    index: int = 0

class GenerateQuestionsBody(BaseModel):
    quiz_id: str
    count: int = Field(..., ge=1)
    difficulty: str = "intermediate"


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _to_http(e: PortalError) -> HTTPException:
    if isinstance(e, UploadValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, UpgradeRequiredError):
        return HTTPException(status_code=402, detail={"message": e.message, "requiresUpgrade": True})
    if isinstance(e, QuizStateError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (BackendError, JobFailedError)):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    """블로킹 호출을 스레드에서 실행하고 PortalError를 HTTP 오류로 변환."""
    try:
        return await asyncio.to_thread(fn, *args)
    except PortalError as e:
        raise _to_http(e) from e


def _state(request: Request) -> Dict[str, Any]:
    state = request.app.state.sessions.get_session(request.state.session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="세션이 없습니다.")
    return state


def _drain(state: Dict[str, Any]) -> List[dict]:
    notices = state["quiz"].drain_notices() + state["notices"]
    state["notices"] = []
    return [n.model_dump() for n in notices]


# ── 이미지 뷰어 ───────────────────────────────────────────────────────────────

def _viewer_dict(state: Dict[str, Any]) -> dict:
    viewport = state["viewport"]
    transform = viewport.transform
    return {
        "report_id": state["report_id"],
        "markers": [m.model_dump(by_alias=True) for m in state["markers"]],
        "zoom": transform.scale,
        "rotation_degrees": transform.rotation_degrees,
        "transform": transform.css(),
        "is_fullscreen": viewport.state.is_fullscreen,
    }


def _load_findings(state: Dict[str, Any], report_id: str, findings: List[Finding]) -> None:
    # 이전 소견의 마커는 남기지 않는다
    if state["report_id"] != report_id:
        state["viewport"].reset()
    state["report_id"] = report_id
    state["findings"] = list(findings)
    state["markers"] = map_findings_to_markers(state["findings"])


@router.post("/api/viewer/findings")
async def viewer_findings(body: FindingsBody, request: Request):
    state = _state(request)
    _load_findings(state, body.report_id, body.findings)
    return _viewer_dict(state)


@router.post("/api/viewer/report/{report_id}")
async def viewer_open_report(report_id: str, request: Request):
    state = _state(request)
    reports: List[HealthReport] = await _call(state["portal"].reports)
    report = next((r for r in reports if r.id == report_id), None)
    if report is None:
        raise HTTPException(status_code=404, detail="리포트를 찾을 수 없습니다.")
    findings = report.radiological_analysis.findings if report.radiological_analysis else []
    _load_findings(state, report_id, findings)
    return _viewer_dict(state)


@router.get("/api/viewer")
async def viewer_state(request: Request):
    return _viewer_dict(_state(request))


@router.get("/api/viewer/image")
async def viewer_image(request: Request):
    state = _state(request)
    if not state["report_id"]:
        raise HTTPException(status_code=404, detail="열린 이미지가 없습니다.")
    content = await _call(state["portal"].client.get_report_image, state["report_id"])
    return Response(content=content, media_type="image/jpeg")


@router.post("/api/viewer/zoom-in")
async def viewer_zoom_in(request: Request):
    state = _state(request)
    state["viewport"].zoom_in()
    return _viewer_dict(state)


@router.post("/api/viewer/zoom-out")
async def viewer_zoom_out(request: Request):
    state = _state(request)
    state["viewport"].zoom_out()
    return _viewer_dict(state)


@router.post("/api/viewer/rotate")
async def viewer_rotate(request: Request):
    state = _state(request)
    state["viewport"].rotate()
    return _viewer_dict(state)


@router.post("/api/viewer/fullscreen")
async def viewer_fullscreen(request: Request):
    state = _state(request)
    state["viewport"].toggle_fullscreen()
    return _viewer_dict(state)


# ── 퀴즈 ─────────────────────────────────────────────────────────────────────

def _quiz_dict(state: Dict[str, Any]) -> dict:
    machine: QuizSessionMachine = state["quiz"]
    s = machine.state
    return {
        "quiz_id": s.quiz.id if s.quiz else None,
        "status": s.status.value,
        "current_index": s.current_index,
        "total": len(s.questions),
        "answers": dict(s.answers),
        "answered_count": s.answered_count,
        "time_remaining": s.time_remaining,
        "start_time": s.start_time,
        "question_ids": [q.id for q in s.questions],
        "submission_sent": s.submission_sent,
        "notices": _drain(state),
    }


async def _quiz_action(request: Request, action: Callable[[QuizSessionMachine], Any]) -> dict:
    """타이머 동기화 후 동작 실행 (자동 제출이 먼저 일어날 수 있음)."""
    state = _state(request)
    machine: QuizSessionMachine = state["quiz"]

    def run():
        machine.sync_clock()
        return action(machine)

    await _call(run)
    return _quiz_dict(state)


@router.post("/api/quiz/{quiz_id}/start")
async def start_quiz(quiz_id: str, body: StartQuizBody, request: Request):
    state = _state(request)
    if body.language:
        if body.language not in SUPPORTED_LANGUAGES:
            raise HTTPException(status_code=400, detail="지원하지 않는 언어입니다.")
        state["language"] = body.language

    quiz_data = await _call(state["portal"].quiz, quiz_id)
    machine: QuizSessionMachine = state["quiz"]

    def begin():
        machine.load(quiz_data, body.limit)
        machine.start()

    await _call(begin)
    return _quiz_dict(state)


@router.get("/api/quiz/state")
async def quiz_state(request: Request):
    return await _quiz_action(request, lambda m: None)


@router.get("/api/quiz/question/{index}")
async def get_question(index: int, request: Request, language: Optional[str] = None):
    state = _state(request)
    if language:
        if language not in SUPPORTED_LANGUAGES:
            raise HTTPException(status_code=400, detail="지원하지 않는 언어입니다.")
        state["language"] = language

    machine: QuizSessionMachine = state["quiz"]
    if machine.status == QuizStatus.NOT_STARTED:
        raise HTTPException(status_code=404, detail="퀴즈 세션이 없습니다.")

    q = await _call(machine.display_question, index, state["language"])
    d = q.model_dump(by_alias=True)
    if machine.status != QuizStatus.COMPLETED:
        # 제출 전에는 정답/해설을 내려주지 않는다
        d.pop("correctAnswer", None)
        d.pop("explanation", None)
        for opt in d["options"]:
            opt.pop("explanation", None)
    d.update({
        "saved_answer": machine.state.answers.get(q.id, ""),
        "index": index,
        "total": len(machine.questions),
        "language": state["language"],
        "notices": _drain(state),
    })
    return d


@router.post("/api/quiz/answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    return await _quiz_action(request, lambda m: m.record_answer(body.question_id, body.answer))


@router.post("/api/quiz/next")
async def next_question(request: Request):
    return await _quiz_action(request, lambda m: m.advance())


@router.post("/api/quiz/previous")
async def previous_question(request: Request):
    return await _quiz_action(request, lambda m: m.previous())


@router.post("/api/quiz/navigate")
async def navigate(body: NavigateBody, request: Request):
    return await _quiz_action(request, lambda m: m.go_to(body.index))


@router.post("/api/quiz/skip")
async def skip_question(request: Request):
    return await _quiz_action(request, lambda m: m.skip())


@router.post("/api/quiz/submit")
async def submit_quiz(request: Request):
    return await _quiz_action(request, lambda m: m.submit())


@router.post("/api/quiz/exit")
async def exit_quiz(request: Request):
    return await _quiz_action(request, lambda m: m.exit())


@router.post("/api/quiz/retry-submission")
async def retry_submission(request: Request):
    return await _quiz_action(request, lambda m: m.retry_submission())


@router.post("/api/quiz/retake")
async def retake_quiz(request: Request):
    return await _quiz_action(request, lambda m: m.retake())


@router.get("/api/quiz/results")
async def get_results(request: Request):
    state = _state(request)
    machine: QuizSessionMachine = state["quiz"]
    await _call(machine.sync_clock)
    if machine.status != QuizStatus.COMPLETED or machine.result is None:
        raise HTTPException(status_code=400, detail="퀴즈가 아직 제출되지 않았습니다.")

    result = machine.result
    d = result.model_dump(by_alias=True)
    d.update({
        "level": performance_level(result.score),
        "submission_sent": machine.state.submission_sent,
        "notices": _drain(state),
    })
    return d


# ── 리포트 목록 ──────────────────────────────────────────────────────────────

def _page_dict(state: Dict[str, Any], reports: List[HealthReport], page_size: int) -> dict:
    ordered = view_reports(reports, state["report_query"])
    page = paginate(ordered, state["report_page"], page_size)
    state["report_page"] = page.page
    return {
        "items": [
            {**r.model_dump(by_alias=True, mode="json"), "urgency": report_urgency(r)}
            for r in page.items
        ],
        "page": page.page,
        "page_count": page.page_count,
        "total": page.total,
        "query": state["report_query"].model_dump(),
        "notices": _drain(state),
    }


@router.get("/api/reports")
async def list_reports(
    request: Request,
    type: Optional[str] = None,
    search: str = "",
    sort: SortMode = "recent",
    page: int = Query(1, ge=1),
    page_size: int = Query(REPORTS_PAGE_SIZE, ge=1, le=50),
):
    state = _state(request)
    state["report_query"] = ReportQuery(type_filter=type, search_text=search, sort_mode=sort)
    state["report_page"] = page
    reports = await _call(state["portal"].reports)
    return _page_dict(state, reports, page_size)


@router.post("/api/reports/upload")
async def upload_report(request: Request, file: UploadFile = File(...)):
    state = _state(request)
    content = await file.read()
    outcome = await _call(
        state["portal"].upload_report,
        file.filename or "",
        content,
        file.content_type or "",
    )

    if isinstance(outcome, GenerationJob):
        poller = state["portal"].report_job_poller(outcome.id)
        state["pollers"][outcome.id] = poller.start()
        return {"jobId": outcome.id, "status": outcome.status}
    return {"report": outcome.model_dump(by_alias=True, mode="json")}


@router.delete("/api/reports/{report_id}")
async def delete_report(
    report_id: str,
    request: Request,
    page_size: int = Query(REPORTS_PAGE_SIZE, ge=1, le=50),
):
    state = _state(request)
    await _call(state["portal"].delete_report, report_id)
    if state["report_id"] == report_id:
        _load_findings(state, None, [])
    reports = await _call(state["portal"].reports)
    # 저장된 페이지 번호는 _page_dict에서 새 범위로 보정된다
    return _page_dict(state, reports, page_size)


# ── 비동기 작업 (업로드 분석, 문제 생성) ──────────────────────────────────────

def _job_dict(state: Dict[str, Any], job_id: str) -> dict:
    poller = state["pollers"].get(job_id)
    if poller is None:
        raise HTTPException(status_code=404, detail="작업을 찾을 수 없습니다.")

    job = poller.job
    finished = not poller.active
    state["notices"].extend(poller.notices)
    poller.notices = []
    # 폴러 스레드가 완전히 끝난 뒤에만 정리 (완료 알림 누락 방지)
    if finished and job is not None and job.is_terminal:
        del state["pollers"][job_id]
    return {
        "jobId": job_id,
        "status": job.status if job else "pending",
        "generatedCount": job.generated_count if job else None,
        "error": job.error if job else None,
        "notices": _drain(state),
    }


@router.get("/api/reports/jobs/{job_id}")
async def report_job_status(job_id: str, request: Request):
    return _job_dict(_state(request), job_id)


@router.post("/api/admin/generate-questions")
async def generate_questions(body: GenerateQuestionsBody, request: Request):
    state = _state(request)
    poller = await _call(
        state["portal"].start_question_generation, body.quiz_id, body.count, body.difficulty
    )
    state["pollers"][poller.job_id] = poller.start()
    return {"jobId": poller.job_id, "status": "processing"}


@router.get("/api/admin/generation-status/{job_id}")
async def generation_status(job_id: str, request: Request):
    return _job_dict(_state(request), job_id)


@router.post("/api/reset")
async def reset_session(request: Request):
    request.app.state.sessions.reset(request.state.session_id)
    return {"ok": True}
