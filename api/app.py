"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + static 파일 서빙
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from config import SESSION_CLEANUP_INTERVAL, SESSION_TTL, STATIC_DIR
from api.routes import router
from api.session import SessionStore
from health_portal.services.backend_client import BackendClient
from health_portal.services.scheduling import IntervalTask

SESSION_COOKIE = "hp_session"

logger = logging.getLogger(__name__)


class _SessionCleanup(IntervalTask):
    """만료 세션 주기적 정리 (5분마다)."""

    def __init__(self, store: SessionStore) -> None:
        super().__init__(SESSION_CLEANUP_INTERVAL, name="session-cleanup")
        self.store = store

    def run_once(self) -> bool:
        removed = self.store.cleanup_expired()
        if removed:
            logger.info(f"만료 세션 {removed}개 정리")
        return True


def create_app(backend: Optional[BackendClient] = None) -> FastAPI:
    backend = backend or BackendClient()
    store = SessionStore(backend)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with _SessionCleanup(store):
            yield
        store.close_all()
        backend.close()

    app = FastAPI(title="Health Portal", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.sessions = store

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or store.get_session(sid) is None:
            sid = store.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    # static 파일 마운트
    if os.path.isdir(STATIC_DIR):
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # 루트 → index.html
    @app.get("/")
    async def serve_index():
        index_path = os.path.join(STATIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"error": "index.html not found"}

    return app
