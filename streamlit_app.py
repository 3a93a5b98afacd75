"""
streamlit_app.py — Streamlit 화면 진입점

실행:  streamlit run streamlit_app.py

페이지 라우팅은 st.session_state.page 값으로 한다.
  reports → viewer
  reports → quiz → result
"""

import logging

import streamlit as st

from config import LOG_LEVEL
from health_portal.models.report_model import ReportQuery
from health_portal.services.backend_client import BackendClient
from health_portal.services.portal_service import PortalService
from health_portal.services.query_cache import QueryCache
from health_portal.services.quiz_session import QuizSessionMachine
from health_portal.services.scheduling import cancel_all
from health_portal.services.viewport_controller import ViewportController
from health_portal.views import quiz_view, reports_view, result_view, viewer_view

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

_PAGES = {
    "reports": reports_view.render,
    "viewer": viewer_view.render,
    "quiz": quiz_view.render,
    "result": result_view.render,
}


@st.cache_resource
def _backend() -> BackendClient:
    # 연결 풀은 모든 사용자가 공유, 캐시는 사용자 세션별
    return BackendClient()


def _init_state() -> None:
    if "portal" in st.session_state:
        return
    portal = PortalService(_backend(), QueryCache())
    st.session_state.portal = portal
    st.session_state.quiz_machine = QuizSessionMachine(
        submitter=portal.submit_quiz_attempt,
        translator=portal.translate_questions,
    )
    st.session_state.viewport = ViewportController()
    st.session_state.report_query = ReportQuery()
    st.session_state.report_page = 1
    st.session_state.report_pollers = {}
    st.session_state.language = "it"
    st.session_state.page = "reports"


def _quiz_launcher() -> None:
    with st.sidebar.form("quiz_launcher"):
        quiz_id = st.text_input("ID quiz")
        if st.form_submit_button("Inizia quiz") and quiz_id.strip():
            quiz_view.start(quiz_id.strip())


def main() -> None:
    st.set_page_config(page_title="Health Portal", page_icon="🩺", layout="wide")
    _init_state()

    if st.session_state.page == "reports":
        _quiz_launcher()
    else:
        # 리포트 화면을 벗어나면 업로드 분석 폴링도 멈춘다
        cancel_all(st.session_state.report_pollers)

    _PAGES.get(st.session_state.page, reports_view.render)()


main()
