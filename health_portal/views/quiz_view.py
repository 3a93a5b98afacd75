"""
views/quiz_view.py — 퀴즈 풀기 화면

레이아웃:
  - st.sidebar : 타이머 + 문제 번호 네비게이터 + 언어 선택 + 나가기
  - 메인 영역  : 현재 문제 카드 + 건너뛰기/이전/다음

상태 관리:
  - st.session_state.quiz_machine (QuizSessionMachine)
  - 답안은 radio 위젯 → machine.record_answer() 로 즉시 기록
  - 재렌더마다 sync_clock()으로 흐른 시간을 반영 (0초면 자동 제출)
"""

from __future__ import annotations

import streamlit as st

from config import SUPPORTED_LANGUAGES
from health_portal.models.session_state import QuizStatus
from health_portal.services.errors import PortalError
from health_portal.services.quiz_session import QuizSessionMachine
from health_portal.views.components import notices as ntc
from health_portal.views.components import question_card as qcard
from health_portal.views.components import sidebar as nav
from health_portal.views.components import timer as tmr

_LANGUAGE_NAMES = {"it": "Italiano", "en": "English", "es": "Español", "fr": "Français"}


def start(quiz_id: str, limit: int | None = None) -> None:
    """퀴즈 데이터를 불러와 응시를 시작하고 퀴즈 화면으로 이동."""
    machine: QuizSessionMachine = st.session_state.quiz_machine
    try:
        quiz_data = st.session_state.portal.quiz(quiz_id)
        machine.load(quiz_data, limit)
        machine.start()
    except PortalError as e:
        st.error(f"Impossibile avviare il quiz: {e}")
        return
    _clear_radio_keys()
    st.session_state.page = "quiz"
    st.rerun()


def _clear_radio_keys() -> None:
    for k in [k for k in st.session_state if k.startswith("radio_")]:
        del st.session_state[k]


def _go_to_result() -> None:
    st.session_state.page = "result"
    st.rerun()


def render() -> None:
    """퀴즈 화면 렌더링."""
    machine: QuizSessionMachine | None = st.session_state.get("quiz_machine")

    # ── 세션 가드 ──────────────────────────────────────────────────────────
    if machine is None or machine.status == QuizStatus.NOT_STARTED:
        st.warning("Nessun quiz in corso.")
        if st.button("Torna ai referti", type="primary"):
            st.session_state.page = "reports"
            st.rerun()
        return

    machine.sync_clock()
    if machine.status == QuizStatus.COMPLETED:
        _go_to_result()
        return

    state = machine.state
    total = len(state.questions)
    current_idx = state.current_index
    language = st.session_state.get("language", "it")

    # ── 사이드바 ───────────────────────────────────────────────────────────
    with st.sidebar:
        st.markdown(
            f"<h3 style='font-size:1rem; font-weight:700; color:#1a1a2e;'>{state.quiz.title}</h3>",
            unsafe_allow_html=True,
        )
        tmr.render(state.time_remaining)

        st.selectbox(
            "Lingua",
            options=list(SUPPORTED_LANGUAGES),
            format_func=lambda code: _LANGUAGE_NAMES.get(code, code),
            key="language",
        )

        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)
        nav.render(machine)
        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)

        if st.button("Esci dal quiz", key="exit_quiz"):
            st.session_state["confirm_exit"] = True
            st.rerun()

        if st.session_state.get("confirm_exit"):
            unanswered = total - state.answered_count
            st.warning(
                f"Hai {unanswered} domande senza risposta, che verranno contate come errate. "
                f"Vuoi uscire e inviare il quiz?"
            )
            col_yes, col_no = st.columns(2)
            with col_yes:
                if st.button("Esci", key="confirm_exit_yes", type="primary"):
                    st.session_state["confirm_exit"] = False
                    machine.exit()
                    _go_to_result()
            with col_no:
                if st.button("Annulla", key="confirm_exit_no"):
                    st.session_state["confirm_exit"] = False
                    st.rerun()

    # ── 문제 카드 ─────────────────────────────────────────────────────────
    question = machine.display_question(current_idx, language)
    ntc.render(machine.drain_notices())

    selected = qcard.render(
        question=question,
        question_number=current_idx + 1,
        total=total,
        saved_answer=state.answers.get(question.id),
    )
    if selected and selected != state.answers.get(question.id):
        machine.record_answer(question.id, selected)

    # ── 건너뛰기 / 이전 / 다음 ─────────────────────────────────────────────
    st.markdown("<br>", unsafe_allow_html=True)
    nav_left, nav_center, nav_right = st.columns([1, 2, 1])

    with nav_left:
        if current_idx > 0:
            if st.button("← Precedente", key="prev_btn", use_container_width=True):
                machine.previous()
                st.rerun()

    with nav_center:
        if st.button("Salta", key="skip_btn", use_container_width=True):
            machine.skip()
            st.rerun()

    with nav_right:
        is_last = current_idx >= total - 1
        label = "Invia →" if is_last else "Successiva →"
        if st.button(label, key="next_btn", type="primary", use_container_width=True):
            machine.advance()
            st.rerun()
