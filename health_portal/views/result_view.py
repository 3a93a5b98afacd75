"""
views/result_view.py — 퀴즈 결과 화면

표시 내용:
  - 최종 점수 (%), 성취 수준 배지
  - 통계 요약 (정답, 오답, 미응답)
  - 카테고리별 점수 막대
  - 결과 전송 실패 시 재시도 버튼
  - 다시 풀기 / 나가기
"""

from __future__ import annotations

import streamlit as st

from health_portal.models.result_model import CategoryScore
from health_portal.models.session_state import QuizStatus
from health_portal.services.quiz_service import performance_level
from health_portal.services.quiz_session import QuizSessionMachine
from health_portal.views.components import notices as ntc

_LEVEL_STYLE = {
    "high": ("#10b981", "Ottimo"),
    "medium": ("#f59e0b", "Discreto"),
    "low": ("#ef4444", "Da migliorare"),
}


def _retake(machine: QuizSessionMachine) -> None:
    machine.retake()
    for k in [k for k in st.session_state if k.startswith("radio_")]:
        del st.session_state[k]
    st.session_state.page = "quiz"


def _leave() -> None:
    st.session_state.page = "reports"


def render() -> None:
    """결과 화면 렌더링."""
    machine: QuizSessionMachine | None = st.session_state.get("quiz_machine")

    # ── 세션 가드 ──────────────────────────────────────────────────────────
    if machine is None or machine.status != QuizStatus.COMPLETED or machine.result is None:
        st.warning("Nessun risultato disponibile.")
        if st.button("Torna ai referti", type="primary"):
            _leave()
            st.rerun()
        return

    ntc.render(machine.drain_notices())

    result = machine.result
    color, level_text = _LEVEL_STYLE[performance_level(result.score)]
    unanswered = sum(1 for a in result.answers if not a.answer)
    wrong = result.total_questions - result.correct_answers - unanswered

    _, col, _ = st.columns([0.8, 2.5, 0.8])
    with col:
        st.markdown(
            f'<p class="score-big" style="color:{color};">{result.score}%</p>',
            unsafe_allow_html=True,
        )
        st.markdown(
            f"<div style='text-align:center; margin-bottom:24px;'>"
            f"<span class='pass-badge' style='background:{color}; color:white;'>{level_text}</span></div>",
            unsafe_allow_html=True,
        )

        s1, s2, s3 = st.columns(3)
        _stat_card(s1, "Corrette", str(result.correct_answers), "#10b981")
        _stat_card(s2, "Errate", str(wrong), "#ef4444")
        _stat_card(s3, "Senza risposta", str(unanswered), "#f59e0b")

        minutes, seconds = divmod(result.time_spent, 60)
        st.caption(f"Tempo impiegato: {minutes} min {seconds} s")

        # 전송 실패: 답안은 그대로 두고 재시도만 허용
        if not machine.state.submission_sent:
            st.error("Impossibile salvare i risultati del quiz.")
            if st.button("Riprova invio", key="retry_submit", type="primary"):
                machine.retry_submission()
                st.rerun()

        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)

        btn_left, btn_right = st.columns(2)
        with btn_left:
            st.button(
                "Riprova il quiz",
                key="retake_btn",
                use_container_width=True,
                on_click=_retake,
                args=(machine,),
            )
        with btn_right:
            st.button(
                "Esci",
                key="leave_btn",
                type="primary",
                use_container_width=True,
                on_click=_leave,
            )

    if len(result.category_scores) > 1:
        st.markdown("<br>", unsafe_allow_html=True)
        _render_category_scores(result.category_scores)


def _render_category_scores(scores: list[CategoryScore]) -> None:
    """카테고리별 점수 막대."""
    st.markdown(
        "<h3 style='font-size:1.1rem; font-weight:700; color:#1a1a2e; "
        "margin-bottom:16px;'>Risultati per categoria</h3>",
        unsafe_allow_html=True,
    )
    for cs in scores:
        bar_color = _LEVEL_STYLE[performance_level(cs.score)][0]
        st.markdown(
            f"""
            <div style="background:#ffffff; border-radius:12px; padding:16px 20px;
                        margin-bottom:12px; border:1px solid #e5eaf2;">
                <div style="display:flex; justify-content:space-between; margin-bottom:8px;">
                    <span style="font-size:0.95rem; font-weight:600; color:#1a1a2e;">{cs.category}</span>
                    <span style="font-size:0.8rem; color:#6b7280;">{cs.correct} / {cs.total}</span>
                </div>
                <div style="background:#e5eaf2; border-radius:6px; height:12px; overflow:hidden;">
                    <div style="background:{bar_color}; width:{max(cs.score, 2)}%; height:100%;
                                border-radius:6px;"></div>
                </div>
                <div style="font-size:0.78rem; color:#6b7280; margin-top:6px;">{cs.score}%</div>
            </div>
            """,
            unsafe_allow_html=True,
        )


def _stat_card(col, label: str, value: str, color: str) -> None:
    """통계 수치를 카드 형태로 렌더링하는 헬퍼."""
    with col:
        st.markdown(
            f"""
            <div style="text-align:center; background:#f7fafd; border-radius:12px;
                        padding:16px 8px; border-top:3px solid {color};">
                <p style="font-size:1.8rem; font-weight:800; color:{color};
                           margin:0 0 4px 0;">{value}</p>
                <p style="font-size:0.78rem; color:#9ca3af; margin:0;">{label}</p>
            </div>
            """,
            unsafe_allow_html=True,
        )
