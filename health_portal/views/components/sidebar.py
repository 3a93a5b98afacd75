"""
views/components/sidebar.py

문제 번호 네비게이션 그리드 컴포넌트.
각 번호를 클릭하면 해당 문제로 바로 이동한다.
"""

from __future__ import annotations

import streamlit as st

from health_portal.services.quiz_session import QuizSessionMachine


def render(machine: QuizSessionMachine) -> None:
    """
    사이드바에 진행 현황과 문제 번호 버튼 그리드를 렌더링한다.
    답한 문제는 ● 표시, 현재 문제는 primary 버튼.
    """
    state = machine.state
    total = len(state.questions)
    answered = state.answered_count

    # ── 진행 현황 ──────────────────────────────────────────────────────────
    st.markdown(
        f"""
        <div style="display:flex; justify-content:space-between;
                    font-size:0.8rem; color:#6b7280; margin-bottom:4px;">
            <span>Progresso</span>
            <span><b>{answered}</b> / {total}</span>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.progress(answered / total if total > 0 else 0)

    # ── 문제 번호 그리드 (5열) ─────────────────────────────────────────────
    cols_per_row = 5

    for row_start in range(0, total, cols_per_row):
        row_qs = state.questions[row_start : row_start + cols_per_row]
        cols = st.columns(cols_per_row)
        for col_idx, q in enumerate(row_qs):
            q_idx = row_start + col_idx
            mark = "●" if state.answers.get(q.id) else ""
            with cols[col_idx]:
                if st.button(
                    f"{q_idx + 1}{mark}",
                    key=f"nav_{q_idx}",
                    type="primary" if q_idx == state.current_index else "secondary",
                ):
                    machine.go_to(q_idx)
                    st.rerun()
