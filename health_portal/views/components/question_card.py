"""
views/components/question_card.py

단일 문제(Question)를 카드 형태로 렌더링하고
사용자가 고른 보기 기호를 반환하는 컴포넌트.
"""

from __future__ import annotations

from typing import Optional

import streamlit as st

from health_portal.models.question_model import Question


def option_caption(question: Question, label: str) -> str:
    """라디오 보기 표시 문자열 (예: 'A. Testo')."""
    text = next((o.text for o in question.options if o.label == label), "")
    return f"{label}. {text}"


def render(
    question: Question,
    question_number: int,
    total: int,
    saved_answer: Optional[str] = None,
) -> Optional[str]:
    """
    문제 카드를 렌더링하고 사용자가 선택한 보기 기호를 반환한다.

    Args:
        question:        표시 언어가 적용된 Question
        question_number: 1-based 표시용 번호
        total:           출제 문제 수
        saved_answer:    이미 저장된 보기 기호 (없거나 건너뛴 경우 빈 문자열/None)

    Returns:
        선택된 보기 기호, 선택하지 않았으면 None
    """

    # ── 문제 헤더 ──────────────────────────────────────────────────────────
    st.markdown(
        f"""
        <div style="display:flex; align-items:center; gap:10px; margin-bottom:12px;">
            <span class="question-number-badge">Domanda {question_number} / {total}</span>
            <span style="font-size:0.8rem; color:#9ca3af;">{question.category or ""}</span>
        </div>
        """,
        unsafe_allow_html=True,
    )

    # ── 문제 본문 ──────────────────────────────────────────────────────────
    st.markdown(
        f"""
        <div class="question-card">
            <p style="font-size:1.05rem; font-weight:600; color:#1a1a2e;
                      line-height:1.7; margin:0;">
                {question.text}
            </p>
        </div>
        """,
        unsafe_allow_html=True,
    )

    # ── 보기 선택 (Radio) ─────────────────────────────────────────────────
    radio_key = f"radio_{question.id}"
    labels = question.labels

    # 위젯 키가 없을 때만 saved_answer로 초기화 (재렌더 시 기존 값 유지)
    if radio_key not in st.session_state and saved_answer in labels:
        st.session_state[radio_key] = saved_answer

    current_val = st.session_state.get(radio_key, saved_answer)
    default_index = labels.index(current_val) if current_val in labels else None

    return st.radio(
        "Seleziona una risposta",
        options=labels,
        index=default_index,
        key=radio_key,
        format_func=lambda label: option_caption(question, label),
        label_visibility="collapsed",
    )
