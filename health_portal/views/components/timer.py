"""
views/components/timer.py

남은 퀴즈 시간 표시 컴포넌트.
남은 시간은 QuizSessionMachine이 관리하며, 화면은 재렌더 시 sync_clock() 후 값을 읽는다.
"""

import streamlit as st

_WARNING_SECONDS = 300  # 5분 미만이면 빨간색 경고


def format_remaining(seconds: int) -> str:
    """초 → 'MM:SS' (60분 이상이면 분이 두 자리를 넘는다)."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def render(time_remaining: int) -> bool:
    """
    남은 시간 표시.

    Returns:
        True  — 시간이 남아 있음
        False — 시간 초과
    """
    is_warning = time_remaining < _WARNING_SECONDS

    css_class = "timer-display timer-warning" if is_warning else "timer-display"
    icon = "⚠️ " if is_warning else "⏱ "

    st.markdown(
        f'<div class="{css_class}">{icon}{format_remaining(time_remaining)}</div>',
        unsafe_allow_html=True,
    )
    return time_remaining > 0
