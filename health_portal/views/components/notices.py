"""
views/components/notices.py

Notice 표시. 일반 알림은 토스트, blocking 알림은 확인할 때까지 화면에 남긴다.
"""

from __future__ import annotations

from typing import List

import streamlit as st

from health_portal.models.notice_model import Notice

_ICONS = {"info": "ℹ️", "success": "✅", "warning": "⚠️", "error": "❌"}


def render(notices: List[Notice]) -> None:
    pinned: List[Notice] = st.session_state.setdefault("pinned_notices", [])

    for n in notices:
        if n.blocking:
            pinned.append(n)
        else:
            st.toast(f"**{n.title}** {n.message}", icon=_ICONS[n.level])

    for idx, n in enumerate(list(pinned)):
        st.error(f"**{n.title}**: {n.message}" if n.message else n.title)
        if st.button("OK", key=f"notice_ack_{idx}_{n.created_at}"):
            pinned.remove(n)
            st.rerun()
