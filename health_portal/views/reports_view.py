"""
views/reports_view.py — 내 의료 리포트 목록

기능:
  - 리포트 업로드 (PDF/이미지, 전송 전 형식/크기 검증)
  - 유형 필터, 검색, 정렬, 페이지 이동
  - 리포트 삭제 (현재 페이지 번호는 새 범위로 보정)
  - 방사선 소견이 있는 리포트는 뷰어로 열기
"""

from __future__ import annotations

from typing import List

import streamlit as st

from config import REPORTS_PAGE_SIZE
from health_portal.models.job_model import GenerationJob
from health_portal.models.report_model import HealthReport, ReportQuery
from health_portal.services.errors import PortalError, UpgradeRequiredError, UploadValidationError
from health_portal.services.job_poller import JobPoller
from health_portal.services.marker_mapper import report_urgency
from health_portal.services.report_view import paginate, view_reports
from health_portal.views.components import notices as ntc

_SORT_LABELS = {"recent": "Più recenti", "oldest": "Meno recenti", "type": "Tipo"}
_URGENCY_BADGE = {"urgent": "🔴 Urgente", "attention": "🟠 Attenzione", "none": ""}


def _upload_section() -> None:
    uploaded = st.file_uploader(
        "Carica un referto",
        type=["pdf", "jpg", "jpeg", "png", "heic", "webp"],
        key="report_upload",
    )
    if uploaded is None or not st.button("Analizza referto", type="primary"):
        return

    try:
        with st.spinner("Caricamento in corso..."):
            outcome = st.session_state.portal.upload_report(
                uploaded.name, uploaded.getvalue(), uploaded.type or ""
            )
    except UploadValidationError as e:
        st.error(str(e))
        return
    except UpgradeRequiredError as e:
        st.warning(f"{e.message} Passa a un piano superiore per continuare.")
        return
    except PortalError as e:
        st.error(f"Caricamento non riuscito: {e}")
        return

    if isinstance(outcome, GenerationJob):
        poller: JobPoller = st.session_state.portal.report_job_poller(outcome.id)
        st.session_state.report_pollers[outcome.id] = poller.start()
        st.info("Referto caricato. L'analisi è in corso.")
    else:
        st.success("Referto analizzato.")


def _collect_poller_notices() -> None:
    """끝난 업로드 작업의 알림을 보여주고 폴러를 정리한다."""
    pollers = st.session_state.report_pollers
    for job_id, poller in list(pollers.items()):
        ntc.render(poller.notices)
        poller.notices = []
        if not poller.active:
            del pollers[job_id]


def _filters(reports: List[HealthReport]) -> ReportQuery:
    types = sorted({r.report_type for r in reports})
    c1, c2, c3 = st.columns([1, 2, 1])
    with c1:
        type_filter = st.selectbox("Tipo", options=["all"] + types,
                                   format_func=lambda t: "Tutti" if t == "all" else t)
    with c2:
        search = st.text_input("Cerca", placeholder="Nome file, riepilogo, valori...")
    with c3:
        sort_mode = st.selectbox("Ordina", options=list(_SORT_LABELS),
                                 format_func=lambda m: _SORT_LABELS[m])
    return ReportQuery(type_filter=type_filter, search_text=search, sort_mode=sort_mode)


def _report_card(report: HealthReport) -> None:
    badge = _URGENCY_BADGE[report_urgency(report)]
    date = (report.report_date or report.created_at).strftime("%d/%m/%Y")
    with st.container(border=True):
        head, actions = st.columns([4, 1])
        with head:
            st.markdown(f"**{report.file_name}** · {report.report_type} · {date} {badge}")
            if report.ai_summary:
                st.caption(report.ai_summary)
        with actions:
            if report.radiological_analysis and report.radiological_analysis.findings:
                if st.button("Apri", key=f"open_{report.id}"):
                    st.session_state.viewer_report_id = report.id
                    st.session_state.page = "viewer"
                    st.rerun()
            if st.button("Elimina", key=f"delete_{report.id}"):
                try:
                    st.session_state.portal.delete_report(report.id)
                except PortalError as e:
                    st.error(f"Eliminazione non riuscita: {e}")
                else:
                    st.rerun()


def render() -> None:
    """리포트 목록 화면 렌더링."""
    st.markdown(
        "<h2 style='font-size:1.3rem; font-weight:700; color:#1a1a2e;'>I miei referti</h2>",
        unsafe_allow_html=True,
    )

    _upload_section()
    _collect_poller_notices()

    try:
        reports = st.session_state.portal.reports()
    except PortalError as e:
        st.error(f"Impossibile caricare i referti: {e}")
        return

    query = _filters(reports)
    if query != st.session_state.report_query:
        # 필터가 바뀌면 첫 페이지부터
        st.session_state.report_query = query
        st.session_state.report_page = 1

    page = paginate(view_reports(reports, query), st.session_state.report_page, REPORTS_PAGE_SIZE)
    st.session_state.report_page = page.page

    if page.is_empty:
        st.info("Nessun referto trovato.")
        return

    for report in page.items:
        _report_card(report)

    # ── 페이지 이동 ───────────────────────────────────────────────────────
    prev_col, info_col, next_col = st.columns([1, 2, 1])
    with prev_col:
        if st.button("←", key="page_prev", disabled=page.page <= 1):
            st.session_state.report_page = page.page - 1
            st.rerun()
    with info_col:
        st.markdown(
            f"<p style='text-align:center; color:#9ca3af;'>{page.page} / {page.page_count}</p>",
            unsafe_allow_html=True,
        )
    with next_col:
        if st.button("→", key="page_next", disabled=page.page >= page.page_count):
            st.session_state.report_page = page.page + 1
            st.rerun()
