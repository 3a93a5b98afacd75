"""
views/viewer_view.py — 방사선 이미지 뷰어

이미지 위에 소견 마커를 얹고 확대/축소, 회전, 전체화면을 제공한다.
인라인/전체화면 모두 st.session_state.viewport 하나의 상태를 읽는다.
"""

from __future__ import annotations

import streamlit as st

from health_portal.services.errors import PortalError
from health_portal.services.marker_mapper import map_findings_to_markers
from health_portal.services.viewport_controller import ViewportController
from health_portal.views.components import marker_overlay

_CATEGORY_LABELS = {"urgent": "Urgente", "attention": "Attenzione", "normal": "Normale"}


def _toolbar(viewport: ViewportController) -> None:
    c1, c2, c3, c4, c5 = st.columns(5)
    with c1:
        if st.button("−", key="zoom_out", help="Riduci"):
            viewport.zoom_out()
            st.rerun()
    with c2:
        st.markdown(
            f"<p style='text-align:center; padding-top:8px;'>{viewport.state.zoom * 100:.0f}%</p>",
            unsafe_allow_html=True,
        )
    with c3:
        if st.button("+", key="zoom_in", help="Ingrandisci"):
            viewport.zoom_in()
            st.rerun()
    with c4:
        if st.button("⟳", key="rotate", help="Ruota"):
            viewport.rotate()
            st.rerun()
    with c5:
        label = "Esci da schermo intero" if viewport.state.is_fullscreen else "Schermo intero"
        if st.button(label, key="fullscreen"):
            viewport.toggle_fullscreen()
            st.rerun()


def render() -> None:
    """뷰어 화면 렌더링."""
    report_id = st.session_state.get("viewer_report_id")
    portal = st.session_state.portal

    if st.button("← Referti", key="viewer_back"):
        st.session_state.page = "reports"
        st.rerun()

    try:
        report = next((r for r in portal.reports() if r.id == report_id), None)
    except PortalError as e:
        st.error(f"Impossibile caricare il referto: {e}")
        return
    if report is None or report.radiological_analysis is None:
        st.warning("Referto non disponibile.")
        return

    # 다른 이미지를 열면 확대/회전 초기화
    viewport: ViewportController = st.session_state.viewport
    if st.session_state.get("viewport_report_id") != report_id:
        viewport.reset()
        st.session_state.viewport_report_id = report_id

    analysis = report.radiological_analysis
    markers = map_findings_to_markers(analysis.findings)

    try:
        image = portal.client.get_report_image(report_id)
    except PortalError as e:
        st.error(f"Immagine non disponibile: {e}")
        return

    st.markdown(f"**{analysis.image_type}** · {analysis.body_part or ''}")
    _toolbar(viewport)
    marker_overlay.render(
        marker_overlay.image_data_uri(image),
        markers,
        viewport.transform,
        fullscreen=viewport.state.is_fullscreen,
    )

    if viewport.state.is_fullscreen:
        return

    # ── 소견 목록 (마커 번호와 같은 순서) ────────────────────────────────
    if analysis.overall_assessment:
        st.info(analysis.overall_assessment)
    for number, m in enumerate(markers, start=1):
        f = m.finding
        with st.expander(f"{number}. {_CATEGORY_LABELS[f.category]} · {f.location}"):
            st.write(f.patient_description or f.description)
            if f.confidence is not None:
                st.caption(f"Confidenza: {f.confidence:.0f}%")
    unlocated = [f for f in analysis.findings if not f.location]
    for f in unlocated:
        st.caption(f"{_CATEGORY_LABELS[f.category]}: {f.description}")
    for rec in analysis.recommendations:
        st.markdown(f"- {rec}")
