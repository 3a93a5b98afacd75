"""
views/components/marker_overlay.py

방사선 이미지 + 소견 마커 레이어.

이미지와 마커는 같은 컨테이너 안에 있고 transform은 컨테이너 하나에만 건다.
마커는 퍼센트 좌표라서 확대/회전 시 이미지와 함께 움직인다.
인라인 뷰와 전체화면 뷰가 같은 HTML 빌더를 쓴다.
"""

from __future__ import annotations

import base64
import html
from typing import List

import streamlit as st

from health_portal.models.finding_model import Marker
from health_portal.services.viewport_controller import ViewportTransform

_MARKER_COLORS = {
    "urgent": "#ef4444",
    "attention": "#f59e0b",
    "normal": "#10b981",
}


def marker_color(category: str) -> str:
    return _MARKER_COLORS.get(category, _MARKER_COLORS["normal"])


def image_data_uri(content: bytes, media_type: str = "image/jpeg") -> str:
    return f"data:{media_type};base64,{base64.b64encode(content).decode('ascii')}"


def build_viewer_html(
    image_src: str,
    markers: List[Marker],
    transform: ViewportTransform,
    height: int = 480,
) -> str:
    """
    이미지와 마커를 하나의 변환 컨테이너로 묶은 HTML.

    Args:
        image_src: 이미지 URL 또는 data URI
        markers:   map_findings_to_markers() 결과
        transform: ViewportController.transform
        height:    뷰포트 높이 (px). 전체화면이면 더 크게 준다.
    """
    dots = []
    for number, m in enumerate(markers, start=1):
        title = html.escape(m.finding.patient_description or m.finding.description, quote=True)
        dots.append(
            f'<div class="finding-marker" id="{html.escape(m.id)}" title="{title}" '
            f'style="position:absolute; left:{m.x}%; top:{m.y}%; '
            f'transform:translate(-50%,-50%); width:22px; height:22px; '
            f'border-radius:50%; background:{marker_color(m.finding.category)}; '
            f'color:white; font-size:0.7rem; font-weight:700; '
            f'display:flex; align-items:center; justify-content:center; '
            f'border:2px solid white;">{number}</div>'
        )

    return (
        f'<div class="viewer-viewport" style="height:{height}px; overflow:hidden; '
        f'background:#0b0f19; border-radius:12px; display:flex; '
        f'align-items:center; justify-content:center;">'
        f'<div class="viewer-stage" style="position:relative; display:inline-block; '
        f'transform:{transform.css()}; transform-origin:center; transition:transform 0.2s;">'
        f'<img src="{html.escape(image_src, quote=True)}" '
        f'style="display:block; max-height:{height}px; max-width:100%;">'
        f'{"".join(dots)}'
        f'</div></div>'
    )


def render(
    image_src: str,
    markers: List[Marker],
    transform: ViewportTransform,
    fullscreen: bool = False,
) -> None:
    height = 820 if fullscreen else 480
    st.markdown(build_viewer_html(image_src, markers, transform, height), unsafe_allow_html=True)

    # ── 범례 ──────────────────────────────────────────────────────────────
    if markers:
        legend = " ".join(
            f"<span style='display:inline-block; width:10px; height:10px; border-radius:50%; "
            f"background:{marker_color(cat)}; margin:0 4px 0 10px;'></span>{label}"
            for cat, label in (("urgent", "Urgente"), ("attention", "Attenzione"), ("normal", "Normale"))
        )
        st.markdown(
            f"<div style='margin-top:8px; font-size:0.78rem; color:#6b7280;'>{legend}</div>",
            unsafe_allow_html=True,
        )
