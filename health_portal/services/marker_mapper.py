"""
services/marker_mapper.py

소견(Finding)의 자유 텍스트 위치를 이미지 위 퍼센트 좌표로 바꾸는 휴리스틱.
실제 해부학적 정합이 아니라 키워드 규칙표 기반이다.
순수 함수 — 상태 없음, 실패 없음.
"""

from typing import List, Tuple

from health_portal.models.finding_model import Finding, Marker
from health_portal.models.report_model import HealthReport

# (키워드들, 좌표): 위에서부터 먼저 일치하는 규칙 사용
_HORIZONTAL_RULES: List[Tuple[Tuple[str, ...], float]] = [
    (("destra", "destro", "right"), 70.0),
    (("sinistra", "sinistro", "left"), 30.0),
]
_VERTICAL_RULES: List[Tuple[Tuple[str, ...], float]] = [
    (("superiore", "apice", "upper", "top"), 25.0),
    (("inferiore", "base", "lower", "bottom"), 75.0),
    (("medio", "middle", "central"), 50.0),
]
_CENTER = 50.0

_COLLISION_DISTANCE = 10.0
_COLLISION_OFFSET = 5.0


def _lookup(location: str, rules: List[Tuple[Tuple[str, ...], float]]) -> float:
    for keywords, value in rules:
        if any(k in location for k in keywords):
            return value
    return _CENTER


def base_position(location: str) -> Tuple[float, float]:
    """위치 문자열 → 겹침 보정 전 (x, y)."""
    text = location.lower()
    return _lookup(text, _HORIZONTAL_RULES), _lookup(text, _VERTICAL_RULES)


def map_findings_to_markers(findings: List[Finding]) -> List[Marker]:
    """
    위치가 있는 소견마다 마커를 하나씩 만든다. 입력 순서 유지.

    겹침 처리: 이미 놓인 마커 중 x, y 모두 10 미만 차이인 것이 n개면
    후보 좌표를 (5n, 5n)만큼 민다. 보정 후 0~100 범위로 자르지 않는다.

    Args:
        findings: 백엔드에서 받은 소견 리스트

    Returns:
        Marker 리스트. id는 위치 있는 소견 중 순번 (marker-0, marker-1, ...)
    """
    markers: List[Marker] = []

    located = [f for f in findings if f.location]
    for index, finding in enumerate(located):
        x, y = base_position(finding.location)

        same_position = sum(
            1 for m in markers
            if abs(m.x - x) < _COLLISION_DISTANCE and abs(m.y - y) < _COLLISION_DISTANCE
        )
        if same_position:
            x += same_position * _COLLISION_OFFSET
            y += same_position * _COLLISION_OFFSET

        markers.append(Marker(x=x, y=y, finding=finding, id=f"marker-{index}"))

    return markers


def report_urgency(report: HealthReport) -> str:
    """
    리포트의 긴급도: urgent 소견이 하나라도 있으면 "urgent",
    attention이 있으면 "attention", 그 외 "none".
    """
    analysis = report.radiological_analysis
    if analysis is None or not analysis.findings:
        return "none"
    categories = {f.category for f in analysis.findings}
    if "urgent" in categories:
        return "urgent"
    if "attention" in categories:
        return "attention"
    return "none"
