"""
services/report_view.py

리포트 목록의 필터 / 검색 / 정렬 / 페이지 나누기.
순수 함수 — 입력 리스트를 바꾸지 않는다. 목록이나 조건이 바뀔 때마다 다시 호출한다.
"""

import math
from typing import Any, List

from health_portal.models.report_model import HealthReport, ReportPage, ReportQuery


def _value_text(value: Any) -> str:
    """검사 수치를 검색용 문자열로. {value, unit} 객체도 처리."""
    if isinstance(value, dict):
        return " ".join(str(v) for v in value.values() if v is not None)
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return "" if value is None else str(value)


def matches_search(report: HealthReport, search_text: str) -> bool:
    """
    파일명, AI 요약, 검사 항목명/수치 중 하나라도 검색어를 포함하면 True.
    대소문자 무시. 빈 검색어는 모두 일치.
    """
    needle = search_text.strip().lower()
    if not needle:
        return True
    if needle in report.file_name.lower():
        return True
    if needle in (report.ai_summary or "").lower():
        return True
    return any(
        needle in name.lower() or needle in _value_text(value).lower()
        for name, value in report.extracted_values.items()
    )


def filter_reports(reports: List[HealthReport], query: ReportQuery) -> List[HealthReport]:
    type_filter = query.type_filter
    return [
        r for r in reports
        if (not type_filter or type_filter == "all" or r.report_type == type_filter)
        and matches_search(r, query.search_text)
    ]


def sort_reports(reports: List[HealthReport], sort_mode: str) -> List[HealthReport]:
    """
    recent: 업로드 최신순, oldest: 업로드 오래된순, type: 리포트 종류 사전순.
    같은 키끼리는 원래 순서 유지 (안정 정렬).
    """
    if sort_mode == "oldest":
        return sorted(reports, key=lambda r: r.created_at)
    if sort_mode == "type":
        return sorted(reports, key=lambda r: r.report_type)
    return sorted(reports, key=lambda r: r.created_at, reverse=True)


def view_reports(reports: List[HealthReport], query: ReportQuery) -> List[HealthReport]:
    """필터 → 정렬."""
    return sort_reports(filter_reports(reports, query), query.sort_mode)


def page_count(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size는 1 이상이어야 합니다.")
    return math.ceil(total / page_size)


def clamp_page(page: int, total: int, page_size: int) -> int:
    """
    페이지 번호(1-based)를 유효 범위로 보정.
    삭제 등으로 결과가 줄어 마지막 페이지가 사라지면 새 마지막 페이지로.
    결과가 없으면 1.
    """
    pages = page_count(total, page_size)
    if pages == 0:
        return 1
    return max(1, min(page, pages))


def paginate(items: List[HealthReport], page: int, page_size: int) -> ReportPage:
    """정렬된 결과에서 한 페이지를 잘라낸다."""
    total = len(items)
    current = clamp_page(page, total, page_size)
    start = (current - 1) * page_size
    return ReportPage(
        items=items[start:start + page_size],
        page=current,
        page_count=page_count(total, page_size),
        total=total,
    )
