"""
models/report_model.py

업로드된 의료 리포트(HealthReport)와 목록 화면의 필터/정렬/페이지 모델.
백엔드 /api/health-score/reports/my 응답 형태와 일치해야 한다.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from health_portal.models.finding_model import RadiologicalAnalysis

SortMode = Literal["recent", "oldest", "type"]


class HealthReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    report_type: str = Field(..., alias="reportType")
    file_name: str = Field(..., alias="fileName")
    file_type: str = Field("", alias="fileType")
    report_date: Optional[datetime] = Field(None, alias="reportDate")
    issuer: Optional[str] = None
    ai_summary: str = Field("", alias="aiSummary")
    extracted_values: Dict[str, Any] = Field(
        default_factory=dict,
        alias="extractedValues",
        description="검사 수치. key: 항목명, value: 수치 또는 {value, unit} 객체"
    )
    radiological_analysis: Optional[RadiologicalAnalysis] = Field(
        None,
        alias="radiologicalAnalysis"
    )
    created_at: datetime = Field(..., alias="createdAt")


class ReportQuery(BaseModel):
    """목록 화면의 필터 상태. type_filter가 None 또는 "all"이면 전체."""

    type_filter: Optional[str] = None
    search_text: str = ""
    sort_mode: SortMode = "recent"


class ReportPage(BaseModel):
    """
    필터/정렬 결과의 한 페이지.

    Attributes:
        items:      현재 페이지 리포트
        page:       현재 페이지 번호 (1-based, 범위 보정 후)
        page_count: 전체 페이지 수 (결과가 없으면 0)
        total:      필터 후 전체 리포트 수
    """

    items: List[HealthReport] = Field(default_factory=list)
    page: int = 1
    page_count: int = 0
    total: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0
