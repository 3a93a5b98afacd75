"""
models/finding_model.py

방사선 판독 소견(Finding)과 이미지 위 마커(Marker) 모델.
백엔드 JSON(camelCase)을 그대로 받을 수 있도록 alias를 둔다.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

FindingCategory = Literal["normal", "attention", "urgent"]


class Finding(BaseModel):
    """
    AI 분석 결과의 단일 소견. 백엔드에서 받은 뒤에는 읽기 전용.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: FindingCategory = Field(
        ...,
        description="소견 등급 (normal / attention / urgent)"
    )
    description: str = Field(
        ...,
        description="소견 설명"
    )
    technical_description: Optional[str] = Field(
        None,
        alias="technicalDescription",
        description="의사용 기술 설명"
    )
    patient_description: Optional[str] = Field(
        None,
        alias="patientDescription",
        description="환자용 쉬운 설명"
    )
    location: Optional[str] = Field(
        None,
        description="자유 텍스트 해부학적 위치 (예: 'lobo superiore destro')"
    )
    confidence: Optional[float] = Field(
        None,
        ge=0,
        le=100,
        description="신뢰도 (0~100)"
    )


class Marker(BaseModel):
    """
    소견 하나에 대응하는 이미지 위 마커.

    x, y는 이미지 크기 대비 퍼센트 좌표. 겹침 보정 후 범위를 다시 자르지 않는다.
    현재 규칙표(최대 70/75 + 10)로는 0~100 안에 머물지만, 가장자리 좌표 규칙이
    추가되면 이미지 밖으로 나갈 수 있다.
    """

    x: float
    y: float
    finding: Finding
    id: str


class RadiologicalAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_type: str = Field("general", alias="imageType")
    body_part: Optional[str] = Field(None, alias="bodyPart")
    findings: List[Finding] = Field(default_factory=list)
    overall_assessment: str = Field("", alias="overallAssessment")
    recommendations: List[str] = Field(default_factory=list)
    confidence: Optional[float] = None

    @field_validator("findings", mode="before")
    @classmethod
    def upgrade_legacy_findings(cls, v):
        """
        구버전 리포트는 findings를 문자열 리스트로 저장했다.
        문자열은 위치 없는 normal 소견으로 승격한다 (등급 판정·마커 모두 영향 없음).
        """
        if not isinstance(v, list):
            return v
        return [
            {"category": "normal", "description": item} if isinstance(item, str) else item
            for item in v
        ]
