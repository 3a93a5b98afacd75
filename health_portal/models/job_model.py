from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

JobStatus = Literal["pending", "processing", "completed", "failed"]


class GenerationJob(BaseModel):
    """백엔드 비동기 작업 (문제 생성, 리포트 분석) 상태."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: JobStatus = "pending"
    generated_count: Optional[int] = Field(None, alias="generatedCount")
    error: Optional[str] = None
    result: Optional[dict] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")
