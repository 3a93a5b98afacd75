import time
from typing import Literal

from pydantic import BaseModel, Field

NoticeLevel = Literal["info", "success", "warning", "error"]


class Notice(BaseModel):
    """
    사용자에게 보여줄 알림 (토스트).
    blocking=True이면 사용자가 확인할 때까지 화면에 남는 오류 알림.
    """

    level: NoticeLevel = "info"
    title: str
    message: str = ""
    blocking: bool = False
    created_at: float = Field(default_factory=time.time)
