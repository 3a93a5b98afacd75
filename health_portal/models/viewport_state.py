"""
models/viewport_state.py

방사선 이미지 뷰어의 확대/회전/전체화면 상태.
인라인 뷰와 전체화면 뷰가 이 모델 하나를 공유한다.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from config import ZOOM_DEFAULT, ZOOM_MAX, ZOOM_MIN


class ViewportState(BaseModel):
    """
    Attributes:
        zoom:             배율 (0.5 ~ 3.0)
        rotation_degrees: 회전 각도 (0, 90, 180, 270)
        is_fullscreen:    전체화면 표시 여부
    """

    model_config = ConfigDict(validate_assignment=True)

    zoom: float = Field(default=ZOOM_DEFAULT, ge=ZOOM_MIN, le=ZOOM_MAX)
    rotation_degrees: Literal[0, 90, 180, 270] = 0
    is_fullscreen: bool = False
