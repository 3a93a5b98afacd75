"""
services/viewport_controller.py

이미지 뷰어의 확대/축소, 회전, 전체화면 전환.
마커 레이어는 이미지와 같은 컨테이너 안에 퍼센트 좌표로 배치되므로
transform 하나만 적용하면 마커가 이미지와 함께 움직인다.
"""

from typing import NamedTuple, Optional

from config import ZOOM_MAX, ZOOM_MIN, ZOOM_STEP
from health_portal.models.viewport_state import ViewportState


class ViewportTransform(NamedTuple):
    scale: float
    rotation_degrees: int

    def css(self) -> str:
        """CSS transform 문자열 (예: 'scale(1.25) rotate(90deg)')."""
        return f"scale({self.scale:g}) rotate({self.rotation_degrees}deg)"


class ViewportController:
    """
    ViewportState 하나를 소유하고 사용자 동작으로만 바꾼다.
    인라인/전체화면 렌더러는 모두 같은 transform을 읽는다.
    """

    def __init__(self, state: Optional[ViewportState] = None) -> None:
        self.state = state or ViewportState()

    @property
    def transform(self) -> ViewportTransform:
        return ViewportTransform(self.state.zoom, self.state.rotation_degrees)

    def zoom_in(self) -> ViewportTransform:
        self.state.zoom = min(self.state.zoom + ZOOM_STEP, ZOOM_MAX)
        return self.transform

    def zoom_out(self) -> ViewportTransform:
        self.state.zoom = max(self.state.zoom - ZOOM_STEP, ZOOM_MIN)
        return self.transform

    def rotate(self) -> ViewportTransform:
        self.state.rotation_degrees = (self.state.rotation_degrees + 90) % 360
        return self.transform

    def toggle_fullscreen(self) -> bool:
        # 확대/회전 값은 그대로 둔다
        self.state.is_fullscreen = not self.state.is_fullscreen
        return self.state.is_fullscreen

    def reset(self) -> None:
        """새 이미지를 열 때 기본값으로."""
        self.state = ViewportState()
