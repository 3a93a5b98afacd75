import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.path.join(BASE_DIR, "launch.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
SESSION_TTL = 3600          # 1시간
SESSION_CLEANUP_INTERVAL = 300

# 외부 백엔드 (REST) 설정
BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", "http://localhost:5000")
BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "15.0"))
EXTENDED_AUDIO_TIMEOUT = 60.0   # 확장 오디오 생성 호출만 별도 제한
BACKEND_MAX_RETRIES = 3

# 비동기 작업 폴링
JOB_POLL_INTERVAL = 3.0

# 업로드 검증 (네트워크 호출 전에 클라이언트에서 차단)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_UPLOAD_TYPES = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/heic": ".heic",
    "image/webp": ".webp",
}

# 리포트 목록 페이지 크기
REPORTS_PAGE_SIZE = 3
DOCTOR_REPORTS_PAGE_SIZE = 2

# 이미지 뷰어
ZOOM_DEFAULT = 1.0
ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_STEP = 0.25

# 퀴즈
SUPPORTED_LANGUAGES = ("it", "en", "es", "fr")
DEFAULT_LANGUAGE = "it"
DEFAULT_CATEGORY = "General"
