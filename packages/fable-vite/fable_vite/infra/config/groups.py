"""
설정 그룹 정의.

Settings를 논리적 그룹으로 분리하여 관리합니다.
각 그룹은 독립적으로 사용 가능하며, Settings에서 통합됩니다.
"""

from pydantic import BaseModel, Field


class DaemonConfig(BaseModel):
    """Fable daemon 프로세스 설정."""

    path: str = Field(default="fable-daemon", description="daemon 실행 파일 경로")
    args: list[str] = Field(default_factory=lambda: ["--stdio"], description="daemon 인자")
    fable_library_dir: str = Field(
        default="node_modules/@fable-org/fable-library-js",
        description="fable-library 위치 (프로젝트 루트 기준)",
    )
    request_timeout_s: float | None = Field(
        default=None, gt=0, description="요청 타임아웃 (초). None이면 무제한 대기"
    )
    debug: bool = Field(default=False, description="daemon stderr 및 요청/응답 로깅")


class BatchingConfig(BaseModel):
    """변경 이벤트 배칭 설정."""

    window_ms: int = Field(default=50, ge=1, le=5000, description="배치 윈도우 (ms)")


class ObservabilityConfig(BaseModel):
    """관측성 (Observability) 설정."""

    log_level: str = Field(default="INFO", description="로그 레벨")
    log_format: str = Field(default="console", description="로그 포맷 (console, json)")
