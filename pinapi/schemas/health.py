from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """GET /health - DB 연결 확인 결과"""

    status: Literal["healthy", "degraded"] = "healthy"
    database: Literal["ok", "unavailable"] = "ok"
    checked_at: datetime
    error: Optional[str] = Field(None, description="DB 예외 클래스명 (degraded 일 때)")
