from typing import List, Optional

from pydantic import BaseModel, Field

from pinapi.core.actions import ActionKind


class ActionDefinition(BaseModel):
    """액션 카탈로그 항목"""

    id: int
    action_code: ActionKind
    name: str
    description: Optional[str] = None
    category: str
    points: int = Field(..., description="지급 포인트 (음수 = 패널티)")
    daily_limit: Optional[int] = Field(None, description="일일 한도 (None = 무제한)")
    cooldown_seconds: Optional[int] = Field(None, description="최소 재실행 간격")
    bonus_points: int = Field(0, description="구매 인증 보너스")
    is_active: bool = True

    class Config:
        from_attributes = True


class ActionDefinitionUpdate(BaseModel):
    """관리자 카탈로그 수정 - 보낸 필드만 반영 (daily_limit=null 은 무제한으로 변경)"""

    points: Optional[int] = None
    daily_limit: Optional[int] = Field(None, ge=1)
    cooldown_seconds: Optional[int] = Field(None, ge=0)
    bonus_points: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class ActionCatalogResponse(BaseModel):
    actions: List[ActionDefinition]
