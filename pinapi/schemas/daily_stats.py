from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserDailyStatsResponse(BaseModel):
    """일일 통계 행"""

    user_id: int
    stat_date: date
    pins_created: int = 0
    likes_given: int = 0
    comments_made: int = 0
    points_earned: int = 0
    last_pin_at: Optional[datetime] = None
    last_like_at: Optional[datetime] = None
    last_comment_at: Optional[datetime] = None
    login_streak: int = 0
    login_claimed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DailyLoginResult(BaseModel):
    """일일 로그인 보상 결과"""

    streak: int = Field(..., description="현재 연속 로그인 일수")
    already_claimed_today: bool = Field(..., description="오늘 이미 수령했는지 여부")
    bonus_awarded: bool = Field(False, description="연속 로그인 보너스 지급 여부")
    points_awarded: int = Field(0, description="이번 요청으로 지급된 총 포인트")
    bonus_action: Optional[str] = Field(None, description="지급된 보너스 액션 코드")


class ActionUsage(BaseModel):
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    cooldown_remaining_seconds: int = 0


class DailySummaryResponse(BaseModel):
    """오늘 활동 요약 (한도 대비 사용량)"""

    stat_date: date
    pins: ActionUsage
    likes: ActionUsage
    comments: ActionUsage
    points_earned: int
    login_streak: int
    login_claimed_today: bool
