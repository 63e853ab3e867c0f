"""
포인트 액션 정의

포인트가 오가는 모든 사용자 행동은 ActionKind 하나로 열거됩니다. 카탈로그(point_actions)
행은 이 값으로 키잉되고, 일일 카운터 컬럼과 쿨다운 컬럼 매핑도 여기서만 정의합니다.
새 액션을 추가할 때는 이 파일의 매핑과 시드 데이터를 함께 갱신해야 합니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ActionKind(str, Enum):
    """포인트 액션 코드"""

    CREATE_PIN = "create_pin"
    LIKE_PIN = "like_pin"
    RECEIVE_LIKE = "receive_like"
    COMMENT_PIN = "comment_pin"
    DAILY_LOGIN = "daily_login"
    STREAK_7_DAYS = "streak_7_days"
    STREAK_30_DAYS = "streak_30_days"
    VERIFIED_PURCHASE = "verified_purchase"
    ADMIN_ADJUSTMENT = "admin_adjustment"


class ActionCategory(str, Enum):
    CONTENT = "content"
    SOCIAL = "social"
    ENGAGEMENT = "engagement"
    PURCHASE = "purchase"
    ADMIN = "admin"


@dataclass(frozen=True)
class CounterSpec:
    """user_daily_stats 에서 해당 액션을 추적하는 컬럼 이름"""

    count_column: str
    last_at_column: str


# 일일 한도 / 쿨다운 대상 액션
RATE_LIMITED_ACTIONS: Dict[ActionKind, CounterSpec] = {
    ActionKind.CREATE_PIN: CounterSpec("pins_created", "last_pin_at"),
    ActionKind.LIKE_PIN: CounterSpec("likes_given", "last_like_at"),
    ActionKind.COMMENT_PIN: CounterSpec("comments_made", "last_comment_at"),
}

# 연속 로그인 일수 -> 보너스 액션 (정확히 해당 값에 도달했을 때만 지급)
STREAK_BONUS_ACTIONS: Dict[int, ActionKind] = {
    7: ActionKind.STREAK_7_DAYS,
    30: ActionKind.STREAK_30_DAYS,
}

ACTION_CATEGORIES: Dict[ActionKind, ActionCategory] = {
    ActionKind.CREATE_PIN: ActionCategory.CONTENT,
    ActionKind.LIKE_PIN: ActionCategory.SOCIAL,
    ActionKind.RECEIVE_LIKE: ActionCategory.SOCIAL,
    ActionKind.COMMENT_PIN: ActionCategory.SOCIAL,
    ActionKind.DAILY_LOGIN: ActionCategory.ENGAGEMENT,
    ActionKind.STREAK_7_DAYS: ActionCategory.ENGAGEMENT,
    ActionKind.STREAK_30_DAYS: ActionCategory.ENGAGEMENT,
    ActionKind.VERIFIED_PURCHASE: ActionCategory.PURCHASE,
    ActionKind.ADMIN_ADJUSTMENT: ActionCategory.ADMIN,
}


def counter_spec_for(kind: ActionKind) -> Optional[CounterSpec]:
    """일일 카운터가 없는 액션이면 None"""
    return RATE_LIMITED_ACTIONS.get(kind)


def streak_bonus_for(streak: int) -> Optional[ActionKind]:
    return STREAK_BONUS_ACTIONS.get(streak)


# 레벨 구간 (누적 포인트 하한, 레벨 이름) - 높은 구간부터
LEVEL_THRESHOLDS = (
    (500, "Trotamundos"),
    (200, "Explorador Urbano"),
    (0, "Local"),
)


def level_for_points(total_points: int) -> str:
    for floor, name in LEVEL_THRESHOLDS:
        if total_points >= floor:
            return name
    return LEVEL_THRESHOLDS[-1][1]
