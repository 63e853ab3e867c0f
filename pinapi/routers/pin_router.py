from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from pinapi.core.security import get_current_user
from pinapi.deps import get_pin_activity_service
from pinapi.schemas.pin import (
    CommentCreate,
    CommentCreateResponse,
    CommentListResponse,
    LikeResponse,
    PinCreate,
    PinCreateResponse,
    PinListResponse,
    PinResponse,
)
from pinapi.schemas.pagination import PaginationLimits
from pinapi.schemas.user import User as UserSchema
from pinapi.schemas.user import UserCityResponse
from pinapi.services.pin_activity_service import PinActivityService

router = APIRouter(prefix="/pins", tags=["pins"])

FEED = PaginationLimits.PIN_FEED


@router.post("", response_model=PinCreateResponse, status_code=status.HTTP_201_CREATED)
def create_pin(
    pin_in: PinCreate,
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> PinCreateResponse:
    """핀 생성 - 일일 한도/쿨다운 초과 시 429"""
    return pin_service.create_pin(current_user.id, pin_in)


@router.get("", response_model=PinListResponse)
def list_pins(
    category_id: Optional[int] = Query(None, gt=0),
    city_id: Optional[int] = Query(None, gt=0),
    user_id: Optional[int] = Query(None, gt=0),
    limit: int = Query(FEED["default"], ge=FEED["min"], le=FEED["max"]),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> PinListResponse:
    """
    핀 피드 (최신순, 숨김 핀 제외)

    사용 예시:
        GET /pins?city_id=3            # 특정 도시
        GET /pins?user_id=7&limit=10   # 특정 사용자의 최근 10개
    """
    return pin_service.list_pins(
        current_user.id,
        category_id=category_id,
        city_id=city_id,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )


@router.get("/cities/my", response_model=List[UserCityResponse])
def list_my_cities(
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> List[UserCityResponse]:
    """내가 핀을 남긴 도시별 핀 수 / 획득 포인트"""
    return pin_service.list_cities(current_user.id)


@router.get("/{pin_id}", response_model=PinResponse)
def get_pin(
    pin_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> PinResponse:
    return pin_service.get_pin(pin_id)


@router.post("/{pin_id}/like", response_model=LikeResponse)
def like_pin(
    pin_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> LikeResponse:
    """좋아요 - 중복 좋아요는 409"""
    return pin_service.like_pin(current_user.id, pin_id)


@router.delete("/{pin_id}/like", response_model=LikeResponse)
def unlike_pin(
    pin_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> LikeResponse:
    return pin_service.unlike_pin(current_user.id, pin_id)


@router.post(
    "/{pin_id}/comments",
    response_model=CommentCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def comment_pin(
    comment_in: CommentCreate,
    pin_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> CommentCreateResponse:
    return pin_service.comment_pin(current_user.id, pin_id, comment_in)


@router.get("/{pin_id}/comments", response_model=CommentListResponse)
def list_comments(
    pin_id: int = Path(..., gt=0),
    current_user: UserSchema = Depends(get_current_user),
    pin_service: PinActivityService = Depends(get_pin_activity_service),
) -> CommentListResponse:
    return pin_service.list_comments(pin_id)
