"""
인증 의존성

토큰 발급은 외부 인증 서비스 담당이고, 여기서는 Bearer JWT 서명과 user_id 클레임만
검증합니다. 밴/비활성 사용자는 모든 포인트 액션에서 거부됩니다.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from pinapi.config import settings
from pinapi.core.exceptions import AuthenticationError, AuthorizationError
from pinapi.database.session import get_db
from pinapi.repositories.user_repository import UserRepository
from pinapi.schemas.user import User as UserSchema

# JWT Bearer 토큰 스킴
security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    user_id: int
    sub: Optional[str] = None


def decode_access_token(token: str) -> TokenPayload:
    """토큰 서명/만료 검증 후 페이로드 반환"""
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return TokenPayload.model_validate(payload)
    except (JWTError, PydanticValidationError):
        raise AuthenticationError("Invalid authentication credentials")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> UserSchema:
    """필수 사용자 인증 - 유효한 토큰과 활성 계정 필요"""
    if credentials is None:
        raise AuthenticationError("Authentication required")

    token_data = decode_access_token(credentials.credentials)
    user = UserRepository(db).get_by_id(token_data.user_id)
    if user is None:
        raise AuthenticationError("User not found for token")
    if user.is_banned:
        raise AuthorizationError("Account is banned", details={"user_id": user.id})
    if not user.is_active:
        raise AuthorizationError("Account is inactive", details={"user_id": user.id})
    return user


def require_admin(current_user: UserSchema = Depends(get_current_user)) -> UserSchema:
    """관리자 권한 확인"""
    if not current_user.is_admin:
        raise AuthorizationError("Admin privileges required")
    return current_user
