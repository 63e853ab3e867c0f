from typing import Any, Optional

from sqlalchemy import BigInteger, ForeignKey, Index, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from pinapi.models.base import BaseModel, BigIntPK


class AdminSetting(BaseModel):
    """관리자 설정 저장소 - 값은 {"value": ...} 형태의 JSON

    애플리케이션 코드는 이 테이블을 직접 키로 조회하지 않고
    PlatformSettings 스냅샷을 통해서만 읽습니다.
    """

    __tablename__ = "admin_settings"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    setting_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    setting_value: Mapped[Any] = mapped_column(JSON, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    updated_by: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )


class ModerationLog(BaseModel):
    """관리자 작업 감사 로그 - 코어는 쓰기만 하고 의사결정에 읽지 않음"""

    __tablename__ = "moderation_logs"
    __table_args__ = (
        Index("idx_moderation_logs_admin", "admin_id"),
        Index("idx_moderation_logs_target", "target_type", "target_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    admin_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_type: Mapped[str] = mapped_column(String(30), nullable=False)
    target_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "metadata" 는 Declarative 예약어라 속성명만 바꿈
    log_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
