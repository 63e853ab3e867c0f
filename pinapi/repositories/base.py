from abc import ABC
from typing import TypeVar, Generic, Optional, List, Any, Type, Dict
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """모든 리포지토리의 베이스 클래스 - Pydantic 응답 보장

    리포지토리는 flush 까지만 수행합니다. commit/rollback 은 서비스가
    database.session.transaction() 경계에서 한 번에 처리하므로, 하나의 논리적 작업에
    속한 여러 쓰기가 함께 반영되거나 함께 취소됩니다.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _insert(self):
        """ON CONFLICT 를 지원하는 dialect 별 INSERT 구문"""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(self.model_class)
        if dialect == "sqlite":
            return sqlite_insert(self.model_class)
        raise NotImplementedError(f"Upsert not supported for dialect: {dialect}")

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, model_instances: List[Any]) -> List[SchemaType]:
        return [self.schema_class.model_validate(instance) for instance in model_instances]

    def get_model(self, id: Any) -> Optional[T]:
        """ID로 ORM 인스턴스 조회 (서비스 내부 변경용)"""
        return self.db.get(self.model_class, id)

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """ID로 조회 - Pydantic 스키마 반환"""
        return self._to_schema(self.get_model(id))

    def lock_by_id(self, id: Any) -> Optional[T]:
        """SELECT ... FOR UPDATE - 트랜잭션이 끝날 때까지 행 잠금"""
        return (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, "id") == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """레코드 수 조회"""
        query = self.db.query(self.model_class)

        if filters:
            for key, value in filters.items():
                if hasattr(self.model_class, key):
                    query = query.filter(getattr(self.model_class, key) == value)

        return query.count()

    def add(self, **kwargs) -> T:
        """새 레코드 추가 후 flush - ORM 인스턴스 반환"""
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        self.db.refresh(instance)
        return instance

    def create(self, **kwargs) -> SchemaType:
        """새 레코드 생성 - Pydantic 스키마 반환"""
        return self._to_schema(self.add(**kwargs))

    def apply(self, instance: T, **kwargs) -> T:
        """ORM 인스턴스에 필드 반영 후 flush"""
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        self.db.add(instance)
        self.db.flush()
        return instance
