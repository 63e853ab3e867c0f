from typing import List, Optional, Set

from sqlalchemy import desc
from sqlalchemy.orm import Session

from pinapi.models.pin import Comment, Like, Pin
from pinapi.repositories.base import BaseRepository
from pinapi.schemas.pin import CommentResponse, PinResponse


class PinRepository(BaseRepository[Pin, PinResponse]):
    """핀 / 좋아요 / 댓글 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(Pin, PinResponse, db)

    def get_visible_model(self, pin_id: int) -> Optional[Pin]:
        return (
            self.db.query(self.model_class)
            .filter(
                self.model_class.id == pin_id,
                self.model_class.is_hidden.is_(False),
            )
            .first()
        )

    def find_like(self, user_id: int, pin_id: int) -> Optional[Like]:
        return (
            self.db.query(Like)
            .filter(Like.user_id == user_id, Like.pin_id == pin_id)
            .first()
        )

    def add_like(self, user_id: int, pin_id: int) -> Like:
        like = Like(user_id=user_id, pin_id=pin_id)
        self.db.add(like)
        self.db.query(self.model_class).filter(self.model_class.id == pin_id).update(
            {self.model_class.likes_count: self.model_class.likes_count + 1},
            synchronize_session="fetch",
        )
        self.db.flush()
        return like

    def remove_like(self, like: Like) -> None:
        pin_id = like.pin_id
        self.db.delete(like)
        self.db.query(self.model_class).filter(
            self.model_class.id == pin_id, self.model_class.likes_count > 0
        ).update(
            {self.model_class.likes_count: self.model_class.likes_count - 1},
            synchronize_session="fetch",
        )
        self.db.flush()

    def add_comment(self, user_id: int, pin_id: int, content: str) -> CommentResponse:
        comment = Comment(user_id=user_id, pin_id=pin_id, content=content)
        self.db.add(comment)
        self.db.query(self.model_class).filter(self.model_class.id == pin_id).update(
            {self.model_class.comments_count: self.model_class.comments_count + 1},
            synchronize_session="fetch",
        )
        self.db.flush()
        self.db.refresh(comment)
        return CommentResponse.model_validate(comment)

    def _visible_query(
        self,
        category_id: Optional[int] = None,
        city_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ):
        query = self.db.query(self.model_class).filter(
            self.model_class.is_hidden.is_(False)
        )
        if category_id is not None:
            query = query.filter(self.model_class.category_id == category_id)
        if city_id is not None:
            query = query.filter(self.model_class.city_id == city_id)
        if user_id is not None:
            query = query.filter(self.model_class.user_id == user_id)
        return query

    def list_visible(
        self,
        category_id: Optional[int] = None,
        city_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[PinResponse]:
        """숨김 제외 핀 피드 (최신순)"""
        rows = (
            self._visible_query(category_id, city_id, user_id)
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return self._to_schemas(rows)

    def count_visible(
        self,
        category_id: Optional[int] = None,
        city_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> int:
        return self._visible_query(category_id, city_id, user_id).count()

    def liked_pin_ids(self, user_id: int, pin_ids: List[int]) -> Set[int]:
        if not pin_ids:
            return set()
        rows = (
            self.db.query(Like.pin_id)
            .filter(Like.user_id == user_id, Like.pin_id.in_(pin_ids))
            .all()
        )
        return {row[0] for row in rows}

    def list_comments(self, pin_id: int) -> List[CommentResponse]:
        rows = (
            self.db.query(Comment)
            .filter(Comment.pin_id == pin_id)
            .order_by(desc(Comment.created_at), desc(Comment.id))
            .all()
        )
        return [CommentResponse.model_validate(row) for row in rows]
