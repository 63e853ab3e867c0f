from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ModerationLogEntry(BaseModel):
    id: int
    admin_id: int
    action_type: str
    target_type: str
    target_id: int
    reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="log_metadata")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class ModerationLogListResponse(BaseModel):
    logs: List[ModerationLogEntry]
    total_count: int
    has_next: bool
