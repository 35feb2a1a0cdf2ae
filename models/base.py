from datetime import datetime, timezone
from uuid import uuid4
from sqlmodel import Field, SQLModel


def new_object_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    # Timezone-aware; the DateTime columns refuse naive values
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
