"""Home model for SQLModel."""
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional


class Home(SQLModel, table=True):
    """Home owned by a user; its community selects the weather history."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=100, index=True)
    name: str = Field(max_length=200, min_length=1)
    community: str = Field(max_length=100, index=True)  # e.g. Yellowknife, Inuvik
    timezone: Optional[str] = Field(default=None, max_length=64)  # IANA zone, falls back to HOME_TIMEZONE
    created_at: datetime = Field(default_factory=datetime.utcnow)
