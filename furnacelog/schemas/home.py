"""Home schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class HomeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    community: str = Field(..., min_length=1, max_length=100)
    timezone: Optional[str] = Field(None, max_length=64)


class HomeResponse(BaseModel):
    id: int
    user_id: str
    name: str
    community: str
    timezone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
