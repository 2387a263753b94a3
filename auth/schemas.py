from __future__ import annotations

import uuid
from typing import Optional

from fastapi_users import schemas
from pydantic import Field


class UserRead(schemas.BaseUser[uuid.UUID]):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    overspending_limit: Optional[float] = None


class UserCreate(schemas.BaseUserCreate):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class UserUpdate(schemas.BaseUserUpdate):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    overspending_limit: Optional[float] = Field(default=None, gt=0)
