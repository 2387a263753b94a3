from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_async_session
from .tables import UserTable


async def get_user_db(session: AsyncSession = Depends(get_async_session)) -> AsyncIterator[SQLAlchemyUserDatabase]:
    yield SQLAlchemyUserDatabase(session, UserTable)
