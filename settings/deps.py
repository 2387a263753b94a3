from __future__ import annotations

from typing import Optional

from fastapi import Depends

from auth.auth import get_optional_active_user
from auth.context import UserContext
from auth.tables import UserTable


async def get_user_context(user: Optional[UserTable] = Depends(get_optional_active_user)) -> Optional[UserContext]:
	"""
	Build the explicit per-request user context from the bearer token.
	Returns None for anonymous requests; per-user services reject those
	before touching the database.
	"""
	if user is None:
		return None
	return UserContext.from_user(user)
