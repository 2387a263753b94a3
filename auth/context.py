from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from settings.config import settings
from .tables import UserTable


class NotAuthenticatedError(Exception):
    """Raised when an operation that writes per-user data runs without a user."""


@dataclass(frozen=True)
class UserContext:
    """
    The acting user, passed explicitly into every per-user operation.
    """

    user_id: uuid.UUID
    email: str
    overspending_limit: Decimal

    @classmethod
    def from_user(cls, user: UserTable) -> "UserContext":
        limit = user.overspending_limit
        if limit is None:
            limit = Decimal(str(settings.DEFAULT_OVERSPENDING_LIMIT))
        return cls(user_id=user.id, email=user.email, overspending_limit=Decimal(limit))


def require_context(ctx: Optional[UserContext]) -> UserContext:
    if ctx is None:
        raise NotAuthenticatedError("You must be logged in to perform this operation")
    return ctx
