import uuid
from fastapi import Depends, Request
from fastapi_users import BaseUserManager, UUIDIDMixin
from typing import Optional
import logging

from settings.config import settings
from .tables import UserTable
from .sqlalchemy_db import get_user_db
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase

logger = logging.getLogger(__name__)


class UserManager(UUIDIDMixin, BaseUserManager[UserTable, uuid.UUID]):
    reset_password_token_secret = settings.ENV_RESET_PASSWORD_TOKEN_SECRET
    verification_token_secret = settings.ENV_VERIFICATION_TOKEN_SECRET

    async def on_after_register(self, user: UserTable, request: Optional[Request] = None):
        logger.info(f"User {user.email} has registered.")

    async def on_after_update(self, user: UserTable, update_dict: dict, request: Optional[Request] = None):
        if "overspending_limit" in update_dict:
            logger.info(f"User {user.email} changed overspending limit to {user.overspending_limit}")


async def get_user_manager(user_db: SQLAlchemyUserDatabase = Depends(get_user_db)) -> UserManager:
    yield UserManager(user_db)
