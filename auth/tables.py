from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from sqlalchemy import Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.models import Base as AppBase


class UserTable(SQLAlchemyBaseUserTableUUID, AppBase):
    __tablename__ = "users"

    display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Monthly overspending threshold; DEFAULT_OVERSPENDING_LIMIT applies when unset
    overspending_limit: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
