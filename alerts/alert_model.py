from __future__ import annotations

import uuid
from typing import Literal, Optional

from pydantic import BaseModel

AlertLevel = Literal["warning", "exceeded"]


class Alert(BaseModel):
    kind: Literal["budget", "overspending"]
    level: AlertLevel
    message: str
    spent: float
    limit: float
    budget_id: Optional[uuid.UUID] = None
    category_id: Optional[str] = None
    budget_type: Optional[str] = None
