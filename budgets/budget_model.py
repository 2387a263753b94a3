from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from budgets.periods import BudgetType


class BudgetCreate(BaseModel):
    category_id: str = Field(min_length=1)
    budget_type: BudgetType = "monthly"
    budget_amount: float = Field(gt=0)


class BudgetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    category_id: str
    budget_type: BudgetType
    budget_amount: float
    current_period: str
    current_spent: float
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BudgetUpdateOutcome(BaseModel):
    budget_id: uuid.UUID
    category_id: str
    budget_type: BudgetType
    status: Literal["updated", "failed"]
    budget_amount: float
    current_period: Optional[str] = None
    current_spent: Optional[float] = None
    level: Optional[Literal["warning", "exceeded"]] = None
    error: Optional[str] = None
