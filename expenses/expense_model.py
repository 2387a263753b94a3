from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alerts.alert_model import Alert, AlertLevel
from budgets.budget_model import BudgetUpdateOutcome


class Location(BaseModel):
    latitude: float
    longitude: float
    address: Optional[str] = None
    city: Optional[str] = None


class ExpenseCreate(BaseModel):
    amount: float = Field(gt=0)
    merchant_name: str
    reference_id: str = ""
    transaction_date: Optional[str] = None  # YYYY-MM-DD; defaults to today
    transaction_time: Optional[str] = None
    description: str = ""
    category_id: str = "other"
    location: Optional[Location] = None
    extracted_text: Optional[str] = None

    @field_validator("merchant_name")
    @classmethod
    def merchant_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter the merchant name")
        return v

    @field_validator("reference_id", "description", "category_id")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class ExpenseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    amount: float
    merchant_name: str
    reference_id: str
    transaction_date: str
    transaction_time: Optional[str] = None
    description: str
    category_id: str
    location: Optional[Location] = None
    created_at: datetime
    updated_at: datetime


class ExpenseRecorded(BaseModel):
    expense: ExpenseRead
    budgets: List[BudgetUpdateOutcome] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)


class ExpenseQuery(BaseModel):
    search: Optional[str] = None
    category_id: Optional[str] = None
    sort_by: Literal["date", "amount"] = "date"
    order: Literal["asc", "desc"] = "desc"
    limit: int = Field(default=500, ge=1, le=1000)


class ExpenseList(BaseModel):
    items: List[ExpenseRead]
    count: int
    total: float


class MonthlySummary(BaseModel):
    month: str
    spent: float
    limit: float
    remaining: float
    level: Optional[AlertLevel] = None


class UserStats(BaseModel):
    total_expenses: int
    monthly_spent: float
    active_budgets: int
    total_budgets: int
