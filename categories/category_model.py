from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    icon: str
    color: Optional[str] = None


DEFAULT_CATEGORIES = [
    CategoryRead(id="food-dining", name="Food & Dining", icon="🍽️", color="#FF6B6B"),
    CategoryRead(id="transportation", name="Transportation", icon="🚗", color="#4ECDC4"),
    CategoryRead(id="shopping", name="Shopping", icon="🛍️", color="#45B7D1"),
    CategoryRead(id="entertainment", name="Entertainment", icon="🎬", color="#96CEB4"),
    CategoryRead(id="bills-utilities", name="Bills & Utilities", icon="📄", color="#FFEAA7"),
    CategoryRead(id="healthcare", name="Healthcare", icon="❤️", color="#DDA0DD"),
    CategoryRead(id="groceries", name="Groceries", icon="🛒", color="#98D8C8"),
    CategoryRead(id="other", name="Other", icon="📦", color="#A8A8A8"),
]
