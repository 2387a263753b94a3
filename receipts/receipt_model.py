from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ReceiptAnalysis(BaseModel):
    """Fields pulled from a receipt by the LLM; anything not found stays None."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    reference_id: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    beneficiary_name: Optional[str] = None
    amount: Optional[str] = None

    @field_validator("reference_id", "date", "time", "beneficiary_name", "amount", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, (dict, list)):
            raise ValueError("expected a scalar value")
        v = str(v).strip()
        if not v or v.lower() in {"null", "none", "n/a"}:
            return None
        return v


class ExtractTextResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    filename: str
    extracted_text: str
    analysis: ReceiptAnalysis
    message: str
