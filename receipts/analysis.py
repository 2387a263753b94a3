from __future__ import annotations

import json
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from receipts.receipt_model import ReceiptAnalysis
from settings.config import settings

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a financial document analyzer. "
    "Extract the following information from the receipt text and return it as a JSON object with these exact keys: "
    '"referenceId" (reference number or transaction ID), '
    '"date" (date in YYYY-MM-DD format if possible), '
    '"time" (time if available), '
    '"beneficiaryName" (name of the recipient/beneficiary), '
    '"amount" (monetary amount with currency if available). '
    "If any field is not found, use null for that field."
)


def _build_user_prompt(text: str) -> str:
    return (
        "Text to analyze:\n"
        f"{text}\n"
        "Return ONLY the JSON object, no extra text."
    )


def parse_analysis(content: Optional[str]) -> ReceiptAnalysis:
    """
    Pull the first JSON object out of a model reply. Anything unusable yields
    an analysis with every field None.
    """
    if not content:
        return ReceiptAnalysis()
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        logger.warning("Model reply did not contain JSON")
        return ReceiptAnalysis()
    try:
        data = json.loads(content[start : end + 1])
        if not isinstance(data, dict):
            raise ValueError("Model reply is not a JSON object")
        return ReceiptAnalysis.model_validate(data)
    except (json.JSONDecodeError, ValidationError, ValueError) as e:
        logger.warning(f"Failed to parse model reply as receipt analysis: {e}")
        return ReceiptAnalysis()


class ReceiptAnalyzer:
    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        self._client = client

    def _get_client(self) -> Optional[AsyncOpenAI]:
        if self._client is None and settings.OPENAI_API_KEY:
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.LLM_BASE_URL,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    async def analyze(self, text: str) -> ReceiptAnalysis:
        """
        One completion call, no retries. Missing configuration, API failures
        and unparseable replies all degrade to an empty analysis.
        """
        if not text.strip():
            return ReceiptAnalysis()
        client = self._get_client()
        if client is None:
            logger.warning("OPENAI_API_KEY not configured; skipping receipt analysis")
            return ReceiptAnalysis()
        try:
            resp = await client.chat.completions.create(
                model=settings.LLM_MODEL,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": _build_user_prompt(text)},
                ],
                temperature=settings.LLM_TEMPERATURE,
                max_tokens=settings.LLM_MAX_TOKENS,
            )
        except OpenAIError as e:
            logger.error(f"Receipt analysis request failed: {e}")
            return ReceiptAnalysis()
        content = resp.choices[0].message.content if resp.choices else None
        return parse_analysis(content)
