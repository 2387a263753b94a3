from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import requests

from receipts.receipt_model import ExtractTextResponse, ReceiptAnalysis
from settings.config import settings

logger = logging.getLogger(__name__)

_NON_AMOUNT_RE = re.compile(r"[^\d.]")


class RelayUnavailableError(Exception):
    """The relay did not answer within the timeout or could not be reached."""


class RelayRejectedError(Exception):
    def __init__(self, status_code: int, body: Any) -> None:
        if not isinstance(body, dict):
            body = {"raw": body}
        super().__init__(str(body.get("error") or f"HTTP error! status: {status_code}"))
        self.status_code = status_code
        self.body: Dict[str, Any] = body


def ensure_json(resp: requests.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {"raw": resp.text}
    return body if isinstance(body, dict) else {"raw": resp.text}


class RelayClient:
    """
    Uploads a receipt PDF to the relay. One attempt with a fixed timeout;
    callers decide what to do on failure.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        timeout: float | None = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = endpoint or settings.RELAY_ENDPOINT
        self.timeout = settings.RELAY_TIMEOUT_SECONDS if timeout is None else timeout
        self.session = session or requests.Session()

    def extract(self, path: str) -> ExtractTextResponse:
        name = os.path.basename(path)
        with open(path, "rb") as fh:
            try:
                resp = self.session.post(
                    self.endpoint,
                    files={"file": (name, fh, "application/pdf")},
                    timeout=self.timeout,
                )
            except requests.Timeout as e:
                logger.warning(f"Relay timed out after {self.timeout}s for {name}")
                raise RelayUnavailableError(f"Relay timed out after {self.timeout}s") from e
            except requests.ConnectionError as e:
                raise RelayUnavailableError(f"Relay unreachable at {self.endpoint}") from e
        if not resp.ok:
            raise RelayRejectedError(resp.status_code, ensure_json(resp))
        try:
            return ExtractTextResponse.model_validate(resp.json())
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            logger.warning(f"Relay answered {resp.status_code} with an unreadable body for {name}: {e}")
            raise RelayRejectedError(resp.status_code, {"error": "Malformed relay response", "raw": resp.text}) from e


@dataclass
class ExpenseDraft:
    """Pre-filled expense form built from a receipt analysis; user confirms before saving."""

    amount: Decimal
    merchant_name: str
    reference_id: str
    transaction_date: str
    description: str = ""
    category_id: str = "other"


def parse_amount(raw: Optional[str]) -> Decimal:
    """'RM 1,234.50' -> Decimal('1234.50'); anything unreadable -> 0."""
    if not raw:
        return Decimal("0")
    cleaned = _NON_AMOUNT_RE.sub("", raw)
    try:
        return Decimal(cleaned) if cleaned else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


def draft_from_analysis(analysis: ReceiptAnalysis, today: date | None = None) -> ExpenseDraft:
    today = today or date.today()
    return ExpenseDraft(
        amount=parse_amount(analysis.amount),
        merchant_name=analysis.beneficiary_name or "",
        reference_id=analysis.reference_id or "",
        transaction_date=analysis.date or today.isoformat(),
    )
