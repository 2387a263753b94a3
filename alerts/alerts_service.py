from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from alerts.alert_model import Alert, AlertLevel
from alerts.email_sender import send_markdown_email
from budgets.budget_model import BudgetUpdateOutcome
from settings.config import settings

logger = logging.getLogger(__name__)

WARNING_RATIO = Decimal("0.9")


def evaluate_threshold(spent: Decimal, limit: Decimal) -> Optional[AlertLevel]:
    """
    ``exceeded`` at 100% of the limit, ``warning`` from 90%, otherwise None.
    A non-positive limit never signals.
    """
    spent = Decimal(spent)
    limit = Decimal(limit)
    if limit <= 0:
        return None
    if spent >= limit:
        return "exceeded"
    if spent >= limit * WARNING_RATIO:
        return "warning"
    return None


class AlertsService:
    def __init__(self, currency: str | None = None) -> None:
        self.currency = currency if currency is not None else settings.CURRENCY_LABEL

    def _money(self, value: Decimal | float) -> str:
        return f"{self.currency}{Decimal(value):.2f}"

    def budget_alert(self, outcome: BudgetUpdateOutcome, category_label: str | None = None) -> Optional[Alert]:
        if outcome.status != "updated" or outcome.level is None:
            return None
        label = category_label or outcome.category_id
        spent = Decimal(str(outcome.current_spent))
        limit = Decimal(str(outcome.budget_amount))
        totals = f"Spent: {self._money(spent)} / {self._money(limit)}"
        if outcome.level == "exceeded":
            message = f"You've exceeded your {outcome.budget_type} budget for {label}. {totals}"
        else:
            percentage = spent / limit * 100
            message = f"You're at {percentage:.1f}% of your {outcome.budget_type} budget for {label}. {totals}"
        return Alert(
            kind="budget",
            level=outcome.level,
            message=message,
            spent=float(spent),
            limit=float(limit),
            budget_id=outcome.budget_id,
            category_id=outcome.category_id,
            budget_type=outcome.budget_type,
        )

    def overspending_alert(self, spent: Decimal, limit: Decimal) -> Optional[Alert]:
        level = evaluate_threshold(spent, limit)
        if level is None:
            return None
        if level == "exceeded":
            message = (
                f"Your monthly expenses have reached {self._money(spent)}, "
                f"exceeding your limit of {self._money(limit)}."
            )
        else:
            message = f"Close to limit! {self._money(Decimal(limit) - Decimal(spent))} remaining this month."
        return Alert(kind="overspending", level=level, message=message, spent=float(spent), limit=float(limit))

    async def notify(self, email: str, alerts: List[Alert]) -> bool:
        if not alerts:
            return False
        body = "\n".join(f"- **{alert.level.upper()}**: {alert.message}" for alert in alerts)
        sent = await send_markdown_email(email, "Spending alert", body)
        if not sent:
            logger.debug(f"Alert e-mail to {email} not sent")
        return sent
