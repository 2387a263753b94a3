import uuid
from decimal import Decimal

import pytest
from aiosmtplib import SMTPException

from alerts import email_sender
from alerts.alerts_service import AlertsService, evaluate_threshold
from budgets.budget_model import BudgetUpdateOutcome
from settings.config import settings


@pytest.mark.parametrize(
    "spent, limit, expected",
    [
        ("100", "100", "exceeded"),
        ("105", "100", "exceeded"),
        ("90", "100", "warning"),
        ("99.99", "100", "warning"),
        ("89.99", "100", None),
        ("0", "100", None),
        ("50", "0", None),
    ],
)
def test_evaluate_threshold(spent, limit, expected):
    assert evaluate_threshold(Decimal(spent), Decimal(limit)) == expected


def _outcome(spent, level, status="updated"):
    return BudgetUpdateOutcome(
        budget_id=uuid.uuid4(),
        category_id="food-dining",
        budget_type="monthly",
        status=status,
        budget_amount=100.0,
        current_period="2024-06",
        current_spent=spent,
        level=level,
    )


def test_budget_warning_message():
    alert = AlertsService(currency="RM").budget_alert(_outcome(95.0, "warning"), "Food & Dining")
    assert alert.kind == "budget"
    assert alert.level == "warning"
    assert alert.message == "You're at 95.0% of your monthly budget for Food & Dining. Spent: RM95.00 / RM100.00"


def test_budget_exceeded_message_falls_back_to_category_id():
    alert = AlertsService(currency="RM").budget_alert(_outcome(105.0, "exceeded"))
    assert alert.level == "exceeded"
    assert alert.message.startswith("You've exceeded your monthly budget for food-dining.")


def test_no_budget_alert_without_level_or_on_failure():
    service = AlertsService()
    assert service.budget_alert(_outcome(10.0, None)) is None
    assert service.budget_alert(_outcome(None, None, status="failed")) is None


def test_overspending_alerts():
    service = AlertsService(currency="$")
    exceeded = service.overspending_alert(Decimal("1200"), Decimal("1000"))
    assert exceeded.level == "exceeded"
    assert "exceeding your limit of $1000.00" in exceeded.message
    warning = service.overspending_alert(Decimal("950"), Decimal("1000"))
    assert warning.level == "warning"
    assert "$50.00 remaining" in warning.message
    assert service.overspending_alert(Decimal("100"), Decimal("1000")) is None


@pytest.mark.asyncio
async def test_notify_skips_without_smtp():
    service = AlertsService()
    alert = service.overspending_alert(Decimal("1200"), Decimal("1000"))
    assert await service.notify("alice@example.com", [alert]) is False
    assert await service.notify("alice@example.com", []) is False


class FakeSMTP:
    instances = []

    def __init__(self, fail_on=None, **kwargs):
        self.kwargs = kwargs
        self.fail_on = fail_on
        self.calls = []
        self.closed = False
        FakeSMTP.instances.append(self)

    async def __aenter__(self):
        self.calls.append("connect")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    async def _step(self, name):
        self.calls.append(name)
        if name == self.fail_on:
            raise SMTPException(f"{name} refused")

    async def starttls(self):
        await self._step("starttls")

    async def login(self, user, password):
        await self._step("login")

    async def send_message(self, msg):
        await self._step("send_message")


@pytest.fixture
def smtp(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "mail.local")
    monkeypatch.setattr(settings, "SMTP_PORT", 2525)
    monkeypatch.setattr(settings, "ALERTS_FROM_EMAIL", "alerts@example.com")
    monkeypatch.setattr(settings, "SMTP_USER", "mailer")
    monkeypatch.setattr(settings, "SMTP_PASS", "secret")
    FakeSMTP.instances = []

    def use(fail_on=None):
        monkeypatch.setattr(email_sender, "SMTP", lambda **kwargs: FakeSMTP(fail_on=fail_on, **kwargs))
        return FakeSMTP.instances

    return use


@pytest.mark.asyncio
async def test_email_sent_and_connection_closed(smtp):
    instances = smtp()

    assert await email_sender.send_markdown_email("ana@example.com", "Spending alert", "- **WARNING**: hi") is True
    assert instances[0].calls == ["connect", "starttls", "login", "send_message"]
    assert instances[0].kwargs["hostname"] == "mail.local"
    assert instances[0].closed


@pytest.mark.asyncio
@pytest.mark.parametrize("fail_on", ["login", "send_message"])
async def test_email_failure_still_closes_connection(smtp, fail_on):
    instances = smtp(fail_on=fail_on)

    assert await email_sender.send_markdown_email("ana@example.com", "Spending alert", "body") is False
    assert instances[0].closed
