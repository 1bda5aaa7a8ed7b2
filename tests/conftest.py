# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from datetime import date, datetime
from typing import Any, Optional

# settings are read at import time; point them at a throwaway database first
_TMP = tempfile.mkdtemp(prefix="brightland-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["APP_ENV"] = "local"
os.environ["AUTH_MODE"] = "dev"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("STRIPE_SECRET_KEY", None)

import pytest  # noqa: E402

from brightland import models  # noqa: E402,F401
from brightland.auth import Actor  # noqa: E402
from brightland.clients.payment_gateway import Charge, RecurringPlan  # noqa: E402
from brightland.db import Base, SessionLocal, engine  # noqa: E402
from brightland.errors import GatewayError, NotificationError  # noqa: E402
from brightland.models import MaintenanceRequest, RentalApplication  # noqa: E402


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = False

    def send(self, recipients, subject, body) -> None:
        if self.fail:
            raise NotificationError("mailbox unavailable")
        self.sent.append({"to": list(recipients), "subject": subject, "body": body})


class FakeGateway:
    """In-memory PaymentGateway. Add an operation name to fail_on to make it raise."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_on: set[str] = set()
        self.charge_status = "succeeded"
        self._n = 0

    def _ref(self, prefix: str) -> str:
        self._n += 1
        return f"{prefix}_{self._n}"

    def _call(self, op: str, **kw: Any) -> None:
        if op in self.fail_on:
            raise GatewayError(op, "declined by fake gateway", gateway_code="card_declined")
        self.calls.append((op, kw))

    def ops(self) -> list[str]:
        return [c[0] for c in self.calls]

    def create_customer(self, *, email, name, metadata=None) -> str:
        self._call("create_customer", email=email, name=name)
        return self._ref("cus")

    def create_bank_source(self, *, customer_ref, routing_number, account_number, account_holder_name, account_holder_type="individual") -> str:
        self._call("create_bank_source", customer_ref=customer_ref, routing_number=routing_number)
        return self._ref("ba")

    def attach_card(self, *, customer_ref, card_token) -> str:
        self._call("attach_card", customer_ref=customer_ref, card_token=card_token)
        return self._ref("pm")

    def set_default_source(self, *, customer_ref, source_ref) -> None:
        self._call("set_default_source", customer_ref=customer_ref, source_ref=source_ref)

    def create_recurring_plan(self, *, customer_ref, source_ref, amount, interval, description, billing_anchor=None, trial_end=None, metadata=None) -> RecurringPlan:
        self._call(
            "create_recurring_plan",
            customer_ref=customer_ref,
            source_ref=source_ref,
            amount=amount,
            interval=interval,
            billing_anchor=billing_anchor,
            trial_end=trial_end,
        )
        return RecurringPlan(ref=self._ref("sub"), trial_end=trial_end, raw={})

    def create_charge(self, *, customer_ref, source_ref, amount, description, metadata=None) -> Charge:
        self._call("create_charge", customer_ref=customer_ref, source_ref=source_ref, amount=amount)
        return Charge(ref=self._ref("ch"), status=self.charge_status)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def admin() -> Actor:
    return Actor(email="admin@brightland.local", name="Avery Admin", role="admin")


@pytest.fixture
def owner_actor() -> Actor:
    return Actor(email="olive@owners.local", name="Olive Owner", role="user", user_type="property-owner")


@pytest.fixture
def tenant_actor() -> Actor:
    return Actor(email="tess@tenants.local", name="Tess Tenant", role="user", user_type="tenant")


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_request(db):
    def _make(
        *,
        email: str = "olive@owners.local",
        user_type: str = "property-owner",
        property_name: Optional[str] = "Maple Court",
        requires_approval: bool = False,
        proposed_budget: Optional[float] = 100.0,
        status: str = "pending",
    ) -> MaintenanceRequest:
        row = MaintenanceRequest(
            full_name="Olive Owner",
            email=email,
            phone="555-0100",
            address="12 Maple Ct",
            property_name=property_name,
            project_description="Leaking kitchen faucet",
            message="Drips all night",
            status=status,
            user_type=user_type,
            submitted_by="user",
            requires_approval=requires_approval,
            approval_status="pending-approval" if requires_approval else None,
            proposed_budget=proposed_budget,
            admin_notes="",
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def make_lease(db):
    def _make(
        *,
        user_email: str = "tess@tenants.local",
        status: str = "approved",
        monthly_rent: Optional[float] = 900.0,
        lease_start_date: Optional[date] = date(2026, 9, 15),
        lease_end_date: Optional[date] = date(2027, 8, 31),
        is_prorated: bool = True,
        **flags: Any,
    ) -> RentalApplication:
        row = RentalApplication(
            listing_name="Maple Court #2",
            user_email=user_email,
            user_name="Tess Tenant",
            status=status,
            admin_notes="",
            monthly_rent=monthly_rent,
            lease_start_date=lease_start_date,
            lease_end_date=lease_end_date,
            is_prorated=is_prorated,
            created_at=datetime(2026, 9, 1),
            updated_at=datetime(2026, 9, 1),
            **flags,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def ready_lease(make_lease):
    """A lease with every auto-pay prerequisite already satisfied."""
    return make_lease(
        has_checking_account=True,
        has_credit_card=True,
        security_deposit_paid=True,
        security_deposit_amount=900.0,
        gateway_customer_ref="cus_ready",
        ach_source_ref="ba_ready",
        card_source_ref="pm_ready",
    )
