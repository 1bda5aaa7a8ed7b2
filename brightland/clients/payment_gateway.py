# brightland/clients/payment_gateway.py
from __future__ import annotations

import calendar
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterator, Optional, Protocol

import stripe

from ..config import settings
from ..errors import GatewayError

log = logging.getLogger("brightland.gateway")


@dataclass(frozen=True)
class RecurringPlan:
    ref: str
    trial_end: Optional[date]
    raw: dict[str, Any]


@dataclass(frozen=True)
class Charge:
    ref: str
    status: str  # succeeded|pending|failed

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class PaymentGateway(Protocol):
    """
    Capabilities the billing core needs from a payment processor.

    Every call either returns an opaque reference or raises GatewayError.
    """

    def create_customer(self, *, email: str, name: str, metadata: dict[str, str] | None = None) -> str: ...

    def create_bank_source(
        self,
        *,
        customer_ref: str,
        routing_number: str,
        account_number: str,
        account_holder_name: str,
        account_holder_type: str = "individual",
    ) -> str: ...

    def attach_card(self, *, customer_ref: str, card_token: str) -> str: ...

    def set_default_source(self, *, customer_ref: str, source_ref: str) -> None: ...

    def create_recurring_plan(
        self,
        *,
        customer_ref: str,
        source_ref: str,
        amount: float,
        interval: str,
        description: str,
        billing_anchor: Optional[date] = None,
        trial_end: Optional[date] = None,
        metadata: dict[str, str] | None = None,
    ) -> RecurringPlan: ...

    def create_charge(
        self,
        *,
        customer_ref: str,
        source_ref: str,
        amount: float,
        description: str,
        metadata: dict[str, str] | None = None,
    ) -> Charge: ...


def to_cents(amount: float) -> int:
    return int(round(float(amount) * 100))


def to_unix(d: date) -> int:
    """Midnight UTC of d."""
    return int(calendar.timegm(d.timetuple()))


@contextmanager
def _gateway_call(operation: str) -> Iterator[None]:
    try:
        yield
    except stripe.StripeError as e:
        msg = getattr(e, "user_message", None) or str(e) or e.__class__.__name__
        log.warning("stripe call failed operation=%s code=%s", operation, getattr(e, "code", None))
        raise GatewayError(operation, msg, gateway_code=getattr(e, "code", None)) from e


class StripeGateway:
    """PaymentGateway backed by the Stripe API (per-request api_key, no global state)."""

    def __init__(self, api_key: Optional[str] = None, *, currency: Optional[str] = None) -> None:
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.currency = currency or settings.billing_currency
        self.api_version = settings.stripe_api_version

    def enabled(self) -> bool:
        return bool(self.api_key)

    def _opts(self) -> dict[str, Any]:
        if not self.api_key:
            raise GatewayError("configure", "stripe_secret_key not set")
        opts: dict[str, Any] = {"api_key": self.api_key}
        if self.api_version:
            opts["stripe_version"] = self.api_version
        return opts

    def create_customer(self, *, email: str, name: str, metadata: dict[str, str] | None = None) -> str:
        with _gateway_call("create_customer"):
            cust = stripe.Customer.create(email=email, name=name, metadata=metadata or {}, **self._opts())
        return str(cust.id)

    def create_bank_source(
        self,
        *,
        customer_ref: str,
        routing_number: str,
        account_number: str,
        account_holder_name: str,
        account_holder_type: str = "individual",
    ) -> str:
        with _gateway_call("create_bank_source"):
            token = stripe.Token.create(
                bank_account={
                    "country": "US",
                    "currency": self.currency,
                    "account_holder_name": account_holder_name,
                    "account_holder_type": account_holder_type or "individual",
                    "routing_number": routing_number,
                    "account_number": account_number,
                },
                **self._opts(),
            )
            source = stripe.Customer.create_source(customer_ref, source=token.id, **self._opts())
        return str(source.id)

    def attach_card(self, *, customer_ref: str, card_token: str) -> str:
        with _gateway_call("attach_card"):
            pm = stripe.PaymentMethod.create(type="card", card={"token": card_token}, **self._opts())
            stripe.PaymentMethod.attach(pm.id, customer=customer_ref, **self._opts())
        return str(pm.id)

    def set_default_source(self, *, customer_ref: str, source_ref: str) -> None:
        with _gateway_call("set_default_source"):
            stripe.Customer.modify(
                customer_ref,
                invoice_settings={"default_payment_method": source_ref},
                **self._opts(),
            )

    def create_recurring_plan(
        self,
        *,
        customer_ref: str,
        source_ref: str,
        amount: float,
        interval: str,
        description: str,
        billing_anchor: Optional[date] = None,
        trial_end: Optional[date] = None,
        metadata: dict[str, str] | None = None,
    ) -> RecurringPlan:
        if (billing_anchor is None) == (trial_end is None):
            raise ValueError("exactly one of billing_anchor / trial_end is required")

        with _gateway_call("create_recurring_plan"):
            product = stripe.Product.create(name=description, description=description, **self._opts())
            price = stripe.Price.create(
                product=product.id,
                currency=self.currency,
                unit_amount=to_cents(amount),
                recurring={"interval": interval, "interval_count": 1},
                **self._opts(),
            )

            params: dict[str, Any] = {
                "customer": customer_ref,
                "default_source": source_ref,
                "items": [{"price": price.id}],
                "proration_behavior": "none",
                "collection_method": "charge_automatically",
                "metadata": metadata or {},
            }
            if billing_anchor is not None:
                params["billing_cycle_anchor"] = to_unix(billing_anchor)
            else:
                params["trial_end"] = to_unix(trial_end)  # type: ignore[arg-type]

            sub = stripe.Subscription.create(**params, **self._opts())

        return RecurringPlan(ref=str(sub.id), trial_end=trial_end, raw={"status": getattr(sub, "status", None)})

    def create_charge(
        self,
        *,
        customer_ref: str,
        source_ref: str,
        amount: float,
        description: str,
        metadata: dict[str, str] | None = None,
    ) -> Charge:
        with _gateway_call("create_charge"):
            ch = stripe.Charge.create(
                amount=to_cents(amount),
                currency=self.currency,
                customer=customer_ref,
                source=source_ref,
                description=description,
                metadata=metadata or {},
                **self._opts(),
            )
        return Charge(ref=str(ch.id), status=str(ch.status))


def get_gateway() -> PaymentGateway:
    """FastAPI dependency; tests override it with a fake."""
    return StripeGateway()
