# tests/test_gateway_clients.py
from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest
import stripe

from brightland.clients.notifications import LogNotifier, get_notifier, notify_best_effort
from brightland.clients.payment_gateway import StripeGateway, to_cents, to_unix
from brightland.errors import GatewayError


def test_unconfigured_gateway_raises_gateway_error():
    gw = StripeGateway(api_key="")
    assert gw.enabled() is False
    with pytest.raises(GatewayError) as e:
        gw.create_customer(email="tess@tenants.local", name="Tess")
    assert e.value.operation == "configure"


def test_stripe_errors_become_gateway_errors(monkeypatch):
    def boom(**kw):
        raise stripe.CardError("Your card was declined.", None, "card_declined")

    monkeypatch.setattr(stripe.Customer, "create", boom)

    with pytest.raises(GatewayError) as e:
        StripeGateway(api_key="sk_test_x").create_customer(email="tess@tenants.local", name="Tess")
    assert e.value.operation == "create_customer"
    assert e.value.gateway_code == "card_declined"


def test_trial_plan_sends_trial_end_and_no_anchor(monkeypatch):
    seen = {}
    monkeypatch.setattr(stripe.Product, "create", lambda **kw: SimpleNamespace(id="prod_1"))

    def price(**kw):
        seen["price"] = kw
        return SimpleNamespace(id="price_1")

    def sub(**kw):
        seen["sub"] = kw
        return SimpleNamespace(id="sub_1", status="trialing")

    monkeypatch.setattr(stripe.Price, "create", price)
    monkeypatch.setattr(stripe.Subscription, "create", sub)

    plan = StripeGateway(api_key="sk_test_x").create_recurring_plan(
        customer_ref="cus_1",
        source_ref="ba_1",
        amount=900,
        interval="month",
        description="Rent - Maple Court #2",
        trial_end=date(2026, 10, 1),
    )

    assert plan.ref == "sub_1"
    assert seen["price"]["unit_amount"] == 90000
    assert seen["sub"]["trial_end"] == to_unix(date(2026, 10, 1))
    assert "billing_cycle_anchor" not in seen["sub"]
    assert seen["sub"]["default_source"] == "ba_1"
    assert seen["sub"]["api_key"] == "sk_test_x"


def test_plan_requires_exactly_one_of_anchor_or_trial():
    with pytest.raises(ValueError):
        StripeGateway(api_key="sk_test_x").create_recurring_plan(
            customer_ref="cus_1", source_ref="ba_1", amount=900, interval="month", description="Rent"
        )


def test_money_and_time_helpers():
    assert to_cents(480.0) == 48000
    assert to_cents(0.29) == 29
    assert to_unix(date(1970, 1, 2)) == 86400


def test_notifier_falls_back_to_log_without_api_key():
    assert isinstance(get_notifier(), LogNotifier)


def test_best_effort_delivery_dedups_and_never_raises(notifier):
    assert notify_best_effort(notifier, ["a@x.local", None, "a@x.local", " "], "s", "b") is True
    assert notifier.sent[0]["to"] == ["a@x.local"]

    notifier.fail = True
    assert notify_best_effort(notifier, ["a@x.local"], "s", "b") is False
    assert notify_best_effort(notifier, [None], "s", "b") is False
