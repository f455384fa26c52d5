import os

# Pas de Redis en tests: le lifespan désactive le rate limiting
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import json
import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from archive_store.app import app as fastapi_app
from archive_store.infra.supabase_client import get_service_supabase
from archive_store.payments.stripe_client import get_stripe_gateway

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


class InMemoryTables:
    """
    Tables profiles / orders / order_items en mémoire.
    Les méthodes ont la signature des fonctions de archive_store.payments.repository
    et les remplacent via install().
    """

    REPOSITORY_FUNCTIONS = (
        "get_profile",
        "get_stripe_customer_id",
        "claim_stripe_customer_id",
        "find_profile_by_customer_id",
        "update_profile",
        "insert_order",
        "insert_order_items",
        "update_order_status",
        "order_has_items",
    )

    def __init__(self):
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.orders: List[Dict[str, Any]] = []
        self.order_items: List[Dict[str, Any]] = []
        self.fail_order_insert = False
        self.fail_items_insert = False

    def add_profile(self, user_id: str, **fields: Any) -> Dict[str, Any]:
        self.profiles[user_id] = {"id": user_id, "email": f"{user_id}@example.com", "stripe_customer_id": None, **fields}
        return self.profiles[user_id]

    def get_profile(self, client, user_id, columns="*"):
        profile = self.profiles.get(user_id)
        return dict(profile) if profile else None

    def get_stripe_customer_id(self, client, user_id):
        return (self.profiles.get(user_id) or {}).get("stripe_customer_id") or None

    def claim_stripe_customer_id(self, client, user_id, customer_id):
        profile = self.profiles.get(user_id)
        if profile is None or profile.get("stripe_customer_id"):
            return False
        profile["stripe_customer_id"] = customer_id
        return True

    def find_profile_by_customer_id(self, client, customer_id):
        for profile in self.profiles.values():
            if profile.get("stripe_customer_id") == customer_id:
                return {"id": profile["id"], "email": profile.get("email")}
        return None

    def update_profile(self, client, user_id, fields):
        if user_id in self.profiles:
            self.profiles[user_id].update(fields)

    def insert_order(self, client, row):
        if self.fail_order_insert:
            return None
        order = {"id": f"order-{len(self.orders) + 1}", **row}
        self.orders.append(order)
        return dict(order)

    def insert_order_items(self, client, rows):
        if self.fail_items_insert:
            return False
        self.order_items.extend(dict(r) for r in rows)
        return True

    def update_order_status(self, client, payment_intent_id, status):
        updated = []
        for order in self.orders:
            if order["stripe_payment_intent_id"] == payment_intent_id:
                order["status"] = status
                updated.append(dict(order))
        return updated

    def order_has_items(self, client, order_id):
        return any(i["order_id"] == order_id for i in self.order_items)

    def install(self, monkeypatch) -> None:
        for name in self.REPOSITORY_FUNCTIONS:
            monkeypatch.setattr(f"archive_store.payments.repository.{name}", getattr(self, name))


class FakeGateway:
    """Remplaçant de StripeGateway: objets Stripe sous forme de dicts, appels enregistrés."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.payment_methods: Dict[str, Dict[str, Any]] = {}
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        self.construct_error: Optional[Exception] = None
        self.intent_error: Optional[Exception] = None

    def called(self, name: str) -> List[Dict[str, Any]]:
        return [kw for n, kw in self.calls if n == name]

    def create_customer(self, *, email, metadata, shipping=None):
        self.calls.append(("create_customer", {"email": email, "metadata": metadata, "shipping": shipping}))
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers[customer_id] = {"id": customer_id, "email": email, "invoice_settings": {}}
        return dict(self.customers[customer_id])

    def retrieve_customer(self, customer_id):
        return self.customers.get(customer_id, {"id": customer_id, "invoice_settings": {}})

    def update_customer(self, customer_id, **params):
        self.calls.append(("update_customer", {"customer_id": customer_id, **params}))
        customer = self.customers.setdefault(customer_id, {"id": customer_id})
        customer.update(params)
        return dict(customer)

    def create_payment_intent(self, **params):
        self.calls.append(("create_payment_intent", params))
        if self.intent_error:
            raise self.intent_error
        return {"id": "pi_123", "client_secret": "pi_123_secret_abc", **params}

    def create_checkout_session(self, **params):
        self.calls.append(("create_checkout_session", params))
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    def create_setup_intent(self, customer_id):
        self.calls.append(("create_setup_intent", {"customer_id": customer_id}))
        return {"id": "seti_1", "client_secret": "seti_1_secret"}

    def list_card_payment_methods(self, customer_id):
        return [pm for pm in self.payment_methods.values() if pm.get("customer") == customer_id]

    def retrieve_payment_method(self, payment_method_id):
        return dict(self.payment_methods[payment_method_id])

    def detach_payment_method(self, payment_method_id):
        self.calls.append(("detach_payment_method", {"payment_method_id": payment_method_id}))
        pm = self.payment_methods.pop(payment_method_id)
        return {**pm, "customer": None}

    def retrieve_subscription(self, subscription_id):
        return dict(self.subscriptions[subscription_id])

    def update_subscription(self, subscription_id, **params):
        self.calls.append(("update_subscription", {"subscription_id": subscription_id, **params}))
        sub = dict(self.subscriptions[subscription_id])
        if "cancel_at_period_end" in params:
            sub["cancel_at_period_end"] = params["cancel_at_period_end"]
        if "items" in params:
            current = (sub.get("items") or {}).get("data") or [{}]
            new_item = {**current[0], "id": params["items"][0]["id"], "price": {"id": params["items"][0]["price"]}}
            sub["items"] = {"data": [new_item]}
        self.subscriptions[subscription_id] = sub
        return dict(sub)

    def construct_event(self, payload, sig_header):
        if self.construct_error:
            raise self.construct_error
        return json.loads(payload)


def make_subscription(sub_id="sub_1", user_id="user-1", status="active", interval="month", price_id="price_monthly"):
    """Abonnement Stripe minimal (dates portées par l'item, comme les versions récentes de l'API)."""
    return {
        "id": sub_id,
        "object": "subscription",
        "status": status,
        "cancel_at_period_end": False,
        "metadata": {"user_id": user_id, "plan_id": "monthly"},
        "items": {
            "data": [
                {
                    "id": "si_1",
                    "price": {"id": price_id, "recurring": {"interval": interval}},
                    "current_period_start": 1700000000,
                    "current_period_end": 1702592000,
                }
            ]
        },
    }


@pytest.fixture
def tables(monkeypatch) -> InMemoryTables:
    t = InMemoryTables()
    t.install(monkeypatch)
    return t

@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()

@pytest.fixture
def db() -> MagicMock:
    # Client Supabase jamais appelé directement: le repository est remplacé par InMemoryTables
    return MagicMock()

@pytest.fixture
def subscription_factory():
    return make_subscription

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app, db, gateway, tables) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def cart_payload():
    """Panier de référence: 10.00 x2 + 5.00 x1 (+ 5.99 de livraison = 30.99)."""
    return [
        {"id": 1, "name": "Archive Print", "price": 10.0, "quantity": 2, "type": "print"},
        {"id": 2, "name": "Field Notes", "price": 5.0, "quantity": 1, "type": "book"},
    ]

@pytest.fixture
def shipping_payload():
    return {
        "name": "Ada Lovelace",
        "line1": "12 Archive Street",
        "city": "Richmond",
        "state": "VA",
        "postal_code": "23219",
        "country": "US",
    }
