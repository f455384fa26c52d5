import pytest

@pytest.fixture
def member(tables, gateway, subscription_factory):
    tables.add_profile(
        "user-1",
        stripe_customer_id="cus_1",
        stripe_subscription_id="sub_1",
        subscription_interval="month",
        subscription_period_end="2023-12-14T22:13:20+00:00",
    )
    gateway.subscriptions["sub_1"] = subscription_factory()
    gateway.customers["cus_1"] = {"id": "cus_1", "invoice_settings": {"default_payment_method": "pm_1"}}
    gateway.payment_methods["pm_1"] = {
        "id": "pm_1", "customer": "cus_1", "card": {"brand": "visa", "last4": "4242", "exp_month": 1, "exp_year": 2031},
    }
    gateway.payment_methods["pm_x"] = {"id": "pm_x", "customer": "cus_x", "card": {}}
    return "user-1"

# --- /subscription ---
def test_get_subscription_requires_user(client):
    r = client.get("/subscription")
    assert r.status_code == 400
    assert r.json() == {"error": "Missing userId parameter"}

def test_get_subscription_for_free_user(client, tables):
    tables.add_profile("user-2")
    r = client.get("/subscription", params={"userId": "user-2"})
    assert r.status_code == 200
    assert r.json() == {"subscription": None}

def test_get_subscription(client, member):
    r = client.get("/subscription", params={"userId": member})
    assert r.status_code == 200
    sub = r.json()["subscription"]
    assert sub["id"] == "sub_1"
    assert sub["interval"] == "month"
    assert sub["priceId"] == "price_monthly"

def test_get_subscription_stripe_failure(client, member, gateway):
    del gateway.subscriptions["sub_1"]
    r = client.get("/subscription", params={"userId": member})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to fetch subscription"}

def test_cancel_subscription(client, member):
    r = client.post("/subscription", json={"userId": member, "action": "cancel"})
    assert r.status_code == 200
    assert r.json()["cancelAt"] == "2023-12-14T22:13:20+00:00"

def test_subscription_action_errors(client, tables):
    tables.add_profile("user-2")
    assert client.post("/subscription", json={"userId": "user-2", "action": "cancel"}).json() == {
        "error": "No active subscription found"
    }
    r = client.post("/subscription", json={"userId": "user-2", "action": "explode"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid action"}

# --- /payment-methods ---
def test_list_payment_methods(client, member):
    r = client.get("/payment-methods", params={"userId": member})
    assert r.status_code == 200
    assert r.json() == {
        "paymentMethods": [
            {"id": "pm_1", "brand": "visa", "last4": "4242", "expMonth": 1, "expYear": 2031, "isDefault": True}
        ]
    }

def test_list_payment_methods_requires_user(client):
    r = client.get("/payment-methods")
    assert r.status_code == 400
    assert r.json() == {"error": "Missing userId parameter"}

def test_create_setup_intent(client, member):
    r = client.post("/payment-methods", json={"userId": member, "action": "createSetupIntent"})
    assert r.status_code == 200
    assert r.json() == {"clientSecret": "seti_1_secret"}

def test_delete_foreign_payment_method(client, member, gateway):
    r = client.request("DELETE", "/payment-methods", json={"userId": member, "paymentMethodId": "pm_x"})
    assert r.status_code == 403
    assert r.json() == {"error": "Payment method does not belong to this customer"}
    assert "pm_x" in gateway.payment_methods

def test_delete_payment_method(client, member, gateway):
    r = client.request("DELETE", "/payment-methods", json={"userId": member, "paymentMethodId": "pm_1"})
    assert r.status_code == 200
    assert r.json() == {"message": "Payment method removed"}
    assert "pm_1" not in gateway.payment_methods
