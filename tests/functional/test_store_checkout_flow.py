import json

from archive_store.cart import CartStore, MemoryCartStorage

SIG = {"stripe-signature": "t=1,v1=sig"}

def _webhook(client, event_type, obj):
    return client.post("/webhooks/stripe", content=json.dumps({"type": event_type, "data": {"object": obj}}), headers=SIG)

def test_cart_to_paid_order(client, tables, gateway, shipping_payload):
    # Panier côté client
    cart = CartStore(MemoryCartStorage())
    cart.add_item({"id": 1, "name": "Archive Print", "price": 10.0}, 2)
    cart.add_item({"id": 2, "name": "Field Notes", "price": 5.0})
    tables.add_profile("user-1")

    r = client.post("/payment-intents", json={
        "items": [item.model_dump() for item in cart.items],
        "shippingAddress": shipping_payload,
        "email": "ada@example.com",
        "userId": "user-1",
    })
    assert r.status_code == 200
    assert r.json()["total"] == 30.99
    cart.clear_cart()

    intent = gateway.called("create_payment_intent")[0]
    paid = {"id": "pi_123", "amount": intent["amount"], "metadata": intent["metadata"], "shipping": intent["shipping"]}
    assert _webhook(client, "payment_intent.succeeded", paid).json() == {"received": True}

    assert [o["status"] for o in tables.orders] == ["processing"]
    assert tables.orders[0]["user_id"] == "user-1"
    assert len(tables.order_items) == 2
    assert cart.item_count == 0

def test_lost_order_is_rebuilt_by_webhook(client, tables, gateway, cart_payload, shipping_payload):
    tables.fail_order_insert = True
    r = client.post("/payment-intents", json={
        "items": cart_payload, "shippingAddress": shipping_payload, "email": "guest@example.com",
    })
    assert r.json()["orderId"] is None

    tables.fail_order_insert = False
    intent = gateway.called("create_payment_intent")[0]
    paid = {"id": "pi_123", "amount": intent["amount"], "metadata": intent["metadata"], "shipping": intent["shipping"]}
    _webhook(client, "payment_intent.succeeded", paid)

    order = tables.orders[0]
    assert order["status"] == "processing"
    assert order["user_id"] is None
    assert order["total_amount"] == 30.99
    assert [(i["product_id"], i["quantity"]) for i in tables.order_items] == [(1, 2), (2, 1)]

def test_membership_lifecycle(client, tables, gateway, subscription_factory):
    tables.add_profile("user-1")
    r = client.post("/checkout-sessions", json={"planId": "monthly", "userId": "user-1", "email": "a@b.c"})
    assert r.status_code == 200

    sub = subscription_factory()
    gateway.subscriptions["sub_1"] = sub
    _webhook(client, "checkout.session.completed", {"id": "cs_test_1", "mode": "subscription", "metadata": {"user_id": "user-1"}})
    _webhook(client, "customer.subscription.created", sub)
    assert tables.profiles["user-1"]["subscription_status"] == "paid"

    current = client.get("/subscription", params={"userId": "user-1"}).json()["subscription"]
    assert current["status"] == "active"
    assert current["interval"] == "month"

    r = client.post("/subscription", json={"userId": "user-1", "action": "switch", "newPlanId": "yearly"})
    assert r.json()["message"] == "Subscription switched to Premium Yearly"
    assert tables.profiles["user-1"]["subscription_interval"] == "year"

    client.post("/subscription", json={"userId": "user-1", "action": "cancel"})
    assert tables.profiles["user-1"]["subscription_cancel_at_period_end"] is True

    _webhook(client, "customer.subscription.deleted", sub)
    assert tables.profiles["user-1"]["subscription_status"] == "free"
    assert client.get("/subscription", params={"userId": "user-1"}).json() == {"subscription": None}
