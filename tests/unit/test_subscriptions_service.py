import pytest
from fastapi import HTTPException

from archive_store.payments.plans import SUBSCRIPTION_PLANS
from archive_store.subscriptions import service

@pytest.fixture
def subscribed(tables, gateway, subscription_factory):
    tables.add_profile(
        "user-1",
        stripe_customer_id="cus_1",
        stripe_subscription_id="sub_1",
        subscription_status="paid",
        subscription_interval="month",
        subscription_period_end="2023-12-14T22:13:20+00:00",
    )
    gateway.subscriptions["sub_1"] = subscription_factory()
    return tables

def test_get_subscription_none_without_subscription(db, gateway, tables):
    tables.add_profile("user-1")
    assert service.get_subscription(db, gateway, "user-1") is None

def test_get_subscription_details(db, gateway, subscribed):
    details = service.get_subscription(db, gateway, "user-1")
    assert details == {
        "id": "sub_1",
        "status": "active",
        "interval": "month",
        "currentPeriodEnd": "2023-12-14T22:13:20+00:00",
        "cancelAtPeriodEnd": False,
        "priceId": "price_monthly",
    }

def test_cancel_requires_subscription(db, gateway, tables):
    tables.add_profile("user-1")
    with pytest.raises(HTTPException) as exc:
        service.manage_subscription(db, gateway, user_id="user-1", action="cancel")
    assert exc.value.status_code == 404
    assert exc.value.detail == "No active subscription found"

def test_cancel_at_period_end(db, gateway, subscribed):
    result = service.manage_subscription(db, gateway, user_id="user-1", action="cancel")

    assert result["message"] == "Subscription will cancel at the end of the billing period"
    assert result["cancelAt"] == "2023-12-14T22:13:20+00:00"
    assert gateway.called("update_subscription")[0]["cancel_at_period_end"] is True
    assert subscribed.profiles["user-1"]["subscription_cancel_at_period_end"] is True

def test_reactivate(db, gateway, subscribed):
    gateway.subscriptions["sub_1"]["cancel_at_period_end"] = True
    result = service.manage_subscription(db, gateway, user_id="user-1", action="reactivate")
    assert result["message"] == "Subscription reactivated"
    assert result["subscription"] == {"id": "sub_1", "status": "active"}
    assert subscribed.profiles["user-1"]["subscription_cancel_at_period_end"] is False

def test_switch_to_yearly_with_proration(db, gateway, subscribed):
    result = service.manage_subscription(db, gateway, user_id="user-1", action="switch", new_plan_id="yearly")

    call = gateway.called("update_subscription")[0]
    assert call["items"] == [{"id": "si_1", "price": SUBSCRIPTION_PLANS["yearly"].price_id}]
    assert call["proration_behavior"] == "create_prorations"
    assert result["message"] == "Subscription switched to Premium Yearly"
    assert result["subscription"]["interval"] == "year"
    assert result["subscription"]["price"] == 79.99
    assert subscribed.profiles["user-1"]["subscription_interval"] == "year"

@pytest.mark.parametrize(
    "plan, detail",
    [(None, "Missing newPlanId for switch action"), ("weekly", "Invalid plan ID")],
)
def test_switch_validation(db, gateway, subscribed, plan, detail):
    with pytest.raises(HTTPException) as exc:
        service.manage_subscription(db, gateway, user_id="user-1", action="switch", new_plan_id=plan)
    assert exc.value.status_code == 400
    assert exc.value.detail == detail
    assert gateway.called("update_subscription") == []

@pytest.mark.parametrize(
    "user_id, action, detail",
    [(None, "cancel", "Missing required fields"), ("user-1", None, "Missing required fields"), ("user-1", "pause", "Invalid action")],
)
def test_manage_validation(db, gateway, tables, user_id, action, detail):
    with pytest.raises(HTTPException) as exc:
        service.manage_subscription(db, gateway, user_id=user_id, action=action)
    assert exc.value.status_code == 400
    assert exc.value.detail == detail
