"""
Plans d'abonnement (adhésion Premium).
Les price_id Stripe viennent de la configuration.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from archive_store.config import STRIPE_PREMIUM_MONTHLY_PRICE_ID, STRIPE_PREMIUM_YEARLY_PRICE_ID


@dataclass(frozen=True)
class SubscriptionPlan:
    id: str
    name: str
    price: float
    interval: str
    price_id: str


SUBSCRIPTION_PLANS: Dict[str, SubscriptionPlan] = {
    "monthly": SubscriptionPlan(
        id="monthly",
        name="Premium Monthly",
        price=7.99,
        interval="month",
        price_id=STRIPE_PREMIUM_MONTHLY_PRICE_ID,
    ),
    "yearly": SubscriptionPlan(
        id="yearly",
        name="Premium Yearly",
        price=79.99,
        interval="year",
        price_id=STRIPE_PREMIUM_YEARLY_PRICE_ID,
    ),
}

def get_plan(plan_id: Optional[str]) -> Optional[SubscriptionPlan]:
    return SUBSCRIPTION_PLANS.get(str(plan_id or ""))
