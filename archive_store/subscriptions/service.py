"""Couche service de l'adhésion Premium (abonnement Stripe).
Rôles:
- Lire l'abonnement courant d'un utilisateur (profil + Stripe).
- Annuler en fin de période, réactiver, ou basculer mensuel <-> annuel.
Le profil (profiles.subscription_*) est mis à jour immédiatement; le webhook le resynchronise ensuite.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException
from supabase import Client

from archive_store.payments import repository
from archive_store.payments.plans import get_plan
from archive_store.payments.stripe_client import StripeGateway
from archive_store.payments.webhook import subscription_periods

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = (
    "stripe_subscription_id, stripe_customer_id, subscription_status, subscription_interval, "
    "subscription_period_end, subscription_cancel_at_period_end"
)

def _period_end_iso(subscription: Dict[str, Any]) -> str:
    _, end = subscription_periods(subscription)
    return datetime.fromtimestamp(float(end), tz=timezone.utc).isoformat()

def _first_price_id(subscription: Dict[str, Any]) -> Optional[str]:
    data = ((subscription.get("items") or {}).get("data")) or []
    return ((data[0].get("price") or {}).get("id")) if data else None

def _require_subscription_id(db: Client, user_id: str) -> str:
    profile = repository.get_profile(db, user_id, "stripe_subscription_id, stripe_customer_id")
    subscription_id = (profile or {}).get("stripe_subscription_id")
    if not subscription_id:
        raise HTTPException(status_code=404, detail="No active subscription found")
    return subscription_id

def get_subscription(db: Client, gateway: StripeGateway, user_id: str) -> Optional[Dict[str, Any]]:
    """Détails de l'abonnement, ou None si le profil n'en a pas."""
    profile = repository.get_profile(db, user_id, PROFILE_COLUMNS) or {}
    subscription_id = profile.get("stripe_subscription_id")
    if not subscription_id:
        return None
    subscription = gateway.retrieve_subscription(subscription_id)
    return {
        "id": subscription.get("id"),
        "status": subscription.get("status"),
        "interval": profile.get("subscription_interval"),
        "currentPeriodEnd": profile.get("subscription_period_end"),
        "cancelAtPeriodEnd": subscription.get("cancel_at_period_end"),
        "priceId": _first_price_id(subscription),
    }

def cancel_subscription(db: Client, gateway: StripeGateway, user_id: str) -> Dict[str, Any]:
    """Annulation en fin de période (pas immédiate)."""
    subscription_id = _require_subscription_id(db, user_id)
    subscription = gateway.update_subscription(subscription_id, cancel_at_period_end=True)
    repository.update_profile(db, user_id, {"subscription_cancel_at_period_end": True})
    return {
        "message": "Subscription will cancel at the end of the billing period",
        "cancelAt": _period_end_iso(subscription),
    }

def reactivate_subscription(db: Client, gateway: StripeGateway, user_id: str) -> Dict[str, Any]:
    subscription_id = _require_subscription_id(db, user_id)
    subscription = gateway.update_subscription(subscription_id, cancel_at_period_end=False)
    repository.update_profile(db, user_id, {"subscription_cancel_at_period_end": False})
    return {
        "message": "Subscription reactivated",
        "subscription": {"id": subscription.get("id"), "status": subscription.get("status")},
    }

def switch_subscription(db: Client, gateway: StripeGateway, user_id: str, new_plan_id: Optional[str]) -> Dict[str, Any]:
    """Change le prix de l'abonnement (avec prorata)."""
    subscription_id = _require_subscription_id(db, user_id)
    if not new_plan_id:
        raise HTTPException(status_code=400, detail="Missing newPlanId for switch action")
    plan = get_plan(new_plan_id)
    if not plan:
        raise HTTPException(status_code=400, detail="Invalid plan ID")

    current = gateway.retrieve_subscription(subscription_id)
    item_id = ((current.get("items") or {}).get("data") or [{}])[0].get("id")
    updated = gateway.update_subscription(
        subscription_id,
        items=[{"id": item_id, "price": plan.price_id}],
        proration_behavior="create_prorations",
    )
    repository.update_profile(db, user_id, {
        "subscription_interval": plan.interval,
        "subscription_period_end": _period_end_iso(updated),
    })
    logger.info("subscriptions.switch user_id=%s plan=%s", user_id, plan.id)
    return {
        "message": f"Subscription switched to {plan.name}",
        "subscription": {
            "id": updated.get("id"),
            "status": updated.get("status"),
            "interval": plan.interval,
            "price": plan.price,
        },
    }

ACTIONS = {
    "cancel": lambda db, gw, user_id, plan: cancel_subscription(db, gw, user_id),
    "reactivate": lambda db, gw, user_id, plan: reactivate_subscription(db, gw, user_id),
    "switch": switch_subscription,
}

def manage_subscription(
    db: Client,
    gateway: StripeGateway,
    *,
    user_id: Optional[str],
    action: Optional[str],
    new_plan_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Point d'entrée POST: valide les champs puis délègue à l'action demandée."""
    if not user_id or not action:
        raise HTTPException(status_code=400, detail="Missing required fields")
    handler = ACTIONS.get(action)
    if handler is None:
        raise HTTPException(status_code=400, detail="Invalid action")
    return handler(db, gateway, user_id, new_plan_id)
