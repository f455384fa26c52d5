"""Cartes enregistrées d'un client Stripe (page adhésion).
- list_payment_methods: cartes + carte par défaut
- create_setup_intent / set_default_payment_method / remove_payment_method
Toutes les opérations passent par profiles.stripe_customer_id.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from archive_store.payments import repository
from archive_store.payments.stripe_client import StripeGateway

logger = logging.getLogger(__name__)

def _require_customer_id(db: Client, user_id: str) -> str:
    customer_id = repository.get_stripe_customer_id(db, user_id)
    if not customer_id:
        raise HTTPException(status_code=404, detail="No Stripe customer found")
    return customer_id

def _default_payment_method_id(customer: Dict[str, Any]) -> Optional[str]:
    if not customer or customer.get("deleted"):
        return None
    default = (customer.get("invoice_settings") or {}).get("default_payment_method")
    # Peut être un id ou un objet développé
    if isinstance(default, dict):
        return default.get("id")
    return default

def list_payment_methods(db: Client, gateway: StripeGateway, user_id: str) -> List[Dict[str, Any]]:
    customer_id = repository.get_stripe_customer_id(db, user_id)
    if not customer_id:
        return []
    methods = gateway.list_card_payment_methods(customer_id)
    default_id = _default_payment_method_id(gateway.retrieve_customer(customer_id))
    formatted = []
    for pm in methods:
        card = pm.get("card") or {}
        formatted.append({
            "id": pm.get("id"),
            "brand": card.get("brand") or "unknown",
            "last4": card.get("last4") or "****",
            "expMonth": card.get("exp_month"),
            "expYear": card.get("exp_year"),
            "isDefault": pm.get("id") == default_id,
        })
    return formatted

def create_setup_intent(db: Client, gateway: StripeGateway, user_id: str) -> Dict[str, Any]:
    customer_id = _require_customer_id(db, user_id)
    setup_intent = gateway.create_setup_intent(customer_id)
    return {"clientSecret": setup_intent.get("client_secret")}

def set_default_payment_method(
    db: Client, gateway: StripeGateway, user_id: str, payment_method_id: Optional[str]
) -> Dict[str, Any]:
    customer_id = _require_customer_id(db, user_id)
    if not payment_method_id:
        raise HTTPException(status_code=400, detail="Missing paymentMethodId")
    gateway.update_customer(customer_id, invoice_settings={"default_payment_method": payment_method_id})
    return {"message": "Default payment method updated"}

def manage_payment_method(
    db: Client,
    gateway: StripeGateway,
    *,
    user_id: Optional[str],
    action: Optional[str],
    payment_method_id: Optional[str] = None,
) -> Dict[str, Any]:
    if not user_id or not action:
        raise HTTPException(status_code=400, detail="Missing required fields")
    if action == "createSetupIntent":
        return create_setup_intent(db, gateway, user_id)
    if action == "setDefault":
        return set_default_payment_method(db, gateway, user_id, payment_method_id)
    raise HTTPException(status_code=400, detail="Invalid action")

def remove_payment_method(
    db: Client, gateway: StripeGateway, *, user_id: Optional[str], payment_method_id: Optional[str]
) -> Dict[str, Any]:
    """Détache une carte après avoir vérifié qu'elle appartient bien au client."""
    if not user_id or not payment_method_id:
        raise HTTPException(status_code=400, detail="Missing required fields")
    customer_id = _require_customer_id(db, user_id)
    payment_method = gateway.retrieve_payment_method(payment_method_id)
    if payment_method.get("customer") != customer_id:
        logger.warning("payment_methods.remove ownership mismatch user_id=%s pm=%s", user_id, payment_method_id)
        raise HTTPException(status_code=403, detail="Payment method does not belong to this customer")
    gateway.detach_payment_method(payment_method_id)
    return {"message": "Payment method removed"}
