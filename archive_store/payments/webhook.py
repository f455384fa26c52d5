"""
Traitement des événements Stripe (webhook).
- Abonnements: synchronise les colonnes subscription_* du profil
- PaymentIntent: fait avancer le statut de la commande; à partir des métadonnées du PaymentIntent,
  reconstruit une commande boutique manquante ou ses lignes manquantes (écritures best-effort).
  Les PaymentIntent de factures d'abonnement (sans metadata.source="shop") ne créent pas de commande.
"""
import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from supabase import Client

from . import repository
from .metadata import extract_payment_metadata, is_shop_payment
from .models import ORDER_FAILED, ORDER_PROCESSING

logger = logging.getLogger(__name__)

def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(float(ts), tz=timezone.utc).isoformat()

def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    data = ((subscription.get("items") or {}).get("data")) or []
    return data[0] if data else {}

def subscription_periods(subscription: Dict[str, Any]) -> Tuple[float, float]:
    """
    (début, fin) de la période courante.
    Les versions récentes de l'API portent les dates sur l'item, les anciennes sur l'abonnement.
    """
    item = _first_item(subscription)
    if item.get("current_period_start") and item.get("current_period_end"):
        return item["current_period_start"], item["current_period_end"]
    now = time.time()
    return (
        subscription.get("current_period_start") or now,
        subscription.get("current_period_end") or now,
    )

def handle_subscription_change(db: Client, subscription: Dict[str, Any]) -> None:
    user_id = (subscription.get("metadata") or {}).get("user_id")
    if not user_id:
        logger.error("payments.webhook no user_id in subscription metadata sub=%s", subscription.get("id"))
        return
    price = _first_item(subscription).get("price") or {}
    interval = (price.get("recurring") or {}).get("interval")
    start, end = subscription_periods(subscription)
    repository.update_profile(db, user_id, {
        "subscription_status": "paid" if subscription.get("status") == "active" else "free",
        "stripe_subscription_id": subscription.get("id"),
        "subscription_interval": interval,
        "subscription_period_start": _iso(start),
        "subscription_period_end": _iso(end),
        "subscription_cancel_at_period_end": bool(subscription.get("cancel_at_period_end")),
    })
    logger.info("payments.webhook subscription %s for user %s", subscription.get("status"), user_id)

def handle_subscription_deleted(db: Client, subscription: Dict[str, Any]) -> None:
    user_id = (subscription.get("metadata") or {}).get("user_id")
    if not user_id:
        logger.error("payments.webhook no user_id in subscription metadata sub=%s", subscription.get("id"))
        return
    repository.update_profile(db, user_id, {
        "subscription_status": "free",
        "stripe_subscription_id": None,
        "subscription_interval": None,
        "subscription_period_start": None,
        "subscription_period_end": None,
        "subscription_cancel_at_period_end": None,
    })
    logger.info("payments.webhook subscription deleted for user %s", user_id)

def handle_invoice_paid(db: Client, invoice: Dict[str, Any]) -> None:
    # La mise à jour du profil arrive via customer.subscription.updated
    logger.info("payments.webhook invoice paid: %s", invoice.get("id"))

def handle_invoice_payment_failed(db: Client, invoice: Dict[str, Any]) -> None:
    customer_id = invoice.get("customer")
    profile = repository.find_profile_by_customer_id(db, customer_id) if customer_id else None
    if profile:
        logger.warning(
            "payments.webhook invoice payment failed for user %s (%s)", profile.get("id"), profile.get("email")
        )

def handle_checkout_completed(db: Client, session: Dict[str, Any]) -> None:
    user_id = (session.get("metadata") or {}).get("user_id")
    if session.get("mode") == "subscription" and user_id:
        # Le profil est mis à jour par customer.subscription.created
        logger.info("payments.webhook checkout completed for subscription, user %s", user_id)

def _item_rows(order_id: Any, items: List[Any]) -> List[Dict[str, Any]]:
    return [
        {
            "order_id": order_id,
            "product_id": entry.get("id"),
            "product_name": entry.get("name") or "",
            "quantity": entry.get("qty"),
            "price": entry.get("price"),
        }
        for entry in items
        if isinstance(entry, dict) and entry.get("id") is not None
    ]

def reconcile_missing_order(db: Client, intent: Dict[str, Any], status: str) -> Optional[dict]:
    """
    Recrée la commande (et ses lignes) d'un PaymentIntent sans ligne 'orders'.
    - total depuis amount (centimes), livraison depuis intent.shipping, lignes depuis metadata.items
    """
    user_id, items = extract_payment_metadata(intent)
    shipping = intent.get("shipping") or {}
    address = shipping.get("address") or {}
    order = repository.insert_order(db, {
        "user_id": user_id,
        "stripe_payment_intent_id": intent.get("id"),
        "status": status,
        "total_amount": float(Decimal(int(intent.get("amount") or 0)) / 100),
        "shipping_address": {"name": shipping.get("name"), **address} if shipping else None,
    })
    if not order:
        return None
    repository.insert_order_items(db, _item_rows(order.get("id"), items))
    logger.warning("payments.webhook reconciled missing order payment_intent_id=%s order=%s", intent.get("id"), order.get("id"))
    return order

def restore_missing_items(db: Client, order: Dict[str, Any], intent: Dict[str, Any]) -> bool:
    """Réécrit les lignes d'une commande enregistrée sans order_items (ITEMS_WRITE_FAILED)."""
    if repository.order_has_items(db, order["id"]):
        return False
    _, items = extract_payment_metadata(intent)
    rows = _item_rows(order["id"], items)
    if not rows:
        return False
    repository.insert_order_items(db, rows)
    logger.warning("payments.webhook restored %s order items order=%s", len(rows), order["id"])
    return True

def _set_order_status(db: Client, intent: Dict[str, Any], status: str) -> None:
    updated = repository.update_order_status(db, intent["id"], status)
    if updated:
        restore_missing_items(db, updated[0], intent)
    elif is_shop_payment(intent):
        reconcile_missing_order(db, intent, status)
    else:
        # Paiement de facture (abonnement): pas de commande boutique
        logger.info("payments.webhook no shop order for payment %s, skipped", intent.get("id"))
        return
    logger.info("payments.webhook payment %s -> %s", intent.get("id"), status)

def handle_payment_intent_succeeded(db: Client, intent: Dict[str, Any]) -> None:
    _set_order_status(db, intent, ORDER_PROCESSING)

def handle_payment_intent_failed(db: Client, intent: Dict[str, Any]) -> None:
    _set_order_status(db, intent, ORDER_FAILED)

EVENT_HANDLERS: Dict[str, Callable[[Client, Dict[str, Any]], None]] = {
    "customer.subscription.created": handle_subscription_change,
    "customer.subscription.updated": handle_subscription_change,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.paid": handle_invoice_paid,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "checkout.session.completed": handle_checkout_completed,
    "payment_intent.succeeded": handle_payment_intent_succeeded,
    "payment_intent.payment_failed": handle_payment_intent_failed,
}

def handle_event(db: Client, event: Dict[str, Any]) -> bool:
    """
    Dispatch d'un événement Stripe vérifié.
    Retourne True si un handler a traité l'événement, False s'il est ignoré.
    """
    event_type = (event or {}).get("type") or ""
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info("payments.webhook unhandled event type: %s", event_type)
        return False
    obj = ((event.get("data") or {}).get("object")) or {}
    handler(db, obj)
    return True
