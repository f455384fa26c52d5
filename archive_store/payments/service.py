"""
Cas d'usage 'payments': orchestre cart, customers, stripe_client, repository.
- create_payment_intent: achat boutique (PaymentIntent + commande 'pending')
- create_checkout_session: adhésion (Checkout Stripe en mode abonnement)
"""
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException
from supabase import Client

from . import cart as cart_logic
from . import metadata as meta
from . import repository
from .customers import ensure_customer
from .models import (
    ORDER_PENDING,
    CheckoutSessionResult,
    OrderWriteStatus,
    PaymentIntentResult,
    ShippingAddress,
)
from .plans import get_plan
from .stripe_client import StripeGateway

logger = logging.getLogger(__name__)

def create_payment_intent(
    db: Client,
    gateway: StripeGateway,
    *,
    items: List[Dict[str, Any]],
    shipping_address: Union[ShippingAddress, Dict[str, Any], None],
    email: Optional[str],
    user_id: Optional[str] = None,
) -> PaymentIntentResult:
    """
    Prépare le paiement d'un panier.
    1) Recalcule le total côté serveur (jamais le total client)
    2) Client Stripe create-or-reuse si l'utilisateur est connecté
    3) Crée le PaymentIntent (metadata user_id/items, reçu, livraison)
    4-5) Enregistre la commande 'pending' puis ses lignes
    Les écritures 4-5 sont best-effort: un échec est loggé et signalé dans le résultat,
    la réconciliation se fait par le webhook (clé: payment_intent_id).
    """
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")
    if not shipping_address or not email:
        raise HTTPException(status_code=400, detail="Missing shipping address or email")

    cart_items = cart_logic.parse_cart_items(items)
    address = (
        shipping_address
        if isinstance(shipping_address, ShippingAddress)
        else ShippingAddress.model_validate(shipping_address)
    )
    totals = cart_logic.compute_order_total(cart_items)
    shipping = address.to_stripe()

    customer_id: Optional[str] = None
    if user_id:
        customer_id = ensure_customer(db, gateway, user_id=user_id, email=email, shipping=shipping)

    intent_params: Dict[str, Any] = {
        "amount": totals.amount_cents,
        "currency": cart_logic.CURRENCY,
        "metadata": meta.make_payment_metadata(user_id, cart_items),
        "receipt_email": email,
        "shipping": shipping,
    }
    if customer_id:
        intent_params["customer"] = customer_id
    intent = gateway.create_payment_intent(**intent_params)
    intent_id = intent["id"]

    order = repository.insert_order(db, {
        "user_id": user_id or None,
        "stripe_payment_intent_id": intent_id,
        "status": ORDER_PENDING,
        "total_amount": float(totals.total),
        "shipping_address": address.model_dump(),
    })
    status = OrderWriteStatus.RECORDED
    order_id: Optional[str] = None
    if not order:
        # On continue: le client doit pouvoir payer, le webhook reconstruira la commande
        status = OrderWriteStatus.ORDER_WRITE_FAILED
        logger.error("payments.create_payment_intent order not recorded payment_intent_id=%s", intent_id)
    else:
        order_id = str(order.get("id")) if order.get("id") is not None else None
        rows = cart_logic.to_order_item_rows(order_id, cart_items)
        if not repository.insert_order_items(db, rows):
            status = OrderWriteStatus.ITEMS_WRITE_FAILED

    logger.info(
        "payments.create_payment_intent intent=%s order=%s amount=%s status=%s",
        intent_id, order_id, totals.amount_cents, status.value,
    )
    return PaymentIntentResult(
        client_secret=intent.get("client_secret") or "",
        payment_intent_id=intent_id,
        total=totals.total,
        order_id=order_id,
        order_status=status,
    )

def create_checkout_session(
    db: Client,
    gateway: StripeGateway,
    *,
    plan_id: Optional[str],
    user_id: Optional[str],
    email: Optional[str],
    app_url: str,
) -> CheckoutSessionResult:
    """
    Crée une session Checkout Stripe (mode abonnement) pour un plan connu.
    - 400 si un champ manque, 400 distinct si le plan est inconnu.
    - metadata {user_id, plan_id} posée sur la session et sur l'abonnement (corrélation webhook).
    """
    if not plan_id or not user_id or not email:
        raise HTTPException(status_code=400, detail="Missing required fields: planId, userId, email")

    plan = get_plan(plan_id)
    if not plan:
        raise HTTPException(status_code=400, detail="Invalid plan ID")

    customer_id = ensure_customer(db, gateway, user_id=user_id, email=email)
    base = app_url.rstrip("/")
    link = {"user_id": user_id, "plan_id": plan.id}
    session = gateway.create_checkout_session(
        customer=customer_id,
        payment_method_types=["card"],
        line_items=[{"price": plan.price_id, "quantity": 1}],
        mode="subscription",
        success_url=f"{base}/membership?success=true&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base}/membership?canceled=true",
        metadata=link,
        subscription_data={"metadata": dict(link)},
    )
    logger.info("payments.create_checkout_session session=%s user_id=%s plan=%s", session.get("id"), user_id, plan.id)
    return CheckoutSessionResult(session_id=session["id"], url=session.get("url"))
