import logging

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from supabase import Client

from archive_store.config import APP_URL
from archive_store.infra.supabase_client import get_service_supabase
from archive_store.utils.rate_limit import optional_rate_limit
from archive_store.payments import service as payments_service
from archive_store.payments import webhook as payments_webhook
from archive_store.payments.stripe_client import StripeGateway, get_stripe_gateway

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments API"])

# module archive_store.payments.views
@router.post("/payment-intents", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_payment_intent(
    request: Request,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Crée un PaymentIntent pour le panier et enregistre une commande 'pending'.
    - Entrée JSON: { "items": [CartItem...], "shippingAddress": {...}, "userId"?: "...", "email": "..." }
    - Sortie: { "clientSecret", "orderId", "total" } (orderId null si l'écriture de la commande a échoué)
    - Erreurs: 400 panier vide / adresse ou email manquant, 500 sinon
    """
    try:
        body = await request.json()
        result = payments_service.create_payment_intent(
            db,
            gateway,
            items=body.get("items") or [],
            shipping_address=body.get("shippingAddress"),
            email=body.get("email"),
            user_id=body.get("userId"),
        )
        return JSONResponse({
            "clientSecret": result.client_secret,
            "orderId": result.order_id,
            "total": float(result.total),
        })
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating payment intent")
        raise HTTPException(status_code=500, detail="Failed to create payment intent")

@router.post("/checkout-sessions", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(
    request: Request,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Crée une session Checkout Stripe (abonnement Premium).
    - Entrée JSON: { "planId": "monthly"|"yearly", "userId": "...", "email": "..." }
    - Sortie: { "sessionId", "url" }
    - Erreurs: 400 champs manquants ou "Invalid plan ID", 500 sinon
    """
    try:
        body = await request.json()
        result = payments_service.create_checkout_session(
            db,
            gateway,
            plan_id=body.get("planId"),
            user_id=body.get("userId"),
            email=body.get("email"),
            app_url=APP_URL,
        )
        return JSONResponse({"sessionId": result.session_id, "url": result.url})
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error creating checkout session")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")

@router.post("/webhooks/stripe", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Webhook Stripe.
    - Signature: Stripe-Signature + STRIPE_WEBHOOK_SECRET (400 si absente ou invalide)
    - Dispatch: payments_webhook.handle_event
    - Réponses: {"received": true} ou 500 si le traitement échoue
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")
    try:
        event = gateway.construct_event(payload, signature)
    except Exception:
        logger.exception("Webhook signature verification failed")
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        payments_webhook.handle_event(db, event)
        return JSONResponse({"received": True})
    except Exception:
        logger.exception("Error processing webhook type=%s", (event or {}).get("type"))
        raise HTTPException(status_code=500, detail="Webhook processing failed")
