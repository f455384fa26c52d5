import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from supabase import Client

from archive_store.infra.supabase_client import get_service_supabase
from archive_store.payments.stripe_client import StripeGateway, get_stripe_gateway
from archive_store.utils.rate_limit import optional_rate_limit
from . import service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payment-methods", tags=["Payment Methods API"])

@router.get("")
def list_payment_methods(
    userId: Optional[str] = None,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """Cartes enregistrées: {"paymentMethods": [...]} (vide si pas de client Stripe)."""
    if not userId:
        raise HTTPException(status_code=400, detail="Missing userId parameter")
    try:
        return JSONResponse({"paymentMethods": service.list_payment_methods(db, gateway, userId)})
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching payment methods")
        raise HTTPException(status_code=500, detail="Failed to fetch payment methods")

@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def update_payment_methods(
    request: Request,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """{ "userId", "action": "createSetupIntent"|"setDefault", "paymentMethodId"? }"""
    try:
        body = await request.json()
        result = service.manage_payment_method(
            db,
            gateway,
            user_id=body.get("userId"),
            action=body.get("action"),
            payment_method_id=body.get("paymentMethodId"),
        )
        return JSONResponse(result)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error with payment method")
        raise HTTPException(status_code=500, detail="Failed to process payment method request")

@router.delete("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def delete_payment_method(
    request: Request,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """{ "userId", "paymentMethodId" } -> 403 si la carte appartient à un autre client."""
    try:
        body = await request.json()
        result = service.remove_payment_method(
            db,
            gateway,
            user_id=body.get("userId"),
            payment_method_id=body.get("paymentMethodId"),
        )
        return JSONResponse(result)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error removing payment method")
        raise HTTPException(status_code=500, detail="Failed to remove payment method")
