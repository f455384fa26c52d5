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
router = APIRouter(prefix="/subscription", tags=["Subscription API"])

@router.get("")
def get_subscription(
    userId: Optional[str] = None,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """Retourne {"subscription": {...}} ou {"subscription": null} si l'utilisateur n'est pas abonné."""
    if not userId:
        raise HTTPException(status_code=400, detail="Missing userId parameter")
    try:
        return JSONResponse({"subscription": service.get_subscription(db, gateway, userId)})
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching subscription")
        raise HTTPException(status_code=500, detail="Failed to fetch subscription")

@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def update_subscription(
    request: Request,
    db: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Actions sur l'abonnement: { "userId", "action": "cancel"|"reactivate"|"switch", "newPlanId"? }
    - 400 champs/action/plan invalides, 404 sans abonnement, 500 sinon
    """
    try:
        body = await request.json()
        result = service.manage_subscription(
            db,
            gateway,
            user_id=body.get("userId"),
            action=body.get("action"),
            new_plan_id=body.get("newPlanId"),
        )
        return JSONResponse(result)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error updating subscription")
        raise HTTPException(status_code=500, detail="Failed to update subscription")
