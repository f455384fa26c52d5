"""
Client Stripe unique par utilisateur ("create-or-reuse").
"""
import logging
from typing import Any, Dict, Optional

from supabase import Client

from . import repository
from .stripe_client import StripeGateway

logger = logging.getLogger(__name__)

# module archive_store.payments.customers
def ensure_customer(
    db: Client,
    gateway: StripeGateway,
    *,
    user_id: str,
    email: str,
    shipping: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Retourne le stripe_customer_id du profil, en le créant au besoin.
    - Réutilise l'id déjà stocké sur profiles.stripe_customer_id.
    - Sinon crée le client Stripe (metadata.supabase_user_id) puis l'enregistre
      seulement si la colonne est encore vide.
    - Si un achat concurrent a enregistré un autre id entre-temps, c'est celui-là qui est retenu.
    - Une erreur de lecture ou d'écriture du profil remonte (aucun client Stripe n'est créé
      sur une lecture en échec).
    """
    existing = repository.get_stripe_customer_id(db, user_id)
    if existing:
        return existing

    customer = gateway.create_customer(
        email=email,
        metadata={"supabase_user_id": user_id},
        shipping=shipping,
    )
    customer_id = customer["id"]

    if repository.claim_stripe_customer_id(db, user_id, customer_id):
        logger.info("payments.customers created customer=%s user_id=%s", customer_id, user_id)
        return customer_id

    stored = repository.get_stripe_customer_id(db, user_id)
    if stored and stored != customer_id:
        logger.warning(
            "payments.customers concurrent create user_id=%s kept=%s orphan=%s", user_id, stored, customer_id
        )
        return stored
    return customer_id
