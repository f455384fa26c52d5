"""
Accès aux données pour la feature 'payments' (tables profiles, orders, order_items).
Le client Supabase est passé explicitement par l'appelant (service-role côté serveur).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from supabase import Client

logger = logging.getLogger(__name__)

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

# --- profiles ---
def _select_profile(client: Client, user_id: str, columns: str) -> Optional[dict]:
    res = client.table("profiles").select(columns).eq("id", user_id).limit(1).execute()
    rows = res.data or []
    return rows[0] if rows else None

def get_profile(client: Client, user_id: str, columns: str = "*") -> Optional[dict]:
    """
    Lit un profil par id.
    - Retourne None si absent ou en cas d'erreur.
    """
    try:
        return _select_profile(client, user_id, columns)
    except Exception:
        logger.exception("payments.repository.get_profile failed user_id=%s", user_id)
        return None

def get_stripe_customer_id(client: Client, user_id: str) -> Optional[str]:
    """
    stripe_customer_id du profil, None si absent.
    Les erreurs BD remontent: une lecture en échec ne vaut pas « pas encore de client ».
    """
    profile = _select_profile(client, user_id, "stripe_customer_id")
    return (profile or {}).get("stripe_customer_id") or None

def claim_stripe_customer_id(client: Client, user_id: str, customer_id: str) -> bool:
    """
    Enregistre stripe_customer_id uniquement s'il est encore vide.
    - True si la ligne a été mise à jour, False si un autre écrivain est passé avant.
    - Les erreurs BD remontent à l'appelant.
    """
    res = (
        client.table("profiles")
        .update({"stripe_customer_id": customer_id, "updated_at": _now_iso()})
        .eq("id", user_id)
        .is_("stripe_customer_id", "null")
        .execute()
    )
    return bool(res.data)

def find_profile_by_customer_id(client: Client, customer_id: str) -> Optional[dict]:
    try:
        res = (
            client.table("profiles")
            .select("id, email")
            .eq("stripe_customer_id", customer_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("payments.repository.find_profile_by_customer_id failed customer_id=%s", customer_id)
        return None

def update_profile(client: Client, user_id: str, fields: Dict[str, Any]) -> None:
    """Met à jour un profil (horodate updated_at). Les erreurs remontent à l'appelant."""
    data = dict(fields)
    data["updated_at"] = _now_iso()
    client.table("profiles").update(data).eq("id", user_id).execute()

# --- orders / order_items ---
def insert_order(client: Client, row: Dict[str, Any]) -> Optional[dict]:
    """
    Insère une commande et retourne la ligne créée (avec id).
    - Retourne None en cas d'erreur (écriture secondaire, loggée).
    """
    try:
        res = client.table("orders").insert(row).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception(
            "payments.repository.insert_order failed payment_intent_id=%s", row.get("stripe_payment_intent_id")
        )
        return None

def insert_order_items(client: Client, rows: List[Dict[str, Any]]) -> bool:
    """Insertion groupée des lignes de commande; False en cas d'erreur (loggée)."""
    if not rows:
        return True
    try:
        client.table("order_items").insert(rows).execute()
        return True
    except Exception:
        logger.exception("payments.repository.insert_order_items failed order_id=%s", rows[0].get("order_id"))
        return False

def update_order_status(client: Client, payment_intent_id: str, status: str) -> List[dict]:
    """
    Change le statut des commandes liées à un PaymentIntent.
    Retourne les lignes mises à jour ([] si aucune commande ne correspond).
    """
    res = (
        client.table("orders")
        .update({"status": status, "updated_at": _now_iso()})
        .eq("stripe_payment_intent_id", payment_intent_id)
        .execute()
    )
    return res.data or []

def order_has_items(client: Client, order_id: str) -> bool:
    res = client.table("order_items").select("id").eq("order_id", order_id).limit(1).execute()
    return bool(res.data)
