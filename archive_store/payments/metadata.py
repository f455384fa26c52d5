"""
Sérialisation/désérialisation des métadonnées Stripe (user_id, items).
Stripe limite chaque valeur de metadata à 500 caractères.
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from archive_store.cart.models import CartItem

GUEST_USER_ID = "guest"
# Marque les PaymentIntent créés par la boutique (les factures d'abonnement n'en ont pas)
SHOP_SOURCE = "shop"
METADATA_VALUE_MAX = 500

# module archive_store.payments.metadata
def encode_items(items: List[CartItem]) -> str:
    """
    Encodage compact des lignes achetées: [{"id","name","qty","price"}, ...].
    - Si le JSON dépasse la limite Stripe, les noms sont retirés, puis le texte est tronqué.
    """
    full = [{"id": i.id, "name": i.name, "qty": i.quantity, "price": i.price} for i in items]
    encoded = json.dumps(full, separators=(",", ":"))
    if len(encoded) <= METADATA_VALUE_MAX:
        return encoded
    compact = [{"id": i.id, "qty": i.quantity, "price": i.price} for i in items]
    return json.dumps(compact, separators=(",", ":"))[:METADATA_VALUE_MAX]

def make_payment_metadata(user_id: Optional[str], items: List[CartItem]) -> Dict[str, str]:
    return {
        "source": SHOP_SOURCE,
        "user_id": user_id or GUEST_USER_ID,
        "items": encode_items(items),
    }

def extract_payment_metadata(obj: Dict[str, Any]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Extrait (user_id, items) depuis un PaymentIntent (dict).
    - user_id vaut None pour un invité.
    - Tolérant aux erreurs: retourne (user_id, []) si le JSON est tronqué ou invalide.
    """
    meta = (obj or {}).get("metadata") or {}
    user_id = meta.get("user_id")
    if user_id == GUEST_USER_ID:
        user_id = None
    try:
        items = json.loads(meta.get("items") or "[]")
    except Exception:
        items = []
    if not isinstance(items, list):
        items = []
    return user_id, items

def is_shop_payment(obj: Dict[str, Any]) -> bool:
    """True si le PaymentIntent vient de create_payment_intent (et non d'une facture Stripe Billing)."""
    return ((obj or {}).get("metadata") or {}).get("source") == SHOP_SOURCE
