"""
Logique panier côté serveur (pas de Stripe, pas de DB).
Les montants envoyés par le client ne sont jamais utilisés: tout est recalculé ici.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from fastapi import HTTPException

from archive_store.cart.models import CartItem
from .models import OrderTotal

SHIPPING_FLAT_RATE = Decimal("5.99")
CURRENCY = "usd"

# module archive_store.payments.cart
def parse_cart_items(items: Iterable[Dict[str, Any]]) -> List[CartItem]:
    """
    Valide un panier brut [{id, name, price, quantity, ...}, ...].
    - Lève pydantic.ValidationError sur une ligne mal formée (traitée en 500 par la vue).
    """
    return [item if isinstance(item, CartItem) else CartItem.model_validate(item) for item in items or []]

def _to_decimal(value: Any) -> Decimal:
    # str() évite d'hériter de l'imprécision binaire du float (10.1 -> 10.1, pas 10.0999...)
    return Decimal(str(value))

def compute_order_total(items: List[CartItem]) -> OrderTotal:
    """
    Recalcule le total d'une commande.
    - subtotal = somme(prix x quantité), shipping forfaitaire, total = subtotal + shipping
    - amount_cents: total en centimes, arrondi au plus proche (half-up)
    - Soulève HTTPException(400) si le panier est vide.
    """
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")
    subtotal = sum((_to_decimal(item.price) * item.quantity for item in items), Decimal("0"))
    total = subtotal + SHIPPING_FLAT_RATE
    amount_cents = int((total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return OrderTotal(subtotal=subtotal, shipping=SHIPPING_FLAT_RATE, total=total, amount_cents=amount_cents)

def to_order_item_rows(order_id: str, items: List[CartItem]) -> List[Dict[str, Any]]:
    """Snapshot des lignes (id, nom, quantité, prix) au moment de l'achat."""
    return [
        {
            "order_id": order_id,
            "product_id": item.id,
            "product_name": item.name,
            "quantity": item.quantity,
            "price": item.price,
        }
        for item in items
    ]
