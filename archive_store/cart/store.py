"""
Panier persistant (logique pure, pas de Stripe ni de BD).
- Liste ordonnée de CartItem (ordre d'insertion = ordre d'affichage)
- Snapshot JSON complet réécrit à chaque mutation via un CartStorage injecté
- item_count / subtotal recalculés à chaque lecture (jamais stockés)
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from .models import CartItem, CatalogItem
from .storage import CartStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "reparation-road-cart"

# module archive_store.cart.store
class CartStore:
    def __init__(self, storage: CartStorage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self.is_open = False
        self._items: List[CartItem] = self._load()

    # --- Persistance ---
    def _load(self) -> List[CartItem]:
        """
        Recharge le snapshot au démarrage.
        - Payload absent, non-liste, JSON invalide ou ligne invalide => panier vide.
        - Ne lève jamais: une erreur de chargement ne doit pas casser l'application.
        """
        try:
            raw = self.storage.read(self.key)
            if not raw:
                return []
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                logger.warning("cart.load ignored non-array payload key=%s", self.key)
                return []
            items: List[CartItem] = []
            for entry in parsed:
                item = CartItem.model_validate(entry)
                existing = self._find(items, item.id)
                if existing is None:
                    items.append(item)
                else:
                    # Doublon d'id dans le snapshot: fusion des quantités
                    merged = items[existing].quantity + item.quantity
                    items[existing] = items[existing].model_copy(update={"quantity": merged})
            return items
        except Exception:
            logger.warning("cart.load failed key=%s, starting empty", self.key, exc_info=True)
            return []

    def _save(self) -> None:
        try:
            payload = json.dumps([item.model_dump() for item in self._items])
            self.storage.write(self.key, payload)
        except Exception:
            logger.exception("cart.save failed key=%s", self.key)

    @staticmethod
    def _find(items: List[CartItem], item_id: int) -> Optional[int]:
        for idx, item in enumerate(items):
            if item.id == item_id:
                return idx
        return None

    # --- Lecture ---
    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self._items)

    # --- Mutations ---
    def add_item(self, item: Union[CatalogItem, Dict[str, Any]], quantity: int = 1) -> None:
        """
        Ajoute un produit ou incrémente sa quantité s'il est déjà présent.
        - quantity doit être >= 1 (un incrément n'est jamais négatif)
        - ouvre le tiroir panier (affichage)
        """
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        product = item if isinstance(item, CatalogItem) else CatalogItem.model_validate(item)
        idx = self._find(self._items, product.id)
        if idx is None:
            data = product.model_dump()
            data["quantity"] = quantity
            self._items.append(CartItem.model_validate(data))
        else:
            current = self._items[idx]
            self._items[idx] = current.model_copy(update={"quantity": current.quantity + quantity})
        self._save()
        self.is_open = True

    def remove_item(self, item_id: int) -> None:
        """Supprime la ligne correspondante; no-op si absente."""
        self._items = [item for item in self._items if item.id != item_id]
        self._save()

    def update_quantity(self, item_id: int, quantity: int) -> None:
        """Remplace la quantité; quantity < 1 équivaut à remove_item."""
        if quantity < 1:
            self.remove_item(item_id)
            return
        self._items = [
            item.model_copy(update={"quantity": quantity}) if item.id == item_id else item
            for item in self._items
        ]
        self._save()

    def clear_cart(self) -> None:
        self._items = []
        self._save()
        self.is_open = False

    # --- Affichage ---
    def open_cart(self) -> None:
        self.is_open = True

    def close_cart(self) -> None:
        self.is_open = False

    def toggle_cart(self) -> None:
        self.is_open = not self.is_open
