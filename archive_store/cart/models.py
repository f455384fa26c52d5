"""
Modèles du panier (pydantic).
- CatalogItem: un produit tel qu'affiché en boutique (sans quantité).
- CartItem: une ligne de panier; au plus une ligne par id, quantité >= 1.
"""
from pydantic import BaseModel, Field


class CatalogItem(BaseModel):
    id: int
    name: str
    description: str = ""
    price: float = Field(ge=0)
    image: str = ""
    type: str = ""


class CartItem(CatalogItem):
    quantity: int = Field(ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity
