"""
Types de la feature 'payments': adresse de livraison, statuts de commande, résultats des orchestrateurs.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ShippingAddress(BaseModel):
    name: str
    line1: str
    line2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str

    def to_stripe(self) -> Dict[str, Any]:
        """Format 'shipping' attendu par Stripe (Customer / PaymentIntent)."""
        return {
            "name": self.name,
            "address": {
                "line1": self.line1,
                "line2": self.line2 or None,
                "city": self.city,
                "state": self.state,
                "postal_code": self.postal_code,
                "country": self.country,
            },
        }


# Cycle de vie: pending (création) -> processing / failed (webhook) -> completed / cancelled / refunded
ORDER_PENDING = "pending"
ORDER_PROCESSING = "processing"
ORDER_FAILED = "failed"
ORDER_COMPLETED = "completed"
ORDER_CANCELLED = "cancelled"
ORDER_REFUNDED = "refunded"


class OrderWriteStatus(str, Enum):
    RECORDED = "recorded"
    ORDER_WRITE_FAILED = "order_write_failed"
    ITEMS_WRITE_FAILED = "items_write_failed"


@dataclass(frozen=True)
class OrderTotal:
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    amount_cents: int


@dataclass(frozen=True)
class PaymentIntentResult:
    client_secret: str
    payment_intent_id: str
    total: Decimal
    order_id: Optional[str] = None
    order_status: OrderWriteStatus = OrderWriteStatus.RECORDED

    @property
    def order_recorded(self) -> bool:
        return self.order_status is OrderWriteStatus.RECORDED


@dataclass(frozen=True)
class CheckoutSessionResult:
    session_id: str
    url: Optional[str]
