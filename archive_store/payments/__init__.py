"""
Module 'payments' (feature-first): point d'entrée public.
Réunit calcul du total, metadata Stripe, client Stripe, repository BD, orchestrateurs et webhook.
"""

from .cart import parse_cart_items, compute_order_total, to_order_item_rows, SHIPPING_FLAT_RATE
from .metadata import make_payment_metadata, extract_payment_metadata, encode_items
from .models import (
    ShippingAddress,
    OrderTotal,
    OrderWriteStatus,
    PaymentIntentResult,
    CheckoutSessionResult,
)
from .plans import SUBSCRIPTION_PLANS, SubscriptionPlan, get_plan
from .stripe_client import StripeGateway, get_stripe_gateway
from .customers import ensure_customer
from .service import create_payment_intent, create_checkout_session
from .webhook import handle_event

__all__ = [
    # cart
    "parse_cart_items",
    "compute_order_total",
    "to_order_item_rows",
    "SHIPPING_FLAT_RATE",
    # metadata
    "make_payment_metadata",
    "extract_payment_metadata",
    "encode_items",
    # types
    "ShippingAddress",
    "OrderTotal",
    "OrderWriteStatus",
    "PaymentIntentResult",
    "CheckoutSessionResult",
    # plans
    "SUBSCRIPTION_PLANS",
    "SubscriptionPlan",
    "get_plan",
    # stripe
    "StripeGateway",
    "get_stripe_gateway",
    # services
    "ensure_customer",
    "create_payment_intent",
    "create_checkout_session",
    "handle_event",
]
