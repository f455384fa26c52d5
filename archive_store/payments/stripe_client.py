"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Les orchestrateurs reçoivent une instance de StripeGateway (injectée par les vues)
et ne manipulent que des dicts, ce qui permet de passer un faux gateway en tests.
"""
import logging
from typing import Any, Dict, List, Optional

import stripe

from archive_store.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET

logger = logging.getLogger(__name__)

# module archive_store.payments.stripe_client
def _as_dict(obj: Any) -> Dict[str, Any]:
    """
    Convertit un objet Stripe (StripeObject) en dict.
    - Les fakes de tests renvoient déjà des dicts.
    """
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)


class StripeGateway:
    """
    Façade mince au-dessus du SDK stripe.
    - La clé API est passée à chaque appel (pas d'état global stripe.api_key).
    - En absence de clé, les appels échouent côté SDK (ex: No API key provided).
    """

    def __init__(self, api_key: str, webhook_secret: str = ""):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    # Clients
    def create_customer(self, *, email: str, metadata: Dict[str, str], shipping: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"email": email, "metadata": metadata}
        if shipping:
            params["shipping"] = shipping
        return _as_dict(stripe.Customer.create(api_key=self.api_key, **params))

    def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        return _as_dict(stripe.Customer.retrieve(customer_id, api_key=self.api_key))

    def update_customer(self, customer_id: str, **params: Any) -> Dict[str, Any]:
        return _as_dict(stripe.Customer.modify(customer_id, api_key=self.api_key, **params))

    # Paiements
    def create_payment_intent(self, **params: Any) -> Dict[str, Any]:
        return _as_dict(stripe.PaymentIntent.create(api_key=self.api_key, **params))

    def create_checkout_session(self, **params: Any) -> Dict[str, Any]:
        return _as_dict(stripe.checkout.Session.create(api_key=self.api_key, **params))

    def create_setup_intent(self, customer_id: str) -> Dict[str, Any]:
        return _as_dict(
            stripe.SetupIntent.create(api_key=self.api_key, customer=customer_id, payment_method_types=["card"])
        )

    # Moyens de paiement
    def list_card_payment_methods(self, customer_id: str) -> List[Dict[str, Any]]:
        res = _as_dict(stripe.PaymentMethod.list(api_key=self.api_key, customer=customer_id, type="card"))
        return [_as_dict(pm) for pm in (res.get("data") or [])]

    def retrieve_payment_method(self, payment_method_id: str) -> Dict[str, Any]:
        return _as_dict(stripe.PaymentMethod.retrieve(payment_method_id, api_key=self.api_key))

    def detach_payment_method(self, payment_method_id: str) -> Dict[str, Any]:
        return _as_dict(stripe.PaymentMethod.detach(payment_method_id, api_key=self.api_key))

    # Abonnements
    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return _as_dict(stripe.Subscription.retrieve(subscription_id, api_key=self.api_key))

    def update_subscription(self, subscription_id: str, **params: Any) -> Dict[str, Any]:
        return _as_dict(stripe.Subscription.modify(subscription_id, api_key=self.api_key, **params))

    # Webhooks
    def construct_event(self, payload: bytes, sig_header: str) -> Dict[str, Any]:
        """
        Valide la signature Stripe-Signature et retourne l'événement.
        - Lève stripe.error.SignatureVerificationError / ValueError si invalide.
        """
        event = stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret or "")
        return _as_dict(event)


def get_stripe_gateway() -> StripeGateway:
    """Dépendance FastAPI: gateway configuré depuis STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET."""
    return StripeGateway(STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET)
