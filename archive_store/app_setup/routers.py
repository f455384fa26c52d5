"""
Registre central des routers.
- Paiements: payment-intents, checkout-sessions, webhooks/stripe
- Adhésion: subscription, payment-methods
- Citations, Health
"""
from fastapi import FastAPI
from archive_store.payments import views as payments_views
from archive_store.subscriptions import views as subscriptions_views
from archive_store.payment_methods import views as payment_methods_views
from archive_store.citations import views as citations_views
from archive_store.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    - L'ordre n'a pas d'impact sauf conflits de chemins (évités par préfixes).
    """
    app.include_router(payments_views.router)
    app.include_router(subscriptions_views.router)
    app.include_router(payment_methods_views.router)
    app.include_router(citations_views.router)
    app.include_router(health_router)
