"""
Lifespan FastAPI de l'API boutique.
Au démarrage:
- signale la configuration Stripe/Supabase incomplète (l'API démarre quand même,
  les routes concernées répondront 500)
- initialise fastapi-limiter sur Redis, ou fakeredis en tests
A l'arrêt: ferme la connexion Redis du limiter.

Variables d'environnement:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: pas de rate limiting (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: fakeredis au lieu de Redis
  - LOCAL_RATE_LIMIT_FALLBACK=1: limiteur mémoire si Redis est injoignable
  - RATE_LIMIT_REDIS_URL: URL Redis (défaut redis://127.0.0.1:6379/0)
"""
import os
import logging
from contextlib import asynccontextmanager
from typing import List

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from archive_store import config

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")

def missing_payment_settings() -> List[str]:
    """Noms des réglages paiement/BD absents (liste vide si tout est configuré)."""
    required = {
        "SUPABASE_URL": config.SUPABASE_URL,
        "SUPABASE_SERVICE_KEY": config.SUPABASE_SERVICE_KEY,
        "STRIPE_SECRET_KEY": config.STRIPE_SECRET_KEY,
        "STRIPE_WEBHOOK_SECRET": config.STRIPE_WEBHOOK_SECRET,
        "STRIPE_PREMIUM_MONTHLY_PRICE_ID": config.STRIPE_PREMIUM_MONTHLY_PRICE_ID,
        "STRIPE_PREMIUM_YEARLY_PRICE_ID": config.STRIPE_PREMIUM_YEARLY_PRICE_ID,
    }
    return [name for name, value in required.items() if not value]

def _limiter_backend():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        if not FakeRedis:
            raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
        return FakeRedis(decode_responses=True)
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return redis.from_url(redis_url, encoding="utf-8", decode_responses=True)

async def init_rate_limiting(app: FastAPI) -> bool:
    """
    Positionne app.state.rate_limit_enabled et retourne True si FastAPILimiter est prêt.
    Redis injoignable: fallback mémoire si LOCAL_RATE_LIMIT_FALLBACK=1, sinon désactivé.
    """
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return False
    try:
        await FastAPILimiter.init(_limiter_backend())
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            app.state.rate_limit_enabled = False
            logger.warning(f"Rate limiting disabled due to init error: {e}")
        return False
    app.state.rate_limit_enabled = True
    logger.info("Rate limiting enabled")
    return True

@asynccontextmanager
async def lifespan(app: FastAPI):
    missing = missing_payment_settings()
    if missing:
        logger.warning("Payment configuration incomplete, missing: %s", ", ".join(missing))

    limiter_ready = await init_rate_limiting(app)
    yield
    if limiter_ready:
        await FastAPILimiter.close()
