import asyncio

from fastapi import FastAPI

from archive_store.app_setup import lifespan as lifespan_mod

def test_missing_payment_settings_lists_empty_values(monkeypatch):
    monkeypatch.setattr("archive_store.config.STRIPE_SECRET_KEY", "")
    monkeypatch.setattr("archive_store.config.STRIPE_WEBHOOK_SECRET", "whsec_x")
    missing = lifespan_mod.missing_payment_settings()
    assert "STRIPE_SECRET_KEY" in missing
    assert "STRIPE_WEBHOOK_SECRET" not in missing

def test_rate_limiting_disabled_for_tests(monkeypatch):
    monkeypatch.setenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
    app = FastAPI()
    assert asyncio.run(lifespan_mod.init_rate_limiting(app)) is False
    assert app.state.rate_limit_enabled is False

def test_unreachable_redis_falls_back_to_memory(monkeypatch):
    monkeypatch.delenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", raising=False)
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    def _no_redis():
        raise ConnectionError("redis down")

    monkeypatch.setattr(lifespan_mod, "_limiter_backend", _no_redis)
    app = FastAPI()
    assert asyncio.run(lifespan_mod.init_rate_limiting(app)) is False
    assert app.state.rate_limit_enabled is True

def test_unreachable_redis_disables_limiting(monkeypatch):
    monkeypatch.delenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", raising=False)
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)

    def _no_redis():
        raise ConnectionError("redis down")

    monkeypatch.setattr(lifespan_mod, "_limiter_backend", _no_redis)
    app = FastAPI()
    asyncio.run(lifespan_mod.init_rate_limiting(app))
    assert app.state.rate_limit_enabled is False
