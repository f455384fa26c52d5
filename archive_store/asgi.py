"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `archive_store.asgi:app`.
- Toute la configuration FastAPI (routes, middlewares, gestion d'erreurs) est centralisée
  dans archive_store.app_setup.factory; ce fichier ne fait qu'exposer l'instance `app`.
"""

from archive_store.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "archive_store.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
