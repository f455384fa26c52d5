"""
Diagnostics de dépendances pour /health/supabase.
- DNS de l'hôte Supabase, connexion service-role, sonde d'une ligne sur chaque table utilisée
- Réglages paiement manquants (Stripe, prix Premium), sans appel réseau vers Stripe
"""
import socket
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

import archive_store.infra.supabase_client as supabase_client
from archive_store.app_setup.lifespan import missing_payment_settings
from archive_store.config import SUPABASE_URL

TABLES = ["profiles", "orders", "order_items"]

def _resolve(hostname: Optional[str]) -> Tuple[Optional[bool], Optional[str]]:
    if not hostname:
        return None, None
    try:
        socket.getaddrinfo(hostname, 443)
        return True, None
    except OSError as e:
        return False, str(e)

def _probe_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("*").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info() -> Dict[str, Any]:
    hostname = urlparse(SUPABASE_URL).hostname if SUPABASE_URL else None
    dns_ok, dns_error = _resolve(hostname)
    missing = missing_payment_settings()
    info: Dict[str, Any] = {
        "supabase_url": SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
        "payments_configured": not missing,
        "missing_settings": missing,
    }
    try:
        client = supabase_client.get_service_supabase()
    except Exception as e:
        info["error"] = str(e)
        return info
    info["tables"] = {name: _probe_table(client, name) for name in TABLES}
    info["connect_ok"] = True
    return info
