"""
Diagnostic de la connexion Supabase: résolution DNS puis sonde de chaque table métier.
Le rapport est toujours retourné (jamais d'exception): c'est un outil d'exploitation.
"""
from urllib.parse import urlparse
import socket
from formapro.config import SUPABASE_URL
import formapro.infra.supabase_client as supabase_client

PROBED_TABLES = ["formations", "orders", "order_items", "downloads", "profiles"]

def _check_table(client, name: str):
    try:
        res = client.table(name).select("*").limit(1).execute()
        cnt = len(res.data or [])
        return {"ok": True, "rows": cnt}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    parsed = urlparse(SUPABASE_URL) if SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info = {
        "supabase_url": SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {}
    }
    try:
        client = supabase_client.get_service_supabase()
        for t in PROBED_TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    except Exception as e:
        info["error"] = str(e)
    return info
