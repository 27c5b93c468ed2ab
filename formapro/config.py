# formapro.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du backend FormaPro.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, passerelles Mobile Money)
- Expose les réglages métier (quota de téléchargements, durée des liens signés)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default

# Supabase: URL et clés (anon pour les lectures RLS, service pour le back-office et les webhooks)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("EXPO_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("EXPO_PUBLIC_SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Bucket Storage contenant les fichiers des formations
STORAGE_BUCKET = _clean_env(os.getenv("STORAGE_BUCKET") or "formations")

# Sécurité HTTP
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Webhook de paiement: secret partagé avec la passerelle (HMAC-SHA256)
PAYMENT_WEBHOOK_SECRET = _clean_env(os.getenv("PAYMENT_WEBHOOK_SECRET") or "")
WEBHOOK_TOLERANCE_SECONDS = _int_env("WEBHOOK_TOLERANCE_SECONDS", 300)

# Passerelles Mobile Money. Sans URL/clé, l'adaptateur fonctionne en mode simulé.
MVOLA_API_URL = _clean_env(os.getenv("MVOLA_API_URL") or "")
MVOLA_API_KEY = _clean_env(os.getenv("MVOLA_API_KEY") or "")
ORANGE_MONEY_API_URL = _clean_env(os.getenv("ORANGE_MONEY_API_URL") or "")
ORANGE_MONEY_API_KEY = _clean_env(os.getenv("ORANGE_MONEY_API_KEY") or "")
GATEWAY_TIMEOUT = float(_int_env("GATEWAY_TIMEOUT", 15))

# Téléchargements
DOWNLOAD_MAX_DEFAULT = _int_env("DOWNLOAD_MAX_DEFAULT", 3)
DOWNLOAD_LINK_TTL = _int_env("DOWNLOAD_LINK_TTL", 3600)

# Redis: panier persistant et rate limiting
CART_REDIS_URL = _clean_env(os.getenv("CART_REDIS_URL") or os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/1")
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/0")
