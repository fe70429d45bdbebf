# walcard/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL", "http://localhost:54321")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 10))

STORE_BACKEND = os.getenv("STORE_BACKEND", "redis")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
STORE_NAMESPACE = os.getenv("STORE_NAMESPACE", "walcard")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/2")

SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", 365))
NETWORK_RETRY_ATTEMPTS = int(os.getenv("NETWORK_RETRY_ATTEMPTS", 3))
NETWORK_RETRY_DELAY = float(os.getenv("NETWORK_RETRY_DELAY", 2))

MEDIA_BUCKET = os.getenv("MEDIA_BUCKET", "forstore")
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "964")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# lock koszyka w redisie
LOCK_TTL_SECONDS = float(os.getenv("LOCK_TTL_SECONDS", 10))
LOCK_WAIT_SECONDS = float(os.getenv("LOCK_WAIT_SECONDS", 5))
LOCK_POLL_INTERVAL = float(os.getenv("LOCK_POLL_INTERVAL", 0.05))
