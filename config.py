import os
from dotenv import load_dotenv


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default

# Load the main .env first (to get ENV_FILE)
load_dotenv()

# If ENV_FILE exists, load that specific file too
env_file = os.getenv("ENV_FILE")
if env_file:
    load_dotenv(env_file)

class Config:
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY", "fallback-secret")

    # Remote admin API
    API_URL = os.getenv("API_URL", "http://localhost:5000/api").rstrip("/")
    API_TIMEOUT = _env_int("API_TIMEOUT", 15)
    API_CSRF_COOKIE = os.getenv("API_CSRF_COOKIE", "smc_admin_csrf")
    API_CSRF_HEADER = os.getenv("API_CSRF_HEADER", "x-csrf-token")

    PAGE_SIZE = _env_int("PAGE_SIZE", 20)

    LOG_FILE = os.getenv("LOG_FILE", os.path.join("logs", "console.log"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    RATELIMIT_ENABLED = _env_flag("RATELIMIT_ENABLED", False)
    WTF_CSRF_ENABLED = _env_flag("WTF_CSRF_ENABLED", True)

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

class ProductionConfig(Config):
    SESSION_COOKIE_SECURE = True

class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

class TestingConfig(Config):
    TESTING = True
    API_URL = "http://api.test/api"
    WTF_CSRF_ENABLED = False
    LOG_FILE = None

def get_config(env=None):
    env = env or os.getenv("ENV", "development").lower()

    if env == "production":
        return ProductionConfig
    elif env == "testing":
        return TestingConfig
    else:
        return DevelopmentConfig
