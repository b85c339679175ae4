from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_list(name, default=""):
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_flag(name, default="false"):
    return os.environ.get(name, default).lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.environ.get("SIGNALING_SECRET_KEY", "unsafe-dev-secret-key")
DEBUG = os.environ.get("SIGNALING_DEBUG", "0") == "1"

ALLOWED_HOSTS = _env_list("SIGNALING_ALLOWED_HOSTS", "localhost,127.0.0.1")

INSTALLED_APPS = [
    "signaling",
]

MIDDLEWARE = [
    # Must stay first so every response, including error pages, carries CORS headers
    "signaling.cors.CorsPolicyMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"

# All app data (users, calls) is stored in Firebase Firestore
DATABASES = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True

# CORS policy (see signaling/cors.py). No origins are allowed by default;
# deployments list theirs in ALLOWED_ORIGINS and localhost is governed by
# CORS_ALLOW_LOCALHOST.
CORS_ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS")
CORS_ALLOW_LOCALHOST = _env_flag("CORS_ALLOW_LOCALHOST", "true")
CORS_DEBUG = _env_flag("DEBUG_CORS")
CORS_MAX_AGE = int(os.environ.get("CORS_MAX_AGE", "3600"))

# Call invitation pipeline
CALL_DEBUG = _env_flag("CALL_DEBUG")
USERS_COLLECTION = os.environ.get("USERS_COLLECTION", "users")
CALLS_COLLECTION = os.environ.get("CALLS_COLLECTION", "calls")
CALL_RECORD_KEY = os.environ.get("CALL_RECORD_KEY", "channelName")
RECIPIENT_LOOKUP = os.environ.get("RECIPIENT_LOOKUP", "document")
RECIPIENT_LOOKUP_FIELD = os.environ.get("RECIPIENT_LOOKUP_FIELD", "username")

# Agora RTC tokens
AGORA_APP_ID = os.environ.get("AGORA_APP_ID", "")
AGORA_APP_CERT = os.environ.get("AGORA_APP_CERT", "")
TOKEN_EXPIRY_SECONDS = os.environ.get("TOKEN_EXPIRY_SECONDS", "600")

# Logging Configuration
LOG_DIR = Path(os.environ.get("SIGNALING_LOG_DIR", BASE_DIR / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name} {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "simple": {
            "format": "[{asctime}] {levelname} {message}",
            "style": "{",
            "datefmt": "%H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
        "file": {
            "class": "logging.FileHandler",
            "filename": LOG_DIR / "django.log",
            "formatter": "verbose",
        },
        "signaling_file": {
            "class": "logging.FileHandler",
            "filename": LOG_DIR / "signaling.log",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": "INFO",
        },
        "django.request": {
            "handlers": ["console", "file"],
            "level": "DEBUG",
            "propagate": False,
        },
        "signaling": {
            "handlers": ["console", "signaling_file"],
            "level": "DEBUG" if CALL_DEBUG or CORS_DEBUG else "INFO",
            "propagate": False,
        },
    },
}
