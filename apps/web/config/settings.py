"""
Django settings for Optima.

Secrets come from the environment - never hardcode credentials.
Run with: uv run python apps/web/manage.py runserver
"""

from pathlib import Path

import environ  # type: ignore[import-untyped]

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Initialize environ
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
    LOG_LEVEL=(str, "INFO"),
    MERCADOPAGO_WEBHOOK_SECRET=(str, ""),
    PLATFORM_MP_ACCESS_TOKEN=(str, ""),
    MERCADOPAGO_API_BASE_URL=(str, "https://api.mercadopago.com"),
    MERCADOPAGO_CURRENCY=(str, "ARS"),
    MERCADOPAGO_CLIENT_ID=(str, ""),
    MERCADOPAGO_CLIENT_SECRET=(str, ""),
    MERCADOPAGO_AUTH_URL=(str, "https://auth.mercadopago.com/authorization"),
    MERCADOPAGO_OAUTH_STATE_MINUTES=(int, 10),
    PUBLIC_BASE_URL=(str, "http://localhost:8000"),
    FRONTEND_URL=(str, "http://localhost:5173"),
    ORDER_ALERT_SECONDS=(int, 180),
    KITCHEN_ALERT_SECONDS=(int, 600),
    KITCHEN_SESSION_HOURS=(int, 12),
    KITCHEN_PIN_MAX_ATTEMPTS=(int, 5),
    KITCHEN_PIN_LOCKOUT_MINUTES=(int, 15),
    SUBSCRIPTION_PRICE_MONTHLY=(int, 25000),
    SUBSCRIPTION_PRICE_ANNUAL=(int, 240000),
)

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env("DEBUG")

ALLOWED_HOSTS = env("ALLOWED_HOSTS")

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Local apps
    "apps.web.core",
    "apps.web.restaurant",
    "apps.web.payments",
    "apps.web.kitchen",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Custom middleware
    "apps.web.core.middleware.ClientMiddleware",
]

ROOT_URLCONF = "apps.web.config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "apps.web.config.wsgi.application"

# Database
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# Custom user model
AUTH_USER_MODEL = "core.User"

# Password validation
_V = "django.contrib.auth.password_validation"
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": f"{_V}.UserAttributeSimilarityValidator"},
    {"NAME": f"{_V}.MinimumLengthValidator"},
    {"NAME": f"{_V}.CommonPasswordValidator"},
    {"NAME": f"{_V}.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR.parent.parent / "staticfiles"  # /app/staticfiles in production

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": env("LOG_LEVEL"),
            "propagate": False,
        },
    },
}

# =============================================================================
# MercadoPago
# =============================================================================

# Webhook signing secret (both webhooks refuse requests when unset)
MERCADOPAGO_WEBHOOK_SECRET = env("MERCADOPAGO_WEBHOOK_SECRET")
# Platform account token, used for subscription billing
PLATFORM_MP_ACCESS_TOKEN = env("PLATFORM_MP_ACCESS_TOKEN")
MERCADOPAGO_API_BASE_URL = env("MERCADOPAGO_API_BASE_URL")
MERCADOPAGO_CURRENCY = env("MERCADOPAGO_CURRENCY")

# Marketplace application credentials (seller account connection)
MERCADOPAGO_CLIENT_ID = env("MERCADOPAGO_CLIENT_ID")
MERCADOPAGO_CLIENT_SECRET = env("MERCADOPAGO_CLIENT_SECRET")
MERCADOPAGO_AUTH_URL = env("MERCADOPAGO_AUTH_URL")
# How long an issued OAuth state stays valid
MERCADOPAGO_OAUTH_STATE_MINUTES = env("MERCADOPAGO_OAUTH_STATE_MINUTES")

# Public URL of this service (webhook notification URLs)
PUBLIC_BASE_URL = env("PUBLIC_BASE_URL").rstrip("/")
# Storefront URL (checkout return URLs)
FRONTEND_URL = env("FRONTEND_URL").rstrip("/")

# Subscription prices per plan, in MERCADOPAGO_CURRENCY
SUBSCRIPTION_PRICES = {
    "monthly": env("SUBSCRIPTION_PRICE_MONTHLY"),
    "annual": env("SUBSCRIPTION_PRICE_ANNUAL"),
}

# =============================================================================
# Order boards
# =============================================================================

# Seconds in one status before an order card alerts
ORDER_ALERT_SECONDS = env("ORDER_ALERT_SECONDS")
# Seconds before the kitchen display's high alert
KITCHEN_ALERT_SECONDS = env("KITCHEN_ALERT_SECONDS")
# Snooze durations offered by the alert overlay, in minutes
SNOOZE_CHOICES = (3, 5)

# Kitchen display access
KITCHEN_SESSION_HOURS = env("KITCHEN_SESSION_HOURS")
KITCHEN_PIN_MAX_ATTEMPTS = env("KITCHEN_PIN_MAX_ATTEMPTS")
KITCHEN_PIN_LOCKOUT_MINUTES = env("KITCHEN_PIN_LOCKOUT_MINUTES")
