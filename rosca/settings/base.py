import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()  # Load .env file if present

BASE_DIR = Path(__file__).resolve().parents[2]
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-key")
DEBUG = os.getenv("DJANGO_DEBUG", "false").lower() in {"1", "true", "yes"}
raw_hosts = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1")
ALLOWED_HOSTS = [h.strip() for h in raw_hosts.split(",") if h.strip()]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

INSTALLED_APPS = [
    # Django Admin Deps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Our apps
    "rosca.apps.pools.apps.PoolsConfig",
    "rosca.apps.indexer.apps.IndexerConfig",
    "rosca.apps.automation.apps.AutomationConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "rosca.urls"
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
            ]
        },
    }
]
WSGI_APPLICATION = "rosca.wsgi.application"

# Postgres by default; override with docker/dev settings as needed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "HOST": os.getenv("DB_HOST", "localhost"),
        "PORT": os.getenv("DB_PORT", "5432"),
        "NAME": os.getenv("DB_NAME", "rosca_db"),
        "USER": os.getenv("DB_USER", "rosca_user"),
        "PASSWORD": os.getenv("DB_PASSWORD", "rosca_password"),
    }
}

DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL:
    from urllib.parse import urlparse

    parsed = urlparse(DATABASE_URL)
    DATABASES["default"].update(
        {
            "NAME": parsed.path.lstrip("/"),
            "USER": parsed.username,
            "PASSWORD": parsed.password,
            "HOST": parsed.hostname,
            "PORT": parsed.port or "5432",
            "OPTIONS": {"sslmode": os.getenv("DB_SSLMODE", "require")},
        }
    )

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ==============================================================================
# Logging
# ==============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "line": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "line"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "web3": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "urllib3": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}

# Celery configuration
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_DEFAULT_QUEUE = os.getenv("CELERY_TASK_DEFAULT_QUEUE", "rosca")
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_TIME_LIMIT = int(os.getenv("CELERY_TASK_TIME_LIMIT", "600"))

CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True

# ==============================================================================
# Web3 / Blockchain Configuration
# ==============================================================================

# Primary and fallback JSON-RPC endpoints (Mantle Sepolia by default)
WEB3_PROVIDER_URL = os.getenv(
    "WEB3_PROVIDER_URL", os.getenv("RPC_URL", "https://rpc.sepolia.mantle.xyz")
)
WEB3_FALLBACK_PROVIDER_URL = os.getenv(
    "WEB3_FALLBACK_PROVIDER_URL", os.getenv("RPC_URL_FALLBACK", "")
)
WEB3_REQUEST_TIMEOUT = int(os.getenv("WEB3_REQUEST_TIMEOUT", "30"))

# Pool factory (creates pool clones) and the block it was deployed at
FACTORY_ADDRESS = os.getenv("FACTORY_ADDRESS", os.getenv("SANCA_FACTORY", ""))
FACTORY_START_BLOCK = int(os.getenv("FACTORY_START_BLOCK", "0"))

# Automation wallet (signs autoDraw and whitelist transactions)
AUTOMATION_PRIVATE_KEY = os.getenv(
    "AUTOMATION_PRIVATE_KEY", os.getenv("PRIVATE_KEY", "")
)

# Randomness oracle deposit contract (pool whitelisting)
VRF_DEPOSIT_ADDRESS = os.getenv("DEPOSIT_CONTRACT", "")
# 1 GWEI callback gas price; limit is passed through to the deposit contract
CALLBACK_GAS_PRICE = int(os.getenv("CALLBACK_GAS_PRICE", "1000000000"))
CALLBACK_GAS_LIMIT = int(os.getenv("CALLBACK_GAS_LIMIT", "8000000000"))

# Loop timing
DRAW_INTERVAL_SECONDS = int(os.getenv("DRAW_INTERVAL_SECONDS", "60"))
DRAW_TX_DELAY_SECONDS = float(os.getenv("DRAW_TX_DELAY_SECONDS", "2"))
WHITELIST_INTERVAL_SECONDS = int(os.getenv("WHITELIST_INTERVAL_SECONDS", "30"))
WHITELIST_TX_DELAY_SECONDS = float(os.getenv("WHITELIST_TX_DELAY_SECONDS", "1"))
TX_RECEIPT_TIMEOUT = int(os.getenv("TX_RECEIPT_TIMEOUT", "120"))

# "local" (threading lock) or "redis" (cross-process token lock on the broker).
# Celery tasks always use the redis lock; set "redis" when the CLI loops run
# alongside workers with the same key.
SIGNER_LOCK_BACKEND = os.getenv("SIGNER_LOCK_BACKEND", "local")
SIGNER_LOCK_URL = os.getenv("SIGNER_LOCK_URL", CELERY_BROKER_URL)

# Indexer
INDEXER_POLL_INTERVAL_SECONDS = int(os.getenv("INDEXER_POLL_INTERVAL_SECONDS", "5"))
INDEXER_BATCH_SIZE = int(os.getenv("INDEXER_BATCH_SIZE", "1000"))
INDEXER_CONFIRMATIONS = int(os.getenv("INDEXER_CONFIRMATIONS", "0"))

EXPLORER_TX_URL = os.getenv(
    "EXPLORER_TX_URL", "https://explorer.sepolia.mantle.xyz/tx/{tx_hash}"
)

# ABI Paths
POOL_FACTORY_ABI_PATH = BASE_DIR / "rosca" / "onchain" / "abi" / "PoolFactory.json"
SAVINGS_POOL_ABI_PATH = BASE_DIR / "rosca" / "onchain" / "abi" / "SavingsPool.json"
VRF_DEPOSIT_ABI_PATH = BASE_DIR / "rosca" / "onchain" / "abi" / "VrfDeposit.json"

# Celery beat: periodic automation, mirrors the --watch intervals
CELERY_BEAT_SCHEDULE = {
    "poll-chain-logs": {
        "task": "rosca.apps.indexer.tasks.poll_chain_logs",
        "schedule": float(INDEXER_POLL_INTERVAL_SECONDS),
    },
    "trigger-due-draws": {
        "task": "rosca.apps.automation.tasks.trigger_due_draws",
        "schedule": float(DRAW_INTERVAL_SECONDS),
    },
    "whitelist-new-pools": {
        "task": "rosca.apps.automation.tasks.whitelist_new_pools",
        "schedule": float(WHITELIST_INTERVAL_SECONDS),
    },
}
