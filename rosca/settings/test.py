from .base import *  # noqa

SECRET_KEY = "test-insecure-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

FACTORY_ADDRESS = "0x5117711063B5cd297E118E28E29Ed9628eEA9B28"
FACTORY_START_BLOCK = 100
WEB3_PROVIDER_URL = "http://primary.invalid"
WEB3_FALLBACK_PROVIDER_URL = "http://fallback.invalid"
# Well-known hardhat account #0
AUTOMATION_PRIVATE_KEY = (
    "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
)
VRF_DEPOSIT_ADDRESS = "0xd6675f4fD26119bF729B0fF912c28022a63Ae0a9"

DRAW_TX_DELAY_SECONDS = 0
WHITELIST_TX_DELAY_SECONDS = 0
SIGNER_LOCK_BACKEND = "local"
