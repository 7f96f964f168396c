import re
from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from web3 import Web3

PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class AutomationSettings:
    factory_address: str
    private_key: str
    deposit_address: str = ""
    callback_gas_price: int = 1000000000
    callback_gas_limit: int = 8000000000


def _address(name: str, value: str) -> str:
    if not value:
        raise ImproperlyConfigured(f"{name} is not set in environment.")
    if not Web3.is_address(value):
        raise ImproperlyConfigured(f"{name} is not a valid address: {value}")
    return Web3.to_checksum_address(value)


def load_automation_config(require_deposit: bool = False) -> AutomationSettings:
    """
    Validate the settings the draw scheduler and whitelist sentinel need.

    Raises:
        ImproperlyConfigured: a required value is missing or malformed
    """
    factory = _address("FACTORY_ADDRESS", settings.FACTORY_ADDRESS)
    if factory == ZERO_ADDRESS:
        raise ImproperlyConfigured("FACTORY_ADDRESS is the zero address.")

    private_key = settings.AUTOMATION_PRIVATE_KEY
    if not private_key:
        raise ImproperlyConfigured("AUTOMATION_PRIVATE_KEY is not set in environment.")
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    if not PRIVATE_KEY_RE.match(private_key):
        raise ImproperlyConfigured(
            "AUTOMATION_PRIVATE_KEY must be 32 bytes hex (0x followed by 64 characters)."
        )

    deposit = ""
    if require_deposit:
        deposit = _address("DEPOSIT_CONTRACT", settings.VRF_DEPOSIT_ADDRESS)

    return AutomationSettings(
        factory_address=factory,
        private_key=private_key,
        deposit_address=deposit,
        callback_gas_price=int(settings.CALLBACK_GAS_PRICE),
        callback_gas_limit=int(settings.CALLBACK_GAS_LIMIT),
    )
