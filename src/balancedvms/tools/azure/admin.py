from __future__ import annotations

import secrets
import string
from dataclasses import dataclass

from pydantic import SecretStr

from balancedvms.core.config import SampleConfig
from balancedvms.core.logging import get_logger

logger = get_logger(__name__)

_SPECIALS = "!@#%^*()-_=+[]{}:,.?"
_ALPHABET = string.ascii_letters + string.digits + _SPECIALS


@dataclass(frozen=True)
class AdminCredentials:
    username: str
    password: SecretStr


def generate_admin_password(length: int = 24) -> SecretStr:
    """Random password meeting the Azure VM complexity rules.

    Azure wants 12 to 72 characters drawn from at least three of the four
    classes; this always includes all four.
    """
    if length < 12:
        raise ValueError("admin password must be at least 12 characters")
    required = [
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.digits),
        secrets.choice(_SPECIALS),
    ]
    rest = [secrets.choice(_ALPHABET) for _ in range(length - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return SecretStr("".join(chars))


def resolve_admin_credentials(layout: SampleConfig) -> AdminCredentials:
    if layout.admin_password is not None and layout.admin_password.get_secret_value():
        return AdminCredentials(username=layout.admin_username, password=layout.admin_password)
    logger.info("admin_credentials.generated", username=layout.admin_username)
    return AdminCredentials(username=layout.admin_username, password=generate_admin_password())
