"""
Shared-secret check for the gateway and dashboard collaborators.

An unset INTERNAL_API_KEY falls back to a fixed development key and warns,
so a misconfigured deployment is loud rather than open.
"""
import secrets
import warnings

from shared.config import settings

DEV_API_KEY = "insecure-default-change-me"

ACCEPTED_KEYS: list[str] = settings.INTERNAL_API_KEYS
if not ACCEPTED_KEYS:
    warnings.warn(
        "INTERNAL_API_KEY is not set; accepting the development key only. "
        "Set it before exposing the webhook or dashboard endpoints.",
        stacklevel=2,
    )
    ACCEPTED_KEYS = [DEV_API_KEY]


def verify_api_key(provided_key: str | None) -> bool:
    if not provided_key:
        return False
    # Every key is compared so timing doesn't reveal which one matched
    matches = [secrets.compare_digest(str(provided_key), key) for key in ACCEPTED_KEYS]
    return any(matches)
