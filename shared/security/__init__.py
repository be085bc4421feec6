from .api_key import verify_api_key
from .admin import is_admin, normalize_address
from .dependencies import verify_internal_api_key, limiter, gateway_or_ip

__all__ = [
    "verify_api_key",
    "is_admin",
    "normalize_address",
    "verify_internal_api_key",
    "limiter",
    "gateway_or_ip",
]
