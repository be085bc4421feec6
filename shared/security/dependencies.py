from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.util import get_remote_address

from .api_key import verify_api_key

# Defines the expected internal service header
api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)


def gateway_or_ip(request: Request) -> str:
    """
    Key function for SlowAPI.
    The channel gateway identifies itself with X-Gateway-Id; anything else is
    limited per client IP.
    """
    gateway_id = request.headers.get("X-Gateway-Id")
    if gateway_id:
        return f"gateway:{gateway_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=gateway_or_ip)


async def verify_internal_api_key(api_key: str = Depends(api_key_header)) -> bool:
    """Dependency to validate gateway and dashboard requests."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
