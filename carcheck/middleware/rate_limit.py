from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from carcheck.core.environment import get_share_resolve_rate_limit
from carcheck.core.prometheus_metrics import rate_limit_exceeded_total

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100/minute"]  # Global default
    # storage_uri="redis://localhost:6379", # next steps
)

# Public token lookups are the brute-force surface
SHARE_RESOLVE_LIMIT = get_share_resolve_rate_limit()


def custom_rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    rate_limit_exceeded_total.labels(endpoint=request.url.path).inc()
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limited",
            "message": "Rate limit exceeded. Please try again later.",
            "limit": str(exc.detail),
        },
    )
