"""
Request throttling middleware
"""
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config import settings

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    """Client address: first X-Forwarded-For hop, then X-Real-IP, then the peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window request limit per client IP on /api/ paths

    Counters live in process memory, so each worker enforces its own limit.
    This keeps abusive clients from hammering the API; it is not an access
    control mechanism.
    """

    def __init__(
        self,
        app,
        rate_limit_requests: Optional[int] = None,
        rate_limit_window: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(app)
        self.rate_limit_requests = rate_limit_requests or settings.RATE_LIMIT_REQUESTS
        self.rate_limit_window = rate_limit_window or settings.RATE_LIMIT_WINDOW_SECONDS
        self.clock = clock
        # ip -> (window start, request count)
        self.windows: Dict[str, Tuple[float, int]] = {}

    def _hit(self, ip: str) -> Tuple[int, float]:
        now = self.clock()
        start, count = self.windows.get(ip, (now, 0))
        if now - start >= self.rate_limit_window:
            start, count = now, 0
        count += 1
        self.windows[ip] = (start, count)
        self._evict_expired(now)
        return count, start + self.rate_limit_window

    def _evict_expired(self, now: float) -> None:
        if len(self.windows) < 10000:
            return
        expired = [ip for ip, (start, _) in self.windows.items() if now - start >= self.rate_limit_window]
        for ip in expired:
            del self.windows[ip]

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        ip = client_ip(request)
        count, reset_at = self._hit(ip)
        remaining = max(0, self.rate_limit_requests - count)
        headers = {
            "X-RateLimit-Limit": str(self.rate_limit_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(int(reset_at)),
        }

        if count > self.rate_limit_requests:
            logger.warning(f"Rate limit exceeded for {ip} on {request.url.path}")
            retry_after = max(1, int(reset_at - self.clock()))
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": {
                        "message": "Too many requests, please try again later",
                        "type": "RateLimitExceeded",
                        "details": {"retry_after": retry_after},
                    }
                },
                headers={**headers, "Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
