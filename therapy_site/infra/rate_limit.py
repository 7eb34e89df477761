from typing import Optional

from fastapi import Depends, HTTPException, Request

from therapy_site.config.settings import Config, get_config
from therapy_site.i18n import i18n
from therapy_site.infra.redis import get_redis
from therapy_site.utils.hash import hash_stable
from therapy_site.utils.locale import get_locale

# INCR + EXPIRE in one round trip; returns {allowed, ttl}
FIXED_WINDOW_SCRIPT = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], tonumber(ARGV[2]))
end
if current > tonumber(ARGV[1]) then
    return {0, redis.call('TTL', KEYS[1])}
end
return {1, 0}
"""


class RedisRateLimiter:
    """
    Fixed-window limiter for public write endpoints, keyed by client IP and path.
    A no-op when rate limiting is disabled or Redis is unavailable.
    """

    def __init__(
        self,
        scope: str = "default",
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        self.scope = scope
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def key_for(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"rate:{self.scope}:{hash_stable(client_ip)}:{request.url.path}"

    async def __call__(self, request: Request, cfg: Config = Depends(get_config)):
        if not cfg.rate_limit.enabled:
            return True

        redis = get_redis()
        if not redis:
            return True

        try:
            allowed, ttl = await redis.eval(
                FIXED_WINDOW_SCRIPT,
                1,
                self.key_for(request),
                self.max_requests or cfg.rate_limit.max_requests,
                self.window_seconds or cfg.rate_limit.window_seconds,
            )
        except Exception:
            # Redis hiccups never block the request
            return True

        if not allowed:
            _ = i18n.translator(get_locale(request.headers.get("accept-language")))
            raise HTTPException(
                status_code=429,
                detail=_("error.rate_limit", seconds=ttl),
                headers={"Retry-After": str(ttl)},
            )
        return True


rate_limiter = RedisRateLimiter()
# Login and password reset attempts get a tighter budget
auth_rate_limiter = RedisRateLimiter(scope="auth", max_requests=5, window_seconds=300)
