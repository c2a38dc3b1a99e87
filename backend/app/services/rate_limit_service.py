"""
Anonymous usage quota.

Fixed daily window per client IP, reset at UTC midnight. Counters live in
Redis under ``rate_limit:{ip}:{yyyy-mm-dd}`` and expire when the day ends,
so every worker shares one quota.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis

from app.core.config import settings
from app.core.logger import logger, sanitize_for_log

KEY_PREFIX = "rate_limit"


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: datetime

    def seconds_until_reset(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        return max(int((self.reset_time - now).total_seconds()), 0)


def _next_midnight(now: datetime) -> datetime:
    return datetime(now.year, now.month, now.day) + timedelta(days=1)


def window_key(ip: str, now: datetime) -> str:
    return f"{KEY_PREFIX}:{ip}:{now.strftime('%Y-%m-%d')}"


class IPRateLimiter:
    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        self.redis = client or redis.Redis.from_url(settings.REDIS_URL)

    def check(self, ip: str, daily_limit: int, now: Optional[datetime] = None) -> RateLimitResult:
        """
        Count one request from ``ip`` and report whether it is within
        ``daily_limit``. Rejected requests do not consume quota.

        If Redis is unreachable the request is let through.
        """
        now = now or datetime.utcnow()
        reset_time = _next_midnight(now)
        key = window_key(ip, now)

        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expireat(key, int(reset_time.replace(tzinfo=timezone.utc).timestamp()))
            count, _ = pipe.execute()

            if count > daily_limit:
                self.redis.decr(key)
                logger.warning("Anonymous daily limit reached for %s", ip)
                return RateLimitResult(allowed=False, remaining=0, reset_time=reset_time)
        except redis.RedisError as e:
            logger.error("Rate limiting error for %s: %s", ip, sanitize_for_log(e))
            return RateLimitResult(allowed=True, remaining=daily_limit, reset_time=reset_time)

        return RateLimitResult(allowed=True, remaining=daily_limit - count, reset_time=reset_time)

    def reset(self) -> None:
        for key in self.redis.scan_iter(match=f"{KEY_PREFIX}:*"):
            self.redis.delete(key)


_ip_rate_limiter: Optional[IPRateLimiter] = None


def get_rate_limiter() -> IPRateLimiter:
    global _ip_rate_limiter
    if _ip_rate_limiter is None:
        _ip_rate_limiter = IPRateLimiter()
    return _ip_rate_limiter
