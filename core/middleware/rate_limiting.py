"""
Redis-based rate limiting for the authentication endpoints.
Implements distributed rate limiting with a sliding window over sorted sets.
"""

import logging
import time
import uuid
from typing import Callable, Optional, List, Dict, Any
from enum import Enum
from dataclasses import dataclass
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from redis.asyncio import Redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)


class RateLimitWindow(str, Enum):
    """Time window types for rate limiting."""
    MINUTE = "minute"
    HOUR = "hour"


WINDOW_SECONDS = {
    RateLimitWindow.MINUTE: 60,
    RateLimitWindow.HOUR: 3600,
}


@dataclass
class RateLimitRule:
    """Rate limit rule configuration."""
    name: str  # distinct counter per rule
    window: RateLimitWindow
    max_requests: int
    message: str = "Too many requests. Please try again later."
    paths: Optional[List[str]] = None  # exact paths; None matches every path
    methods: Optional[List[str]] = None


def default_auth_rules(api_prefix: str = "/api/v1") -> List[RateLimitRule]:
    """Per-IP limits on login, registration and verification resends."""
    return [
        RateLimitRule(
            name="login",
            window=RateLimitWindow.MINUTE,
            max_requests=5,
            message="Too many login attempts. Try again in 1 minute.",
            paths=[f"{api_prefix}/auth/login"],
            methods=["POST"],
        ),
        RateLimitRule(
            name="register",
            window=RateLimitWindow.HOUR,
            max_requests=10,
            message="Too many registration attempts. Try again in 1 hour.",
            paths=[f"{api_prefix}/auth/register"],
            methods=["POST"],
        ),
        RateLimitRule(
            name="resend-verification",
            window=RateLimitWindow.HOUR,
            max_requests=3,
            message="Too many verification resend attempts. Try again in 1 hour.",
            paths=[f"{api_prefix}/auth/resend-verification"],
            methods=["POST"],
        ),
    ]


class SlidingWindowRateLimiter:
    """
    Redis-based sliding window rate limiter.

    Each request is a member of a sorted set scored by its timestamp; entries
    older than the window are trimmed before counting.
    """

    def __init__(self, redis_client: Redis):
        """
        Args:
            redis_client: Async Redis client instance
        """
        self.redis = redis_client

    async def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, Dict[str, Any]]:
        """
        Check if request is allowed under rate limit.

        Args:
            key: Unique identifier for the rate limit
            max_requests: Maximum requests allowed in window
            window_seconds: Time window in seconds

        Returns:
            Tuple of (is_allowed, metadata)
            metadata contains: limit, remaining, reset, retry_after
        """
        now = time.time()
        window_start = now - window_seconds

        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            request_id = f"{now}:{uuid.uuid4().hex[:8]}"
            pipe.zadd(key, {request_id: now})
            pipe.expire(key, window_seconds + 60)
            results = await pipe.execute()

            # Count before this request was added
            current_count = results[1]
            allowed = current_count + 1 <= max_requests
            retry_after = 0

            if not allowed:
                oldest = await self.redis.zrange(key, 0, 0, withscores=True)
                if oldest:
                    retry_after = int(oldest[0][1] + window_seconds - now)
                else:
                    retry_after = window_seconds
                # Rejected requests do not consume the window
                await self.redis.zrem(key, request_id)

            return allowed, {
                'limit': max_requests,
                'remaining': max(0, max_requests - current_count - 1),
                'reset': int(now + window_seconds),
                'retry_after': max(1, retry_after) if not allowed else 0,
            }

        except RedisConnectionError as e:
            logger.error(f"Redis connection error in rate limiter: {e}")
            return True, self._fail_open(max_requests, now, window_seconds)

        except (RedisError, OSError) as e:
            logger.error(f"Redis error in rate limiter: {e}")
            return True, self._fail_open(max_requests, now, window_seconds)

    @staticmethod
    def _fail_open(max_requests: int, now: float, window_seconds: int) -> Dict[str, Any]:
        return {
            'limit': max_requests,
            'remaining': max_requests,
            'reset': int(now + window_seconds),
            'retry_after': 0,
        }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the matching rate limit rules to each request, counted per client IP.

    Requests no rule matches pass through untouched. If Redis cannot be reached
    the limiter fails open. The Redis client is owned by the caller.
    """

    def __init__(
        self,
        app: ASGIApp,
        redis_client: Redis,
        rules: Optional[List[RateLimitRule]] = None,
        key_prefix: str = "ratelimit",
        enable_headers: bool = True,
    ):
        """
        Args:
            app: The ASGI application
            redis_client: Async Redis client
            rules: Rate limit rules to apply
            key_prefix: Prefix for Redis keys
            enable_headers: Whether to add rate limit headers to responses
        """
        super().__init__(app)
        self.limiter = SlidingWindowRateLimiter(redis_client)
        self.rules = rules if rules is not None else default_auth_rules()
        self.key_prefix = key_prefix
        self.enable_headers = enable_headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        applicable_rules = self._get_applicable_rules(request)
        if not applicable_rules:
            return await call_next(request)

        result = await self._check_rate_limits(request, applicable_rules)

        if not result['allowed']:
            logger.warning(
                f"Rate limit '{result['rule']}' exceeded for "
                f"{request.method} {request.url.path}"
            )
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={'msg': result['message']},
            )
            if self.enable_headers:
                self._add_rate_limit_headers(response, result)
            return response

        response = await call_next(request)
        if self.enable_headers:
            self._add_rate_limit_headers(response, result)
        return response

    async def _check_rate_limits(
        self, request: Request, rules: List[RateLimitRule]
    ) -> Dict[str, Any]:
        """Check every applicable rule and keep the most restrictive outcome."""
        results: Dict[str, Any] = {
            'allowed': True,
            'limit': 0,
            'remaining': 0,
            'reset': 0,
            'retry_after': 0,
            'rule': None,
            'message': None,
        }

        for rule in rules:
            key = self._generate_key(request, rule)
            allowed, metadata = await self.limiter.is_allowed(
                key=key,
                max_requests=rule.max_requests,
                window_seconds=WINDOW_SECONDS[rule.window],
            )

            if not allowed and results['allowed']:
                results['allowed'] = False
                results['rule'] = rule.name
                results['message'] = rule.message
            if not allowed:
                results['retry_after'] = max(results['retry_after'], metadata['retry_after'])

            if results['limit'] == 0 or metadata['remaining'] < results['remaining']:
                results['limit'] = metadata['limit']
                results['remaining'] = metadata['remaining']
                results['reset'] = metadata['reset']

        return results

    def _get_applicable_rules(self, request: Request) -> List[RateLimitRule]:
        path = request.url.path.rstrip('/') or '/'
        applicable = []
        for rule in self.rules:
            if rule.paths and path not in rule.paths:
                continue
            if rule.methods and request.method not in rule.methods:
                continue
            applicable.append(rule)
        return applicable

    def _generate_key(self, request: Request, rule: RateLimitRule) -> str:
        return ":".join(
            [self.key_prefix, rule.name, rule.window.value, f"ip:{self._get_client_ip(request)}"]
        )

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get('x-forwarded-for')
        if forwarded_for:
            return forwarded_for.split(',')[0].strip()

        real_ip = request.headers.get('x-real-ip')
        if real_ip:
            return real_ip

        return request.client.host if request.client else 'unknown'

    def _add_rate_limit_headers(self, response: Response, result: Dict[str, Any]):
        response.headers['X-RateLimit-Limit'] = str(result['limit'])
        response.headers['X-RateLimit-Remaining'] = str(result['remaining'])
        response.headers['X-RateLimit-Reset'] = str(result['reset'])

        if not result['allowed']:
            response.headers['Retry-After'] = str(result['retry_after'])
