"""
Hybrid in-memory + Redis rate limiting
Counts live in process memory and are synced to Redis periodically so several
API workers converge on the same window.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # seconds between Redis syncs per key
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0

# After a failed connect, Redis is not retried for this many seconds
REDIS_RETRY_BACKOFF = int(os.getenv("REDIS_RETRY_BACKOFF", "30"))
redis_down_until = 0.0


def get_redis_client() -> redis.Redis:
    """Get or create the Redis client (REDIS_URL, or REDIS_HOST/PORT/...)"""
    global redis_client

    if redis_client is None:
        if time.time() < redis_down_until:
            raise redis.ConnectionError("Redis marked unavailable, retry later")

        redis_url = os.getenv("REDIS_URL")
        common = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }
        if redis_url:
            client = redis.from_url(redis_url, **common)
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **common,
            )
        try:
            client.ping()
        except redis.RedisError:
            mark_redis_unavailable()
            raise
        redis_client = client
        logger.info("✅ Redis connected for rate limiting")

    return redis_client


def mark_redis_unavailable():
    """Drop the client and skip Redis until the backoff window passes"""
    global redis_client, redis_down_until

    redis_client = None
    redis_down_until = time.time() + REDIS_RETRY_BACKOFF
    logger.warning(f"⚠️ Redis marked unavailable for {REDIS_RETRY_BACKOFF}s")


def cleanup_expired_cache():
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis]
) -> tuple[bool, int, int]:
    """Fixed-window check.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None:
            entry = {
                "count": 0,
                "reset_time": current_time + window_seconds,
                "last_redis_sync": current_time,
            }
            if client is not None:
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry["count"] = int(redis_count)
                        entry["reset_time"] = current_time + redis_ttl
                except redis.RedisError as e:
                    logger.warning(f"⚠️ Failed to load {key} from Redis, using memory only: {e}")
                    mark_redis_unavailable()
                    client = None
            memory_cache[key] = entry

        if current_time >= entry["reset_time"]:
            entry["count"] = 0
            entry["reset_time"] = current_time + window_seconds
            entry["last_redis_sync"] = 0

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if client is not None and current_time - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=max(1, entry["reset_time"] - current_time))
                entry["last_redis_sync"] = current_time
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")
                mark_redis_unavailable()

        ttl = max(0, entry["reset_time"] - current_time)
        return is_allowed, entry["count"], ttl


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then Cloudflare's header, then the socket peer"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
    message: Optional[str] = None,
):
    key = f"{key_prefix}:{get_client_ip(request)}" if use_ip else f"{key_prefix}:global"

    try:
        # Connecting and syncing block on sockets, so keep them off the event loop
        client = await run_in_threadpool(get_redis_client)
    except (redis.RedisError, OSError) as e:
        # Single-process limiting still applies without Redis
        logger.warning(f"⚠️ Redis unavailable for rate limiting, using memory only: {e}")
        client = None

    is_allowed, current_count, ttl = await run_in_threadpool(
        check_rate_limit, key, limit, window_seconds, client
    )

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit}")
        raise HTTPException(
            status_code=429,
            detail=message
            or f"Limite de {limit} requisições a cada {window_seconds} segundos excedido.",
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limit - current_count


def create_rate_limiter(
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
    message: Optional[str] = None,
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        landing_rate_limit = create_rate_limiter(limit=5, window_seconds=60, key_prefix="landing")

        @router.post("/submit-landing-form")
        async def submit(_: None = Depends(landing_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(
            request, limit, window_seconds, key_prefix, use_ip, message
        )

    return rate_limiter
