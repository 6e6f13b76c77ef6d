"""Redis connection factory for the local case queue.

Supports standalone Redis (development, single host) and Redis Sentinel
(failover deployments). Connection is verified with a ping under the standard
startup retry policy before the client is handed out.
"""

import logging
from typing import List, Tuple

from redis.asyncio import Redis
from redis.asyncio.sentinel import Sentinel

from goldguard_core.config import GoldGuardSettings
from goldguard_core.utils import service_startup_retry

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL_PORT = 26379


def parse_sentinel_hosts(hosts: str) -> List[Tuple[str, int]]:
    """Parse "host1:26379,host2" into [("host1", 26379), ("host2", 26379)]."""
    parsed = []
    for item in hosts.split(","):
        item = item.strip()
        if not item:
            continue
        host, sep, port = item.rpartition(":")
        if sep:
            parsed.append((host, int(port)))
        else:
            parsed.append((item, DEFAULT_SENTINEL_PORT))
    return parsed


@service_startup_retry
async def _verify_redis_connection(client: Redis) -> None:
    await client.ping()
    logger.info("Redis connection verified")


async def create_redis_client(settings: GoldGuardSettings) -> Redis:
    """Create and verify a Redis client from settings.

    Raises:
        ValueError: If sentinel mode is configured without sentinel hosts
        redis.exceptions.ConnectionError: If Redis stays unreachable after retries
    """
    password = settings.redis_password.get_secret_value() if settings.redis_password else None
    logger.info(f"Initializing Redis client in {settings.redis_mode} mode")

    if settings.redis_mode == "sentinel":
        sentinels = parse_sentinel_hosts(settings.redis_sentinel_hosts)
        if not sentinels:
            raise ValueError("REDIS_SENTINEL_HOSTS is required for sentinel mode")

        sentinel = Sentinel(
            sentinels,
            sentinel_kwargs={"password": password} if password else {},
            socket_keepalive=True,
        )
        client = sentinel.master_for(
            settings.redis_master_set,
            db=settings.redis_db,
            password=password,
            decode_responses=True,
        )
        target = f"master={settings.redis_master_set}, sentinels={sentinels}"
    else:
        client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=password,
            decode_responses=True,
            socket_keepalive=True,
            socket_connect_timeout=5,
        )
        target = f"{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"

    await _verify_redis_connection(client)
    logger.info(f"Redis connection established: {target}")
    return client
