"""Infrastructure connections"""

from goldguard_core.infrastructure.redis_setup import create_redis_client, parse_sentinel_hosts

__all__ = ["create_redis_client", "parse_sentinel_hosts"]
