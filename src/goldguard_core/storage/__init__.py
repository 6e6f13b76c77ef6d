"""Local case repositories.

Usage:
    settings = GoldGuardSettings.from_env()
    repository = await build_repository(settings)
    await repository.put(case)
"""

from goldguard_core.config import GoldGuardSettings
from goldguard_core.storage.base import CaseRepository, decode_case, encode_case
from goldguard_core.storage.json_file import JsonFileCaseRepository
from goldguard_core.storage.memory import InMemoryCaseRepository


async def build_repository(settings: GoldGuardSettings) -> CaseRepository:
    """Create the repository selected by settings.storage."""
    if settings.storage == "memory":
        return InMemoryCaseRepository()
    if settings.storage == "redis":
        # Imported lazily so memory/json users never touch the Redis stack
        from goldguard_core.infrastructure.redis_setup import create_redis_client
        from goldguard_core.storage.redis_store import RedisCaseRepository

        client = await create_redis_client(settings)
        return RedisCaseRepository(client, key=settings.redis_key)
    return JsonFileCaseRepository(settings.storage_path)


__all__ = [
    "CaseRepository",
    "InMemoryCaseRepository",
    "JsonFileCaseRepository",
    "build_repository",
    "decode_case",
    "encode_case",
]
