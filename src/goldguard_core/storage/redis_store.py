"""Redis-backed case repository.

All cases live in one Redis hash (default key `goldguard:cases`), field =
case_id, value = JSON-encoded case. HGETALL order is not insertion order;
callers needing an order sort explicitly.
"""

import json
import logging
from typing import List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from goldguard_core.exceptions import PersistenceError
from goldguard_core.models.case import Case
from goldguard_core.storage.base import CaseRepository, decode_case, encode_case

logger = logging.getLogger(__name__)


class RedisCaseRepository(CaseRepository):
    """Repository over a Redis hash. The client must use decode_responses=True."""

    def __init__(self, client: Redis, key: str = "goldguard:cases"):
        self.client = client
        self.key = key
        logger.info(f"Initialized {self.__class__.__name__} with key={key}")

    async def get(self, case_id: str) -> Optional[Case]:
        try:
            raw = await self.client.hget(self.key, case_id)
        except RedisError as e:
            raise PersistenceError(f"Redis HGET {self.key}/{case_id} failed: {e}") from e
        if raw is None:
            return None
        return self._decode(raw)

    async def put(self, case: Case) -> None:
        payload = json.dumps(encode_case(case), ensure_ascii=False)
        try:
            await self.client.hset(self.key, case.case_id, payload)
        except RedisError as e:
            raise PersistenceError(f"Redis HSET {self.key}/{case.case_id} failed: {e}") from e

    async def delete(self, case_id: str) -> bool:
        try:
            removed = await self.client.hdel(self.key, case_id)
        except RedisError as e:
            raise PersistenceError(f"Redis HDEL {self.key}/{case_id} failed: {e}") from e
        return bool(removed)

    async def list(self) -> List[Case]:
        try:
            entries = await self.client.hgetall(self.key)
        except RedisError as e:
            raise PersistenceError(f"Redis HGETALL {self.key} failed: {e}") from e
        cases = []
        for raw in entries.values():
            case = self._decode(raw)
            if case is not None:
                cases.append(case)
        return cases

    async def close(self) -> None:
        await self.client.aclose()

    def _decode(self, raw: str) -> Optional[Case]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping non-JSON entry in {self.key}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Skipping non-object entry in {self.key}")
            return None
        return decode_case(data)
