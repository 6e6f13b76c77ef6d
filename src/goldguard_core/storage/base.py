"""Local case repository interface.

The local repository holds cases that exist on this client: offline-queued
submissions, and local copies whose status must survive the next
reconciliation pass. Implementations raise PersistenceError on any storage
failure; callers decide whether that failure is fatal.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from goldguard_core.exceptions import PersistenceError
from goldguard_core.models.case import Case, CaseOrigin

logger = logging.getLogger(__name__)


class CaseRepository(ABC):
    """Async key-value store of cases keyed by case_id"""

    @abstractmethod
    async def get(self, case_id: str) -> Optional[Case]:
        """Return the case or None if absent"""

    @abstractmethod
    async def put(self, case: Case) -> None:
        """Insert or replace the case (last write wins)"""

    @abstractmethod
    async def delete(self, case_id: str) -> bool:
        """Remove the case. Returns True if something was removed."""

    @abstractmethod
    async def list(self) -> List[Case]:
        """All stored cases, in insertion order where the backend keeps one"""

    async def close(self) -> None:
        """Release backend resources. Override if needed."""
        pass


def decode_case(raw: Dict[str, Any]) -> Optional[Case]:
    """Decode one stored record.

    Stored records are always local copies, so a missing `source` defaults to
    LOCAL_PENDING. Undecodable records are skipped (logged) so one bad entry
    does not hide the rest of the queue.
    """
    try:
        data = dict(raw)
        data.setdefault("source", CaseOrigin.LOCAL_PENDING.value)
        return Case.model_validate(data)
    except (PydanticValidationError, TypeError, ValueError) as e:
        logger.warning(f"Skipping undecodable stored case {raw.get('id', '?')!r}: {e}")
        return None


def encode_case(case: Case) -> Dict[str, Any]:
    return case.to_storage()


__all__ = ["CaseRepository", "PersistenceError", "decode_case", "encode_case"]
