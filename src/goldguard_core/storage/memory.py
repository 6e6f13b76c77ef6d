"""In-process case repository (tests, short-lived sessions)."""

from typing import Dict, List, Optional

from goldguard_core.models.case import Case
from goldguard_core.storage.base import CaseRepository


class InMemoryCaseRepository(CaseRepository):
    """Dict-backed repository. Stores copies so callers cannot mutate stored state."""

    def __init__(self, cases: Optional[List[Case]] = None):
        self._cases: Dict[str, Case] = {}
        for case in cases or []:
            self._cases[case.case_id] = case.model_copy(deep=True)

    async def get(self, case_id: str) -> Optional[Case]:
        case = self._cases.get(case_id)
        return case.model_copy(deep=True) if case else None

    async def put(self, case: Case) -> None:
        self._cases[case.case_id] = case.model_copy(deep=True)

    async def delete(self, case_id: str) -> bool:
        return self._cases.pop(case_id, None) is not None

    async def list(self) -> List[Case]:
        return [case.model_copy(deep=True) for case in self._cases.values()]

    def __len__(self) -> int:
        return len(self._cases)
