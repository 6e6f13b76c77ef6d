"""JSON file case repository.

Stores the whole local queue as one JSON array, the same shape the web client
kept under its `goldguard_reports` key. Writes go to a temporary file and are
swapped in with os.replace so a crash never leaves a half-written queue.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from goldguard_core.exceptions import PersistenceError
from goldguard_core.models.case import Case
from goldguard_core.storage.base import CaseRepository, decode_case, encode_case

logger = logging.getLogger(__name__)


class JsonFileCaseRepository(CaseRepository):
    """File-backed repository. A missing file is an empty queue."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        logger.info(f"Initialized {self.__class__.__name__} with path={self.path}")

    def _read_raw(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read case queue {self.path}: {e}") from e

        if not isinstance(data, list):
            raise PersistenceError(
                f"Case queue {self.path} is corrupt: expected a JSON array, got {type(data).__name__}"
            )
        return [item for item in data if isinstance(item, dict)]

    def _write_raw(self, records: List[Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write case queue {self.path}: {e}") from e

    async def get(self, case_id: str) -> Optional[Case]:
        for raw in self._read_raw():
            if raw.get("id") == case_id:
                return decode_case(raw)
        return None

    async def put(self, case: Case) -> None:
        records = self._read_raw()
        encoded = encode_case(case)
        for index, raw in enumerate(records):
            if raw.get("id") == case.case_id:
                records[index] = encoded
                break
        else:
            records.append(encoded)
        self._write_raw(records)

    async def delete(self, case_id: str) -> bool:
        records = self._read_raw()
        kept = [raw for raw in records if raw.get("id") != case_id]
        if len(kept) == len(records):
            return False
        self._write_raw(kept)
        return True

    async def list(self) -> List[Case]:
        cases = []
        seen = set()
        for raw in self._read_raw():
            case = decode_case(raw)
            # The web client could append the same report twice; first copy wins.
            if case is None or case.case_id in seen:
                continue
            seen.add(case.case_id)
            cases.append(case)
        return cases
