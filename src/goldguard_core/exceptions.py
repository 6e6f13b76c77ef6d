"""GoldGuard exception hierarchy.

Only ValidationError is meant to reach a submitter. Remote and persistence
failures are recovered inside reconciliation and verification; they surface as
exceptions only from the low-level client and repository APIs.
"""

from typing import List, Optional


class GoldGuardError(Exception):
    """Base class for all GoldGuard errors"""


class ValidationError(GoldGuardError, ValueError):
    """A required intake field is missing, empty or out of range.

    Attributes:
        fields: Names of the offending fields (submission field names)
    """

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class RemoteUnavailable(GoldGuardError):
    """Network, auth or parse failure talking to the remote case API

    Attributes:
        status_code: HTTP status of the failed response, if there was one
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


class PersistenceError(GoldGuardError):
    """Local case repository read/write failure"""


class CaseNotFound(GoldGuardError, KeyError):
    """No case with the given id exists in the working set"""

    def __init__(self, case_id: str):
        super().__init__(case_id)
        self.case_id = case_id

    def __str__(self) -> str:
        return f"Case not found: {self.case_id}"


class InvalidStatusTransition(GoldGuardError, ValueError):
    """Requested lifecycle or verification status change is not allowed"""


class NotEligibleForVerification(GoldGuardError):
    """Case has no photo evidence and therefore is not in the review queue"""
