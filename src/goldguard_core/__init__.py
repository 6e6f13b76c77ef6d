"""GoldGuard Core Library

Case intake, reconciliation and verification for the Ghana GoldGuard
illegal-mining (galamsey) reporting system.
"""

__version__ = "0.1.0"

# Export shared models first (no dependencies)
from goldguard_core.models import (
    Case, CaseStatus, VerificationStatus, Priority, Region,
    ReportSubmission, ImageMetadata,
)
from goldguard_core.config import GoldGuardSettings
from goldguard_core.exceptions import (
    GoldGuardError,
    ValidationError,
    RemoteUnavailable,
    PersistenceError,
    CaseNotFound,
    InvalidStatusTransition,
    NotEligibleForVerification,
)


# Lazy import for the service layer: it pulls in httpx, tenacity and Pillow
def __getattr__(name):
    """Lazy import for CaseApiClient and CaseService."""
    if name == "CaseApiClient":
        from goldguard_core.clients import CaseApiClient
        return CaseApiClient
    if name == "CaseService":
        from goldguard_core.core.service import CaseService
        return CaseService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Models
    "Case", "CaseStatus", "VerificationStatus", "Priority", "Region",
    "ReportSubmission", "ImageMetadata",
    # Config
    "GoldGuardSettings",
    # Errors
    "GoldGuardError", "ValidationError", "RemoteUnavailable", "PersistenceError",
    "CaseNotFound", "InvalidStatusTransition", "NotEligibleForVerification",
    # Lazy loaded
    "CaseApiClient", "CaseService",
]
