"""Case processing: intake, reconciliation, verification, metadata, polling, analytics"""

from goldguard_core.core.intake import (
    generate_case_id,
    infer_priority,
    intake_report,
    is_anonymous,
    map_subject_to_type,
)
from goldguard_core.core.reconciliation import (
    CaseReconciler,
    CaseSource,
    DeleteOutcome,
    LocalPendingCase,
    ReconciliationResult,
    RemoteCase,
    reconcile,
    verification_queue,
)
from goldguard_core.core.verification import VerificationWorkflow, can_transition
from goldguard_core.core.metadata import extract_from_data_url, extract_image_metadata
from goldguard_core.core.polling import CasePoller
from goldguard_core.core.analytics import (
    STATUS_BUCKETS,
    count_by_priority,
    count_by_region,
    count_by_type,
    overdue_cases,
    sort_cases,
    status_stats,
    urgency_score,
)
from goldguard_core.core.service import CaseService

__all__ = [
    # Intake
    "generate_case_id", "infer_priority", "intake_report", "is_anonymous", "map_subject_to_type",
    # Reconciliation
    "CaseReconciler", "CaseSource", "DeleteOutcome", "LocalPendingCase",
    "ReconciliationResult", "RemoteCase", "reconcile", "verification_queue",
    # Verification
    "VerificationWorkflow", "can_transition",
    # Metadata
    "extract_from_data_url", "extract_image_metadata",
    # Polling
    "CasePoller",
    # Analytics
    "STATUS_BUCKETS", "count_by_priority", "count_by_region", "count_by_type",
    "overdue_cases", "sort_cases", "status_stats", "urgency_score",
    # Service
    "CaseService",
]
