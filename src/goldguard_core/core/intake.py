"""Report Intake

Purpose: Turn a free-form citizen submission into a canonical Case.

Key Functions:
- generate_case_id(): CASE-<base36 timestamp>-<random> identifiers
- map_subject_to_type(): Subject → case type lookup
- infer_priority(): Keyword-driven priority (never LOW)
- is_anonymous(): Anonymity from supplied contact fields
- intake_report(): Validate + build the Case

Everything here is pure: no I/O, no persistence. Callers decide where the
returned Case is stored.
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from goldguard_core.exceptions import ValidationError
from goldguard_core.models.case import (
    Case,
    CaseOrigin,
    CaseStatus,
    Priority,
    Region,
    Reporter,
    TITLE_MAX_LENGTH,
    TimelineAction,
    TimelineEntry,
    VerificationStatus,
)
from goldguard_core.models.report import ReportSubmission

logger = logging.getLogger(__name__)


SUBJECT_TYPE_MAP: Dict[str, str] = {
    "Illegal Mining": "Illegal Mining",
    "Environmental Damage": "Environmental",
    "Water Pollution": "Water Pollution",
    "Forest Destruction": "Environmental",
    "Land Degradation": "Environmental",
    "Community Impact": "Community",
    "Safety Concerns": "Safety",
    "General Inquiry": "General",
    "Technical Support": "Technical",
    "Other": "General",
}

DEFAULT_CASE_TYPE = "General"

CRITICAL_KEYWORDS: Tuple[str, ...] = ("death", "poison", "severe", "massive", "widespread")
HIGH_KEYWORDS: Tuple[str, ...] = (
    "urgent", "emergency", "immediate", "danger", "toxic", "health", "contamination",
)
HIGH_PRIORITY_SUBJECTS: Tuple[str, ...] = ("Illegal Mining", "Water Pollution")

# Match the Reporter field limits
CONTACT_FIELD_LIMITS: Dict[str, int] = {"full_name": 200, "phone_number": 50, "email": 254}

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_last_millis = 0


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_case_id() -> str:
    """Generate a process-unique case id, e.g. 'CASE-LZ3K1Q2A-4F7XB'.

    Timestamp is milliseconds since epoch in base36. The timestamp is strictly
    increasing within a process (bumped by one when two calls share a
    millisecond), so ids never collide in-process. Across restarts uniqueness
    rests on the 5-char random suffix.
    """
    global _last_millis
    millis = int(time.time() * 1000)
    if millis <= _last_millis:
        millis = _last_millis + 1
    _last_millis = millis
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"CASE-{_base36(millis)}-{suffix}".upper()


def map_subject_to_type(subject: str) -> str:
    """Map a report subject to a case type. Unknown subjects → General."""
    return SUBJECT_TYPE_MAP.get(subject.strip(), DEFAULT_CASE_TYPE)


def infer_priority(subject: str, message: str) -> Priority:
    """
    Infer case priority from subject and message text.

    Rules, first match wins:
    1. Any critical keyword in "subject message" (lowercased) → CRITICAL
    2. Any high keyword → HIGH
    3. Subject exactly "Illegal Mining" or "Water Pollution" → HIGH
    4. Otherwise → MEDIUM

    LOW is never produced here; it only arises from manual edits.
    """
    content = f"{subject} {message}".lower()

    if any(keyword in content for keyword in CRITICAL_KEYWORDS):
        return Priority.CRITICAL

    if any(keyword in content for keyword in HIGH_KEYWORDS):
        return Priority.HIGH

    if subject.strip() in HIGH_PRIORITY_SUBJECTS:
        return Priority.HIGH

    return Priority.MEDIUM


def case_title(subject: str, region: Region) -> str:
    """'<subject> - <region>', with the subject cut so the title fits the field"""
    suffix = f" - {region.value}"
    head = subject[: TITLE_MAX_LENGTH - len(suffix)].rstrip()
    return f"{head}{suffix}"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def is_anonymous(
    full_name: Optional[str],
    phone_number: Optional[str],
    email: Optional[str],
) -> bool:
    """True iff none of the identifying fields is a non-empty string"""
    return not any(_clean(v) for v in (full_name, phone_number, email))


def _validate(submission: ReportSubmission) -> Tuple[Region, str, str]:
    missing = [
        name for name in ("region", "subject", "message")
        if not _clean(getattr(submission, name))
    ]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}",
            fields=missing,
        )

    too_long = [
        name for name, limit in CONTACT_FIELD_LIMITS.items()
        if len(_clean(getattr(submission, name)) or "") > limit
    ]
    if too_long and not submission.is_anonymous:
        raise ValidationError(
            f"Field(s) too long: {', '.join(too_long)}",
            fields=too_long,
        )

    try:
        region = Region.parse(submission.region)
    except ValueError as e:
        raise ValidationError(str(e), fields=["region"]) from e

    return region, submission.subject.strip(), submission.message.strip()


def intake_report(
    submission: ReportSubmission,
    now: Optional[datetime] = None,
) -> Case:
    """
    Convert a citizen submission into a canonical Case.

    The Case starts as status NEW, verification PENDING_VERIFICATION and
    source LOCAL_PENDING. When the submitter ticks is_anonymous, any contact
    details they typed anyway are discarded.

    Args:
        submission: Raw submission from the report form
        now: Creation time (defaults to current UTC time)

    Returns:
        New Case (not persisted)

    Raises:
        ValidationError: If region, subject or message is missing/blank,
            region is not a Ghanaian region, or a contact field is too long
    """
    region, subject, message = _validate(submission)
    now = now or datetime.now(timezone.utc)

    if submission.is_anonymous:
        name = phone = email = None
    else:
        name = _clean(submission.full_name)
        phone = _clean(submission.phone_number)
        email = _clean(submission.email)

    anonymous = is_anonymous(name, phone, email)
    reporter = Reporter(
        anonymous=anonymous,
        name=None if anonymous else name,
        phone=None if anonymous else phone,
        email=None if anonymous else email,
    )

    case = Case(
        case_id=generate_case_id(),
        title=case_title(subject, region),
        region=region,
        type=map_subject_to_type(subject),
        description=message,
        subject=subject,
        status=CaseStatus.NEW,
        verification_status=VerificationStatus.PENDING_VERIFICATION,
        priority=infer_priority(subject, message),
        reporter=reporter,
        location=submission.location,
        evidence=list(submission.evidence),
        timeline=[
            TimelineEntry(
                action=TimelineAction.CREATED,
                description="Case created from citizen report",
                timestamp=now,
            )
        ],
        created_at=now,
        updated_at=now,
        source=CaseOrigin.LOCAL_PENDING,
    )

    logger.debug(
        f"Intake produced case {case.case_id}: type={case.type}, "
        f"priority={case.priority.value}, anonymous={anonymous}"
    )
    return case
