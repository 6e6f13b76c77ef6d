"""Dashboard statistics over a reconciled case set.

All functions are pure and accept any iterable of Cases (or the dict returned
by reconcile()).
"""

import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Union

from goldguard_core.models.case import Case, CaseStatus, Priority

CaseCollection = Union[Mapping[str, Case], Iterable[Case]]

# Dashboard roll-up of lifecycle statuses. VERIFIED (location audit records)
# belongs to no bucket and only counts toward the total.
STATUS_BUCKETS: Dict[str, tuple] = {
    "new": (CaseStatus.NEW, CaseStatus.OPEN),
    "active": (CaseStatus.IN_PROGRESS, CaseStatus.UNDER_INVESTIGATION),
    "pending": (CaseStatus.PENDING,),
    "solved": (CaseStatus.RESOLVED, CaseStatus.CLOSED),
    "rejected": (CaseStatus.REJECTED,),
}

# Open cases older than this are overdue
OVERDUE_AFTER: Dict[Priority, timedelta] = {
    Priority.CRITICAL: timedelta(hours=24),
    Priority.HIGH: timedelta(hours=72),
}

PRIORITY_ORDER = (Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW)


def _as_list(cases: CaseCollection) -> List[Case]:
    if isinstance(cases, Mapping):
        return list(cases.values())
    return list(cases)


def status_stats(cases: CaseCollection) -> Dict[str, int]:
    """Counts per dashboard bucket plus the total"""
    cases = _as_list(cases)
    counts = Counter(case.status for case in cases)
    stats = {"total": len(cases)}
    for bucket, statuses in STATUS_BUCKETS.items():
        stats[bucket] = sum(counts[s] for s in statuses)
    return stats


def count_by_region(cases: CaseCollection) -> List[Dict[str, object]]:
    """[{region, cases}] sorted by count, busiest first"""
    counts = Counter(case.region.value for case in _as_list(cases))
    return [{"region": region, "cases": n} for region, n in counts.most_common()]


def count_by_type(cases: CaseCollection) -> List[Dict[str, object]]:
    counts = Counter(case.type for case in _as_list(cases))
    return [{"type": case_type, "cases": n} for case_type, n in counts.most_common()]


def count_by_priority(cases: CaseCollection) -> List[Dict[str, object]]:
    """Every priority (Critical first) with count and rounded percentage"""
    cases = _as_list(cases)
    counts = Counter(case.priority for case in cases)
    total = len(cases)
    return [
        {
            "priority": priority.value,
            "cases": counts[priority],
            "percentage": round(counts[priority] / total * 100) if total else 0,
        }
        for priority in PRIORITY_ORDER
    ]


def age_in_days(case: Case, now: Optional[datetime] = None) -> int:
    """Whole days since creation, rounded up"""
    now = now or datetime.now(timezone.utc)
    seconds = abs((now - case.created_at).total_seconds())
    return math.ceil(seconds / 86400)


def urgency_score(case: Case, now: Optional[datetime] = None) -> int:
    """priority weight × 10 + age in days + 20 while New/Open"""
    score = case.priority.weight * 10 + age_in_days(case, now)
    if case.status in (CaseStatus.NEW, CaseStatus.OPEN):
        score += 20
    return score


def overdue_cases(cases: CaseCollection, now: Optional[datetime] = None) -> List[Case]:
    """Open Critical cases older than 24h and open High cases older than 72h"""
    now = now or datetime.now(timezone.utc)
    overdue = []
    for case in _as_list(cases):
        limit = OVERDUE_AFTER.get(case.priority)
        if limit is None or not case.status.is_open:
            continue
        if now - case.created_at > limit:
            overdue.append(case)
    return overdue


def sort_cases(
    cases: CaseCollection,
    key: str = "date",
    now: Optional[datetime] = None,
) -> List[Case]:
    """
    Sort cases for display.

    Args:
        key: "date" (newest first), "priority" (Critical first, then newest)
            or "urgency" (highest urgency_score first)

    Raises:
        ValueError: For an unknown key
    """
    cases = _as_list(cases)
    if key == "date":
        return sorted(cases, key=lambda c: c.created_at, reverse=True)
    if key == "priority":
        newest_first = sorted(cases, key=lambda c: c.created_at, reverse=True)
        return sorted(newest_first, key=lambda c: c.priority.weight, reverse=True)
    if key == "urgency":
        now = now or datetime.now(timezone.utc)
        return sorted(cases, key=lambda c: urgency_score(c, now), reverse=True)
    raise ValueError(f"Unknown sort key: {key!r}")
