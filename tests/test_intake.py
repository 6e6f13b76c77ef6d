"""
Report intake tests
"""
import re
from datetime import datetime, timezone

import pytest

from goldguard_core.core.intake import (
    generate_case_id,
    infer_priority,
    intake_report,
    is_anonymous,
    map_subject_to_type,
)
from goldguard_core.exceptions import ValidationError
from goldguard_core.models import (
    CaseOrigin,
    CaseStatus,
    Priority,
    Region,
    ReportSubmission,
    TITLE_MAX_LENGTH,
    TimelineAction,
    VerificationStatus,
)


class TestCaseIds:
    """Test case id generation"""

    def test_format(self):
        case_id = generate_case_id()
        assert re.fullmatch(r"CASE-[0-9A-Z]+-[0-9A-Z]{5}", case_id)

    def test_unique_within_process(self):
        ids = [generate_case_id() for _ in range(2000)]
        assert len(set(ids)) == len(ids)


class TestSubjectMapping:
    """Test subject → type lookup"""

    @pytest.mark.parametrize(
        "subject,expected",
        [
            ("Illegal Mining", "Illegal Mining"),
            ("Environmental Damage", "Environmental"),
            ("Forest Destruction", "Environmental"),
            ("Community Impact", "Community"),
            ("Safety Concerns", "Safety"),
            ("Technical Support", "Technical"),
            ("Other", "General"),
            ("Something new", "General"),
        ],
    )
    def test_mapping(self, subject, expected):
        assert map_subject_to_type(subject) == expected


class TestPriority:
    """Test keyword-driven priority inference"""

    def test_critical_keyword_wins_over_high(self):
        assert infer_priority("Illegal Mining", "there is severe contamination") == Priority.CRITICAL

    def test_high_keyword(self):
        assert infer_priority("Community Impact", "Urgent: children fell ill") == Priority.HIGH

    def test_high_subject_without_keywords(self):
        assert infer_priority("Water Pollution", "brown river") == Priority.HIGH

    def test_default_medium(self):
        assert infer_priority("General Inquiry", "how do I report?") == Priority.MEDIUM

    def test_keyword_in_subject_counts(self):
        assert infer_priority("Massive pits", "nothing else") == Priority.CRITICAL

    def test_deterministic(self):
        results = {infer_priority("Safety Concerns", "toxic fumes") for _ in range(20)}
        assert results == {Priority.HIGH}

    def test_never_low(self):
        for subject in ("Other", "Illegal Mining", "General Inquiry"):
            assert infer_priority(subject, "") != Priority.LOW


class TestAnonymity:
    """Test anonymity derivation"""

    def test_no_fields_is_anonymous(self):
        assert is_anonymous(None, None, None)

    def test_blank_fields_are_anonymous(self):
        assert is_anonymous("  ", "", None)

    def test_any_field_identifies(self):
        assert not is_anonymous(None, "0244000000", None)

    def test_explicit_flag_discards_contact(self):
        submission = ReportSubmission(
            full_name="Kwame Mensah",
            email="kwame@example.com",
            region="Ashanti",
            subject="Illegal Mining",
            message="pits",
            is_anonymous=True,
        )
        case = intake_report(submission)
        assert case.reporter.anonymous
        assert case.reporter.name is None
        assert case.reporter.email is None

    def test_named_reporter(self):
        submission = ReportSubmission(
            full_name=" Ama Owusu ",
            region="Eastern",
            subject="Land Degradation",
            message="Farmland dug up",
        )
        case = intake_report(submission)
        assert not case.reporter.anonymous
        assert case.reporter.name == "Ama Owusu"


class TestIntakeReport:
    """Test intake_report end to end"""

    def test_western_water_pollution(self, western_report):
        case = intake_report(western_report)

        assert case.type == "Water Pollution"
        assert case.priority == Priority.HIGH
        assert case.status == CaseStatus.NEW
        assert case.reporter.anonymous
        assert case.region == Region.WESTERN
        assert case.verification_status == VerificationStatus.PENDING_VERIFICATION
        assert case.source == CaseOrigin.LOCAL_PENDING
        assert case.title == "Water Pollution - Western"
        assert case.subject == "Water Pollution"

    def test_created_timeline_entry(self, western_report):
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        case = intake_report(western_report, now=now)

        assert case.created_at == now
        assert case.updated_at == now
        assert [e.action for e in case.timeline] == [TimelineAction.CREATED]

    def test_legacy_region_spelling(self):
        submission = ReportSubmission(region="Brong Ahafo", subject="Other", message="x")
        assert intake_report(submission).region == Region.BRONG_AHAFO

    @pytest.mark.parametrize("field", ["region", "subject", "message"])
    def test_missing_required_field(self, field):
        data = {"region": "Western", "subject": "Other", "message": "hello"}
        data[field] = "   "
        with pytest.raises(ValidationError) as exc:
            intake_report(ReportSubmission(**data))
        assert exc.value.fields == [field]

    def test_long_subject_fits_title(self):
        subject = "S" * 250
        case = intake_report(ReportSubmission(region="Ashanti", subject=subject, message="x"))

        assert len(case.title) == TITLE_MAX_LENGTH
        assert case.title.endswith(" - Ashanti")
        assert case.subject == subject
        assert case.type == "General"

    def test_overlong_contact_field(self):
        submission = ReportSubmission(
            full_name="K" * 201, region="Ashanti", subject="Other", message="x"
        )
        with pytest.raises(ValidationError) as exc:
            intake_report(submission)
        assert exc.value.fields == ["full_name"]

    def test_overlong_contact_ignored_when_anonymous(self):
        submission = ReportSubmission(
            full_name="K" * 201, region="Ashanti", subject="Other", message="x", is_anonymous=True
        )
        assert intake_report(submission).reporter.anonymous

    def test_unknown_region(self):
        submission = ReportSubmission(region="Lagos", subject="Other", message="x")
        with pytest.raises(ValidationError) as exc:
            intake_report(submission)
        assert exc.value.fields == ["region"]

    def test_camel_case_payload(self):
        submission = ReportSubmission.model_validate(
            {
                "fullName": "Yaw Boateng",
                "phoneNumber": "0201234567",
                "region": "Central",
                "subject": "Safety Concerns",
                "message": "Open pits near the school",
                "isAnonymous": False,
            }
        )
        case = intake_report(submission)
        assert case.reporter.phone == "0201234567"
        assert case.type == "Safety"
