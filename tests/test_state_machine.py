"""Tests for pipeline status transitions."""
from datetime import datetime, timedelta, timezone

import pytest

from nyuchi.core.errors import Conflict, Forbidden, InvalidInput, InvalidStatus
from nyuchi.core.models import Submission, SubmissionStatus, SubmissionType
from nyuchi.core.models.submission import new_id
from nyuchi.core.pipeline.state_machine import UNSET, PipelineStateMachine, parse_status
from nyuchi.core.security.access import AccessPolicy

from conftest import ADMIN, MODERATOR, REVIEWER

CREATED = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
NOW = datetime(2024, 3, 2, 12, 30, tzinfo=timezone.utc)


def build_submission(
    submission_type: SubmissionType = SubmissionType.CONTENT,
    status: SubmissionStatus = SubmissionStatus.SUBMITTED,
    **overrides,
) -> Submission:
    fields = dict(
        id=new_id(),
        submitter_id="author-1",
        submission_type=submission_type.value,
        reference_id=new_id(),
        title="Mbare market stalls",
        status=status.value,
        assigned_to=None,
        reviewer_notes=None,
        submitted_at=CREATED,
        created_at=CREATED,
        updated_at=CREATED,
    )
    fields.update(overrides)
    return Submission(**fields)


@pytest.fixture
def machine():
    return PipelineStateMachine(AccessPolicy())


def test_parse_status_is_exact():
    assert parse_status("approved") == SubmissionStatus.APPROVED
    assert parse_status(SubmissionStatus.PUBLISHED) == SubmissionStatus.PUBLISHED

    for bad in ("approved ", "Approved", "done", "", None, 3):
        with pytest.raises(InvalidStatus):
            parse_status(bad)


def test_in_review_assigns_actor(machine):
    submission = build_submission()
    result = machine.apply_transition(submission, MODERATOR, "in_review", now=NOW)

    assert submission.status == "in_review"
    assert submission.assigned_to == MODERATOR.user_id
    assert submission.updated_at == NOW
    assert result.previous_status == "submitted"
    assert not result.requires_sync


def test_in_review_prefers_explicit_assignee(machine):
    submission = build_submission()
    machine.apply_transition(submission, MODERATOR, "in_review", assignee="mod-2", now=NOW)

    assert submission.assigned_to == "mod-2"


def test_repeated_in_review_keeps_assignee_but_refreshes_timestamp(machine):
    submission = build_submission()
    machine.apply_transition(submission, MODERATOR, "in_review", now=NOW)

    later = NOW + timedelta(minutes=5)
    machine.apply_transition(submission, ADMIN, "in_review", now=later)

    assert submission.assigned_to == MODERATOR.user_id
    assert submission.updated_at == later


def test_approved_and_rejected_set_reviewed_at(machine):
    for target in ("approved", "rejected"):
        submission = build_submission(status=SubmissionStatus.IN_REVIEW)
        result = machine.apply_transition(submission, MODERATOR, target, now=NOW)

        assert submission.reviewed_at == NOW
        assert submission.published_at is None
        assert result.requires_sync


def test_published_sets_published_at(machine):
    submission = build_submission(status=SubmissionStatus.APPROVED)
    result = machine.apply_transition(submission, MODERATOR, "published", now=NOW)

    assert submission.published_at == NOW
    assert result.requires_sync


def test_backward_transition_is_allowed(machine):
    submission = build_submission(status=SubmissionStatus.APPROVED, reviewed_at=CREATED)
    result = machine.apply_transition(submission, MODERATOR, "needs_changes", now=NOW)

    assert submission.status == "needs_changes"
    assert submission.reviewed_at == CREATED
    assert not result.requires_sync


def test_back_to_submitted_clears_assignee(machine):
    submission = build_submission(status=SubmissionStatus.IN_REVIEW, assigned_to="mod-1")
    machine.apply_transition(submission, MODERATOR, "submitted", now=NOW)

    assert submission.assigned_to is None


def test_assignee_rejected_for_submitted(machine):
    submission = build_submission(status=SubmissionStatus.IN_REVIEW)

    with pytest.raises(InvalidInput):
        machine.apply_transition(submission, MODERATOR, "submitted", assignee="mod-2")
    assert submission.status == "in_review"


def test_notes_overwrite_whenever_supplied(machine):
    submission = build_submission(reviewer_notes="Check the photos")

    machine.apply_transition(submission, MODERATOR, "in_review", now=NOW)
    assert submission.reviewer_notes == "Check the photos"

    machine.apply_transition(submission, MODERATOR, "approved", notes="Looks good", now=NOW)
    assert submission.reviewer_notes == "Looks good"

    machine.apply_transition(submission, MODERATOR, "published", notes=None, now=NOW)
    assert submission.reviewer_notes is None


def test_unauthorized_caller_is_forbidden(machine):
    submission = build_submission(SubmissionType.CONTENT)

    with pytest.raises(Forbidden):
        machine.apply_transition(submission, REVIEWER, "in_review")
    assert submission.status == "submitted"
    assert submission.updated_at == CREATED


def test_authorization_checked_before_status(machine):
    submission = build_submission(SubmissionType.EXPERT_APPLICATION)

    with pytest.raises(Forbidden):
        machine.apply_transition(submission, MODERATOR, "done")


def test_invalid_status_leaves_submission_untouched(machine):
    submission = build_submission()

    with pytest.raises(InvalidStatus) as exc_info:
        machine.apply_transition(submission, MODERATOR, "approved ")

    assert submission.status == "submitted"
    assert exc_info.value.status_code == 400
    assert "approved" in exc_info.value.to_dict()["allowed_statuses"]


def test_stale_expected_updated_at_conflicts(machine):
    submission = build_submission(updated_at=NOW)

    with pytest.raises(Conflict):
        machine.apply_transition(
            submission, MODERATOR, "approved", expected_updated_at=CREATED
        )
    assert submission.status == "submitted"


def test_matching_expected_updated_at_accepts_naive_timestamp(machine):
    submission = build_submission(updated_at=NOW)
    machine.apply_transition(
        submission,
        MODERATOR,
        "approved",
        expected_updated_at=NOW.replace(tzinfo=None),
    )

    assert submission.status == "approved"


def test_unset_notes_sentinel_is_distinct_from_none():
    assert UNSET is not None
    assert repr(UNSET) == "UNSET"
