"""Unit tests for the pure state machine: table, authorization order, preconditions."""

from types import SimpleNamespace

import pytest

from advisorflow.core.auth import Actor
from advisorflow.core.config import SelfReviewPolicy
from advisorflow.exceptions import ForbiddenError, InvalidTransitionError, PreconditionFailedError
from advisorflow.models import ContentStatus, ReviewDecision, UserRole, normalize_status
from advisorflow.services import state_machine
from advisorflow.services.state_machine import Action

ORG = "org-a"
ADVISOR = Actor("adv-1", UserRole.ADVISOR, ORG)
OTHER_ADVISOR = Actor("adv-2", UserRole.ADVISOR, ORG)
COMPLIANCE = Actor("cmp-1", UserRole.COMPLIANCE, ORG)
ADMIN = Actor("adm-1", UserRole.ADMIN, ORG)
FOREIGN_ADMIN = Actor("adm-9", UserRole.ADMIN, "org-b")


def _request(advisor_id="adv-1", org_id=ORG):
    return SimpleNamespace(advisor_id=advisor_id, org_id=org_id)


class TestTransitionTable:

    @pytest.mark.parametrize("status,action,target", [
        (ContentStatus.DRAFT, Action.SUBMIT, ContentStatus.IN_REVIEW),
        (ContentStatus.CHANGES_REQUESTED, Action.RESUBMIT, ContentStatus.IN_REVIEW),
        (ContentStatus.IN_REVIEW, Action.APPROVE, ContentStatus.APPROVED),
        (ContentStatus.IN_REVIEW, Action.REQUEST_CHANGES, ContentStatus.CHANGES_REQUESTED),
        (ContentStatus.IN_REVIEW, Action.REJECT, ContentStatus.REJECTED),
        (ContentStatus.APPROVED, Action.SCHEDULE, ContentStatus.SCHEDULED),
        (ContentStatus.APPROVED, Action.PUBLISH, ContentStatus.POSTED),
        (ContentStatus.SCHEDULED, Action.PUBLISH, ContentStatus.POSTED),
    ])
    def test_next_status(self, status, action, target):
        assert state_machine.next_status(status, action) == target

    @pytest.mark.parametrize("status,action", [
        (ContentStatus.DRAFT, Action.APPROVE),
        (ContentStatus.DRAFT, Action.PUBLISH),
        (ContentStatus.IN_REVIEW, Action.SUBMIT),
        (ContentStatus.APPROVED, Action.REJECT),
        (ContentStatus.REJECTED, Action.RESUBMIT),
        (ContentStatus.POSTED, Action.PUBLISH),
    ])
    def test_actions_outside_their_source_state_fail(self, status, action):
        with pytest.raises(InvalidTransitionError) as exc_info:
            state_machine.next_status(status, action)
        assert exc_info.value.current_status == status.value
        assert exc_info.value.requested_action == action.value

    def test_terminal_states_have_no_outgoing_actions(self):
        for status in state_machine.TERMINAL_STATUSES:
            assert not [key for key in state_machine.TRANSITIONS if key[0] == status]

    def test_reviewer_decisions_record_a_review(self):
        assert state_machine.find_rule(ContentStatus.IN_REVIEW, Action.REJECT).decision == ReviewDecision.REJECTED
        assert state_machine.find_rule(ContentStatus.DRAFT, Action.SUBMIT).decision is None

    def test_submit_from_changes_requested_is_resubmit(self):
        assert state_machine.submit_action_for(ContentStatus.CHANGES_REQUESTED) == Action.RESUBMIT
        assert state_machine.submit_action_for(ContentStatus.DRAFT) == Action.SUBMIT

    def test_editable_statuses(self):
        assert state_machine.is_editable(ContentStatus.DRAFT)
        assert state_machine.is_editable(ContentStatus.CHANGES_REQUESTED)
        assert not state_machine.is_editable(ContentStatus.IN_REVIEW)
        with pytest.raises(InvalidTransitionError):
            state_machine.ensure_editable(ContentStatus.APPROVED, "rewrite")

    def test_legacy_submitted_reads_as_in_review(self):
        assert normalize_status("submitted") == ContentStatus.IN_REVIEW
        assert normalize_status("draft") == ContentStatus.DRAFT


class TestPlanTransition:

    def test_submit_requires_a_version(self):
        with pytest.raises(PreconditionFailedError):
            state_machine.plan_transition(
                _request(), ContentStatus.DRAFT, Action.SUBMIT, ADVISOR, has_version=False
            )

    def test_submit_by_owner(self):
        plan = state_machine.plan_transition(
            _request(), ContentStatus.DRAFT, Action.SUBMIT, ADVISOR, has_version=True
        )
        assert plan.target == ContentStatus.IN_REVIEW
        assert plan.rule.saves_draft

    def test_submit_by_other_advisor_forbidden(self):
        with pytest.raises(ForbiddenError):
            state_machine.plan_transition(
                _request(), ContentStatus.DRAFT, Action.SUBMIT, OTHER_ADVISOR, has_version=True
            )

    def test_admin_may_submit_any_request_in_org(self):
        plan = state_machine.plan_transition(
            _request(), ContentStatus.DRAFT, Action.SUBMIT, ADMIN, has_version=True
        )
        assert plan.target == ContentStatus.IN_REVIEW

    def test_other_org_forbidden_everywhere(self):
        with pytest.raises(ForbiddenError):
            state_machine.plan_transition(
                _request(), ContentStatus.IN_REVIEW, Action.APPROVE, FOREIGN_ADMIN, has_version=True
            )

    def test_state_checked_before_authorization(self):
        # An advisor approving a draft learns about the state, not the role.
        with pytest.raises(InvalidTransitionError) as exc_info:
            state_machine.plan_transition(
                _request(), ContentStatus.DRAFT, Action.APPROVE, ADVISOR, has_version=True
            )
        assert not isinstance(exc_info.value, PreconditionFailedError)

    def test_advisor_cannot_record_decisions(self):
        with pytest.raises(ForbiddenError):
            state_machine.plan_transition(
                _request(), ContentStatus.IN_REVIEW, Action.APPROVE, ADVISOR, has_version=True
            )

    @pytest.mark.parametrize("action", [Action.REQUEST_CHANGES, Action.REJECT])
    @pytest.mark.parametrize("notes", [None, "", "   "])
    def test_negative_decisions_need_notes(self, action, notes):
        with pytest.raises(PreconditionFailedError):
            state_machine.plan_transition(
                _request(), ContentStatus.IN_REVIEW, action, COMPLIANCE, has_version=True, notes=notes
            )

    def test_approve_notes_optional_and_stripped(self):
        plan = state_machine.plan_transition(
            _request(), ContentStatus.IN_REVIEW, Action.APPROVE, COMPLIANCE, has_version=True
        )
        assert plan.notes is None
        plan = state_machine.plan_transition(
            _request(), ContentStatus.IN_REVIEW, Action.APPROVE, COMPLIANCE,
            has_version=True, notes="  looks good  ",
        )
        assert plan.notes == "looks good"

    def test_self_review_denied_by_default(self):
        own = _request(advisor_id=ADMIN.user_id)
        with pytest.raises(ForbiddenError):
            state_machine.plan_transition(
                own, ContentStatus.IN_REVIEW, Action.APPROVE, ADMIN, has_version=True
            )

    def test_self_review_flagged_under_flag_policy(self):
        own = _request(advisor_id=ADMIN.user_id)
        plan = state_machine.plan_transition(
            own, ContentStatus.IN_REVIEW, Action.APPROVE, ADMIN,
            has_version=True, self_review_policy=SelfReviewPolicy.FLAG,
        )
        assert plan.self_review is True

    def test_publish_requires_version(self):
        with pytest.raises(PreconditionFailedError):
            state_machine.plan_transition(
                _request(), ContentStatus.APPROVED, Action.PUBLISH, ADVISOR, has_version=False
            )


class TestAllowedActions:

    def test_owner_on_draft(self):
        assert state_machine.allowed_actions(_request(), ContentStatus.DRAFT, ADVISOR) == [Action.SUBMIT]

    def test_compliance_on_in_review(self):
        actions = state_machine.allowed_actions(_request(), ContentStatus.IN_REVIEW, COMPLIANCE)
        assert set(actions) == {Action.APPROVE, Action.REQUEST_CHANGES, Action.REJECT}

    def test_compliance_cannot_submit(self):
        assert state_machine.allowed_actions(_request(), ContentStatus.DRAFT, COMPLIANCE) == []

    def test_owner_on_approved(self):
        actions = state_machine.allowed_actions(_request(), ContentStatus.APPROVED, ADVISOR)
        assert set(actions) == {Action.SCHEDULE, Action.PUBLISH}

    def test_terminal(self):
        assert state_machine.allowed_actions(_request(), ContentStatus.POSTED, ADMIN) == []

    def test_self_review_hidden_unless_flagged(self):
        own = _request(advisor_id=ADMIN.user_id)
        assert state_machine.allowed_actions(own, ContentStatus.IN_REVIEW, ADMIN) == []
        flagged = state_machine.allowed_actions(
            own, ContentStatus.IN_REVIEW, ADMIN, SelfReviewPolicy.FLAG
        )
        assert Action.APPROVE in flagged
