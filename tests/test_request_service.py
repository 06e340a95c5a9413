"""Tests for request CRUD, the library views and manual saves."""

import pytest

from advisorflow.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    RequestNotFoundError,
    VersionConflictError,
)
from advisorflow.models import ContentStatus
from advisorflow.schemas.request import RequestCreate, RequestUpdate
from advisorflow.schemas.version import EditorDraft
from advisorflow.services import RequestService, VersionService
from advisorflow.services.content_utils import HIGHLIGHT_CLASS
from advisorflow.services.request_service import LibraryFilter

from conftest import SAMPLE_BODY


class TestCreateAndUpdate:

    def test_create_starts_in_draft(self, db, advisor):
        request = RequestService(db).create_request(
            advisor, RequestCreate(topic_text="  Retirement income  ", content_type="linkedin")
        )
        assert request.status == ContentStatus.DRAFT.value
        assert request.topic_text == "Retirement income"
        assert request.advisor_id == "advisor-1"
        assert request.org_id == advisor.org_id
        assert request.current_version_id is None
        assert request.revision_cycle == 0

    def test_compliance_cannot_create(self, db, compliance):
        with pytest.raises(ForbiddenError):
            RequestService(db).create_request(compliance, RequestCreate(topic_text="Anything"))

    def test_empty_topic_rejected(self):
        with pytest.raises(ValueError):
            RequestCreate(topic_text="   ")

    def test_update_brief(self, db, make_request, advisor):
        request = make_request()
        updated = RequestService(db).update_request(
            request.id, advisor, RequestUpdate(instructions="Keep it under 300 words")
        )
        assert updated.instructions == "Keep it under 300 words"
        assert updated.topic_text == "Estate planning for business owners"

    def test_update_not_allowed_in_review(self, db, make_request, advisor):
        request = make_request(status=ContentStatus.IN_REVIEW)
        with pytest.raises(InvalidTransitionError):
            RequestService(db).update_request(request.id, advisor, RequestUpdate(topic_text="New"))

    def test_update_by_other_advisor_forbidden(self, db, make_request, other_advisor):
        request = make_request()
        with pytest.raises(ForbiddenError):
            RequestService(db).update_request(request.id, other_advisor, RequestUpdate(topic_text="New"))

    def test_get_missing(self, db, advisor):
        with pytest.raises(RequestNotFoundError):
            RequestService(db).get_request("does-not-exist", advisor)

    def test_get_other_org(self, db, make_request, outsider):
        request = make_request()
        with pytest.raises(ForbiddenError):
            RequestService(db).get_request(request.id, outsider)


class TestLibrary:

    @pytest.fixture()
    def library(self, make_request, add_version, advisor, other_advisor):
        drafted = make_request(topic="Roth conversions")
        add_version(drafted.id, title="Converting Your IRA")
        make_request(topic="College savings", status=ContentStatus.CHANGES_REQUESTED)
        make_request(topic="Market outlook", status=ContentStatus.IN_REVIEW)
        make_request(topic="Legacy queue item", status=ContentStatus.SUBMITTED)
        make_request(topic="Tax-loss harvesting", status=ContentStatus.APPROVED)
        make_request(actor=other_advisor, topic="Annuities", status=ContentStatus.IN_REVIEW)

    def test_advisor_sees_only_own(self, db, library, advisor):
        items = RequestService(db).list_requests(advisor)
        assert len(items) == 5
        assert {item.advisor_id for item in items} == {"advisor-1"}

    def test_advisor_cannot_widen_scope(self, db, library, advisor):
        items = RequestService(db).list_requests(advisor, advisor_id="advisor-2")
        assert {item.advisor_id for item in items} == {"advisor-1"}

    def test_compliance_sees_org(self, db, library, compliance):
        svc = RequestService(db)
        assert len(svc.list_requests(compliance)) == 6
        assert len(svc.list_requests(compliance, advisor_id="advisor-2")) == 1

    @pytest.mark.parametrize("tab,topics", [
        (LibraryFilter.DRAFTS, {"Roth conversions", "College savings"}),
        (LibraryFilter.IN_REVIEW, {"Market outlook", "Legacy queue item"}),
        (LibraryFilter.APPROVED, {"Tax-loss harvesting"}),
    ])
    def test_filters(self, db, library, advisor, tab, topics):
        items = RequestService(db).list_requests(advisor, status_filter=tab)
        assert {item.topic_text for item in items} == topics

    def test_legacy_status_reads_as_in_review(self, db, library, advisor):
        items = RequestService(db).list_requests(advisor, search="Legacy queue")
        assert [item.status for item in items] == [ContentStatus.IN_REVIEW]

    def test_search_matches_topic_and_title(self, db, library, advisor):
        svc = RequestService(db)
        assert [i.topic_text for i in svc.list_requests(advisor, search="college")] == ["College savings"]
        by_title = svc.list_requests(advisor, search="your ira")
        assert [i.title for i in by_title] == ["Converting Your IRA"]

    def test_search_wildcards_match_literally(self, db, make_request, advisor):
        make_request(topic="The 50% equity glide path")
        make_request(topic="500 equity ideas")
        make_request(topic="Roth_IRA ladder")
        make_request(topic="RothXIRA ladder")
        svc = RequestService(db)
        assert [i.topic_text for i in svc.list_requests(advisor, search="50%")] == ["The 50% equity glide path"]
        assert [i.topic_text for i in svc.list_requests(advisor, search="roth_ira")] == ["Roth_IRA ladder"]
        assert svc.list_requests(advisor, search="\\") == []

    def test_counts(self, db, library, advisor, compliance):
        svc = RequestService(db)
        mine = svc.status_counts(advisor)
        assert (mine.all, mine.drafts, mine.in_review, mine.approved) == (5, 2, 2, 1)
        org = svc.status_counts(compliance)
        assert org.in_review == 3

    def test_other_org_sees_nothing(self, db, library, outsider):
        assert RequestService(db).list_requests(outsider) == []

    def test_review_queue(self, db, library, compliance, advisor):
        svc = RequestService(db)
        queue = svc.review_queue(compliance)
        assert {item.topic_text for item in queue} == {"Market outlook", "Legacy queue item", "Annuities"}
        with pytest.raises(ForbiddenError):
            svc.review_queue(advisor)


class TestSaveVersion:

    @pytest.mark.asyncio
    async def test_first_save_creates_human_version(self, db, make_request, advisor):
        request = make_request()
        version = await RequestService(db).save_version(
            request.id, advisor, EditorDraft(title="My Draft", body="<p>Hand written.</p>")
        )
        assert version.version_number == 1
        assert version.generated_by == "human"

    @pytest.mark.asyncio
    async def test_unchanged_returns_current(self, db, make_request, add_version, advisor):
        request = make_request()
        original = add_version(request.id)
        version = await RequestService(db).save_version(
            request.id, advisor, EditorDraft(title="Planning Ahead", body=SAMPLE_BODY, base_version_number=1)
        )
        assert version.id == original.id
        assert len(VersionService(db).list_versions(request.id)) == 1

    @pytest.mark.asyncio
    async def test_highlight_marker_not_stored(self, db, make_request, add_version, advisor):
        request = make_request()
        add_version(request.id)
        body = f'<p class="{HIGHLIGHT_CLASS}">A brand new closing paragraph.</p>'
        version = await RequestService(db).save_version(
            request.id, advisor, EditorDraft(title="Planning Ahead", body=body)
        )
        assert version.body == "<p>A brand new closing paragraph.</p>"

    @pytest.mark.asyncio
    async def test_stale_base_conflicts(self, db, make_request, add_version, advisor):
        request = make_request()
        add_version(request.id)
        add_version(request.id, body="<p>Saved from another tab.</p>")
        with pytest.raises(VersionConflictError):
            await RequestService(db).save_version(
                request.id, advisor, EditorDraft(title="T", body="<p>Mine</p>", base_version_number=1)
            )
        assert len(VersionService(db).list_versions(request.id)) == 2

    @pytest.mark.asyncio
    async def test_not_editable_once_approved(self, db, make_request, add_version, advisor):
        request = make_request(status=ContentStatus.APPROVED)
        add_version(request.id)
        with pytest.raises(InvalidTransitionError):
            await RequestService(db).save_version(request.id, advisor, EditorDraft(title="T", body="<p>x</p>"))

    @pytest.mark.asyncio
    async def test_reviewer_cannot_save(self, db, make_request, compliance):
        request = make_request()
        with pytest.raises(ForbiddenError):
            await RequestService(db).save_version(request.id, compliance, EditorDraft(title="T", body="<p>x</p>"))


class TestReviewHistory:

    def test_empty_history(self, db, make_request, compliance):
        request = make_request()
        assert RequestService(db).list_reviews(request.id, compliance) == []
