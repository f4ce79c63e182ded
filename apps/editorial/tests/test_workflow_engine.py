"""
Tests for the editorial workflow engine.

Tests cover:
- Submission with publishing rules, auto-approval and notifications
- Assignment, review, approval, rejection, hold and notes
- Immediate and scheduled publication, unpublish and release
- Check order and rejection logging
- Optimistic version conflicts and database failures
- Event delivery after commit

Engine tests run in real transactions so events published on commit
are delivered before the assertions.
"""

import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.db import OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from apps.articles.models import Article
from apps.audit.models import ActivityLogEntry
from apps.core.actors import Actor
from apps.core.exceptions import DependencyError, ErrorCode, ValidationError
from apps.editorial.commands import (
    AddNote,
    Approve,
    Assign,
    Hold,
    Publish,
    Reject,
    Release,
    RequestChanges,
    SetDeadline,
    SetPriority,
    StartReview,
    Submit,
    Unpublish,
)
from apps.editorial.engine import WorkflowEngine
from apps.editorial.models import FeedbackEntry, FeedbackType, Priority, ReviewRecord
from apps.editorial.stores import ReviewStore

WORDS_250 = ' '.join(['word'] * 250)
WORDS_400 = ' '.join(['word'] * 400)


def execute(user_or_actor, article, command, **kwargs):
    actor = user_or_actor if isinstance(user_or_actor, Actor) else Actor.from_user(user_or_actor)
    return WorkflowEngine().execute(actor, article.id, command, **kwargs)


def logged(article, action):
    return ActivityLogEntry.objects.filter(content_id=str(article.id), action=action)


@pytest.fixture
def desk(editor, assign):
    """Editor covering business with full capabilities."""
    assign(editor, 'business', can_approve=True, can_publish=True)
    return editor


@pytest.fixture
def submitted(make_article, author):
    article = make_article(body=WORDS_400)
    execute(author, article, Submit()).raise_for_rejection()
    article.refresh_from_db()
    return article


@pytest.fixture
def approved(submitted, admin_user):
    execute(admin_user, submitted, Approve()).raise_for_rejection()
    submitted.refresh_from_db()
    return submitted


# ============================================================================
# Submission
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestSubmit:
    """SUBMIT against category publishing rules."""

    def test_business_submission_rejected_then_accepted(self, make_article, make_rule, author):
        """Short article without image fails with both violations, then passes once fixed."""
        make_rule('business', min_word_count=300, requires_featured_image=True)
        article = make_article(category='business', body=WORDS_250)

        result = execute(author, article, Submit())

        assert not result.ok
        assert result.rejection.code == ErrorCode.VALIDATION_ERROR
        assert list(result.rejection.violations) == [
            "Minimum word count is 300. Current: 250",
            "Featured image is required",
        ]
        article.refresh_from_db()
        assert article.status == 'DRAFT'
        assert article.version == 0
        assert not logged(article, 'SUBMITTED').exists()
        denied = logged(article, 'SUBMIT_DENIED').get()
        assert denied.metadata['code'] == 'VALIDATION_ERROR'
        assert len(denied.metadata['violations']) == 2

        article.body = WORDS_400
        article.featured_image = 'https://cdn.newsdesk.test/lead.jpg'
        article.save()

        result = execute(author, article, Submit())

        assert result.ok
        article.refresh_from_db()
        assert article.status == 'PENDING_REVIEW'
        reviews = ReviewRecord.objects.filter(article=article)
        assert reviews.count() == 1
        assert reviews.get().status == 'PENDING'
        entry = logged(article, 'SUBMITTED').get()
        assert entry.detail == "submitted for review with NORMAL priority"

    def test_all_violations_are_collected(self, make_article, make_rule, author):
        make_rule(
            'business',
            min_word_count=500,
            requires_featured_image=True,
            requires_excerpt=True,
            requires_meta_description=True,
            required_tag_count=3,
        )
        article = make_article(body=WORDS_250, tags=['markets'])

        result = execute(author, article, Submit())

        assert result.rejection.violations == (
            "Minimum word count is 500. Current: 250",
            "Featured image is required",
            "Excerpt is required",
            "Meta description is required",
            "At least 3 tags are required",
        )

    def test_maximum_word_count(self, make_article, make_rule, author):
        make_rule('business', max_word_count=300)
        article = make_article(body=WORDS_400)

        result = execute(author, article, Submit())

        assert result.rejection.violations == ("Maximum word count is 300. Current: 400",)

    def test_category_without_rule_has_no_constraints(self, make_article, author):
        article = make_article(category='culture', body='short')

        assert execute(author, article, Submit()).ok

    def test_priority_is_recorded(self, make_article, author):
        article = make_article()

        result = execute(author, article, Submit(priority=Priority.URGENT, notes='Embargo lifts at noon'))

        review = ReviewRecord.objects.get(pk=result.review_id)
        assert review.priority == 'URGENT'
        assert review.notes == 'Embargo lifts at noon'
        assert review.submitted_at is not None
        assert logged(article, 'SUBMITTED').get().detail == "submitted for review with URGENT priority"

    def test_senior_writer_is_auto_approved(self, make_article, make_rule, senior_writer):
        make_rule('business', auto_publish_trusted=True)
        article = make_article(author=senior_writer)

        result = execute(senior_writer, article, Submit())

        assert result.content_status.value == 'APPROVED'
        assert result.review_status.value == 'APPROVED'
        entry = logged(article, 'AUTO_APPROVED').get()
        assert entry.detail == "senior writer - auto-approved per category rules"
        assert not logged(article, 'SUBMITTED').exists()

    def test_author_is_not_auto_approved(self, make_article, make_rule, author):
        make_rule('business', auto_publish_trusted=True)
        article = make_article()

        result = execute(author, article, Submit())

        assert result.content_status.value == 'PENDING_REVIEW'

    def test_other_author_cannot_submit(self, make_article, other_author):
        article = make_article()

        result = execute(other_author, article, Submit())

        assert result.rejection.code == ErrorCode.PERMISSION_DENIED

    def test_admin_submits_on_behalf_of_author(self, make_article, admin_user):
        article = make_article()

        assert execute(admin_user, article, Submit()).ok

    def test_editor_author_needs_category(self, make_article, editor, assign):
        article = make_article(author=editor)

        assert execute(editor, article, Submit()).rejection.code == ErrorCode.PERMISSION_DENIED

        assign(editor, 'business')
        assert execute(editor, article, Submit()).ok

    def test_resubmission_reuses_review(self, submitted, author, desk):
        execute(desk, submitted, RequestChanges(feedback='Add sources')).raise_for_rejection()

        result = execute(author, submitted, Submit())

        assert result.ok
        assert ReviewRecord.objects.filter(article=submitted).count() == 1
        assert ReviewRecord.objects.get(article=submitted).status == 'PENDING'
        entry = logged(submitted, 'REVISION_SUBMITTED').get()
        assert entry.detail == "resubmitted after revisions with NORMAL priority"
        assert logged(submitted, 'SUBMITTED').count() == 1

    def test_resubmission_keeps_review_priority(self, submitted, author, desk):
        execute(desk, submitted, Assign(priority=Priority.URGENT)).raise_for_rejection()
        execute(desk, submitted, RequestChanges(feedback='Add sources')).raise_for_rejection()

        execute(author, submitted, Submit()).raise_for_rejection()

        assert ReviewStore.current_for(submitted).priority == 'URGENT'
        assert logged(submitted, 'REVISION_SUBMITTED').get().detail == (
            "resubmitted after revisions with URGENT priority"
        )

    def test_resubmission_with_explicit_priority(self, submitted, author, desk):
        execute(desk, submitted, RequestChanges(feedback='Add sources')).raise_for_rejection()

        execute(author, submitted, Submit(priority=Priority.LOW)).raise_for_rejection()

        assert ReviewStore.current_for(submitted).priority == 'LOW'

    def test_submit_notifies_recipients(self, make_article, make_rule, author, mailoutbox):
        make_rule('business', notify_on_submission=['desk@newsdesk.test', 'chief@newsdesk.test'])
        article = make_article()

        execute(author, article, Submit()).raise_for_rejection()

        assert len(mailoutbox) == 1
        message = mailoutbox[0]
        assert set(message.to) == {'desk@newsdesk.test', 'chief@newsdesk.test'}
        assert 'business' in message.subject

    def test_notification_failure_does_not_block_submission(self, make_article, make_rule, author):
        make_rule('business', notify_on_submission=['desk@newsdesk.test'])
        article = make_article()

        with patch('apps.editorial.tasks.notify_submission.apply_async', side_effect=ConnectionError('broker down')):
            result = execute(author, article, Submit())

        assert result.ok
        article.refresh_from_db()
        assert article.status == 'PENDING_REVIEW'
        assert logged(article, 'SUBMITTED').exists()


# ============================================================================
# Review actions
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestReviewActions:
    """ASSIGN, START_REVIEW, REQUEST_CHANGES, APPROVE, REJECT, HOLD."""

    def test_assign_defaults_to_actor(self, submitted, desk):
        result = execute(desk, submitted, Assign(priority=Priority.HIGH))

        assert result.review_status.value == 'ASSIGNED'
        assert result.content_status.value == 'PENDING_REVIEW'
        review = ReviewStore.current_for(submitted)
        assert review.reviewer_id == desk.pk
        assert review.priority == 'HIGH'
        assert review.assigned_at is not None
        assert logged(submitted, 'ASSIGNED').get().detail == "assigned to Eve Editor with HIGH priority"

    def test_admin_assigns_to_covering_editor(self, submitted, admin_user, desk):
        result = execute(admin_user, submitted, Assign(reviewer_id=str(desk.pk)))

        assert result.ok
        assert ReviewStore.current_for(submitted).reviewer_id == desk.pk

    @pytest.mark.parametrize('target', ['author', 'second_editor', 'missing'])
    def test_assign_rejects_invalid_reviewer(self, request, submitted, admin_user, target):
        if target == 'missing':
            reviewer_id = '987654'
        else:
            reviewer_id = str(request.getfixturevalue(target).pk)

        result = execute(admin_user, submitted, Assign(reviewer_id=reviewer_id))

        assert result.rejection.code == ErrorCode.VALIDATION_ERROR
        assert result.rejection.field == 'reviewer_id'
        assert ReviewStore.current_for(submitted).status == 'PENDING'

    def test_start_review_moves_both_statuses(self, submitted, desk):
        result = execute(desk, submitted, StartReview())

        assert result.content_status.value == 'IN_REVIEW'
        assert result.review_status.value == 'IN_REVIEW'
        assert ReviewStore.current_for(submitted).reviewer_id == desk.pk
        assert logged(submitted, 'REVIEW_STARTED').get().detail == "started reviewing the article"

    def test_start_review_twice_is_invalid(self, submitted, desk):
        execute(desk, submitted, StartReview()).raise_for_rejection()

        result = execute(desk, submitted, StartReview())

        assert result.rejection.code == ErrorCode.INVALID_TRANSITION

    def test_request_changes_without_feedback_fails(self, submitted, desk):
        for feedback in ('', '   '):
            result = execute(desk, submitted, RequestChanges(feedback=feedback))

            assert result.rejection.code == ErrorCode.VALIDATION_ERROR
        submitted.refresh_from_db()
        assert submitted.status == 'PENDING_REVIEW'
        assert ReviewStore.current_for(submitted).status == 'PENDING'
        assert not FeedbackEntry.objects.exists()

    def test_request_changes(self, submitted, desk):
        result = execute(desk, submitted, RequestChanges(feedback='Tighten the lede'))

        assert result.content_status.value == 'CHANGES_REQUESTED'
        assert result.review_status.value == 'CHANGES_REQUESTED'
        entry = FeedbackEntry.objects.get()
        assert entry.type == FeedbackType.REVISION_REQUEST.value
        assert entry.content == 'Tighten the lede'
        assert entry.is_internal is False
        assert logged(submitted, 'CHANGES_REQUESTED').get().detail == "requested changes: Tighten the lede"

    def test_admin_approval(self, submitted, admin_user):
        result = execute(admin_user, submitted, Approve(feedback='Ready to go'))

        assert result.content_status.value == 'APPROVED'
        assert result.review_status.value == 'APPROVED'
        assert logged(submitted, 'APPROVED').get().detail == "approved the article for publication"
        assert FeedbackEntry.objects.get().type == 'APPROVAL'

    def test_editor_approval_is_recorded_as_recommendation(self, submitted, desk):
        result = execute(desk, submitted, Approve())

        assert result.content_status.value == 'APPROVED'
        assert result.review_status.value == 'APPROVED'
        assert logged(submitted, 'RECOMMEND_APPROVAL').exists()
        assert not logged(submitted, 'APPROVED').exists()
        assert not FeedbackEntry.objects.exists()

    def test_editor_without_can_approve_is_denied(self, submitted, editor, assign):
        assign(editor, 'business', can_approve=False)

        result = execute(editor, submitted, Approve())

        assert result.rejection.code == ErrorCode.PERMISSION_DENIED
        submitted.refresh_from_db()
        assert submitted.status == 'PENDING_REVIEW'

    def test_reject_requires_feedback(self, submitted, desk):
        assert execute(desk, submitted, Reject()).rejection.code == ErrorCode.VALIDATION_ERROR

    def test_reject_is_terminal(self, submitted, desk, author):
        result = execute(desk, submitted, Reject(feedback='Off-topic'))

        assert result.content_status.value == 'REJECTED'
        assert result.review_status.value == 'REJECTED'
        assert FeedbackEntry.objects.get().type == 'REJECTION'
        assert logged(submitted, 'REJECTED').get().detail == "rejected the article: Off-topic"

        assert execute(author, submitted, Submit()).rejection.code == ErrorCode.INVALID_TRANSITION
        assert execute(desk, submitted, Approve()).rejection.code == ErrorCode.INVALID_TRANSITION

    def test_hold_keeps_content_status(self, submitted, desk):
        result = execute(desk, submitted, Hold(notes='Waiting on legal'))

        assert result.review_status.value == 'ON_HOLD'
        assert result.content_status.value == 'PENDING_REVIEW'
        assert ReviewStore.current_for(submitted).notes == 'Waiting on legal'
        assert logged(submitted, 'ON_HOLD').get().detail == "put the review on hold: Waiting on legal"

    def test_decision_from_hold(self, submitted, desk, admin_user):
        execute(desk, submitted, Hold()).raise_for_rejection()
        assert logged(submitted, 'ON_HOLD').get().detail == "put the review on hold"

        assert execute(desk, submitted, StartReview()).rejection.code == ErrorCode.INVALID_TRANSITION
        assert execute(admin_user, submitted, Approve()).ok

    def test_set_priority_keeps_reviewer(self, submitted, desk, admin_user):
        execute(desk, submitted, Assign(priority=Priority.NORMAL)).raise_for_rejection()
        submitted.refresh_from_db()
        version = submitted.version

        result = execute(admin_user, submitted, SetPriority(priority=Priority.URGENT))

        assert result.ok
        assert result.review_status.value == 'ASSIGNED'
        assert result.content_status.value == 'PENDING_REVIEW'
        review = ReviewStore.current_for(submitted)
        assert review.priority == 'URGENT'
        assert review.reviewer_id == desk.pk
        submitted.refresh_from_db()
        assert submitted.version == version
        assert logged(submitted, 'PRIORITY_CHANGED').get().detail == "changed priority from NORMAL to URGENT"

    def test_set_priority_requires_value(self, submitted, desk):
        result = execute(desk, submitted, SetPriority())

        assert result.rejection.code == ErrorCode.VALIDATION_ERROR
        assert result.rejection.field == 'priority'

    def test_set_and_clear_deadline(self, submitted, desk):
        when = datetime(2099, 1, 2, 9, 30, tzinfo=dt_timezone.utc)

        result = execute(desk, submitted, SetDeadline(deadline=when))

        assert result.review_status.value == 'PENDING'
        assert ReviewStore.current_for(submitted).deadline == when
        assert logged(submitted, 'DEADLINE_SET').get().detail == "set the review deadline to 2099-01-02 09:30 UTC"

        execute(desk, submitted, SetDeadline()).raise_for_rejection()

        assert ReviewStore.current_for(submitted).deadline is None
        assert logged(submitted, 'DEADLINE_SET').filter(detail="cleared the review deadline").exists()

    def test_deadline_in_the_past_fails(self, submitted, desk):
        result = execute(desk, submitted, SetDeadline(deadline=timezone.now() - timedelta(hours=1)))

        assert result.rejection.code == ErrorCode.VALIDATION_ERROR
        assert result.rejection.field == 'deadline'
        assert ReviewStore.current_for(submitted).deadline is None

    def test_priority_cannot_change_after_decision(self, approved, admin_user):
        result = execute(admin_user, approved, SetPriority(priority=Priority.HIGH))

        assert result.rejection.code == ErrorCode.INVALID_TRANSITION


# ============================================================================
# Notes
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestAddNote:

    def test_notes_are_not_deduplicated(self, submitted, desk):
        version = submitted.version

        first = execute(desk, submitted, AddNote(content='Check the figures'))
        second = execute(desk, submitted, AddNote(content='Check the figures'))

        assert first.ok and second.ok
        notes = FeedbackEntry.objects.filter(content='Check the figures')
        assert notes.count() == 2
        assert all(note.is_internal for note in notes)
        assert all(note.type == 'COMMENT' for note in notes)
        assert logged(submitted, 'NOTE_ADDED').count() == 2
        submitted.refresh_from_db()
        assert submitted.version == version

    def test_suggestion_note(self, submitted, desk):
        execute(desk, submitted, AddNote(content='Try a shorter headline', type=FeedbackType.SUGGESTION))

        assert FeedbackEntry.objects.get().type == 'SUGGESTION'

    def test_author_can_note_own_article(self, submitted, author):
        assert execute(author, submitted, AddNote(content='Sources attached')).ok

    def test_other_author_cannot_note(self, submitted, other_author):
        result = execute(other_author, submitted, AddNote(content='Hi'))

        assert result.rejection.code == ErrorCode.PERMISSION_DENIED

    def test_note_needs_review(self, make_article, author):
        article = make_article()

        result = execute(author, article, AddNote(content='Draft thoughts'))

        assert result.rejection.code == ErrorCode.NOT_FOUND

    def test_empty_note_fails(self, submitted, desk):
        assert execute(desk, submitted, AddNote(content=' ')).rejection.code == ErrorCode.VALIDATION_ERROR


# ============================================================================
# Publication
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestPublish:

    def test_publish_now(self, approved, admin_user):
        result = execute(admin_user, approved, Publish())

        assert result.content_status.value == 'PUBLISHED'
        assert result.review_status.value == 'PUBLISHED'
        approved.refresh_from_db()
        assert approved.published_at is not None
        assert approved.scheduled_at is None
        assert logged(approved, 'PUBLISHED').get().detail == "published the article"

    def test_past_date_publishes_immediately(self, approved, admin_user):
        result = execute(admin_user, approved, Publish(publish_date=timezone.now() - timedelta(hours=2)))

        assert result.content_status.value == 'PUBLISHED'

    def test_future_date_schedules(self, approved, admin_user):
        when = datetime(2099, 1, 2, 9, 30, tzinfo=dt_timezone.utc)

        result = execute(admin_user, approved, Publish(publish_date=when))

        assert result.content_status.value == 'SCHEDULED'
        assert result.review_status.value == 'PUBLISHED'
        approved.refresh_from_db()
        assert approved.scheduled_at == when
        assert approved.published_at is None
        assert logged(approved, 'SCHEDULED').get().detail == "scheduled the article for 2099-01-02 09:30 UTC"

    def test_homepage_and_social_share(self, approved, admin_user):
        result = execute(admin_user, approved, Publish(add_to_homepage=True, social_share=True))

        assert result.ok
        approved.refresh_from_db()
        assert approved.featured is True
        share = logged(approved, 'SOCIAL_SHARE').get()
        assert share.detail == "queued article for social media distribution"

    def test_publish_draft_is_invalid(self, make_article, admin_user):
        article = make_article()

        result = execute(admin_user, article, Publish())

        assert result.rejection.code == ErrorCode.INVALID_TRANSITION
        article.refresh_from_db()
        assert article.status == 'DRAFT'

    def test_editor_needs_can_publish(self, approved, editor, second_editor, assign):
        assign(editor, 'business', can_approve=True, can_publish=False)
        assign(second_editor, 'business', can_publish=True)

        assert execute(editor, approved, Publish()).rejection.code == ErrorCode.PERMISSION_DENIED
        assert execute(second_editor, approved, Publish()).ok

    def test_unpublish_is_admin_only(self, approved, admin_user, desk):
        execute(admin_user, approved, Publish()).raise_for_rejection()

        assert execute(desk, approved, Unpublish()).rejection.code == ErrorCode.PERMISSION_DENIED

        result = execute(admin_user, approved, Unpublish())

        assert result.content_status.value == 'APPROVED'
        assert result.review_status.value == 'APPROVED'
        approved.refresh_from_db()
        assert approved.published_at is None
        assert logged(approved, 'UNPUBLISHED').exists()

    def test_release_due_article(self, approved, admin_user):
        execute(admin_user, approved, Publish(publish_date=timezone.now() + timedelta(minutes=5)))
        Article.objects.filter(pk=approved.pk).update(scheduled_at=timezone.now() - timedelta(minutes=1))

        result = execute(Actor.system(), approved, Release())

        assert result.content_status.value == 'PUBLISHED'
        approved.refresh_from_db()
        assert approved.published_at == approved.scheduled_at
        assert logged(approved, 'RELEASED').get().actor_id == 'system'

    def test_release_before_time_is_invalid(self, approved, admin_user):
        execute(admin_user, approved, Publish(publish_date=timezone.now() + timedelta(days=1)))

        result = execute(Actor.system(), approved, Release())

        assert result.rejection.code == ErrorCode.INVALID_TRANSITION

    def test_only_system_releases(self, approved, admin_user):
        execute(admin_user, approved, Publish(publish_date=timezone.now() + timedelta(days=1)))

        assert execute(admin_user, approved, Release()).rejection.code == ErrorCode.PERMISSION_DENIED


# ============================================================================
# Category scoping
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestCategoryScope:
    """An editor without a politics assignment can only add notes there."""

    COMMANDS = [
        Submit(), Assign(), StartReview(), RequestChanges(feedback='x'), Approve(),
        Reject(feedback='x'), Publish(), Hold(), Unpublish(), Release(),
        SetPriority(priority=Priority.HIGH), SetDeadline(),
    ]

    @pytest.mark.parametrize('content_status,review_status', [
        ('PENDING_REVIEW', 'PENDING'),
        ('IN_REVIEW', 'IN_REVIEW'),
        ('APPROVED', 'APPROVED'),
        ('PUBLISHED', 'PUBLISHED'),
    ])
    def test_unassigned_editor_is_denied(self, make_article, editor, assign, content_status, review_status):
        assign(editor, 'business', can_approve=True, can_publish=True)
        article = make_article(category='politics', status=content_status)
        ReviewRecord.objects.create(article=article, status=review_status)

        for command in self.COMMANDS:
            result = execute(editor, article, command)
            assert result.rejection.code == ErrorCode.PERMISSION_DENIED, command

        assert execute(editor, article, AddNote(content='Flagging for legal')).ok
        article.refresh_from_db()
        assert article.status == content_status

    def test_admin_bypasses_category(self, make_article, admin_user):
        article = make_article(category='politics', status='PENDING_REVIEW')
        ReviewRecord.objects.create(article=article, status='PENDING')

        assert execute(admin_user, article, StartReview()).ok


# ============================================================================
# Check order, conflicts and failures
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestEngineGuarantees:

    def test_unknown_article(self, author):
        for content_id in (uuid.uuid4(), 'not-a-uuid'):
            result = WorkflowEngine().execute(Actor.from_user(author), content_id, Submit())

            assert result.rejection.code == ErrorCode.NOT_FOUND

    def test_permission_checked_before_payload(self, submitted, other_author):
        result = execute(other_author, submitted, RequestChanges(feedback=''))

        assert result.rejection.code == ErrorCode.PERMISSION_DENIED

    def test_payload_checked_before_transition(self, make_article, desk):
        article = make_article(status='APPROVED')
        ReviewRecord.objects.create(article=article, status='APPROVED')

        result = execute(desk, article, RequestChanges(feedback=''))

        assert result.rejection.code == ErrorCode.VALIDATION_ERROR

    def test_stale_expected_version_conflicts(self, submitted, desk):
        stale = submitted.version - 1

        result = execute(desk, submitted, StartReview(), expected_version=stale)

        assert result.rejection.code == ErrorCode.CONFLICT
        submitted.refresh_from_db()
        assert submitted.status == 'PENDING_REVIEW'
        assert logged(submitted, 'START_REVIEW_DENIED').get().metadata['code'] == 'CONFLICT'

    def test_version_increments_per_write(self, make_article, author, desk):
        article = make_article()

        first = execute(author, article, Submit())
        second = execute(desk, article, StartReview(), expected_version=first.version)

        assert (first.version, second.version) == (1, 2)

    def test_two_approvals_on_same_version(self, submitted, editor, second_editor, assign):
        assign(editor, 'business', can_approve=True)
        assign(second_editor, 'business', can_approve=True)
        version = submitted.version

        first = execute(editor, submitted, Approve(), expected_version=version)
        second = execute(second_editor, submitted, Approve(), expected_version=version)
        third = execute(second_editor, submitted, Approve())

        assert first.ok
        assert second.rejection.code == ErrorCode.CONFLICT
        assert third.rejection.code == ErrorCode.INVALID_TRANSITION
        assert logged(submitted, 'RECOMMEND_APPROVAL').count() == 1

    def test_concurrent_write_between_read_and_swap(self, submitted, desk):
        real_current_for = ReviewStore.current_for

        def bump_then_read(article, lock=False):
            Article.objects.filter(pk=article.pk).update(version=F('version') + 1)
            return real_current_for(article, lock=lock)

        with patch.object(ReviewStore, 'current_for', side_effect=bump_then_read):
            result = execute(desk, submitted, StartReview())

        assert result.rejection.code == ErrorCode.CONFLICT
        assert ReviewRecord.objects.get(article=submitted).status == 'PENDING'

    def test_database_failure_raises_dependency_error(self, make_article, author):
        article = make_article()

        with patch.object(Article.objects, 'select_for_update', side_effect=OperationalError('lock timeout')):
            with pytest.raises(DependencyError):
                execute(author, article, Submit())

        article.refresh_from_db()
        assert article.status == 'DRAFT'
        assert not ReviewRecord.objects.exists()

    def test_audit_failure_does_not_roll_back(self, make_article, author, caplog):
        from prometheus_client import REGISTRY

        article = make_article()
        before = REGISTRY.get_sample_value('newsdesk_audit_failures_total') or 0

        with patch.object(ActivityLogEntry.objects, 'create', side_effect=OperationalError('audit down')):
            with caplog.at_level('ERROR', logger='apps.audit.failures'):
                result = execute(author, article, Submit())

        assert result.ok
        article.refresh_from_db()
        assert article.status == 'PENDING_REVIEW'
        assert not ActivityLogEntry.objects.filter(content_id=str(article.id)).exists()
        assert REGISTRY.get_sample_value('newsdesk_audit_failures_total') == before + 1
        assert any('Audit write failed' in record.getMessage() for record in caplog.records)

    def test_rejection_raises_matching_exception(self, submitted, desk):
        result = execute(desk, submitted, RequestChanges())

        with pytest.raises(ValidationError):
            result.raise_for_rejection()

    def test_workflow_metrics(self, submitted, desk):
        from prometheus_client import REGISTRY

        def sample(outcome):
            return REGISTRY.get_sample_value(
                'newsdesk_workflow_actions_total', {'action': 'HOLD', 'outcome': outcome}
            ) or 0

        success, invalid = sample('success'), sample('INVALID_TRANSITION')

        execute(desk, submitted, Hold())
        execute(desk, submitted, Hold())

        assert sample('success') == success + 1
        assert sample('INVALID_TRANSITION') == invalid + 1

    def test_events_wait_for_outer_commit(self, make_article, author):
        article = make_article()

        with pytest.raises(RuntimeError):
            with transaction.atomic():
                assert execute(author, article, Submit()).ok
                assert not logged(article, 'SUBMITTED').exists()
                raise RuntimeError('caller rolled back')

        article.refresh_from_db()
        assert article.status == 'DRAFT'
        assert not logged(article, 'SUBMITTED').exists()

    def test_events_delivered_after_outer_commit(self, make_article, author):
        article = make_article()

        with transaction.atomic():
            execute(author, article, Submit()).raise_for_rejection()
            assert not logged(article, 'SUBMITTED').exists()

        assert logged(article, 'SUBMITTED').exists()
