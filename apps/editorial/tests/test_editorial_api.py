"""
Tests for the editorial desk API.

Tests cover:
- Workflow action endpoint and its error format
- Review detail and feedback visibility
- Review queue scoping, filters and ordering
- Desk statistics
- Publishing rule and assignment administration
"""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.audit.models import ActivityLogEntry
from apps.editorial.models import EditorialAssignment, PublishingRule, ReviewRecord

WORDS_400 = ' '.join(['word'] * 400)


def action_url(article):
    return f'/api/editorial/articles/{article.id}/actions/'


def detail_url(article):
    return f'/api/editorial/articles/{article.id}/'


@pytest.fixture
def desk(editor, assign):
    assign(editor, 'business', can_approve=True, can_publish=True)
    return editor


@pytest.fixture
def in_review(make_article):
    """Article with an open review at the given statuses."""
    def _make(category='business', content_status='PENDING_REVIEW', review_status='PENDING', **review_fields):
        article = make_article(category=category, status=content_status, body=WORDS_400)
        ReviewRecord.objects.create(
            article=article,
            status=review_status,
            submitted_at=review_fields.pop('submitted_at', timezone.now()),
            **review_fields,
        )
        return article

    return _make


# ============================================================================
# Workflow Action Endpoint Tests
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestWorkflowActionEndpoint:

    def test_submit_and_approve(self, client_for, make_article, author, admin_user):
        article = make_article()

        response = client_for(author).post(action_url(article), {'action': 'SUBMIT', 'priority': 'HIGH'}, format='json')

        assert response.status_code == 200
        assert response.data['content_status'] == 'PENDING_REVIEW'
        assert response.data['review_status'] == 'PENDING'
        assert response.data['version'] == 1

        response = client_for(admin_user).post(
            action_url(article),
            {'action': 'approve', 'feedback': 'Good to go', 'expected_version': 1},
            format='json',
        )

        assert response.status_code == 200
        assert response.data['content_status'] == 'APPROVED'
        assert response.data['version'] == 2

    def test_rule_violations_in_error_details(self, client_for, make_article, make_rule, author):
        make_rule('business', min_word_count=300, requires_featured_image=True)
        article = make_article(body=' '.join(['word'] * 250))

        response = client_for(author).post(action_url(article), {'action': 'SUBMIT'}, format='json')

        assert response.status_code == 400
        error = response.data['error']
        assert error['code'] == 'VALIDATION_ERROR'
        assert error['details']['violations'] == [
            "Minimum word count is 300. Current: 250",
            "Featured image is required",
        ]
        assert 'request_id' in response.data

    def test_set_priority_and_deadline(self, client_for, in_review, desk):
        article = in_review()
        client = client_for(desk)

        response = client.post(action_url(article), {'action': 'SET_PRIORITY', 'priority': 'urgent'}, format='json')

        assert response.status_code == 200
        assert response.data['review_status'] == 'PENDING'
        assert response.data['version'] == 0

        response = client.post(
            action_url(article), {'action': 'SET_DEADLINE', 'deadline': '2099-01-02T09:30:00Z'}, format='json'
        )

        assert response.status_code == 200
        review = ReviewRecord.objects.get(article=article)
        assert review.priority == 'URGENT'
        assert review.deadline.year == 2099
        assert client.get(detail_url(article)).data['review']['deadline'].startswith('2099-01-02T09:30')

    def test_set_priority_requires_value(self, client_for, in_review, desk):
        response = client_for(desk).post(action_url(in_review()), {'action': 'SET_PRIORITY'}, format='json')

        assert response.status_code == 400
        assert response.data['error']['field'] == 'priority'

    def test_missing_feedback(self, client_for, in_review, desk):
        article = in_review()

        response = client_for(desk).post(action_url(article), {'action': 'REQUEST_CHANGES'}, format='json')

        assert response.status_code == 400
        assert response.data['error']['field'] == 'feedback'

    def test_permission_denied(self, client_for, in_review, other_author):
        article = in_review()

        response = client_for(other_author).post(
            action_url(article), {'action': 'APPROVE'}, format='json'
        )

        assert response.status_code == 403
        assert response.data['error']['code'] == 'PERMISSION_DENIED'
        assert ActivityLogEntry.objects.filter(action='APPROVE_DENIED').count() == 1

    def test_invalid_transition(self, client_for, in_review, admin_user):
        article = in_review()

        response = client_for(admin_user).post(action_url(article), {'action': 'PUBLISH'}, format='json')

        assert response.status_code == 409
        assert response.data['error']['code'] == 'INVALID_TRANSITION'

    def test_stale_version(self, client_for, in_review, desk):
        article = in_review()

        response = client_for(desk).post(
            action_url(article), {'action': 'START_REVIEW', 'expected_version': 5}, format='json'
        )

        assert response.status_code == 409
        assert response.data['error']['code'] == 'CONFLICT'
        assert response.data['error']['details'] == {'current_version': 0}

    def test_unknown_article(self, client_for, admin_user):
        response = client_for(admin_user).post(
            f'/api/editorial/articles/{uuid.uuid4()}/actions/', {'action': 'APPROVE'}, format='json'
        )

        assert response.status_code == 404
        assert response.data['error']['code'] == 'NOT_FOUND'

    def test_unknown_action_is_not_logged(self, client_for, in_review, admin_user):
        article = in_review()

        response = client_for(admin_user).post(action_url(article), {'action': 'ARCHIVE'}, format='json')

        assert response.status_code == 400
        assert response.data['error']['code'] == 'INVALID_VALUE'
        assert not ActivityLogEntry.objects.filter(content_id=str(article.id)).exists()

    def test_requires_authentication(self, api_client, in_review):
        response = api_client.post(action_url(in_review()), {'action': 'SUBMIT'}, format='json')

        assert response.status_code == 401


# ============================================================================
# Review Detail Tests
# ============================================================================

@pytest.mark.django_db(transaction=True)
class TestReviewDetail:

    @pytest.fixture
    def reviewed(self, client_for, make_article, author, desk):
        article = make_article(body=WORDS_400)
        client_for(author).post(action_url(article), {'action': 'SUBMIT'}, format='json')
        client = client_for(desk)
        client.post(action_url(article), {'action': 'ADD_NOTE', 'content': 'Legal should see this'}, format='json')
        client.post(action_url(article), {'action': 'REQUEST_CHANGES', 'feedback': 'Cite the filing'}, format='json')
        return article

    def test_desk_sees_internal_notes(self, client_for, reviewed, desk):
        response = client_for(desk).get(detail_url(reviewed))

        assert response.status_code == 200
        assert response.data['review']['status'] == 'CHANGES_REQUESTED'
        assert [f['content'] for f in response.data['feedback']] == ['Legal should see this', 'Cite the filing']
        actions = [entry['action'] for entry in response.data['activity']]
        assert set(actions) == {'SUBMITTED', 'NOTE_ADDED', 'CHANGES_REQUESTED'}

    def test_author_does_not_see_internal_notes(self, client_for, reviewed, author):
        response = client_for(author).get(detail_url(reviewed))

        assert response.status_code == 200
        assert [f['content'] for f in response.data['feedback']] == ['Cite the filing']
        assert response.data['available_actions'] == ['SUBMIT', 'ADD_NOTE']

    def test_other_author_forbidden(self, client_for, reviewed, other_author):
        assert client_for(other_author).get(detail_url(reviewed)).status_code == 403

    def test_draft_without_review(self, client_for, make_article, make_rule, author):
        make_rule('business', min_word_count=100)
        article = make_article()

        response = client_for(author).get(detail_url(article))

        assert response.data['review'] is None
        assert response.data['feedback'] == []
        assert response.data['rule']['min_word_count'] == 100
        assert response.data['available_actions'] == ['SUBMIT']

    def test_feedback_thread_newest_first(self, client_for, reviewed, desk, author):
        response = client_for(desk).get(f'{detail_url(reviewed)}feedback/?order=newest')

        assert [f['content'] for f in response.data['feedback']] == ['Cite the filing', 'Legal should see this']
        assert response.data['counts'] == {'COMMENT': 1, 'REVISION_REQUEST': 1}

        response = client_for(author).get(f'{detail_url(reviewed)}feedback/')

        assert len(response.data['feedback']) == 1
        assert response.data['counts'] == {}


# ============================================================================
# Review Queue Tests
# ============================================================================

@pytest.mark.django_db
class TestReviewQueue:

    URL = '/api/editorial/queue/'

    def test_editor_sees_assigned_categories(self, client_for, in_review, desk):
        business = in_review('business')
        in_review('politics')

        response = client_for(desk).get(self.URL)

        assert response.status_code == 200
        assert [row['article']['id'] for row in response.data['results']] == [str(business.id)]
        assert response.data['status_counts']['PENDING_REVIEW'] == 1

    def test_admin_sees_everything(self, client_for, in_review, admin_user):
        in_review('business')
        in_review('politics')

        response = client_for(admin_user).get(self.URL)

        assert response.data['count'] == 2

    def test_authors_are_forbidden(self, client_for, author):
        assert client_for(author).get(self.URL).status_code == 403

    def test_priority_then_age_ordering(self, client_for, in_review, admin_user):
        now = timezone.now()
        old_normal = in_review(priority='NORMAL', submitted_at=now - timedelta(hours=5))
        urgent = in_review(priority='URGENT', submitted_at=now)
        new_normal = in_review(priority='NORMAL', submitted_at=now - timedelta(hours=1))

        response = client_for(admin_user).get(self.URL)

        ids = [row['article']['id'] for row in response.data['results']]
        assert ids == [str(urgent.id), str(old_normal.id), str(new_normal.id)]

    def test_filters(self, client_for, in_review, admin_user, desk):
        mine = in_review(review_status='ASSIGNED', reviewer=desk, priority='HIGH')
        in_review(review_status='PENDING')
        in_review('sports', review_status='PENDING')
        client = client_for(admin_user)

        def ids(query):
            return [row['article']['id'] for row in client.get(f'{self.URL}?{query}').data['results']]

        assert ids(f'assignee={desk.pk}') == [str(mine.id)]
        assert len(ids('assignee=unassigned')) == 2
        assert ids('status=assigned') == [str(mine.id)]
        assert ids('priority=high') == [str(mine.id)]
        assert len(ids('category=sports')) == 1

    def test_assignee_me(self, client_for, in_review, desk):
        mine = in_review(review_status='IN_REVIEW', content_status='IN_REVIEW', reviewer=desk)
        in_review()

        response = client_for(desk).get(f'{self.URL}?assignee=me')

        assert [row['article']['id'] for row in response.data['results']] == [str(mine.id)]

    def test_invalid_status_filter(self, client_for, admin_user):
        response = client_for(admin_user).get(f'{self.URL}?status=LOST')

        assert response.status_code == 400
        assert response.data['error']['field'] == 'status'

    def test_invalid_assignee_filter(self, client_for, in_review, admin_user):
        in_review()

        response = client_for(admin_user).get(f'{self.URL}?assignee=abc')

        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert response.data['error']['field'] == 'assignee'

    def test_category_filter_respects_editor_scope(self, client_for, in_review, desk):
        in_review('politics')

        assert client_for(desk).get(f'{self.URL}?category=politics').data['count'] == 0

    def test_closed_reviews_are_hidden(self, client_for, in_review, admin_user):
        in_review(content_status='PUBLISHED', review_status='PUBLISHED')
        in_review(content_status='REJECTED', review_status='REJECTED')

        assert client_for(admin_user).get(self.URL).data['count'] == 0


# ============================================================================
# Desk Stats Tests
# ============================================================================

@pytest.mark.django_db
class TestDeskStats:

    def test_counts(self, client_for, in_review, desk):
        in_review(priority='URGENT')
        in_review(review_status='IN_REVIEW', content_status='IN_REVIEW', reviewer=desk)
        in_review(review_status='ON_HOLD')
        in_review('politics')
        article = in_review(content_status='PUBLISHED', review_status='PUBLISHED')
        article.published_at = timezone.now()
        article.save()

        response = client_for(desk).get('/api/editorial/stats/')

        assert response.status_code == 200
        assert response.data == {
            'pending': 1,
            'in_review': 1,
            'needs_revision': 0,
            'on_hold': 1,
            'approved': 0,
            'urgent': 1,
            'claimed_by_me': 1,
            'published_today': 1,
        }


# ============================================================================
# Rule and Assignment Administration Tests
# ============================================================================

@pytest.mark.django_db
class TestRuleAdministration:

    URL = '/api/editorial/rules/'

    def test_admin_reads_super_admin_writes(self, client_for, admin_user, super_admin):
        payload = {'category': 'Business', 'min_word_count': 300, 'notify_on_submission': ['desk@newsdesk.test']}

        assert client_for(admin_user).post(self.URL, payload, format='json').status_code == 403

        response = client_for(super_admin).post(self.URL, payload, format='json')

        assert response.status_code == 201
        assert response.data['category'] == 'business'
        assert client_for(admin_user).get(self.URL).data['count'] == 1
        entry = ActivityLogEntry.objects.get(action='SETTINGS_CHANGED')
        assert entry.content_id == 'system'
        assert entry.detail.startswith('created publishing rule')

    def test_editors_cannot_read(self, client_for, editor):
        assert client_for(editor).get(self.URL).status_code == 403

    def test_validation(self, client_for, super_admin):
        client = client_for(super_admin)

        response = client.post(self.URL, {'category': 'sports', 'min_word_count': 500, 'max_word_count': 100},
                               format='json')
        assert response.status_code == 400

        response = client.post(self.URL, {'category': 'sports', 'notify_on_submission': ['not-an-email']},
                               format='json')
        assert response.status_code == 400
        assert not PublishingRule.objects.exists()

    def test_update_applies_to_next_submission(self, client_for, make_rule, make_article, super_admin, author):
        rule = make_rule('business', min_word_count=1000)
        article = make_article()
        assert client_for(author).post(action_url(article), {'action': 'SUBMIT'}, format='json').status_code == 400

        client_for(super_admin).patch(f'{self.URL}{rule.id}/', {'min_word_count': 100}, format='json')

        assert client_for(author).post(action_url(article), {'action': 'SUBMIT'}, format='json').status_code == 200


@pytest.mark.django_db
class TestAssignmentAdministration:

    URL = '/api/editorial/assignments/'

    def test_create_and_duplicate(self, client_for, super_admin, editor):
        client = client_for(super_admin)
        payload = {'user': editor.pk, 'category': 'business', 'can_approve': True}

        response = client.post(self.URL, payload, format='json')
        assert response.status_code == 201
        assert response.data['user_name'] == 'Eve Editor'

        response = client.post(self.URL, payload, format='json')
        assert response.status_code == 400
        assert EditorialAssignment.objects.count() == 1

    def test_filters(self, client_for, admin_user, editor, second_editor, assign):
        assign(editor, 'business')
        assign(editor, 'sports')
        assign(second_editor, 'business')
        client = client_for(admin_user)

        assert client.get(f'{self.URL}?user={editor.pk}').data['count'] == 2
        assert client.get(f'{self.URL}?category=Business').data['count'] == 2
        assert client.get(f'{self.URL}?user={editor.pk}&category=sports').data['count'] == 1

    def test_invalid_user_filter(self, client_for, admin_user):
        response = client_for(admin_user).get(f'{self.URL}?user=abc')

        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert 'user' in response.data['error']['details']

    def test_authors_cannot_be_assigned(self, client_for, super_admin, author):
        response = client_for(super_admin).post(self.URL, {'user': author.pk, 'category': 'business'}, format='json')

        assert response.status_code == 400

    def test_removing_assignment_revokes_access(self, client_for, super_admin, in_review, desk):
        article = in_review()
        assignment = EditorialAssignment.objects.get(user=desk)

        client_for(super_admin).delete(f'{self.URL}{assignment.id}/')

        response = client_for(desk).post(action_url(article), {'action': 'START_REVIEW'}, format='json')
        assert response.status_code == 403
        assert ReviewRecord.objects.get(article=article).status == 'PENDING'
