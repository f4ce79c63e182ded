"""
Tests for article drafts.

Tests cover:
- Content status transitions
- Author create, edit and delete through ArticleService
- Article API visibility and read-only workflow fields
"""

from unittest.mock import patch

import pytest
from django.db import OperationalError

from apps.articles.models import Article, count_words
from apps.articles.services import ArticleService
from apps.articles.state_machine import ContentStateMachine, ContentStatus, TransitionError
from apps.audit.models import ActivityLogEntry
from apps.core.actors import Actor
from apps.core.exceptions import (
    ConflictError,
    DependencyError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)


# ============================================================================
# State Machine Tests
# ============================================================================

class TestContentStateMachine:
    """Valid and invalid content status edges."""

    def _machine(self, status):
        return ContentStateMachine(type('A', (), {'status': status})())

    @pytest.mark.parametrize('current,target', [
        ('DRAFT', ContentStatus.PENDING_REVIEW),
        ('DRAFT', ContentStatus.APPROVED),
        ('PENDING_REVIEW', ContentStatus.IN_REVIEW),
        ('IN_REVIEW', ContentStatus.CHANGES_REQUESTED),
        ('CHANGES_REQUESTED', ContentStatus.PENDING_REVIEW),
        ('APPROVED', ContentStatus.SCHEDULED),
        ('SCHEDULED', ContentStatus.PUBLISHED),
        ('PUBLISHED', ContentStatus.APPROVED),
    ])
    def test_valid_edges(self, current, target):
        assert self._machine(current).check_transition(target) == target

    @pytest.mark.parametrize('current,target', [
        ('DRAFT', ContentStatus.PUBLISHED),
        ('PENDING_REVIEW', ContentStatus.PUBLISHED),
        ('REJECTED', ContentStatus.PENDING_REVIEW),
        ('PUBLISHED', ContentStatus.DRAFT),
    ])
    def test_invalid_edges(self, current, target):
        with pytest.raises(TransitionError) as exc_info:
            self._machine(current).check_transition(target)

        assert f"from {current} to {target.value}" in str(exc_info.value)

    def test_staying_put_is_allowed(self):
        assert self._machine('IN_REVIEW').can_transition_to(ContentStatus.IN_REVIEW)

    def test_string_targets(self):
        assert self._machine('APPROVED').check_transition('PUBLISHED') == ContentStatus.PUBLISHED

    def test_status_properties(self):
        assert ContentStatus.REJECTED.is_terminal
        assert ContentStatus.CHANGES_REQUESTED.is_editable
        assert not ContentStatus.PENDING_REVIEW.is_editable
        assert ContentStatus.IN_REVIEW.is_under_review


def test_count_words():
    assert count_words('  one two\nthree\tfour ') == 4
    assert count_words('') == 0
    assert count_words(None) == 0


# ============================================================================
# Service Tests
# ============================================================================

@pytest.mark.django_db
class TestArticleService:

    def test_create_ignores_workflow_fields(self, author):
        actor = Actor.from_user(author)

        article = ArticleService.create(actor, author, {
            'title': 'Port strike ends',
            'body': 'Dockworkers returned on Monday',
            'category': 'business',
            'status': 'PUBLISHED',
            'version': 9,
        })

        assert article.status == 'DRAFT'
        assert article.version == 0
        assert article.word_count == 4
        entry = ActivityLogEntry.objects.get(action='POST_CREATED')
        assert entry.content_id == str(article.id)
        assert entry.detail == 'created "Port strike ends"'

    def test_update_bumps_version(self, make_article, author):
        article = make_article()

        updated = ArticleService.update(Actor.from_user(author), article.id, {'body': 'much shorter now'})

        assert updated.version == 1
        assert updated.word_count == 3
        entry = ActivityLogEntry.objects.get(action='POST_UPDATED')
        assert entry.metadata == {'fields': ['body'], 'version': 1}

    def test_update_with_stale_version(self, make_article, author):
        article = make_article()
        actor = Actor.from_user(author)
        ArticleService.update(actor, article.id, {'title': 'First'}, expected_version=0)

        with pytest.raises(ConflictError):
            ArticleService.update(actor, article.id, {'title': 'Second'}, expected_version=0)

        article.refresh_from_db()
        assert article.title == 'First'

    def test_only_author_edits(self, make_article, editor):
        article = make_article()

        with pytest.raises(PermissionDeniedError):
            ArticleService.update(Actor.from_user(editor), article.id, {'title': 'Edited'})

    @pytest.mark.parametrize('status', ['PENDING_REVIEW', 'IN_REVIEW', 'APPROVED', 'PUBLISHED', 'REJECTED'])
    def test_locked_while_not_editable(self, make_article, author, status):
        article = make_article(status=status)

        with pytest.raises(InvalidTransitionError):
            ArticleService.update(Actor.from_user(author), article.id, {'title': 'Edited'})

    def test_edit_after_changes_requested(self, make_article, author):
        article = make_article(status='CHANGES_REQUESTED')

        updated = ArticleService.update(Actor.from_user(author), article.id, {'excerpt': 'Now with excerpt'})

        assert updated.excerpt == 'Now with excerpt'
        assert updated.status == 'CHANGES_REQUESTED'

    def test_delete_draft_only(self, make_article, author):
        actor = Actor.from_user(author)
        submitted = make_article(status='PENDING_REVIEW')
        draft = make_article()

        with pytest.raises(InvalidTransitionError):
            ArticleService.delete(actor, submitted.id)

        ArticleService.delete(actor, draft.id)

        assert not Article.objects.filter(pk=draft.pk).exists()
        assert ActivityLogEntry.objects.filter(action='POST_DELETED', content_id=str(draft.id)).exists()

    def test_delete_missing(self, author):
        import uuid

        with pytest.raises(NotFoundError):
            ArticleService.delete(Actor.from_user(author), uuid.uuid4())

    def test_database_failure(self, make_article, author):
        article = make_article()

        with patch.object(Article.objects, 'select_for_update', side_effect=OperationalError('gone')):
            with pytest.raises(DependencyError):
                ArticleService.update(Actor.from_user(author), article.id, {'title': 'x'})


# ============================================================================
# API Tests
# ============================================================================

@pytest.mark.django_db
class TestArticleAPI:

    URL = '/api/articles/'

    def test_create_draft(self, client_for, author):
        response = client_for(author).post(self.URL, {
            'title': 'City budget passes',
            'body': 'The council voted seven to two',
            'category': ' Politics ',
            'tags': ['budget', 'council', 'budget', ' '],
            'status': 'PUBLISHED',
        }, format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'DRAFT'
        assert response.data['category'] == 'politics'
        assert response.data['tags'] == ['budget', 'council']
        assert response.data['author_name'] == 'Ada Writer'

    def test_authors_only_see_their_own(self, client_for, make_article, author, other_author):
        mine = make_article()
        make_article(author=other_author)

        response = client_for(author).get(self.URL)

        assert [row['id'] for row in response.data['results']] == [str(mine.id)]

    def test_desk_sees_all_and_filters(self, client_for, make_article, author, editor):
        make_article(status='PENDING_REVIEW')
        make_article(category='sports')
        make_article(author=editor)
        client = client_for(editor)

        assert client.get(self.URL).data['count'] == 3
        assert client.get(f'{self.URL}?status=pending_review').data['count'] == 1
        assert client.get(f'{self.URL}?category=sports').data['count'] == 1
        assert client.get(f'{self.URL}?mine=true').data['count'] == 1

    def test_patch_with_expected_version(self, client_for, make_article, author):
        article = make_article()
        client = client_for(author)

        response = client.patch(f'{self.URL}{article.id}/', {'title': 'Updated', 'expected_version': 0}, format='json')
        assert response.status_code == 200
        assert response.data['version'] == 1

        response = client.patch(f'{self.URL}{article.id}/', {'title': 'Again', 'expected_version': 0}, format='json')
        assert response.status_code == 409
        assert response.data['error']['code'] == 'CONFLICT'

    def test_patch_submitted_article(self, client_for, make_article, author):
        article = make_article(status='PENDING_REVIEW')

        response = client_for(author).patch(f'{self.URL}{article.id}/', {'title': 'Sneaky'}, format='json')

        assert response.status_code == 409
        assert response.data['error']['code'] == 'INVALID_TRANSITION'

    def test_other_author_gets_404(self, client_for, make_article, other_author):
        article = make_article()

        response = client_for(other_author).delete(f'{self.URL}{article.id}/')

        assert response.status_code == 404
        assert Article.objects.filter(pk=article.pk).exists()

    def test_delete(self, client_for, make_article, author):
        article = make_article()

        assert client_for(author).delete(f'{self.URL}{article.id}/').status_code == 204
