"""
Shared pytest fixtures for Newsdesk.

Users are created with a StaffProfile role; articles, rules and
assignments through small factories so each test states only what it
cares about.
"""

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.core.actors import Actor, Role

WORDS_300 = ' '.join(['word'] * 300)


@pytest.fixture(autouse=True)
def clear_cache():
    """Rule and assignment lookups are cached; start every test cold."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    User = get_user_model()
    counter = {'n': 0}

    def _make(username=None, role=Role.AUTHOR, **extra):
        counter['n'] += 1
        username = username or f"user{counter['n']}"
        user = User.objects.create_user(
            username=username,
            email=f"{username}@newsdesk.test",
            password='pass12345',
            **extra,
        )
        profile = user.staff_profile
        profile.role = Role(role).value
        profile.save()
        return user

    return _make


@pytest.fixture
def author(make_user):
    return make_user('author', role=Role.AUTHOR, first_name='Ada', last_name='Writer')


@pytest.fixture
def other_author(make_user):
    return make_user('other_author', role=Role.AUTHOR)


@pytest.fixture
def senior_writer(make_user):
    return make_user('senior', role=Role.SENIOR_WRITER)


@pytest.fixture
def editor(make_user):
    return make_user('editor', role=Role.EDITOR, first_name='Eve', last_name='Editor')


@pytest.fixture
def second_editor(make_user):
    return make_user('editor2', role=Role.EDITOR)


@pytest.fixture
def admin_user(make_user):
    return make_user('admin', role=Role.ADMIN)


@pytest.fixture
def super_admin(make_user):
    return make_user('root', role=Role.SUPER_ADMIN)


@pytest.fixture
def actor_for():
    return Actor.from_user


@pytest.fixture
def make_article(db, author):
    from apps.articles.models import Article

    def _make(author=author, category='business', body=WORDS_300, status='DRAFT', **fields):
        return Article.objects.create(
            title=fields.pop('title', 'Quarterly earnings beat expectations'),
            author=author,
            category=category,
            body=body,
            status=status,
            **fields,
        )

    return _make


@pytest.fixture
def make_rule(db):
    from apps.editorial.models import PublishingRule

    def _make(category='business', **fields):
        return PublishingRule.objects.create(category=category, **fields)

    return _make


@pytest.fixture
def assign(db):
    from apps.editorial.models import EditorialAssignment

    def _assign(user, category='business', can_approve=False, can_publish=False):
        return EditorialAssignment.objects.create(
            user=user, category=category, can_approve=can_approve, can_publish=can_publish,
        )

    return _assign


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def _login(user):
        api_client.force_authenticate(user=user)
        return api_client

    return _login
