"""
Celery tasks for the editorial desk.
"""

import logging

from celery import shared_task
from django.utils import timezone

from apps.articles.models import Article
from apps.articles.state_machine import ContentStatus
from apps.core.actors import Actor
from apps.core.metrics import increment_articles_released, increment_notification
from apps.editorial.commands import Release
from apps.editorial.notifications import send_submission_email

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def notify_submission(self, article_id: str, recipients, submitted_by: str = ''):
    """Email the category's notification list about a new submission."""
    try:
        article = Article.objects.get(id=article_id)
    except Article.DoesNotExist:
        logger.error("Article %s not found for submission notice", article_id)
        increment_notification('failed')
        return {"error": "not_found", "article_id": article_id}

    try:
        sent = send_submission_email(article, recipients, submitted_by)
    except Exception as exc:
        logger.error("Submission notice for %s failed: %s", article_id, exc)
        if self.request.retries >= self.max_retries:
            increment_notification('failed')
            return {"error": "send_failed", "article_id": article_id}
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    increment_notification('sent')
    return {"article_id": str(article.id), "sent": sent}


@shared_task
def release_scheduled_articles():
    """
    Publish SCHEDULED articles whose time has come.

    Runs every minute from Celery beat. Each article is released through
    the workflow engine as the system actor so the change is versioned and
    logged like any other.
    """
    from apps.editorial.engine import WorkflowEngine

    engine = WorkflowEngine()
    actor = Actor.system()
    due = list(
        Article.objects.filter(status=ContentStatus.SCHEDULED.value, scheduled_at__lte=timezone.now())
        .order_by('scheduled_at')
        .values_list('id', flat=True)
    )

    released, skipped = [], []
    for article_id in due:
        result = engine.execute(actor, article_id, Release())
        if result.ok:
            released.append(str(article_id))
        else:
            skipped.append(str(article_id))
            logger.warning(
                "Release of %s skipped: %s %s",
                article_id, result.rejection.code.value, result.rejection.message,
            )

    increment_articles_released(len(released))
    if released:
        logger.info("Released %d scheduled article(s)", len(released))
    return {"released": released, "skipped": skipped}
