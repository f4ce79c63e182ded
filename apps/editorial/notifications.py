"""
Submission notification emails.
"""

import logging
from typing import Iterable

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def build_submission_email(article, submitted_by: str):
    """Subject and plain-text body for a submission notice."""
    subject = f"[Newsdesk] New submission in {article.category}: {article.title[:80]}"
    review_url = f"{settings.SITE_URL.rstrip('/')}/api/editorial/articles/{article.id}/"
    body = (
        f"{submitted_by} submitted \"{article.title}\" for review.\n\n"
        f"Category: {article.category}\n"
        f"Status: {article.status}\n"
        f"Words: {article.word_count}\n\n"
        f"Review it at {review_url}\n"
    )
    return subject, body


def send_submission_email(article, recipients: Iterable[str], submitted_by: str) -> int:
    """
    Send the notice to every recipient. Returns the number of messages
    accepted by the mail backend; SMTP errors propagate so the task can retry.
    """
    recipients = [r for r in recipients if r]
    if not recipients:
        return 0
    subject, body = build_submission_email(article, submitted_by)
    sent = send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients, fail_silently=False)
    logger.info(f"Submission notice for {article.id} sent to {len(recipients)} recipient(s)")
    return sent
