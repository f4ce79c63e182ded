"""
Publishing rule evaluation.

Every violation is collected so the author gets the full correction
list in one response.
"""

from typing import List, Optional


def validate_against_rule(article, rule) -> List[str]:
    """
    Check an article against its category's PublishingRule.

    Args:
        article: apps.articles.models.Article
        rule: PublishingRule, or None when the category has no rule

    Returns:
        Violation messages, empty when the article passes
    """
    if rule is None:
        return []

    violations = []
    word_count = article.word_count

    if rule.min_word_count and word_count < rule.min_word_count:
        violations.append(f"Minimum word count is {rule.min_word_count}. Current: {word_count}")

    if rule.max_word_count is not None and word_count > rule.max_word_count:
        violations.append(f"Maximum word count is {rule.max_word_count}. Current: {word_count}")

    if rule.requires_featured_image and not _present(article.featured_image):
        violations.append("Featured image is required")

    if rule.requires_excerpt and not _present(article.excerpt):
        violations.append("Excerpt is required")

    if rule.requires_meta_description and not _present(article.meta_description):
        violations.append("Meta description is required")

    if rule.required_tag_count and article.tag_count < rule.required_tag_count:
        violations.append(f"At least {rule.required_tag_count} tags are required")

    return violations


def _present(value: Optional[str]) -> bool:
    return bool((value or '').strip())
