from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('articles', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PublishingRule',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('category', models.CharField(help_text='Category key the rule applies to', max_length=50, unique=True, verbose_name='Category')),
                ('min_word_count', models.PositiveIntegerField(default=0, verbose_name='Minimum Word Count')),
                ('max_word_count', models.PositiveIntegerField(blank=True, help_text='Leave empty for no upper bound', null=True, verbose_name='Maximum Word Count')),
                ('requires_featured_image', models.BooleanField(default=False, verbose_name='Requires Featured Image')),
                ('requires_excerpt', models.BooleanField(default=False, verbose_name='Requires Excerpt')),
                ('requires_meta_description', models.BooleanField(default=False, verbose_name='Requires Meta Description')),
                ('required_tag_count', models.PositiveIntegerField(default=0, help_text='Minimum number of tags', verbose_name='Required Tags')),
                ('auto_publish_trusted', models.BooleanField(default=False, help_text='Submissions by senior writers skip review and are approved', verbose_name='Auto-approve Senior Writers')),
                ('notify_on_submission', models.JSONField(blank=True, default=list, help_text='Email addresses notified when an article is submitted', verbose_name='Notify On Submission')),
            ],
            options={
                'verbose_name': 'Publishing Rule',
                'verbose_name_plural': 'Publishing Rules',
                'db_table': 'publishing_rules',
                'ordering': ['category'],
            },
        ),
        migrations.CreateModel(
            name='EditorialAssignment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('category', models.CharField(db_index=True, max_length=50, verbose_name='Category')),
                ('can_approve', models.BooleanField(default=False, verbose_name='Can Approve')),
                ('can_publish', models.BooleanField(default=False, verbose_name='Can Publish')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='editorial_assignments', to=settings.AUTH_USER_MODEL, verbose_name='Editor')),
            ],
            options={
                'verbose_name': 'Editorial Assignment',
                'verbose_name_plural': 'Editorial Assignments',
                'db_table': 'editorial_assignments',
                'ordering': ['category', 'created_at'],
                'constraints': [models.UniqueConstraint(fields=('user', 'category'), name='unique_assignment_per_category')],
            },
        ),
        migrations.CreateModel(
            name='ReviewRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('ASSIGNED', 'Assigned'), ('IN_REVIEW', 'In Review'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('CHANGES_REQUESTED', 'Changes Requested'), ('ON_HOLD', 'On Hold'), ('PUBLISHED', 'Published')], db_index=True, default='PENDING', max_length=20, verbose_name='Status')),
                ('priority', models.CharField(choices=[('LOW', 'Low'), ('NORMAL', 'Normal'), ('HIGH', 'High'), ('URGENT', 'Urgent')], db_index=True, default='NORMAL', max_length=10, verbose_name='Priority')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('submitted_at', models.DateTimeField(blank=True, null=True, verbose_name='Submitted At')),
                ('assigned_at', models.DateTimeField(blank=True, null=True, verbose_name='Assigned At')),
                ('reviewed_at', models.DateTimeField(blank=True, null=True, verbose_name='Reviewed At')),
                ('published_at', models.DateTimeField(blank=True, null=True, verbose_name='Published At')),
                ('article', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='articles.article', verbose_name='Article')),
                ('reviewer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviews_assigned', to=settings.AUTH_USER_MODEL, verbose_name='Reviewer')),
            ],
            options={
                'verbose_name': 'Review Record',
                'verbose_name_plural': 'Review Records',
                'db_table': 'review_records',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'priority'], name='review_status_priority_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status__in', ['PUBLISHED', 'REJECTED']), _negated=True), fields=('article',), name='one_open_review_per_article')],
            },
        ),
        migrations.CreateModel(
            name='FeedbackEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('author_id', models.CharField(max_length=64, verbose_name='Author ID')),
                ('author_name', models.CharField(max_length=200, verbose_name='Author Name')),
                ('author_role', models.CharField(max_length=20, verbose_name='Author Role')),
                ('type', models.CharField(choices=[('REVISION_REQUEST', 'Revision Request'), ('REJECTION', 'Rejection'), ('APPROVAL', 'Approval'), ('COMMENT', 'Comment'), ('SUGGESTION', 'Suggestion')], db_index=True, max_length=20, verbose_name='Type')),
                ('content', models.TextField(verbose_name='Content')),
                ('is_internal', models.BooleanField(default=False, help_text='Hidden from the author', verbose_name='Internal')),
                ('review', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='feedback', to='editorial.reviewrecord', verbose_name='Review')),
            ],
            options={
                'verbose_name': 'Feedback Entry',
                'verbose_name_plural': 'Feedback Entries',
                'db_table': 'review_feedback',
                'ordering': ['created_at'],
            },
        ),
    ]
