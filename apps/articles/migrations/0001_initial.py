from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Article',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('title', models.CharField(help_text='Headline', max_length=300, verbose_name='Title')),
                ('body', models.TextField(blank=True, help_text='Article text', verbose_name='Body')),
                ('category', models.CharField(db_index=True, help_text='Category key, e.g. politics or business', max_length=50, verbose_name='Category')),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('PENDING_REVIEW', 'Pending Review'), ('IN_REVIEW', 'In Review'), ('CHANGES_REQUESTED', 'Changes Requested'), ('APPROVED', 'Approved'), ('SCHEDULED', 'Scheduled'), ('PUBLISHED', 'Published'), ('REJECTED', 'Rejected')], db_index=True, default='DRAFT', help_text='Publication status', max_length=20, verbose_name='Status')),
                ('word_count', models.PositiveIntegerField(default=0, help_text='Number of words in the body (derived on save)', verbose_name='Word Count')),
                ('featured_image', models.URLField(blank=True, help_text='URL of the lead image', max_length=1000, verbose_name='Featured Image')),
                ('excerpt', models.TextField(blank=True, help_text='Short summary shown in listings', verbose_name='Excerpt')),
                ('meta_description', models.CharField(blank=True, help_text='Description for search engines', max_length=320, verbose_name='Meta Description')),
                ('tags', models.JSONField(blank=True, default=list, help_text='List of tag strings', verbose_name='Tags')),
                ('scheduled_at', models.DateTimeField(blank=True, db_index=True, help_text='Future publication time for scheduled articles', null=True, verbose_name='Scheduled At')),
                ('published_at', models.DateTimeField(blank=True, db_index=True, help_text='When the article went live', null=True, verbose_name='Published At')),
                ('featured', models.BooleanField(default=False, help_text='Shown on the homepage', verbose_name='Featured')),
                ('version', models.PositiveIntegerField(default=0, help_text='Optimistic lock counter', verbose_name='Version')),
                ('author', models.ForeignKey(help_text='Writer who owns the article', on_delete=django.db.models.deletion.PROTECT, related_name='articles', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
            ],
            options={
                'verbose_name': 'Article',
                'verbose_name_plural': 'Articles',
                'db_table': 'articles',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', 'category'], name='articles_status_cat_idx'), models.Index(fields=['author', 'status'], name='articles_author_status_idx')],
            },
        ),
    ]
