from django.db import migrations, models
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ActivityLogEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID)', primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('content_id', models.CharField(db_index=True, help_text='Article id, or "system" for system-level events', max_length=64, verbose_name='Content ID')),
                ('actor_id', models.CharField(db_index=True, help_text='Id of the user who acted', max_length=64, verbose_name='Actor ID')),
                ('actor_name', models.CharField(help_text='Display name at the time of the action', max_length=200, verbose_name='Actor Name')),
                ('actor_role', models.CharField(help_text='Role at the time of the action', max_length=20, verbose_name='Actor Role')),
                ('action', models.CharField(db_index=True, help_text='What happened, e.g. SUBMITTED or PUBLISH_DENIED', max_length=40, verbose_name='Action')),
                ('detail', models.TextField(blank=True, help_text='Human readable description', verbose_name='Detail')),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Structured context (statuses, error codes, violations)', verbose_name='Metadata')),
            ],
            options={
                'verbose_name': 'Activity Log Entry',
                'verbose_name_plural': 'Activity Log',
                'db_table': 'activity_log',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['content_id', 'created_at'], name='activity_content_idx'), models.Index(fields=['actor_id', 'created_at'], name='activity_actor_idx'), models.Index(fields=['action', 'created_at'], name='activity_action_idx')],
            },
        ),
    ]
