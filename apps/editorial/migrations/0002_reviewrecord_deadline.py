from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('editorial', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='reviewrecord',
            name='deadline',
            field=models.DateTimeField(blank=True, help_text='When the review decision is due', null=True, verbose_name='Deadline'),
        ),
    ]
