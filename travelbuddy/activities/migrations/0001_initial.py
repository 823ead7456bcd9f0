from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import travelbuddy.activities.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Activity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('location', models.CharField(max_length=255)),
                ('time', models.DateTimeField()),
                ('category', models.CharField(choices=[('dinner', 'Dinner'), ('hiking', 'Hiking'), ('coworking', 'Co-working'), ('sightseeing', 'Sightseeing'), ('sports', 'Sports'), ('cultural', 'Cultural'), ('nightlife', 'Nightlife'), ('outdoor', 'Outdoor'), ('indoor', 'Indoor'), ('other', 'Other')], max_length=20)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('participant_limit', models.PositiveIntegerField(default=travelbuddy.activities.models.default_participant_limit, validators=[django.core.validators.MinValueValidator(1)])),
                ('reminder_sent_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('creator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='created_activities', to=settings.AUTH_USER_MODEL)),
                ('participants', models.ManyToManyField(blank=True, related_name='joined_activities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'activities',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['time'], name='activities_time_idx'),
                    models.Index(fields=['category'], name='activities_category_idx'),
                ],
            },
        ),
    ]
