import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


TERM_CHOICES = [('START', 'Start of year'), ('END', 'End of year')]
STATUS_CHOICES = [('PROMOTED', 'Promoted'), ('ON_HOLD', 'On hold'), ('NEEDS_IMPROVEMENT', 'Needs improvement')]


def _record_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('term', models.CharField(choices=TERM_CHOICES, max_length=8)),
        ('year', models.PositiveIntegerField()),
        ('submitted', models.BooleanField(default=False)),
        ('version', models.PositiveIntegerField(default=1)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('reviewer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='HodReview',
            fields=_record_fields() + [
                ('comments', models.TextField(blank=True)),
                ('scores', models.JSONField(blank=True, default=dict)),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='hod_reviews_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={'verbose_name': 'HOD Review', 'verbose_name_plural': 'HOD Reviews'},
        ),
        migrations.AddConstraint(
            model_name='hodreview',
            constraint=models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_hod_review'),
        ),
        migrations.CreateModel(
            name='AsstReview',
            fields=_record_fields() + [
                ('comments', models.TextField(blank=True)),
                ('scores', models.JSONField(blank=True, default=dict)),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='asst_reviews_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={'verbose_name': 'Assistant Dean Review', 'verbose_name_plural': 'Assistant Dean Reviews'},
        ),
        migrations.AddConstraint(
            model_name='asstreview',
            constraint=models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_asst_review'),
        ),
        migrations.CreateModel(
            name='FinalReview',
            fields=_record_fields() + [
                ('status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=24, null=True)),
                ('final_score', models.FloatField(blank=True, null=True)),
                ('final_comment', models.TextField(blank=True)),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='final_reviews_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={'verbose_name': 'Final Review', 'verbose_name_plural': 'Final Reviews'},
        ),
        migrations.AddConstraint(
            model_name='finalreview',
            constraint=models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_final_review'),
        ),
        migrations.CreateModel(
            name='HodPerformanceReview',
            fields=_record_fields() + [
                ('reviewer_role', models.CharField(choices=[('ASST_DEAN', 'Assistant Dean'), ('DEAN', 'Dean')], max_length=16)),
                ('comments', models.TextField(blank=True)),
                ('scores', models.JSONField(blank=True, default=dict)),
                ('total_score', models.FloatField(blank=True, null=True)),
                ('status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=24, null=True)),
                ('hod', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='hod_performance_reviews', to=settings.AUTH_USER_MODEL)),
            ],
            options={'verbose_name': 'HOD Performance Review', 'verbose_name_plural': 'HOD Performance Reviews'},
        ),
        migrations.AddConstraint(
            model_name='hodperformancereview',
            constraint=models.UniqueConstraint(fields=('hod', 'term', 'year', 'reviewer_role'), name='uniq_hod_performance_review'),
        ),
    ]
