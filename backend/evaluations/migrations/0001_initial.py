import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


TERM_CHOICES = [('START', 'Start of year'), ('END', 'End of year')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academics', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('term', models.CharField(choices=TERM_CHOICES, max_length=8)),
                ('year', models.PositiveIntegerField()),
                ('question', models.TextField()),
                ('type', models.CharField(choices=[('TEXT', 'Short text'), ('TEXTAREA', 'Long text'), ('MCQ', 'Single choice'), ('CHECKBOX', 'Multiple choice')], default='TEXT', max_length=16)),
                ('options', models.JSONField(blank=True, default=list)),
                ('option_scores', models.JSONField(blank=True, default=list)),
                ('order', models.PositiveIntegerField()),
                ('is_active', models.BooleanField(default=True)),
                ('is_published', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='authored_questions', to=settings.AUTH_USER_MODEL)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='academics.department')),
            ],
            options={'ordering': ('department', 'year', 'term', 'order')},
        ),
        migrations.AddConstraint(
            model_name='question',
            constraint=models.UniqueConstraint(fields=('department', 'term', 'year', 'order'), name='uniq_question_slot'),
        ),
        migrations.CreateModel(
            name='TeacherAnswer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('term', models.CharField(choices=TERM_CHOICES, max_length=8)),
                ('year', models.PositiveIntegerField()),
                ('answer', models.JSONField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='answers', to='evaluations.question')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='evaluation_answers', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddConstraint(
            model_name='teacheranswer',
            constraint=models.UniqueConstraint(fields=('teacher', 'question', 'term', 'year'), name='uniq_teacher_answer'),
        ),
        migrations.CreateModel(
            name='SelfComment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('term', models.CharField(choices=TERM_CHOICES, max_length=8)),
                ('year', models.PositiveIntegerField()),
                ('comment', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='self_comments', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddConstraint(
            model_name='selfcomment',
            constraint=models.UniqueConstraint(fields=('teacher', 'term', 'year'), name='uniq_self_comment'),
        ),
    ]
