import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academics', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Term',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150)),
                ('year', models.PositiveIntegerField(db_index=True)),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('status', models.CharField(choices=[('START', 'Start of year'), ('END', 'End of year')], max_length=8)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('departments', models.ManyToManyField(blank=True, related_name='terms', to='academics.department')),
            ],
            options={'ordering': ('-year', 'status', 'name')},
        ),
        migrations.CreateModel(
            name='TermState',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('year', models.PositiveIntegerField()),
                ('active_term', models.CharField(choices=[('START', 'Start of year'), ('END', 'End of year')], default='START', max_length=8)),
                ('visibility', models.CharField(choices=[('DRAFT', 'Draft'), ('PUBLISHED', 'Published'), ('COMPLETE', 'Complete')], default='DRAFT', max_length=16)),
                ('start_term_visibility', models.CharField(choices=[('DRAFT', 'Draft'), ('PUBLISHED', 'Published'), ('COMPLETE', 'Complete')], default='DRAFT', max_length=16)),
                ('end_term_visibility', models.CharField(choices=[('DRAFT', 'Draft'), ('PUBLISHED', 'Published'), ('COMPLETE', 'Complete')], default='DRAFT', max_length=16)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='term_states', to='academics.department')),
            ],
            options={
                'verbose_name': 'Term State',
                'verbose_name_plural': 'Term States',
            },
        ),
        migrations.AddConstraint(
            model_name='termstate',
            constraint=models.UniqueConstraint(fields=('department', 'year'), name='uniq_termstate_department_year'),
        ),
    ]
