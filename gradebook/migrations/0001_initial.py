import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


PERCENT_VALIDATORS = [
    django.core.validators.MinValueValidator(0),
    django.core.validators.MaxValueValidator(100),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('examinations', '0001_initial'),
        ('students', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Grade',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('final_score', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Weighted score over all categories', max_digits=5, validators=PERCENT_VALIDATORS)),
                ('result', models.CharField(choices=[('pass', 'Pass'), ('fail', 'Fail'), ('pending', 'Pending')], default='pending', max_length=10)),
                ('min_passing_score', models.DecimalField(decimal_places=2, default=Decimal('70.00'), help_text="Snapshot of the exam's passing score when the grade was finalized", max_digits=5, validators=PERCENT_VALIDATORS)),
                ('state', models.CharField(choices=[('draft', 'Draft'), ('finalized', 'Finalized'), ('reviewed', 'Reviewed')], default='draft', max_length=10)),
                ('evaluated_at', models.DateTimeField(blank=True, null=True)),
                ('general_remarks', models.TextField(blank=True)),
                ('strengths', models.JSONField(blank=True, default=list)),
                ('areas_for_improvement', models.JSONField(blank=True, default=list)),
                ('distinction', models.CharField(blank=True, max_length=200)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('review_comments', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('evaluated_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='grades_evaluated', to=settings.AUTH_USER_MODEL)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='grades', to='examinations.exam')),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='grades_reviewed', to=settings.AUTH_USER_MODEL)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='exam_grades', to='students.student')),
            ],
            options={
                'verbose_name': 'Grade',
                'verbose_name_plural': 'Grades',
                'db_table': 'exam_grade',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['exam', 'state'], name='grade_exam_state_idx'),
                    models.Index(fields=['student', 'result'], name='grade_student_result_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('exam', 'student'), name='unique_active_grade_per_exam_student'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CategoryScore',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(max_length=50)),
                ('score', models.DecimalField(decimal_places=2, max_digits=5, validators=PERCENT_VALIDATORS)),
                ('weight', models.DecimalField(decimal_places=2, max_digits=5, validators=PERCENT_VALIDATORS)),
                ('notes', models.CharField(blank=True, max_length=300)),
                ('position', models.PositiveSmallIntegerField(default=0)),
                ('grade', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='category_scores', to='gradebook.grade')),
            ],
            options={
                'db_table': 'exam_category_score',
                'ordering': ['position', 'id'],
                'unique_together': {('grade', 'category')},
            },
        ),
    ]
