import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


BELT_CHOICES = [
    ('blanco', 'White'), ('blanco-amarillo', 'White / Yellow'), ('amarillo', 'Yellow'),
    ('amarillo-naranja', 'Yellow / Orange'), ('naranja', 'Orange'), ('naranja-verde', 'Orange / Green'),
    ('verde', 'Green'), ('verde-azul', 'Green / Blue'), ('azul', 'Blue'), ('azul-marron', 'Blue / Brown'),
    ('marron', 'Brown'), ('marron-negro', 'Brown / Black'),
    ('negro-1', 'Black 1st Dan'), ('negro-2', 'Black 2nd Dan'), ('negro-3', 'Black 3rd Dan'),
    ('negro-4', 'Black 4th Dan'), ('negro-5', 'Black 5th Dan'), ('negro-6', 'Black 6th Dan'),
    ('negro-7', 'Black 7th Dan'), ('negro-8', 'Black 8th Dan'), ('negro-9', 'Black 9th Dan'),
]

PERCENT_VALIDATORS = [
    django.core.validators.MinValueValidator(0),
    django.core.validators.MaxValueValidator(100),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('students', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Exam',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('exam_type', models.CharField(choices=[('graduation', 'Graduation'), ('technical_evaluation', 'Technical evaluation'), ('semester_evaluation', 'Semester evaluation'), ('other', 'Other')], default='graduation', max_length=30)),
                ('date', models.DateField()),
                ('time', models.TimeField(blank=True, null=True)),
                ('target_belt', models.CharField(blank=True, choices=BELT_CHOICES[1:], help_text='Belt awarded to candidates who graduate', max_length=20)),
                ('required_belt', models.CharField(blank=True, choices=BELT_CHOICES[:-1], help_text='Belt a student must currently hold to enroll', max_length=20)),
                ('min_attendance_percent', models.DecimalField(decimal_places=2, default=Decimal('75.00'), help_text='Minimum share of attended classes (inclusive)', max_digits=5, validators=PERCENT_VALIDATORS)),
                ('min_days_since_belt', models.PositiveIntegerField(default=90, help_text='Minimum days holding the current belt')),
                ('payment_must_be_current', models.BooleanField(default=True)),
                ('fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ('min_passing_score', models.DecimalField(decimal_places=2, default=Decimal('70.00'), max_digits=5, validators=PERCENT_VALIDATORS)),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='scheduled', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('version', models.PositiveIntegerField(default=1)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='exams_created', to=settings.AUTH_USER_MODEL)),
                ('modified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='exams_modified', to=settings.AUTH_USER_MODEL)),
                ('instructors', models.ManyToManyField(blank=True, related_name='exams_instructed', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Exam',
                'verbose_name_plural': 'Exams',
                'ordering': ['-date'],
                'indexes': [
                    models.Index(fields=['status'], name='exam_status_idx'),
                    models.Index(fields=['target_belt'], name='exam_target_belt_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ExamCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50)),
                ('description', models.CharField(blank=True, max_length=200)),
                ('weight', models.DecimalField(decimal_places=2, help_text='Weight percentage (all categories of an exam add up to 100)', max_digits=5, validators=PERCENT_VALIDATORS)),
                ('order', models.PositiveSmallIntegerField(default=0)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='categories', to='examinations.exam')),
            ],
            options={
                'verbose_name': 'Exam Category',
                'verbose_name_plural': 'Exam Categories',
                'ordering': ['order', 'id'],
                'unique_together': {('exam', 'name')},
            },
        ),
        migrations.CreateModel(
            name='ExamCandidate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('enrolled_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('discount_percent', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5, validators=PERCENT_VALIDATORS)),
                ('amount_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('paid', models.BooleanField(default=False)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('payment_reference', models.CharField(blank=True, max_length=200)),
                ('payment_waived', models.BooleanField(default=False)),
                ('waiver_reason', models.CharField(blank=True, max_length=200)),
                ('attendance_percentage', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5)),
                ('meets_attendance', models.BooleanField(default=False)),
                ('days_with_belt', models.IntegerField(default=0)),
                ('meets_belt_tenure', models.BooleanField(default=False)),
                ('meets_payment', models.BooleanField(default=False)),
                ('eligibility_checked_at', models.DateTimeField(blank=True, null=True)),
                ('graded', models.BooleanField(default=False)),
                ('passed', models.BooleanField(default=False)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='candidates', to='examinations.exam')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='exam_enrollments', to='students.student')),
                ('waived_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='exam_waivers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Exam Candidate',
                'verbose_name_plural': 'Exam Candidates',
                'ordering': ['enrolled_at', 'id'],
                'constraints': [models.UniqueConstraint(fields=('exam', 'student'), name='unique_exam_candidate')],
            },
        ),
    ]
