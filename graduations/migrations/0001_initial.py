import uuid

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


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('examinations', '0001_initial'),
        ('gradebook', '0001_initial'),
        ('students', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Graduation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('previous_belt', models.CharField(choices=BELT_CHOICES, max_length=20)),
                ('new_belt', models.CharField(choices=BELT_CHOICES, max_length=20)),
                ('graduation_date', models.DateField(default=django.utils.timezone.localdate)),
                ('certificate_number', models.CharField(blank=True, help_text='e.g. CERT-2024-06-K3X9QZ', max_length=40, null=True, unique=True)),
                ('certificate_file', models.CharField(blank=True, help_text='Stored file reference', max_length=500)),
                ('certificate_file_type', models.CharField(blank=True, choices=[('pdf', 'PDF'), ('jpg', 'JPG'), ('jpeg', 'JPEG'), ('png', 'PNG')], max_length=4)),
                ('certificate_file_size', models.PositiveIntegerField(blank=True, null=True)),
                ('certificate_issued_at', models.DateField(blank=True, null=True)),
                ('certificate_issued_by', models.CharField(blank=True, help_text='Issuing institution', max_length=200)),
                ('certificate_notes', models.TextField(blank=True)),
                ('state', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('certified', 'Certified'), ('cancelled', 'Cancelled')], default='pending', max_length=10)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('student_updated', models.BooleanField(default=False)),
                ('student_updated_at', models.DateTimeField(blank=True, null=True)),
                ('ceremony_held', models.BooleanField(default=False)),
                ('ceremony_date', models.DateField(blank=True, null=True)),
                ('ceremony_location', models.CharField(blank=True, max_length=200)),
                ('ceremony_attendees', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='graduations_approved', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='graduations_created', to=settings.AUTH_USER_MODEL)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='graduations', to='examinations.exam')),
                ('grade', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='graduations', to='gradebook.grade')),
                ('modified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='graduations_modified', to=settings.AUTH_USER_MODEL)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='graduations', to='students.student')),
            ],
            options={
                'verbose_name': 'Graduation',
                'verbose_name_plural': 'Graduations',
                'db_table': 'graduation',
                'ordering': ['-graduation_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GraduationCertifier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('position', models.PositiveSmallIntegerField(default=0)),
                ('graduation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='certifier_links', to='graduations.graduation')),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='graduation_certifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'graduation_certifier',
                'ordering': ['position', 'id'],
                'unique_together': {('graduation', 'instructor')},
            },
        ),
        migrations.AddField(
            model_name='graduation',
            name='certifiers',
            field=models.ManyToManyField(blank=True, related_name='graduations_certified', through='graduations.GraduationCertifier', to=settings.AUTH_USER_MODEL),
        ),
        migrations.AddIndex(
            model_name='graduation',
            index=models.Index(fields=['state'], name='graduation_state_idx'),
        ),
        migrations.AddIndex(
            model_name='graduation',
            index=models.Index(fields=['student', 'graduation_date'], name='graduation_student_date_idx'),
        ),
        migrations.AddIndex(
            model_name='graduation',
            index=models.Index(fields=['student_updated', 'state'], name='graduation_pending_idx'),
        ),
        migrations.AddConstraint(
            model_name='graduation',
            constraint=models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('exam', 'student'), name='unique_active_graduation_per_exam_student'),
        ),
    ]
