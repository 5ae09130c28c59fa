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
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, choices=[('M', 'Male'), ('F', 'Female')], max_length=1)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('student_code', models.CharField(help_text='Unique student ID', max_length=50, unique=True)),
                ('belt_level', models.CharField(choices=BELT_CHOICES, default='blanco', max_length=20)),
                ('belt_date_obtained', models.DateField(blank=True, help_text='Date the current belt was obtained (tenure is counted from here)', null=True)),
                ('graduation_tests_passed', models.PositiveIntegerField(default=0)),
                ('graduation_tests_failed', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('suspended', 'Suspended'), ('graduated', 'Graduated')], default='active', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('belt_certified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='certified_students', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Student',
                'verbose_name_plural': 'Students',
                'ordering': ['last_name', 'first_name'],
                'indexes': [models.Index(fields=['belt_level'], name='student_belt_idx')],
            },
        ),
    ]
