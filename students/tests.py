from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone

from .models import Student


class StudentModelTest(TestCase):
    """Tests for the Student model."""

    def setUp(self):
        self.student = Student.objects.create(
            first_name='Ana',
            last_name='Lopez',
            student_code='S001',
            belt_level='amarillo',
            belt_date_obtained=date(2025, 1, 1),
        )

    def test_defaults(self):
        student = Student.objects.create(first_name='Luis', last_name='Diaz', student_code='S002')
        self.assertEqual(student.belt_level, 'blanco')
        self.assertEqual(student.status, Student.Status.ACTIVE)
        self.assertEqual(student.graduation_tests_passed, 0)
        self.assertTrue(student.is_active)

    def test_full_name_and_str(self):
        self.assertEqual(self.student.full_name, 'Ana Lopez')
        self.assertEqual(str(self.student), 'Ana Lopez (S001)')

    def test_days_with_belt(self):
        self.assertEqual(self.student.days_with_belt(date(2025, 4, 1)), 90)
        self.assertEqual(self.student.days_with_belt(date(2025, 1, 1)), 0)

    def test_belt_since_falls_back_to_created_at(self):
        self.student.belt_date_obtained = None
        self.student.created_at = timezone.now() - timedelta(days=30)
        self.assertEqual(self.student.belt_since, timezone.localdate(self.student.created_at))
        self.assertEqual(self.student.days_with_belt(), 30)
