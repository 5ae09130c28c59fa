from datetime import date

from django.test import TestCase

from students.models import Student

from .models import AttendanceRecord


class AttendanceRecordTest(TestCase):

    def setUp(self):
        self.student = Student.objects.create(first_name='Ana', last_name='Lopez', student_code='S001')

    def test_default_status_is_absent(self):
        record = AttendanceRecord.objects.create(student=self.student, date=date(2025, 3, 4))
        self.assertEqual(record.status, AttendanceRecord.Status.ABSENT)
        self.assertIn('Absent', str(record))

    def test_newest_first(self):
        AttendanceRecord.objects.create(student=self.student, date=date(2025, 3, 4))
        AttendanceRecord.objects.create(student=self.student, date=date(2025, 3, 6))
        dates = list(self.student.attendance_records.values_list('date', flat=True))
        self.assertEqual(dates, [date(2025, 3, 6), date(2025, 3, 4)])
