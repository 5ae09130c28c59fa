from django.db import models
from django.conf import settings
from django.utils import timezone


class AttendanceRecord(models.Model):
    """One class attendance entry for a student."""
    class Status(models.TextChoices):
        PRESENT = 'P', 'Present'
        ABSENT = 'A', 'Absent'
        JUSTIFIED = 'J', 'Justified'
        LATE = 'L', 'Late'

    student = models.ForeignKey('students.Student', on_delete=models.CASCADE, related_name='attendance_records')
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=1, choices=Status.choices, default=Status.ABSENT)
    remarks = models.CharField(max_length=100, blank=True)
    recorded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date']
        indexes = [
            models.Index(fields=['student', 'date'], name='attendance_student_date_idx'),
            models.Index(fields=['student', 'status'], name='attendance_student_status_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.date}: {self.get_status_display()}"
