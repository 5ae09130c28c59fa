import json
from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, Client
from django.urls import reverse

from academics.models import AttendanceRecord
from core.exceptions import (
    ValidationError, NotFoundError, ConflictError, StateError,
    CategoryWeightInvalid, NotEnrolled, AlreadyEnrolled, BeltMismatch,
    NotEligible, GradeAlreadyExists,
)
from finance.models import Payment
from students.models import Student

from . import services
from .eligibility import EligibilityEvaluator
from .models import Exam, ExamCandidate

User = get_user_model()

TODAY = date(2025, 6, 15)

CATEGORIES = [
    {'name': 'Technique', 'weight': 40},
    {'name': 'Poomsae', 'weight': 30},
    {'name': 'Sparring', 'weight': 30},
]


def make_student(code='S001', belt='amarillo', days_with_belt=120, **kwargs):
    return Student.objects.create(
        first_name=kwargs.pop('first_name', 'Ana'),
        last_name=kwargs.pop('last_name', 'Lopez'),
        student_code=code,
        belt_level=belt,
        belt_date_obtained=TODAY - timedelta(days=days_with_belt),
        **kwargs
    )


def add_attendance(student, present=0, absent=0, late=0):
    day = TODAY - timedelta(days=1)
    for status, count in (
        (AttendanceRecord.Status.PRESENT, present),
        (AttendanceRecord.Status.ABSENT, absent),
        (AttendanceRecord.Status.LATE, late),
    ):
        for _ in range(count):
            AttendanceRecord.objects.create(student=student, status=status, date=day)
            day -= timedelta(days=1)


def make_exam(**kwargs):
    options = {
        'name': 'June Graduation',
        'date': TODAY + timedelta(days=5),
        'target_belt': 'naranja',
        'required_belt': 'amarillo',
        'categories': CATEGORIES,
        'fee': Decimal('500.00'),
    }
    options.update(kwargs)
    return services.create_exam(**options)


class EligibilityEvaluatorTests(TestCase):
    """Attendance, belt tenure and payment checks."""

    def setUp(self):
        self.exam = make_exam()
        self.student = make_student()
        self.evaluator = EligibilityEvaluator(today=TODAY)

    def test_attendance_at_minimum_is_eligible(self):
        """75% attendance against a 75% minimum passes (inclusive)."""
        add_attendance(self.student, present=3, absent=1)
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.percentage, Decimal('75.00'))
        self.assertTrue(result.attendance.meets_minimum)
        self.assertTrue(result.is_eligible)

    def test_attendance_below_minimum(self):
        add_attendance(self.student, present=3, absent=2)
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.percentage, Decimal('60.00'))
        self.assertFalse(result.attendance.meets_minimum)
        self.assertFalse(result.is_eligible)
        self.assertTrue(any('Attendance' in reason for reason in result.reasons))

    def test_rounded_percentage_does_not_round_up_into_eligibility(self):
        """2 of 3 shows as 66.67% but is still below a 66.67% minimum."""
        Exam.objects.filter(pk=self.exam.pk).update(min_attendance_percent=Decimal('66.67'))
        self.exam.refresh_from_db()
        add_attendance(self.student, present=2, absent=1)
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.percentage, Decimal('66.67'))
        self.assertFalse(result.attendance.meets_minimum)

    def test_late_does_not_count_as_present(self):
        add_attendance(self.student, present=3, late=1)
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.present, 3)
        self.assertEqual(result.attendance.total, 4)

    def test_inactive_records_are_ignored(self):
        add_attendance(self.student, present=3)
        AttendanceRecord.objects.create(
            student=self.student, status=AttendanceRecord.Status.ABSENT, is_active=False
        )
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.percentage, Decimal('100.00'))

    def test_no_attendance_records(self):
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.percentage, Decimal('0.00'))
        self.assertFalse(result.attendance.meets_minimum)
        self.assertIn('No attendance records.', result.reasons)

    def test_no_attendance_records_with_zero_minimum(self):
        Exam.objects.filter(pk=self.exam.pk).update(min_attendance_percent=0)
        self.exam.refresh_from_db()
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertTrue(result.attendance.meets_minimum)

    def test_attendance_window(self):
        add_attendance(self.student, present=1, absent=3)
        evaluator = EligibilityEvaluator(today=TODAY, since=TODAY - timedelta(days=1))
        result = evaluator.evaluate(self.student.pk, self.exam)
        self.assertEqual(result.attendance.total, 1)
        self.assertTrue(result.attendance.meets_minimum)

    def test_belt_tenure_boundary(self):
        add_attendance(self.student, present=4)
        at_minimum = make_student(code='S002', days_with_belt=90)
        below = make_student(code='S003', days_with_belt=89)
        self.assertTrue(self.evaluator.evaluate(at_minimum.pk, self.exam).tenure.meets_minimum)
        result = self.evaluator.evaluate(below.pk, self.exam)
        self.assertEqual(result.tenure.days, 89)
        self.assertFalse(result.tenure.meets_minimum)

    def test_tenure_falls_back_to_created_date(self):
        self.student.belt_date_obtained = None
        self.student.save()
        result = EligibilityEvaluator().evaluate(self.student.pk, self.exam)
        self.assertEqual(result.tenure.days, 0)
        self.assertFalse(result.tenure.meets_minimum)

    def test_outstanding_payment_blocks(self):
        add_attendance(self.student, present=4)
        Payment.objects.create(student=self.student, concept='May tuition', amount=Decimal('300.00'))
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertFalse(result.payment.meets_requirement)
        self.assertEqual(result.payment.outstanding, 1)
        self.assertFalse(result.is_eligible)

    def test_paid_and_cancelled_payments_do_not_block(self):
        Payment.objects.create(student=self.student, concept='April', amount=10, status='PAID')
        Payment.objects.create(student=self.student, concept='March', amount=10, status='CANCELLED')
        result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertTrue(result.payment.meets_requirement)

    def test_payment_not_required(self):
        exam = make_exam(name='Open Exam', payment_must_be_current=False)
        Payment.objects.create(student=self.student, concept='May tuition', amount=10, status='OVERDUE')
        result = self.evaluator.evaluate(self.student.pk, exam)
        self.assertTrue(result.payment.meets_requirement)

    def test_attendance_read_failure_counts_as_not_met(self):
        add_attendance(self.student, present=4)
        with mock.patch.object(
            EligibilityEvaluator, '_attendance_queryset', side_effect=DatabaseError('gone')
        ):
            result = self.evaluator.evaluate(self.student.pk, self.exam)
        self.assertFalse(result.attendance.meets_minimum)
        self.assertTrue(result.tenure.meets_minimum)
        self.assertIn('Attendance records could not be read.', result.reasons)

    def test_unknown_student(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.evaluator.evaluate(999999, self.exam)
        self.assertEqual(ctx.exception.code, 'student_not_found')

    def test_as_dict(self):
        add_attendance(self.student, present=4)
        data = self.evaluator.evaluate(self.student.pk, self.exam).as_dict()
        self.assertTrue(data['is_eligible'])
        self.assertEqual(data['attendance']['percentage'], '100.00')
        self.assertEqual(data['tenure']['days'], 120)


class CreateExamTests(TestCase):

    def test_create_with_defaults(self):
        exam = make_exam(fee=None)
        self.assertEqual(exam.fee, Decimal('500.00'))
        self.assertEqual(exam.min_attendance_percent, Decimal('75'))
        self.assertEqual(exam.min_days_since_belt, 90)
        self.assertEqual(exam.min_passing_score, Decimal('70.00'))
        self.assertEqual(exam.version, 1)
        self.assertEqual(exam.weight_total(), Decimal('100'))
        self.assertEqual(
            list(exam.categories.values_list('name', flat=True)),
            ['Technique', 'Poomsae', 'Sparring']
        )

    def test_weights_must_add_up_to_100(self):
        with self.assertRaises(CategoryWeightInvalid) as ctx:
            make_exam(categories=[
                {'name': 'Technique', 'weight': 40},
                {'name': 'Poomsae', 'weight': 30},
                {'name': 'Sparring', 'weight': 20},
            ])
        self.assertEqual(ctx.exception.code, 'weight_sum_invalid')
        self.assertFalse(Exam.objects.exists())

    def test_weight_out_of_range(self):
        with self.assertRaises(CategoryWeightInvalid):
            make_exam(categories=[{'name': 'Technique', 'weight': 120}, {'name': 'Poomsae', 'weight': -20}])

    def test_malformed_categories(self):
        malformed = (
            ['Technique'],
            [{'name': 'Technique', 'weight': 100}, 5],
            {'Technique': 100},
        )
        for categories in malformed:
            with self.assertRaises(ValidationError) as ctx:
                make_exam(categories=categories)
            self.assertEqual(ctx.exception.code, 'invalid_categories')
        self.assertFalse(Exam.objects.exists())

    def test_duplicate_category(self):
        with self.assertRaises(ValidationError):
            make_exam(categories=[{'name': 'Poomsae', 'weight': 50}, {'name': 'poomsae', 'weight': 50}])

    def test_target_belt_must_rank_above_required(self):
        with self.assertRaises(ValidationError):
            make_exam(target_belt='amarillo', required_belt='naranja')

    def test_graduation_exam_needs_belts(self):
        with self.assertRaises(ValidationError):
            make_exam(target_belt='')

    def test_evaluation_exam_without_belts(self):
        exam = make_exam(exam_type=Exam.ExamType.TECHNICAL, target_belt='', required_belt='')
        self.assertFalse(exam.is_graduation)

    def test_instructors_must_be_instructors(self):
        instructor = User.objects.create_instructor(email='sabeom@dojo.com', password='x')
        exam = make_exam(instructors=[instructor.pk])
        self.assertEqual(list(exam.instructors.all()), [instructor])

        parent = User.objects.create_user(email='parent@dojo.com', password='x')
        with self.assertRaises(ValidationError) as ctx:
            make_exam(name='Other', instructors=[parent])
        self.assertEqual(ctx.exception.code, 'invalid_instructor')

    def test_replace_categories(self):
        exam = make_exam()
        exam = services.replace_categories(
            exam.pk, [{'name': 'Forms', 'weight': 50}, {'name': 'Breaking', 'weight': 50}],
            expected_version=1,
        )
        self.assertEqual(exam.version, 2)
        self.assertEqual(exam.categories.count(), 2)

    def test_status_transitions(self):
        exam = make_exam()
        exam = services.change_exam_status(exam.pk, Exam.Status.COMPLETED)
        self.assertEqual(exam.status, Exam.Status.COMPLETED)
        with self.assertRaises(StateError):
            services.change_exam_status(exam.pk, Exam.Status.SCHEDULED)

    def test_unknown_exam(self):
        with self.assertRaises(NotFoundError) as ctx:
            services.get_exam('not-a-uuid')
        self.assertEqual(ctx.exception.code, 'exam_not_found')


class EnrollmentTests(TestCase):

    def setUp(self):
        self.exam = make_exam()
        self.student = make_student()
        add_attendance(self.student, present=4)
        self.admin = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        self.instructor = User.objects.create_instructor(email='sabeom@dojo.com', password='x')

    def test_enroll_records_snapshot(self):
        candidate = services.enroll_candidate(self.exam.pk, self.student.pk, today=TODAY)
        self.assertTrue(candidate.meets_attendance)
        self.assertTrue(candidate.meets_belt_tenure)
        self.assertTrue(candidate.meets_payment)
        self.assertEqual(candidate.days_with_belt, 120)
        self.assertIsNotNone(candidate.eligibility_checked_at)
        self.exam.refresh_from_db()
        self.assertEqual(self.exam.version, 2)

    def test_enroll_twice(self):
        services.enroll_candidate(self.exam.pk, self.student.pk, today=TODAY)
        with self.assertRaises(AlreadyEnrolled):
            services.enroll_candidate(self.exam.pk, self.student.pk, today=TODAY)
        self.assertEqual(ExamCandidate.objects.filter(exam=self.exam).count(), 1)

    def test_belt_mismatch(self):
        green = make_student(code='S002', belt='verde')
        with self.assertRaises(BeltMismatch) as ctx:
            services.enroll_candidate(self.exam.pk, green.pk, today=TODAY)
        self.assertEqual(ctx.exception.details['required_belt'], 'amarillo')

    def test_ineligible_student_is_enrolled_unless_enforced(self):
        newcomer = make_student(code='S002', days_with_belt=10)
        with self.assertRaises(NotEligible):
            services.enroll_candidate(self.exam.pk, newcomer.pk, require_eligibility=True, today=TODAY)
        candidate = services.enroll_candidate(self.exam.pk, newcomer.pk, today=TODAY)
        self.assertFalse(candidate.meets_belt_tenure)
        self.assertFalse(candidate.meets_requirements)

    def test_waiver_requires_admin(self):
        with self.assertRaises(ValidationError) as ctx:
            services.enroll_candidate(
                self.exam.pk, self.student.pk,
                waive_payment=True, waived_by=self.instructor, today=TODAY,
            )
        self.assertEqual(ctx.exception.code, 'waiver_not_authorized')
        self.assertFalse(ExamCandidate.objects.exists())

    def test_waiver_satisfies_payment(self):
        Payment.objects.create(student=self.student, concept='May tuition', amount=Decimal('300.00'))
        candidate = services.enroll_candidate(
            self.exam.pk, self.student.pk,
            waive_payment=True, waived_by=self.admin, waiver_reason='Scholarship',
            require_eligibility=True, today=TODAY,
        )
        self.assertFalse(candidate.meets_payment)
        self.assertTrue(candidate.payment_waived)
        self.assertEqual(candidate.waived_by, self.admin)
        self.assertEqual(candidate.waiver_reason, 'Scholarship')
        self.assertTrue(candidate.meets_requirements)

    def test_waiver_reason_length(self):
        with self.assertRaises(ValidationError):
            services.enroll_candidate(
                self.exam.pk, self.student.pk,
                waive_payment=True, waived_by=self.admin, waiver_reason='x' * 201,
            )

    def test_enrollment_closed(self):
        services.change_exam_status(self.exam.pk, Exam.Status.CANCELLED)
        with self.assertRaises(StateError) as ctx:
            services.enroll_candidate(self.exam.pk, self.student.pk)
        self.assertEqual(ctx.exception.code, 'enrollment_closed')

    def test_stale_version(self):
        services.enroll_candidate(self.exam.pk, self.student.pk, expected_version=1, today=TODAY)
        other = make_student(code='S002')
        with self.assertRaises(ConflictError) as ctx:
            services.enroll_candidate(self.exam.pk, other.pk, expected_version=1, today=TODAY)
        self.assertEqual(ctx.exception.code, 'stale_exam')
        self.assertEqual(ctx.exception.details['current_version'], 2)

    def test_unknown_student(self):
        with self.assertRaises(NotFoundError):
            services.enroll_candidate(self.exam.pk, 999999)

    def test_list_eligible_students(self):
        services.enroll_candidate(self.exam.pk, self.student.pk, today=TODAY)
        waiting = make_student(code='S002')
        make_student(code='S003', belt='verde')
        rows = services.list_eligible_students(self.exam.pk, today=TODAY)
        self.assertEqual([student.pk for student, _ in rows], [waiting.pk])

    def test_refresh_eligibility(self):
        newcomer = make_student(code='S002')
        candidate = services.enroll_candidate(self.exam.pk, newcomer.pk, today=TODAY)
        self.assertFalse(candidate.meets_attendance)
        add_attendance(newcomer, present=2)
        candidate = services.refresh_eligibility(self.exam.pk, newcomer.pk, today=TODAY)
        self.assertTrue(candidate.meets_attendance)
        self.assertEqual(candidate.attendance_percentage, Decimal('100.00'))


class UnenrollTests(TestCase):

    def setUp(self):
        self.exam = make_exam()
        self.student = make_student()
        services.enroll_candidate(self.exam.pk, self.student.pk, today=TODAY)

    def test_unenroll(self):
        services.unenroll_candidate(self.exam.pk, self.student.pk)
        self.assertFalse(ExamCandidate.objects.filter(exam=self.exam).exists())

    def test_not_enrolled(self):
        other = make_student(code='S002')
        with self.assertRaises(NotEnrolled):
            services.unenroll_candidate(self.exam.pk, other.pk)

    def test_graded_candidate_cannot_leave(self):
        from gradebook.services import finalize_grade
        finalize_grade(self.exam.pk, self.student.pk, [
            {'category': 'Technique', 'score': 80},
            {'category': 'Poomsae', 'score': 80},
            {'category': 'Sparring', 'score': 80},
        ])
        with self.assertRaises(GradeAlreadyExists):
            services.unenroll_candidate(self.exam.pk, self.student.pk)

    def test_completed_exam(self):
        services.change_exam_status(self.exam.pk, Exam.Status.COMPLETED)
        with self.assertRaises(StateError):
            services.unenroll_candidate(self.exam.pk, self.student.pk)

    def test_categories_frozen_once_graded(self):
        from gradebook.services import create_grade
        create_grade(self.exam.pk, self.student.pk)
        with self.assertRaises(StateError) as ctx:
            services.replace_categories(self.exam.pk, [{'name': 'Forms', 'weight': 100}])
        self.assertEqual(ctx.exception.code, 'exam_has_grades')


class ExamPaymentTests(TestCase):

    def setUp(self):
        self.exam = make_exam(fee=Decimal('500.00'))
        self.student = make_student()
        services.enroll_candidate(self.exam.pk, self.student.pk, discount_percent=20, today=TODAY)

    def test_discounted_fee(self):
        candidate = services.get_candidate(self.exam, self.student.pk)
        self.assertEqual(candidate.fee_due, Decimal('400.00'))
        self.assertEqual(candidate.balance, Decimal('400.00'))

    def test_payments_accumulate(self):
        candidate = services.record_exam_payment(self.exam.pk, self.student.pk, '150.00', 'R-1')
        self.assertFalse(candidate.paid)
        self.assertEqual(candidate.amount_paid, Decimal('150.00'))
        self.assertEqual(candidate.balance, Decimal('250.00'))

        candidate = services.record_exam_payment(self.exam.pk, self.student.pk, 250, 'R-2')
        self.assertTrue(candidate.paid)
        self.assertIsNotNone(candidate.paid_at)
        self.assertEqual(candidate.payment_reference, 'R-2')

        self.exam.refresh_from_db()
        self.assertEqual(self.exam.total_collected, Decimal('400.00'))
        self.assertEqual(self.exam.total_outstanding, Decimal('0.00'))

    def test_payment_after_paid_still_accumulates(self):
        services.record_exam_payment(self.exam.pk, self.student.pk, 400)
        candidate = services.record_exam_payment(self.exam.pk, self.student.pk, 10, 'R-3')
        self.assertTrue(candidate.paid)
        self.assertEqual(candidate.amount_paid, Decimal('410.00'))
        self.assertEqual(candidate.balance, Decimal('0.00'))
        self.assertEqual(candidate.payment_reference, 'R-3')

    def test_bad_expected_version(self):
        for version in ('abc', [1], True):
            with self.assertRaises(ValidationError) as ctx:
                services.record_exam_payment(self.exam.pk, self.student.pk, 10, expected_version=version)
            self.assertEqual(ctx.exception.code, 'invalid_version')
        candidate = services.get_candidate(self.exam, self.student.pk)
        self.assertEqual(candidate.amount_paid, Decimal('0.00'))

    def test_amount_must_be_positive(self):
        with self.assertRaises(ValidationError):
            services.record_exam_payment(self.exam.pk, self.student.pk, 0)
        with self.assertRaises(ValidationError):
            services.record_exam_payment(self.exam.pk, self.student.pk, 'ten')


class ExamViewTests(TestCase):

    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        self.instructor = User.objects.create_instructor(email='sabeom@dojo.com', password='x')
        self.exam = make_exam()
        self.student = make_student()

    def _post(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type='application/json')

    def test_create_exam(self):
        self.client.force_login(self.admin)
        response = self._post(reverse('examinations:exam_create'), {
            'name': 'December Graduation',
            'date': '2025-12-10',
            'target_belt': 'verde',
            'required_belt': 'naranja',
            'categories': CATEGORIES,
        })
        self.assertEqual(response.status_code, 201)
        data = json.loads(response.content)['data']
        self.assertEqual(data['target_belt'], 'verde')
        self.assertEqual(len(data['categories']), 3)

    def test_create_exam_rejects_bad_weights(self):
        self.client.force_login(self.admin)
        response = self._post(reverse('examinations:exam_create'), {
            'name': 'Bad',
            'date': '2025-12-10',
            'target_belt': 'verde',
            'required_belt': 'naranja',
            'categories': [{'name': 'Technique', 'weight': 90}],
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['code'], 'weight_sum_invalid')

    def test_create_exam_rejects_bad_time(self):
        self.client.force_login(self.admin)
        for value in ('25:99', 930, 'noon'):
            response = self._post(reverse('examinations:exam_create'), {
                'name': 'December Graduation',
                'date': '2025-12-10',
                'time': value,
                'target_belt': 'verde',
                'required_belt': 'naranja',
            })
            self.assertEqual(response.status_code, 400)
        self.assertFalse(Exam.objects.filter(name='December Graduation').exists())

    def test_create_exam_rejects_malformed_categories(self):
        self.client.force_login(self.admin)
        response = self._post(reverse('examinations:exam_create'), {
            'name': 'December Graduation',
            'date': '2025-12-10',
            'target_belt': 'verde',
            'required_belt': 'naranja',
            'categories': ['Technique'],
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['code'], 'invalid_categories')

    def test_status_view_rejects_bad_version(self):
        self.client.force_login(self.admin)
        response = self._post(reverse('examinations:exam_status', args=[self.exam.pk]), {
            'status': 'in_progress',
            'expected_version': 'abc',
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['code'], 'invalid_version')
        self.exam.refresh_from_db()
        self.assertEqual(self.exam.status, Exam.Status.SCHEDULED)

    def test_instructor_cannot_create_exam(self):
        self.client.force_login(self.instructor)
        response = self._post(reverse('examinations:exam_create'), {'name': 'x', 'date': '2025-12-10'})
        self.assertEqual(response.status_code, 403)

    def test_enroll_and_conflict(self):
        self.client.force_login(self.instructor)
        url = reverse('examinations:enroll', args=[self.exam.pk])
        response = self._post(url, {'student_id': self.student.pk})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(json.loads(response.content)['data']['student_id'], self.student.pk)

        response = self._post(url, {'student_id': self.student.pk})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(json.loads(response.content)['code'], 'already_enrolled')

    def test_instructor_waiver_rejected(self):
        self.client.force_login(self.instructor)
        response = self._post(reverse('examinations:enroll', args=[self.exam.pk]), {
            'student_id': self.student.pk,
            'waive_payment': True,
        })
        self.assertEqual(response.status_code, 400)

    def test_exam_detail(self):
        services.enroll_candidate(self.exam.pk, self.student.pk, today=TODAY)
        self.client.force_login(self.instructor)
        response = self.client.get(reverse('examinations:exam_detail', args=[self.exam.pk]))
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(data['totals']['enrolled'], 1)
        self.assertEqual(len(data['candidates']), 1)

    def test_student_eligibility(self):
        self.client.force_login(self.instructor)
        response = self.client.get(
            reverse('examinations:student_eligibility', args=[self.exam.pk, self.student.pk])
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(json.loads(response.content)['data']['is_eligible'])

    def test_anonymous(self):
        response = self.client.get(reverse('examinations:exam_detail', args=[self.exam.pk]))
        self.assertEqual(response.status_code, 401)
