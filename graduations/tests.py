import json
import re
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, Client
from django.urls import reverse
from django.utils import timezone

from academics.models import AttendanceRecord
from core.exceptions import (
    ValidationError, NotFoundError, ConflictError, StateError,
    GradeNotApproved, AlreadyGraduated,
)
from examinations import services as exam_services
from examinations.models import ExamCandidate
from gradebook import services as grade_services
from gradebook.models import Grade
from students.models import Student

from . import services
from .models import Graduation
from .state_machine import GraduationStateMachine, generate_certificate_number
from .tasks import reconcile_graduations


User = get_user_model()

CERTIFICATE_PATTERN = re.compile(r'^CERT-\d{4}-\d{2}-[A-Z0-9]{6}$')

CATEGORIES = [
    {'name': 'Technique', 'weight': 40},
    {'name': 'Poomsae', 'weight': 30},
    {'name': 'Sparring', 'weight': 20},
    {'name': 'Attitude', 'weight': 10},
]


def scores(value):
    return [{'category': c['name'], 'score': value} for c in CATEGORIES]


class GraduationTestCase(TestCase):

    def setUp(self):
        self.today = timezone.localdate()
        self.admin = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        self.master = User.objects.create_instructor(email='master@dojo.com', password='x')
        self.assistant = User.objects.create_instructor(email='assistant@dojo.com', password='x')
        self.exam = exam_services.create_exam(
            name='June Graduation',
            date=self.today,
            target_belt='naranja',
            required_belt='amarillo',
            categories=CATEGORIES,
            instructors=[self.master, self.assistant],
        )
        self.student = self.make_candidate('S001')

    def make_candidate(self, code, score=85):
        student = Student.objects.create(
            first_name='Student',
            last_name=code,
            student_code=code,
            belt_level='amarillo',
            belt_date_obtained=self.today - timedelta(days=120),
        )
        exam_services.enroll_candidate(self.exam.pk, student.pk)
        if score is not None:
            grade_services.finalize_grade(self.exam.pk, student.pk, scores(score))
        return student

    def grade_of(self, student):
        return Grade.objects.get(exam=self.exam, student=student, is_active=True)

    def graduate(self, student=None):
        student = student or self.student
        return services.graduate_candidate(
            self.exam.pk, student.pk, self.grade_of(student).pk, processed_by=self.admin
        )


class GraduateCandidateTests(GraduationTestCase):

    def test_graduation_changes_belt(self):
        graduation = self.graduate()
        self.assertEqual(graduation.state, Graduation.State.APPROVED)
        self.assertEqual(graduation.previous_belt, 'amarillo')
        self.assertEqual(graduation.new_belt, 'naranja')
        self.assertTrue(graduation.student_updated)
        self.assertEqual(graduation.approved_by, self.admin)

        self.student.refresh_from_db()
        self.assertEqual(self.student.belt_level, 'naranja')
        self.assertEqual(self.student.belt_date_obtained, graduation.graduation_date)
        self.assertEqual(self.student.graduation_tests_passed, 1)

    def test_first_instructor_certifies_the_belt(self):
        graduation = self.graduate()
        self.assertEqual(
            [link.instructor for link in graduation.certifier_links.all()],
            [self.master, self.assistant]
        )
        self.student.refresh_from_db()
        self.assertEqual(self.student.belt_certified_by, self.master)

    def test_processing_user_certifies_without_instructors(self):
        self.exam.instructors.clear()
        graduation = self.graduate()
        self.assertEqual(graduation.first_certifier_id, self.admin.pk)

    def test_failed_grade_cannot_graduate(self):
        failing = self.make_candidate('S002', score=50)
        with self.assertRaises(GradeNotApproved):
            self.graduate(failing)
        failing.refresh_from_db()
        self.assertEqual(failing.belt_level, 'amarillo')

    def test_grade_of_another_student(self):
        other = self.make_candidate('S002')
        with self.assertRaises(GradeNotApproved):
            services.graduate_candidate(self.exam.pk, self.student.pk, self.grade_of(other).pk)

    def test_draft_grade_cannot_graduate(self):
        student = self.make_candidate('S002', score=None)
        draft = grade_services.record_scores(self.exam.pk, student.pk, scores(95))
        with self.assertRaises(GradeNotApproved):
            services.graduate_candidate(self.exam.pk, student.pk, draft.pk)

    def test_already_graduated(self):
        self.graduate()
        with self.assertRaises(AlreadyGraduated):
            self.graduate()
        self.student.refresh_from_db()
        self.assertEqual(self.student.graduation_tests_passed, 1)

    def test_not_a_graduation_exam(self):
        evaluation = exam_services.create_exam(
            name='Technical check', date=self.today, exam_type='technical_evaluation',
            categories=CATEGORIES,
        )
        with self.assertRaises(ValidationError) as ctx:
            services.graduate_candidate(evaluation.pk, self.student.pk, self.grade_of(self.student).pk)
        self.assertEqual(ctx.exception.code, 'not_graduation_exam')

    def test_grade_frozen_after_graduation(self):
        self.graduate()
        with self.assertRaises(StateError) as ctx:
            grade_services.finalize_grade(self.exam.pk, self.student.pk, scores(40))
        self.assertEqual(ctx.exception.code, 'grade_graduated')


class EndToEndTests(TestCase):
    """White belt student from eligibility to a new belt."""

    def test_full_workflow(self):
        today = timezone.localdate()
        admin = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        student = Student.objects.create(
            first_name='Ana',
            last_name='Lopez',
            student_code='S100',
            belt_level='blanco',
            belt_date_obtained=today - timedelta(days=120),
        )
        for offset in range(1, 11):
            AttendanceRecord.objects.create(
                student=student,
                status=AttendanceRecord.Status.PRESENT,
                date=today - timedelta(days=offset),
            )
        exam = exam_services.create_exam(
            name='White belt graduation',
            date=today,
            target_belt='blanco-amarillo',
            required_belt='blanco',
            min_attendance_percent=75,
            min_days_since_belt=90,
            categories=CATEGORIES,
        )

        eligibility = exam_services.get_eligibility(student.pk, exam.pk)
        self.assertTrue(eligibility.attendance.meets_minimum)
        self.assertTrue(eligibility.tenure.meets_minimum)
        self.assertTrue(eligibility.payment.meets_requirement)

        exam_services.enroll_candidate(exam.pk, student.pk, require_eligibility=True)
        grade = grade_services.finalize_grade(exam.pk, student.pk, scores(85))
        self.assertEqual(grade.final_score, Decimal('85.00'))
        self.assertEqual(grade.result, Grade.Result.PASS)

        result = services.process_graduation_batch(
            exam.pk, [{'student_id': student.pk, 'grade_id': grade.pk}], processed_by=admin
        )
        self.assertEqual(len(result.succeeded), 1)
        self.assertEqual(result.failed, [])

        graduation = Graduation.objects.get(exam=exam, student=student)
        self.assertEqual(graduation.state, Graduation.State.APPROVED)
        self.assertTrue(graduation.student_updated)
        student.refresh_from_db()
        self.assertEqual(student.belt_level, 'blanco-amarillo')

        candidate = ExamCandidate.objects.get(exam=exam, student=student)
        self.assertTrue(candidate.passed)


class BatchTests(GraduationTestCase):

    def test_partial_failure_keeps_successes(self):
        second = self.make_candidate('S002')
        failing = self.make_candidate('S003', score=40)
        requests = [
            {'student_id': self.student.pk, 'grade_id': self.grade_of(self.student).pk},
            {'student_id': failing.pk, 'grade_id': self.grade_of(failing).pk},
            {'student_id': second.pk, 'grade_id': self.grade_of(second).pk},
        ]
        result = services.process_graduation_batch(self.exam.pk, requests, processed_by=self.admin)

        self.assertEqual(len(result.succeeded), 2)
        self.assertEqual(len(result.failed), 1)
        self.assertEqual(result.failed[0]['student_id'], failing.pk)
        self.assertEqual(result.failed[0]['code'], 'grade_not_approved')
        self.assertEqual(result.as_dict()['total'], 3)

        self.assertEqual(Graduation.objects.filter(exam=self.exam).count(), 2)
        self.student.refresh_from_db()
        second.refresh_from_db()
        failing.refresh_from_db()
        self.assertEqual(self.student.belt_level, 'naranja')
        self.assertEqual(second.belt_level, 'naranja')
        self.assertEqual(failing.belt_level, 'amarillo')

    def test_repeated_request_in_batch(self):
        request = {'student_id': self.student.pk, 'grade_id': self.grade_of(self.student).pk}
        result = services.process_graduation_batch(self.exam.pk, [request, request])
        self.assertEqual(len(result.succeeded), 1)
        self.assertEqual(result.failed[0]['code'], 'already_graduated')

    def test_malformed_request(self):
        result = services.process_graduation_batch(self.exam.pk, [{'student_id': self.student.pk}, 'junk'])
        self.assertEqual(len(result.failed), 2)
        self.assertEqual(result.failed[0]['code'], 'invalid')

    def test_bad_student_id_does_not_stop_the_batch(self):
        second = self.make_candidate('S002')
        result = services.process_graduation_batch(self.exam.pk, [
            {'student_id': [self.student.pk], 'grade_id': str(self.grade_of(self.student).pk)},
            {'student_id': second.pk, 'grade_id': str(self.grade_of(second).pk)},
        ], processed_by=self.admin)

        self.assertEqual(len(result.failed), 1)
        self.assertEqual(result.failed[0]['code'], 'invalid_id')
        self.assertEqual(len(result.succeeded), 1)
        self.assertEqual(result.succeeded[0]['student_id'], second.pk)
        second.refresh_from_db()
        self.student.refresh_from_db()
        self.assertEqual(second.belt_level, 'naranja')
        self.assertEqual(self.student.belt_level, 'amarillo')

    def test_bad_grade_id_does_not_stop_the_batch(self):
        grade_id = str(self.grade_of(self.student).pk)
        result = services.process_graduation_batch(self.exam.pk, [
            {'student_id': str(self.student.pk), 'grade_id': ['x']},
            {'student_id': str(self.student.pk), 'grade_id': grade_id},
        ])
        self.assertEqual(result.failed[0]['code'], 'grade_not_approved')
        self.assertEqual(len(result.succeeded), 1)
        self.assertEqual(result.succeeded[0]['student_id'], self.student.pk)

    def test_unknown_student(self):
        result = services.process_graduation_batch(
            self.exam.pk, [{'student_id': 999999, 'grade_id': self.grade_of(self.student).pk}]
        )
        self.assertEqual(result.failed[0]['code'], 'grade_not_approved')

    def test_missing_exam_fails_the_whole_batch(self):
        with self.assertRaises(NotFoundError):
            services.process_graduation_batch(
                '00000000-0000-0000-0000-000000000000',
                [{'student_id': self.student.pk, 'grade_id': self.grade_of(self.student).pk}]
            )


class StateMachineTests(GraduationTestCase):

    def make_pending(self):
        """A graduation whose approval never ran."""
        return Graduation.objects.create(
            exam=self.exam,
            grade=self.grade_of(self.student),
            student=self.student,
            previous_belt='amarillo',
            new_belt='naranja',
            graduation_date=date(2025, 6, 20),
        )

    def test_approve_twice_applies_belt_once(self):
        graduation = self.graduate()
        machine = GraduationStateMachine(graduation)
        self.assertFalse(machine.apply_belt_change())

        # A belt edited after approval is not overwritten by re-approving
        Student.objects.filter(pk=self.student.pk).update(belt_level='verde')
        services.approve_graduation(graduation.pk, user=self.admin)
        self.student.refresh_from_db()
        self.assertEqual(self.student.belt_level, 'verde')

    def test_approve_pending(self):
        graduation = self.make_pending()
        graduation = services.approve_graduation(graduation.pk, user=self.admin)
        self.assertEqual(graduation.state, Graduation.State.APPROVED)
        self.assertTrue(graduation.student_updated)
        self.student.refresh_from_db()
        self.assertEqual(self.student.belt_level, 'naranja')
        self.assertEqual(self.student.belt_date_obtained, date(2025, 6, 20))

    def test_certify(self):
        graduation = self.graduate()
        graduation = services.certify_graduation(
            graduation.pk,
            file_reference='certificates/ana.pdf',
            file_type='PDF',
            file_size=20480,
            issued_by='Dojo Central',
        )
        self.assertEqual(graduation.state, Graduation.State.CERTIFIED)
        self.assertRegex(graduation.certificate_number, CERTIFICATE_PATTERN)
        self.assertTrue(graduation.certificate_number.startswith(f"CERT-{graduation.graduation_date:%Y-%m}-"))
        self.assertEqual(graduation.certificate_file_type, 'pdf')
        self.assertEqual(graduation.certificate_issued_at, timezone.localdate())
        self.assertTrue(graduation.is_terminal)

    def test_certify_requires_approval(self):
        graduation = self.make_pending()
        with self.assertRaises(StateError):
            services.certify_graduation(graduation.pk, file_reference='a.pdf', file_type='pdf')

    def test_certify_validates_file(self):
        graduation = self.graduate()
        with self.assertRaises(ValidationError):
            services.certify_graduation(graduation.pk, file_reference='', file_type='pdf')
        with self.assertRaises(ValidationError) as ctx:
            services.certify_graduation(graduation.pk, file_reference='a.gif', file_type='gif')
        self.assertEqual(ctx.exception.code, 'certificate_file_type')

    def test_duplicate_certificate_number(self):
        first = self.graduate()
        second = self.graduate(self.make_candidate('S002'))
        services.certify_graduation(
            first.pk, file_reference='a.pdf', file_type='pdf', certificate_number='CERT-2025-06-AAAAAA'
        )
        with self.assertRaises(ConflictError) as ctx:
            services.certify_graduation(
                second.pk, file_reference='b.pdf', file_type='pdf', certificate_number='CERT-2025-06-AAAAAA'
            )
        self.assertEqual(ctx.exception.code, 'duplicate_certificate_number')
        second.refresh_from_db()
        self.assertEqual(second.state, Graduation.State.APPROVED)

    def test_certified_is_terminal(self):
        graduation = self.graduate()
        services.certify_graduation(graduation.pk, file_reference='a.pdf', file_type='pdf')
        with self.assertRaises(StateError):
            services.cancel_graduation(graduation.pk, 'Too late')
        with self.assertRaises(StateError):
            services.approve_graduation(graduation.pk)

    def test_cancel_requires_reason(self):
        graduation = self.make_pending()
        with self.assertRaises(ValidationError) as ctx:
            services.cancel_graduation(graduation.pk, '  ')
        self.assertEqual(ctx.exception.code, 'reason_required')

    def test_cancel_appends_note(self):
        graduation = self.make_pending()
        graduation.notes = 'Scheduled for the June ceremony'
        graduation.save()
        graduation = services.cancel_graduation(graduation.pk, 'Injury', user=self.admin)
        self.assertEqual(graduation.state, Graduation.State.CANCELLED)
        self.assertEqual(graduation.notes, 'Scheduled for the June ceremony\nCANCELLED: Injury')
        with self.assertRaises(StateError):
            services.approve_graduation(graduation.pk)
        self.student.refresh_from_db()
        self.assertEqual(self.student.belt_level, 'amarillo')

    def test_unknown_graduation(self):
        with self.assertRaises(NotFoundError):
            services.approve_graduation('00000000-0000-0000-0000-000000000000')

    def test_ceremony(self):
        graduation = self.graduate()
        graduation = services.record_ceremony(
            graduation.pk, date=date(2025, 7, 1), location='Main hall', attendees=40
        )
        self.assertTrue(graduation.ceremony_held)
        self.assertEqual(graduation.ceremony_attendees, 40)

        pending = Graduation.objects.create(
            exam=self.exam,
            grade=self.grade_of(self.make_candidate('S002')),
            student=Student.objects.get(student_code='S002'),
            previous_belt='amarillo',
            new_belt='naranja',
        )
        with self.assertRaises(StateError):
            services.record_ceremony(pending.pk, date=date(2025, 7, 1))

    def test_generate_certificate_number(self):
        number = generate_certificate_number(date(2024, 3, 9))
        self.assertRegex(number, CERTIFICATE_PATTERN)
        self.assertTrue(number.startswith('CERT-2024-03-'))


class ReconciliationTests(GraduationTestCase):

    def setUp(self):
        super().setUp()
        self.stuck = Graduation.objects.create(
            exam=self.exam,
            grade=self.grade_of(self.student),
            student=self.student,
            previous_belt='amarillo',
            new_belt='naranja',
            state=Graduation.State.APPROVED,
            approved_by=self.admin,
            approved_at=timezone.now(),
        )

    def test_reconcile_applies_missing_belt_change(self):
        summary = services.reconcile_pending_graduations()
        self.assertEqual(summary, {'checked': 1, 'repaired': 1, 'failed': 0})
        self.stuck.refresh_from_db()
        self.assertTrue(self.stuck.student_updated)
        self.student.refresh_from_db()
        self.assertEqual(self.student.belt_level, 'naranja')

        self.assertEqual(services.reconcile_pending_graduations()['checked'], 0)

    def test_cancelled_graduations_are_left_alone(self):
        Graduation.objects.filter(pk=self.stuck.pk).update(state=Graduation.State.CANCELLED)
        self.assertEqual(services.reconcile_pending_graduations()['checked'], 0)

    def test_task(self):
        summary = reconcile_graduations()
        self.assertEqual(summary['repaired'], 1)

    def test_command_dry_run(self):
        out = StringIO()
        call_command('reconcile_graduations', '--dry-run', stdout=out)
        self.assertIn('Found 1 graduation(s)', out.getvalue())
        self.stuck.refresh_from_db()
        self.assertFalse(self.stuck.student_updated)

    def test_command(self):
        out = StringIO()
        call_command('reconcile_graduations', stdout=out)
        self.assertIn('repaired 1', out.getvalue())


class GraduationStatisticsTests(GraduationTestCase):

    def test_statistics(self):
        graduation = self.graduate()
        self.graduate(self.make_candidate('S002'))
        services.certify_graduation(graduation.pk, file_reference='a.pdf', file_type='pdf')

        stats = services.graduation_statistics(self.exam.pk)
        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['by_state']['approved'], 1)
        self.assertEqual(stats['by_state']['certified'], 1)
        self.assertEqual(stats['by_state']['pending'], 0)
        self.assertEqual(stats['by_belt'], {'naranja': 2})
        self.assertEqual(stats['awaiting_belt_update'], 0)


class GraduationListingTests(GraduationTestCase):

    def make_pending(self, student):
        return Graduation.objects.create(
            exam=self.exam,
            grade=self.grade_of(student),
            student=student,
            previous_belt='amarillo',
            new_belt='naranja',
        )

    def test_student_history_and_exam_graduations(self):
        graduation = self.graduate()
        self.graduate(self.make_candidate('S002'))

        history = list(services.student_graduation_history(self.student.pk))
        self.assertEqual(history, [graduation])
        self.assertEqual(services.exam_graduations(self.exam.pk).count(), 2)
        self.assertEqual(Graduation.objects.for_student(self.student).count(), 1)
        self.assertEqual(Graduation.objects.for_exam(self.exam).count(), 2)

    def test_inactive_graduations_are_hidden(self):
        graduation = self.graduate()
        Graduation.objects.filter(pk=graduation.pk).update(is_active=False)
        self.assertFalse(services.student_graduation_history(self.student.pk).exists())
        self.assertFalse(services.list_graduations().exists())

    def test_awaiting_approval_and_without_certificate(self):
        pending = self.make_pending(self.make_candidate('S002'))
        approved = self.graduate()
        certified = self.graduate(self.make_candidate('S003'))
        services.certify_graduation(certified.pk, file_reference='c.pdf', file_type='pdf')

        self.assertEqual(list(services.graduations_awaiting_approval()), [pending])
        self.assertEqual(
            set(services.graduations_without_certificate()),
            {pending, approved}
        )

        services.cancel_graduation(approved.pk, 'Entered twice')
        self.assertEqual(list(services.graduations_without_certificate()), [pending])

    def test_list_filters(self):
        graduation = self.graduate()
        self.graduate(self.make_candidate('S002'))

        self.assertEqual(services.list_graduations(exam_id=self.exam.pk).count(), 2)
        self.assertEqual(list(services.list_graduations(student_id=str(self.student.pk))), [graduation])
        self.assertEqual(services.list_graduations(date_from=self.today).count(), 2)
        self.assertFalse(services.list_graduations(date_from=self.today + timedelta(days=1)).exists())
        self.assertFalse(services.list_graduations(date_to=self.today - timedelta(days=1)).exists())

    def test_list_rejects_bad_input(self):
        with self.assertRaises(ValidationError):
            services.list_graduations(student_id='abc')
        with self.assertRaises(ValidationError):
            services.list_graduations(date_from=self.today, date_to=self.today - timedelta(days=1))
        with self.assertRaises(NotFoundError):
            services.student_graduation_history(999999)
        with self.assertRaises(NotFoundError):
            services.exam_graduations('not-a-uuid')


class GraduationViewTests(GraduationTestCase):

    def setUp(self):
        super().setUp()
        self.client = Client()

    def _post(self, url, data):
        return self.client.post(url, data=json.dumps(data, default=str), content_type='application/json')

    def test_batch_view(self):
        self.client.force_login(self.admin)
        failing = self.make_candidate('S002', score=30)
        response = self._post(reverse('graduations:process_batch', args=[self.exam.pk]), {
            'candidates': [
                {'student_id': self.student.pk, 'grade_id': self.grade_of(self.student).pk},
                {'student_id': failing.pk, 'grade_id': self.grade_of(failing).pk},
            ],
        })
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(len(data['succeeded']), 1)
        self.assertEqual(len(data['failed']), 1)

    def test_batch_view_requires_admin(self):
        self.client.force_login(self.master)
        response = self._post(reverse('graduations:process_batch', args=[self.exam.pk]), {'candidates': []})
        self.assertEqual(response.status_code, 403)

    def test_batch_view_rejects_empty_list(self):
        self.client.force_login(self.admin)
        response = self._post(reverse('graduations:process_batch', args=[self.exam.pk]), {'candidates': []})
        self.assertEqual(response.status_code, 400)

    def test_cancel_view(self):
        graduation = self.graduate()
        self.client.force_login(self.admin)
        url = reverse('graduations:cancel', args=[graduation.pk])
        self.assertEqual(self._post(url, {}).status_code, 400)
        response = self._post(url, {'reason': 'Duplicate record'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)['data']['state'], 'cancelled')

    def test_detail_view(self):
        graduation = self.graduate()
        self.client.force_login(self.master)
        response = self.client.get(reverse('graduations:graduation_detail', args=[graduation.pk]))
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(data['new_belt'], 'naranja')
        self.assertEqual(data['certifiers'], [self.master.pk, self.assistant.pk])

    def test_batch_view_with_bad_student_id(self):
        self.client.force_login(self.admin)
        second = self.make_candidate('S002')
        response = self._post(reverse('graduations:process_batch', args=[self.exam.pk]), {
            'candidates': [
                {'student_id': [self.student.pk], 'grade_id': self.grade_of(self.student).pk},
                {'student_id': second.pk, 'grade_id': self.grade_of(second).pk},
            ],
        })
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(len(data['succeeded']), 1)
        self.assertEqual(data['failed'][0]['code'], 'invalid_id')

    def test_ceremony_view_rejects_impossible_date(self):
        graduation = self.graduate()
        self.client.force_login(self.admin)
        response = self._post(reverse('graduations:ceremony', args=[graduation.pk]), {'date': '2025-02-30'})
        self.assertEqual(response.status_code, 400)

    def test_list_view(self):
        self.graduate()
        self.graduate(self.make_candidate('S002'))
        self.client.force_login(self.master)

        response = self.client.get(reverse('graduations:graduation_list'), {'student_id': self.student.pk})
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(data['total'], 1)
        self.assertEqual(data['results'][0]['student_id'], self.student.pk)

        response = self.client.get(reverse('graduations:graduation_list'), {'date_from': 'soon'})
        self.assertEqual(response.status_code, 400)

    def test_exam_and_student_views(self):
        self.graduate()
        self.client.force_login(self.master)

        response = self.client.get(reverse('graduations:exam_graduations', args=[self.exam.pk]))
        self.assertEqual(json.loads(response.content)['data']['total'], 1)

        response = self.client.get(reverse('graduations:student_history', args=[self.student.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)['data']['results'][0]['new_belt'], 'naranja')

        response = self.client.get(reverse('graduations:student_history', args=[999999]))
        self.assertEqual(response.status_code, 404)

    def test_pending_and_uncertified_views(self):
        self.graduate()
        self.client.force_login(self.master)

        response = self.client.get(reverse('graduations:awaiting_approval'))
        self.assertEqual(json.loads(response.content)['data']['total'], 0)

        response = self.client.get(reverse('graduations:without_certificate'), {'per_page': 50})
        data = json.loads(response.content)['data']
        self.assertEqual(data['total'], 1)
        self.assertEqual(data['page'], 1)
