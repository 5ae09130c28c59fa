import json
from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase, SimpleTestCase, Client
from django.urls import reverse

from core.exceptions import (
    ValidationError, NotFoundError, ConflictError, StateError,
    CategoryWeightInvalid, NotEnrolled, GradeAlreadyExists,
)
from examinations import services as exam_services
from examinations.models import Exam, ExamCandidate
from students.models import Student

from . import services
from .models import Grade, CategoryScore
from .utils import compute_weighted_score, determine_result, summarize_scores


User = get_user_model()

CATEGORIES = [
    {'name': 'Technique', 'weight': 40},
    {'name': 'Poomsae', 'weight': 30},
    {'name': 'Sparring', 'weight': 20},
    {'name': 'Attitude', 'weight': 10},
]

SCORES = [
    {'category': 'Technique', 'score': 80},
    {'category': 'Poomsae', 'score': 90},
    {'category': 'Sparring', 'score': 70},
    {'category': 'Attitude', 'score': 100},
]


class WeightedScoreTests(SimpleTestCase):
    """Tests for the weighted score arithmetic."""

    def test_weights_adding_up_to_100(self):
        """80x0.4 + 90x0.3 + 70x0.2 + 100x0.1 = 83.00"""
        score = compute_weighted_score([(80, 40), (90, 30), (70, 20), (100, 10)])
        self.assertEqual(score, Decimal('83.00'))

    def test_weights_not_adding_up_to_100_are_normalized(self):
        """30/30/30 weights still give a score on the 0-100 scale."""
        with self.assertLogs('gradebook.utils', level='WARNING'):
            score = compute_weighted_score([(80, 30), (90, 30), (70, 30)])
        self.assertEqual(score, Decimal('80.00'))

    def test_normalization_with_uneven_weights(self):
        # (100x50 + 50x40) / 90 = 77.777...
        score = compute_weighted_score([(100, 50), (50, 40)])
        self.assertEqual(score, Decimal('77.78'))

    def test_empty_and_zero_weight(self):
        self.assertEqual(compute_weighted_score([]), Decimal('0.00'))
        self.assertEqual(compute_weighted_score([(90, 0), (80, 0)]), Decimal('0.00'))

    def test_rounds_half_up(self):
        # 66.665 -> 66.67
        score = compute_weighted_score([(Decimal('66.665'), 100)])
        self.assertEqual(score, Decimal('66.67'))

    def test_accepts_strings(self):
        self.assertEqual(compute_weighted_score([('75.5', '100')]), Decimal('75.50'))


class DetermineResultTests(SimpleTestCase):

    def test_pass_mark_is_inclusive(self):
        self.assertEqual(determine_result(Decimal('70.00'), Decimal('70.00')), 'pass')
        self.assertEqual(determine_result(Decimal('69.99'), Decimal('70.00')), 'fail')
        self.assertEqual(determine_result(100, 70), 'pass')

    def test_summarize_scores(self):
        summary = summarize_scores([Decimal('80'), Decimal('90'), Decimal('70')])
        self.assertEqual(summary['average'], Decimal('80.00'))
        self.assertEqual(summary['max'], Decimal('90'))
        self.assertEqual(summary['min'], Decimal('70'))
        self.assertEqual(summarize_scores([]), {'average': None, 'max': None, 'min': None})


class GradingTestCase(TestCase):

    def setUp(self):
        self.instructor = User.objects.create_instructor(email='sabeom@dojo.com', password='x')
        self.exam = exam_services.create_exam(
            name='June Graduation',
            date=date(2025, 6, 20),
            target_belt='naranja',
            required_belt='amarillo',
            categories=CATEGORIES,
        )
        self.student = Student.objects.create(
            first_name='Ana',
            last_name='Lopez',
            student_code='S001',
            belt_level='amarillo',
            belt_date_obtained=date.today() - timedelta(days=200),
        )
        exam_services.enroll_candidate(self.exam.pk, self.student.pk)


class FinalizeGradeTests(GradingTestCase):

    def test_finalize_computes_score_and_result(self):
        grade = services.finalize_grade(self.exam.pk, self.student.pk, SCORES, evaluated_by=self.instructor)
        self.assertEqual(grade.final_score, Decimal('83.00'))
        self.assertEqual(grade.result, Grade.Result.PASS)
        self.assertEqual(grade.state, Grade.State.FINALIZED)
        self.assertEqual(grade.min_passing_score, Decimal('70.00'))
        self.assertEqual(grade.evaluated_by, self.instructor)
        self.assertIsNotNone(grade.evaluated_at)
        self.assertEqual(grade.category_scores.count(), 4)
        self.assertEqual(grade.calculate_final_score(), Decimal('83.00'))

        candidate = ExamCandidate.objects.get(exam=self.exam, student=self.student)
        self.assertTrue(candidate.graded)
        self.assertTrue(candidate.passed)

    def test_weights_come_from_the_exam(self):
        grade = services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        weights = dict(grade.category_scores.values_list('category', 'weight'))
        self.assertEqual(weights['Technique'], Decimal('40.00'))
        self.assertEqual(weights['Attitude'], Decimal('10.00'))

    def test_explicit_weights_not_adding_up_are_normalized(self):
        grade = services.finalize_grade(self.exam.pk, self.student.pk, [
            {'category': 'Technique', 'score': 80, 'weight': 30},
            {'category': 'Poomsae', 'score': 90, 'weight': 30},
            {'category': 'Sparring', 'score': 70, 'weight': 30},
        ])
        self.assertEqual(grade.final_score, Decimal('80.00'))
        self.assertEqual(grade.result, Grade.Result.PASS)

    def test_failing_score(self):
        grade = services.finalize_grade(self.exam.pk, self.student.pk, [
            {'category': 'Technique', 'score': 60},
            {'category': 'Poomsae', 'score': 60},
            {'category': 'Sparring', 'score': 60},
            {'category': 'Attitude', 'score': 60},
        ])
        self.assertEqual(grade.result, Grade.Result.FAIL)
        self.assertFalse(grade.passed)
        candidate = ExamCandidate.objects.get(exam=self.exam, student=self.student)
        self.assertTrue(candidate.graded)
        self.assertFalse(candidate.passed)

    def test_exam_threshold_is_used(self):
        Exam.objects.filter(pk=self.exam.pk).update(min_passing_score=Decimal('85.00'))
        grade = services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        self.assertEqual(grade.result, Grade.Result.FAIL)
        self.assertEqual(grade.min_passing_score, Decimal('85.00'))

    def test_score_out_of_range(self):
        with self.assertRaises(ValidationError):
            services.finalize_grade(self.exam.pk, self.student.pk, [{'category': 'Technique', 'score': 101}])
        self.assertFalse(Grade.objects.exists())

    def test_weight_out_of_range(self):
        with self.assertRaises(CategoryWeightInvalid):
            services.finalize_grade(self.exam.pk, self.student.pk, [
                {'category': 'Technique', 'score': 80, 'weight': 150},
            ])

    def test_unknown_category_without_weight(self):
        with self.assertRaises(ValidationError):
            services.finalize_grade(self.exam.pk, self.student.pk, [{'category': 'Breaking', 'score': 80}])

    def test_no_scores(self):
        with self.assertRaises(ValidationError) as ctx:
            services.finalize_grade(self.exam.pk, self.student.pk, [])
        self.assertEqual(ctx.exception.code, 'no_scores')

    def test_not_enrolled(self):
        other = Student.objects.create(first_name='Luis', last_name='Diaz', student_code='S002')
        with self.assertRaises(NotEnrolled):
            services.finalize_grade(self.exam.pk, other.pk, SCORES)

    def test_refinalize_recomputes(self):
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        grade = services.finalize_grade(self.exam.pk, self.student.pk, [
            {'category': 'Technique', 'score': 50},
            {'category': 'Poomsae', 'score': 50},
            {'category': 'Sparring', 'score': 50},
            {'category': 'Attitude', 'score': 50},
        ])
        self.assertEqual(grade.final_score, Decimal('50.00'))
        self.assertEqual(Grade.objects.filter(exam=self.exam, student=self.student).count(), 1)

    def test_finalize_from_draft_scores(self):
        draft = services.record_scores(self.exam.pk, self.student.pk, SCORES)
        self.assertEqual(draft.state, Grade.State.DRAFT)
        self.assertEqual(draft.final_score, Decimal('83.00'))
        grade = services.finalize_grade(self.exam.pk, self.student.pk)
        self.assertEqual(grade.pk, draft.pk)
        self.assertEqual(grade.result, Grade.Result.PASS)

    def test_malformed_score_items(self):
        with self.assertRaises(ValidationError) as ctx:
            services.finalize_grade(self.exam.pk, self.student.pk, ['Technique'])
        self.assertEqual(ctx.exception.code, 'invalid_scores')
        with self.assertRaises(ValidationError) as ctx:
            services.finalize_grade(self.exam.pk, self.student.pk, {'Technique': 80})
        self.assertEqual(ctx.exception.code, 'invalid_scores')
        self.assertFalse(Grade.objects.exists())

    def test_scores_are_rounded_before_weighting(self):
        # Unrounded, (85.555 + 70.005) / 2 would give 77.78
        scores = [
            {'category': 'Technique', 'score': '85.555', 'weight': 50},
            {'category': 'Poomsae', 'score': '70.005', 'weight': 50},
        ]
        draft = services.record_scores(self.exam.pk, self.student.pk, scores)
        self.assertEqual(draft.final_score, Decimal('77.79'))
        stored = dict(draft.category_scores.values_list('category', 'score'))
        self.assertEqual(stored['Technique'], Decimal('85.56'))

        grade = services.finalize_grade(self.exam.pk, self.student.pk)
        self.assertEqual(grade.final_score, Decimal('77.79'))

    def test_bad_expected_version(self):
        with self.assertRaises(ValidationError) as ctx:
            services.finalize_grade(self.exam.pk, self.student.pk, SCORES, expected_version='abc')
        self.assertEqual(ctx.exception.code, 'invalid_version')
        self.assertFalse(Grade.objects.exists())

    def test_failed_graduation_tests_are_counted_once(self):
        failing = [{'category': c['name'], 'score': 40} for c in CATEGORIES]
        services.finalize_grade(self.exam.pk, self.student.pk, failing)
        self.student.refresh_from_db()
        self.assertEqual(self.student.graduation_tests_failed, 1)

        services.finalize_grade(self.exam.pk, self.student.pk, failing)
        self.student.refresh_from_db()
        self.assertEqual(self.student.graduation_tests_failed, 1)

        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        self.student.refresh_from_db()
        self.assertEqual(self.student.graduation_tests_failed, 0)

    def test_evaluation_exam_failures_are_not_counted(self):
        evaluation = exam_services.create_exam(
            name='Mid-term evaluation',
            date=date(2025, 6, 21),
            exam_type=Exam.ExamType.TECHNICAL,
            categories=CATEGORIES,
        )
        exam_services.enroll_candidate(evaluation.pk, self.student.pk)
        grade = services.finalize_grade(evaluation.pk, self.student.pk, [
            {'category': c['name'], 'score': 40} for c in CATEGORIES
        ])
        self.assertEqual(grade.result, Grade.Result.FAIL)
        self.student.refresh_from_db()
        self.assertEqual(self.student.graduation_tests_failed, 0)

    def test_stale_exam_version(self):
        with self.assertRaises(ConflictError):
            services.finalize_grade(self.exam.pk, self.student.pk, SCORES, expected_version=1)

    def test_cancelled_exam(self):
        exam_services.change_exam_status(self.exam.pk, Exam.Status.CANCELLED)
        with self.assertRaises(StateError):
            services.finalize_grade(self.exam.pk, self.student.pk, SCORES)


class GradeLifecycleTests(GradingTestCase):

    def test_one_active_grade_per_exam_and_student(self):
        services.create_grade(self.exam.pk, self.student.pk)
        with self.assertRaises(GradeAlreadyExists):
            services.create_grade(self.exam.pk, self.student.pk)

    def test_database_constraint(self):
        Grade.objects.create(exam=self.exam, student=self.student)
        with self.assertRaises(IntegrityError):
            Grade.objects.create(exam=self.exam, student=self.student)

    def test_inactive_grade_does_not_block(self):
        Grade.objects.create(exam=self.exam, student=self.student, is_active=False)
        grade = services.create_grade(self.exam.pk, self.student.pk)
        self.assertTrue(grade.is_active)

    def test_record_scores_only_on_draft(self):
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        with self.assertRaises(StateError) as ctx:
            services.record_scores(self.exam.pk, self.student.pk, SCORES)
        self.assertEqual(ctx.exception.code, 'grade_not_draft')

    def test_review(self):
        grade = services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        reviewer = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        grade = services.review_grade(grade.pk, reviewer, 'Confirmed')
        self.assertEqual(grade.state, Grade.State.REVIEWED)
        self.assertTrue(grade.passed)
        self.assertEqual(grade.review_comments, 'Confirmed')

        with self.assertRaises(StateError) as ctx:
            services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        self.assertEqual(ctx.exception.code, 'grade_reviewed')

    def test_review_requires_finalized(self):
        grade = services.create_grade(self.exam.pk, self.student.pk)
        with self.assertRaises(StateError):
            services.review_grade(grade.pk, self.instructor)

    def test_review_unknown_grade(self):
        with self.assertRaises(NotFoundError):
            services.review_grade('not-a-uuid', self.instructor)

    def test_get_grade(self):
        with self.assertRaises(NotFoundError):
            services.get_grade(self.exam.pk, self.student.pk)
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        self.assertEqual(services.get_grade(self.exam.pk, self.student.pk).final_score, Decimal('83.00'))

    def test_category_score_unique_per_grade(self):
        grade = services.create_grade(self.exam.pk, self.student.pk)
        CategoryScore.objects.create(grade=grade, category='Technique', score=80, weight=40)
        with self.assertRaises(IntegrityError):
            CategoryScore.objects.create(grade=grade, category='Technique', score=90, weight=40)


class GradeStatisticsTests(GradingTestCase):

    def test_statistics(self):
        second = Student.objects.create(
            first_name='Luis', last_name='Diaz', student_code='S002', belt_level='amarillo'
        )
        third = Student.objects.create(
            first_name='Eva', last_name='Ruiz', student_code='S003', belt_level='amarillo'
        )
        exam_services.enroll_candidate(self.exam.pk, second.pk)
        exam_services.enroll_candidate(self.exam.pk, third.pk)

        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        services.finalize_grade(self.exam.pk, second.pk, [
            {'category': name, 'score': 50} for name in ('Technique', 'Poomsae', 'Sparring', 'Attitude')
        ])
        services.create_grade(self.exam.pk, third.pk)

        stats = services.exam_grade_statistics(self.exam.pk)
        self.assertEqual(stats['total'], 3)
        self.assertEqual(stats['passed'], 1)
        self.assertEqual(stats['failed'], 1)
        self.assertEqual(stats['pending'], 1)
        self.assertEqual(stats['pass_rate'], Decimal('50.00'))
        self.assertEqual(stats['average'], Decimal('66.50'))
        self.assertEqual(stats['max'], Decimal('83.00'))
        self.assertEqual(stats['min'], Decimal('50.00'))


class GradeListingTests(GradingTestCase):

    def setUp(self):
        super().setUp()
        self.second = Student.objects.create(
            first_name='Luis', last_name='Diaz', student_code='S002', belt_level='amarillo'
        )
        exam_services.enroll_candidate(self.exam.pk, self.second.pk)
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        services.finalize_grade(self.exam.pk, self.second.pk, [
            {'category': c['name'], 'score': 50} for c in CATEGORIES
        ])

    def test_exam_grades_best_first(self):
        grades = list(services.list_exam_grades(self.exam.pk))
        self.assertEqual([g.student_id for g in grades], [self.student.pk, self.second.pk])

        failed = services.list_exam_grades(self.exam.pk, result='fail')
        self.assertEqual([g.student_id for g in failed], [self.second.pk])
        self.assertEqual(services.list_exam_grades(self.exam.pk, state='draft').count(), 0)

    def test_exam_grades_skip_inactive(self):
        Grade.objects.filter(student=self.second).update(is_active=False)
        self.assertEqual(services.list_exam_grades(self.exam.pk).count(), 1)

    def test_student_grades(self):
        evaluation = exam_services.create_exam(
            name='Technical evaluation',
            date=date(2025, 7, 1),
            exam_type=Exam.ExamType.TECHNICAL,
            categories=CATEGORIES,
        )
        exam_services.enroll_candidate(evaluation.pk, self.student.pk)
        services.create_grade(evaluation.pk, self.student.pk)

        grades = list(services.list_student_grades(self.student.pk))
        self.assertEqual(len(grades), 2)
        # Finalized grades come before drafts that were never evaluated
        self.assertEqual(grades[0].exam_id, self.exam.pk)

        only_exam = services.list_student_grades(str(self.student.pk), exam_id=evaluation.pk)
        self.assertEqual([g.exam_id for g in only_exam], [evaluation.pk])
        self.assertEqual(services.list_student_grades(self.student.pk, result='pass').count(), 1)

    def test_listing_input_errors(self):
        with self.assertRaises(ValidationError):
            services.list_exam_grades(self.exam.pk, result='excellent')
        with self.assertRaises(ValidationError):
            services.list_student_grades('first')
        with self.assertRaises(NotFoundError):
            services.list_student_grades(999999)
        with self.assertRaises(NotFoundError):
            services.list_exam_grades('not-a-uuid')


class GradebookViewTests(GradingTestCase):

    def setUp(self):
        super().setUp()
        self.client = Client()
        self.client.force_login(self.instructor)

    def test_finalize_view(self):
        url = reverse('gradebook:finalize', args=[self.exam.pk, self.student.pk])
        response = self.client.post(url, data=json.dumps({'category_scores': SCORES}),
                                    content_type='application/json')
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(data['final_score'], '83.00')
        self.assertEqual(data['result'], 'pass')

    def test_finalize_view_validation_error(self):
        url = reverse('gradebook:finalize', args=[self.exam.pk, self.student.pk])
        response = self.client.post(url, data=json.dumps({
            'category_scores': [{'category': 'Technique', 'score': 80, 'weight': 120}],
        }), content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['code'], 'category_weight_invalid')

    def test_grade_detail_not_found(self):
        response = self.client.get(reverse('gradebook:grade_detail', args=[self.exam.pk, self.student.pk]))
        self.assertEqual(response.status_code, 404)

    def test_statistics_view(self):
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        response = self.client.get(reverse('gradebook:exam_statistics', args=[self.exam.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)['data']['passed'], 1)

    def test_malformed_scores_view(self):
        url = reverse('gradebook:finalize', args=[self.exam.pk, self.student.pk])
        response = self.client.post(url, data=json.dumps({'category_scores': ['Technique', 80]}),
                                    content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['code'], 'invalid_scores')

    def test_exam_grades_view(self):
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        response = self.client.get(reverse('gradebook:exam_grades', args=[self.exam.pk]))
        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)['data']
        self.assertEqual(len(data['grades']), 1)
        self.assertEqual(data['grades'][0]['final_score'], '83.00')
        self.assertEqual(data['statistics']['passed'], 1)

        response = self.client.get(reverse('gradebook:exam_grades', args=[self.exam.pk]), {'result': 'maybe'})
        self.assertEqual(response.status_code, 400)

    def test_student_grades_view(self):
        services.finalize_grade(self.exam.pk, self.student.pk, SCORES)
        response = self.client.get(reverse('gradebook:student_grades', args=[self.student.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)['data']['total'], 1)

        response = self.client.get(reverse('gradebook:student_grades', args=[999999]))
        self.assertEqual(response.status_code, 404)
