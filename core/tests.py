import json
from decimal import Decimal
from uuid import UUID

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase, SimpleTestCase, RequestFactory, override_settings

from core.api import (
    to_json, error_response, success_response, parse_json_body,
    admin_required, staff_required, service_view,
)
from core.choices import BeltRank, TARGET_BELT_CHOICES, REQUIRED_BELT_CHOICES
from core.config import AppSettings
from core.exceptions import (
    ServiceError, ValidationError, NotFoundError, ConflictError, StateError,
    CategoryWeightInvalid, NotEnrolled, AlreadyEnrolled, BeltMismatch,
    GradeNotApproved, AlreadyGraduated,
)
from core.utils import to_decimal, to_record_id

User = get_user_model()


class BeltRankTests(SimpleTestCase):

    def test_promotion_order(self):
        self.assertEqual(BeltRank.rank_index(BeltRank.WHITE), 0)
        self.assertLess(
            BeltRank.rank_index(BeltRank.YELLOW),
            BeltRank.rank_index(BeltRank.ORANGE)
        )
        self.assertLess(
            BeltRank.rank_index(BeltRank.BROWN_BLACK),
            BeltRank.rank_index(BeltRank.BLACK_1)
        )

    def test_is_black(self):
        self.assertTrue(BeltRank.is_black('negro-3'))
        self.assertFalse(BeltRank.is_black('marron-negro'))
        self.assertFalse(BeltRank.is_black(''))

    def test_restricted_choice_lists(self):
        """White is never awarded, 9th Dan is never a prerequisite."""
        self.assertNotIn(BeltRank.WHITE, dict(TARGET_BELT_CHOICES))
        self.assertIn(BeltRank.BLACK_9, dict(TARGET_BELT_CHOICES))
        self.assertNotIn(BeltRank.BLACK_9, dict(REQUIRED_BELT_CHOICES))
        self.assertIn(BeltRank.WHITE, dict(REQUIRED_BELT_CHOICES))


class ServiceErrorTests(SimpleTestCase):

    def test_kinds(self):
        self.assertEqual(ValidationError().kind, 'validation')
        self.assertEqual(NotFoundError().kind, 'not_found')
        self.assertEqual(ConflictError().kind, 'conflict')
        self.assertEqual(StateError().kind, 'state')

    def test_specific_errors_keep_their_kind(self):
        self.assertEqual(CategoryWeightInvalid().kind, 'validation')
        self.assertEqual(NotEnrolled().kind, 'not_found')
        self.assertEqual(AlreadyEnrolled().kind, 'conflict')
        self.assertEqual(BeltMismatch().kind, 'conflict')
        self.assertEqual(GradeNotApproved().kind, 'conflict')
        self.assertEqual(AlreadyGraduated().code, 'already_graduated')

    def test_default_message(self):
        error = AlreadyEnrolled()
        self.assertEqual(str(error), AlreadyEnrolled.default_message)

    def test_code_override_does_not_leak_to_class(self):
        error = ValidationError('Bad JSON', code='invalid_json')
        self.assertEqual(error.code, 'invalid_json')
        self.assertEqual(ValidationError().code, 'invalid')

    def test_as_dict(self):
        error = NotFoundError('Exam x not found.', code='exam_not_found', details={'id': 'x'})
        self.assertEqual(error.as_dict(), {
            'kind': 'not_found',
            'code': 'exam_not_found',
            'message': 'Exam x not found.',
            'details': {'id': 'x'},
        })

    def test_all_errors_are_service_errors(self):
        for error_class in (CategoryWeightInvalid, NotEnrolled, BeltMismatch, AlreadyGraduated):
            self.assertTrue(issubclass(error_class, ServiceError))


class AppSettingsTests(SimpleTestCase):

    def setUp(self):
        self.config = AppSettings('DOJO', {'EXAM_FEE': Decimal('500.00'), 'RETRIES': 3})

    def test_default_value(self):
        self.assertEqual(self.config.EXAM_FEE, Decimal('500.00'))

    @override_settings(DOJO_EXAM_FEE=Decimal('650.00'))
    def test_settings_override(self):
        self.assertEqual(self.config.EXAM_FEE, Decimal('650.00'))
        self.assertEqual(self.config.RETRIES, 3)

    def test_unknown_setting(self):
        with self.assertRaises(AttributeError):
            self.config.MISSING

    def test_module_level_access(self):
        from examinations import config
        self.assertEqual(config.DEFAULT_MIN_DAYS_SINCE_BELT, 90)


class ToDecimalTests(SimpleTestCase):

    def test_float_goes_through_str(self):
        self.assertEqual(to_decimal(83.3, 'Score'), Decimal('83.3'))

    def test_numeric_string(self):
        self.assertEqual(to_decimal('70.50', 'Score'), Decimal('70.50'))

    def test_required(self):
        for value in (None, '', True):
            with self.assertRaises(ValidationError):
                to_decimal(value, 'Score')

    def test_not_a_number(self):
        with self.assertRaises(ValidationError):
            to_decimal('abc', 'Score')
        with self.assertRaises(ValidationError):
            to_decimal('NaN', 'Score')

    def test_bounds(self):
        with self.assertRaises(ValidationError):
            to_decimal(-1, 'Score', minimum=Decimal('0'))
        with self.assertRaises(ValidationError):
            to_decimal('100.01', 'Score', maximum=Decimal('100'))
        self.assertEqual(to_decimal(100, 'Score', Decimal('0'), Decimal('100')), Decimal('100'))

    def test_custom_error_class(self):
        with self.assertRaises(CategoryWeightInvalid) as ctx:
            to_decimal(150, 'Weight', maximum=Decimal('100'), error_class=CategoryWeightInvalid)
        self.assertEqual(ctx.exception.details['field'], 'Weight')


class ToRecordIdTests(SimpleTestCase):

    def test_accepts_ints_and_digit_strings(self):
        self.assertEqual(to_record_id(7, 'student_id'), 7)
        self.assertEqual(to_record_id(' 42 ', 'student_id'), 42)

    def test_rejects_everything_else(self):
        for value in ([1], True, 1.5, 'abc', '-3', '', None, {'id': 1}):
            with self.assertRaises(ValidationError) as ctx:
                to_record_id(value, 'student_id')
            self.assertEqual(ctx.exception.code, 'invalid_id')


class JsonHelperTests(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_to_json(self):
        uid = UUID('12345678-1234-5678-1234-567812345678')
        data = to_json({'score': Decimal('83.00'), 'ids': [uid], 'nested': {'n': 1}})
        self.assertEqual(data, {'score': '83.00', 'ids': [str(uid)], 'nested': {'n': 1}})

    def test_error_response_status(self):
        response = error_response(AlreadyEnrolled())
        self.assertEqual(response.status_code, 409)
        payload = json.loads(response.content)
        self.assertEqual(payload['status'], 'error')
        self.assertEqual(payload['code'], 'already_enrolled')

        self.assertEqual(error_response(CategoryWeightInvalid()).status_code, 400)
        self.assertEqual(error_response(NotEnrolled()).status_code, 404)
        self.assertEqual(error_response(StateError()).status_code, 409)

    def test_success_response(self):
        payload = json.loads(success_response({'total': Decimal('1.50')}).content)
        self.assertEqual(payload, {'status': 'success', 'data': {'total': '1.50'}})

    def test_parse_json_body(self):
        request = self.factory.post('/', data='{"a": 1}', content_type='application/json')
        self.assertEqual(parse_json_body(request), {'a': 1})

    def test_parse_json_body_rejects_garbage(self):
        request = self.factory.post('/', data='{not json', content_type='application/json')
        with self.assertRaises(ValidationError) as ctx:
            parse_json_body(request)
        self.assertEqual(ctx.exception.code, 'invalid_json')

        request = self.factory.post('/', data='[1, 2]', content_type='application/json')
        with self.assertRaises(ValidationError):
            parse_json_body(request)

    def test_service_view_translates_errors(self):
        @service_view
        def view(request):
            raise BeltMismatch()

        response = view(self.factory.get('/'))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(json.loads(response.content)['code'], 'belt_mismatch')


class RoleDecoratorTests(TestCase):

    def setUp(self):
        self.factory = RequestFactory()

        @admin_required
        def admin_view(request):
            return success_response()

        @staff_required
        def staff_view(request):
            return success_response()

        self.admin_view = admin_view
        self.staff_view = staff_view

    def _request(self, user):
        request = self.factory.get('/')
        request.user = user
        return request

    def test_anonymous_gets_401(self):
        self.assertEqual(self.admin_view(self._request(AnonymousUser())).status_code, 401)
        self.assertEqual(self.staff_view(self._request(AnonymousUser())).status_code, 401)

    def test_instructor_is_staff_but_not_admin(self):
        instructor = User.objects.create_instructor(email='sabeom@dojo.com', password='x')
        self.assertEqual(self.staff_view(self._request(instructor)).status_code, 200)
        self.assertEqual(self.admin_view(self._request(instructor)).status_code, 403)

    def test_school_admin_passes_both(self):
        admin = User.objects.create_school_admin(email='admin@dojo.com', password='x')
        self.assertEqual(self.staff_view(self._request(admin)).status_code, 200)
        self.assertEqual(self.admin_view(self._request(admin)).status_code, 200)

    def test_plain_user_is_forbidden(self):
        user = User.objects.create_user(email='parent@dojo.com', password='x')
        self.assertEqual(self.staff_view(self._request(user)).status_code, 403)
