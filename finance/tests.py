from decimal import Decimal

from django.test import TestCase

from students.models import Student

from .models import Payment


class PaymentModelTest(TestCase):
    """Tests for the Payment ledger entry."""

    def setUp(self):
        self.student = Student.objects.create(first_name='Ana', last_name='Lopez', student_code='S001')
        self.payment = Payment.objects.create(
            student=self.student,
            concept='March tuition',
            amount=Decimal('300.00'),
        )

    def test_pending_is_outstanding(self):
        self.assertEqual(self.payment.status, 'PENDING')
        self.assertTrue(self.payment.is_outstanding)

    def test_overdue_is_outstanding(self):
        self.payment.status = 'OVERDUE'
        self.assertTrue(self.payment.is_outstanding)

    def test_inactive_is_not_outstanding(self):
        self.payment.is_active = False
        self.assertFalse(self.payment.is_outstanding)

    def test_mark_paid(self):
        self.payment.mark_paid(method='BANK_TRANSFER', reference='TRX-001')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'PAID')
        self.assertEqual(self.payment.reference, 'TRX-001')
        self.assertIsNotNone(self.payment.paid_at)
        self.assertFalse(self.payment.is_outstanding)
