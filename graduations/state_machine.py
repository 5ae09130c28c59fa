"""
Graduation lifecycle: pending -> approved -> certified, or cancelled.

Approval is where the student's belt changes. The change is written with a
single UPDATE of the belt columns and guarded by ``student_updated`` so that
approving twice, or re-driving a half-finished graduation, never applies it
again.
"""
import logging
import secrets
import string

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import ValidationError, NotFoundError, ConflictError, StateError
from students.models import Student

from . import config
from .models import Graduation

logger = logging.getLogger(__name__)

CERTIFICATE_ALPHABET = string.ascii_uppercase + string.digits


def generate_certificate_number(graduation_date):
    """CERT-YYYY-MM-XXXXXX for the graduation's year and month."""
    suffix = ''.join(
        secrets.choice(CERTIFICATE_ALPHABET)
        for _ in range(config.CERTIFICATE_SUFFIX_LENGTH)
    )
    return f"{config.CERTIFICATE_PREFIX}-{graduation_date:%Y}-{graduation_date:%m}-{suffix}"


class GraduationStateMachine:
    """
    Transitions for one graduation. Use ``for_update`` inside
    transaction.atomic() so the row stays locked for the whole transition.
    """

    TRANSITIONS = {
        Graduation.State.PENDING: {Graduation.State.APPROVED, Graduation.State.CANCELLED},
        Graduation.State.APPROVED: {Graduation.State.APPROVED, Graduation.State.CERTIFIED, Graduation.State.CANCELLED},
        Graduation.State.CERTIFIED: set(),
        Graduation.State.CANCELLED: set(),
    }

    def __init__(self, graduation):
        self.graduation = graduation

    @classmethod
    def for_update(cls, graduation_id):
        try:
            graduation = Graduation.objects.select_for_update().get(pk=graduation_id, is_active=True)
        except (Graduation.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Graduation {graduation_id} not found.", code='graduation_not_found')
        return cls(graduation)

    def can(self, target):
        return target in self.TRANSITIONS[self.graduation.state]

    def _require(self, target):
        if not self.can(target):
            raise StateError(
                f"Cannot move a {self.graduation.state} graduation to {target}.",
                details={'from': self.graduation.state, 'to': target}
            )

    def approve(self, user=None):
        graduation = self.graduation
        self._require(Graduation.State.APPROVED)

        if graduation.state == Graduation.State.PENDING:
            graduation.state = Graduation.State.APPROVED
            graduation.approved_by = user
            graduation.approved_at = timezone.now()
            graduation.modified_by = user or graduation.modified_by
            graduation.save(update_fields=['state', 'approved_by', 'approved_at', 'modified_by', 'updated_at'])

        self.apply_belt_change()
        return graduation

    def apply_belt_change(self):
        """Copy the new belt onto the student. Returns False when already applied."""
        graduation = self.graduation
        if graduation.student_updated:
            return False

        updated = Student.objects.filter(pk=graduation.student_id).update(
            belt_level=graduation.new_belt,
            belt_date_obtained=graduation.graduation_date,
            belt_certified_by_id=graduation.first_certifier_id,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFoundError(f"Student {graduation.student_id} not found.", code='student_not_found')

        graduation.student_updated = True
        graduation.student_updated_at = timezone.now()
        graduation.save(update_fields=['student_updated', 'student_updated_at', 'updated_at'])
        logger.info(
            f"Student {graduation.student_id} promoted to {graduation.new_belt} "
            f"(graduation {graduation.pk})"
        )
        return True

    def certify(self, *, file_reference, file_type, file_size=None, certificate_number=None,
                issued_by='', issued_at=None, notes='', user=None):
        graduation = self.graduation
        if graduation.state != Graduation.State.APPROVED:
            raise StateError(
                'Only approved graduations can be certified.',
                details={'from': graduation.state, 'to': Graduation.State.CERTIFIED}
            )

        file_reference = str(file_reference or '').strip()
        file_type = str(file_type or '').strip().lower().lstrip('.')
        if not file_reference:
            raise ValidationError('A certificate file is required.', code='certificate_file_required')
        if file_type not in config.CERTIFICATE_FILE_TYPES:
            raise ValidationError(
                f"Unsupported certificate file type '{file_type}'.",
                code='certificate_file_type',
                details={'allowed': list(config.CERTIFICATE_FILE_TYPES)}
            )
        if file_size is not None:
            try:
                file_size = int(file_size)
            except (TypeError, ValueError):
                raise ValidationError('File size must be a whole number of bytes.')
            if file_size < 0:
                raise ValidationError('File size cannot be negative.')

        graduation.certificate_file = file_reference
        graduation.certificate_file_type = file_type
        graduation.certificate_file_size = file_size
        graduation.certificate_issued_by = issued_by or ''
        graduation.certificate_issued_at = issued_at or timezone.localdate()
        graduation.certificate_notes = notes or ''

        self._assign_certificate_number(certificate_number)

        graduation.state = Graduation.State.CERTIFIED
        graduation.modified_by = user or graduation.modified_by
        graduation.save()
        logger.info(f"Graduation {graduation.pk} certified as {graduation.certificate_number}")
        return graduation

    def _assign_certificate_number(self, certificate_number):
        """Persist the number before the state changes; generated numbers retry on collision."""
        graduation = self.graduation
        if certificate_number:
            graduation.certificate_number = str(certificate_number).strip()
            try:
                with transaction.atomic():
                    graduation.save(update_fields=['certificate_number'])
            except IntegrityError:
                raise ConflictError(
                    f"Certificate number {certificate_number} is already in use.",
                    code='duplicate_certificate_number'
                )
            return

        for attempt in range(config.CERTIFICATE_NUMBER_ATTEMPTS):
            candidate = generate_certificate_number(graduation.graduation_date)
            if Graduation.objects.filter(certificate_number=candidate).exists():
                continue
            graduation.certificate_number = candidate
            try:
                with transaction.atomic():
                    graduation.save(update_fields=['certificate_number'])
                return
            except IntegrityError:
                logger.warning(f"Certificate number collision on {candidate}, retrying")
        raise ConflictError(
            'Could not generate a unique certificate number.',
            code='certificate_number_exhausted'
        )

    def cancel(self, reason, user=None):
        graduation = self.graduation
        reason = str(reason or '').strip()
        if not reason:
            raise ValidationError('A reason is required to cancel a graduation.', code='reason_required')
        self._require(Graduation.State.CANCELLED)

        note = f"CANCELLED: {reason}"
        graduation.notes = f"{graduation.notes}\n{note}" if graduation.notes else note
        graduation.state = Graduation.State.CANCELLED
        graduation.modified_by = user or graduation.modified_by
        graduation.save(update_fields=['notes', 'state', 'modified_by', 'updated_at'])
        logger.info(f"Graduation {graduation.pk} cancelled")
        return graduation
