"""
Error taxonomy for the examination and graduation services.

Every service raises a subclass of ServiceError. Each error carries a stable
``kind`` (validation, not_found, conflict, state, internal) and a more
specific ``code`` so callers and the JSON views can react without parsing
messages.
"""


class ServiceError(Exception):
    kind = 'internal'
    code = 'error'
    default_message = 'The operation could not be completed.'

    def __init__(self, message=None, *, code=None, details=None):
        self.message = message or self.default_message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self):
        return {
            'kind': self.kind,
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


class ValidationError(ServiceError):
    """Malformed input, rejected before any mutation."""
    kind = 'validation'
    code = 'invalid'
    default_message = 'Invalid input.'


class NotFoundError(ServiceError):
    kind = 'not_found'
    code = 'not_found'
    default_message = 'Record not found.'


class ConflictError(ServiceError):
    kind = 'conflict'
    code = 'conflict'
    default_message = 'The request conflicts with the current state of the record.'


class StateError(ServiceError):
    """Invalid lifecycle transition."""
    kind = 'state'
    code = 'invalid_transition'
    default_message = 'This transition is not allowed from the current state.'


class InternalError(ServiceError):
    kind = 'internal'
    code = 'internal'
    default_message = 'Unexpected persistence error.'


# Specific errors

class CategoryWeightInvalid(ValidationError):
    code = 'category_weight_invalid'
    default_message = 'Category weights must be between 0 and 100.'


class NotEnrolled(NotFoundError):
    code = 'not_enrolled'
    default_message = 'The student is not enrolled in this exam.'


class AlreadyEnrolled(ConflictError):
    code = 'already_enrolled'
    default_message = 'The student is already enrolled in this exam.'


class BeltMismatch(ConflictError):
    code = 'belt_mismatch'
    default_message = "The student's current belt does not match the exam requirement."


class NotEligible(ConflictError):
    code = 'not_eligible'
    default_message = 'The student does not meet the exam requirements.'


class GradeAlreadyExists(ConflictError):
    code = 'grade_already_exists'
    default_message = 'A grade has already been recorded for this student in this exam.'


class GradeNotApproved(ConflictError):
    code = 'grade_not_approved'
    default_message = 'Grade not found or the student did not pass the exam.'


class AlreadyGraduated(ConflictError):
    code = 'already_graduated'
    default_message = 'The student has already graduated from this exam.'
