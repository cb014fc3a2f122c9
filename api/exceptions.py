"""
Ошибки доменного уровня.

NotFound наследуется от ObjectDoesNotExist, остальные от ValidationError,
поэтому views разбирают их так же, как ошибки ORM. У каждой ошибки есть
стабильный code, который уходит клиенту.
"""
from django.core.exceptions import ObjectDoesNotExist, ValidationError


class NotFound(ObjectDoesNotExist):
    default_code = 'NOT_FOUND'

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ReviewError(ValidationError):
    default_code = 'VALIDATION_ERROR'

    def __init__(self, message, code=None):
        super().__init__(message, code=code or self.default_code)


class AlreadyExists(ReviewError):
    default_code = 'ALREADY_EXISTS'


class InvalidState(ReviewError):
    default_code = 'INVALID_STATE'


class AlreadyAssigned(ReviewError):
    default_code = 'ALREADY_ASSIGNED'


class AuthorCannotReview(ReviewError):
    default_code = 'AUTHOR_CANNOT_REVIEW'


class Inactive(ReviewError):
    default_code = 'REVIEWER_INACTIVE'


class NoTeam(ReviewError):
    default_code = 'NO_TEAM'


class NoAvailableReviewer(ReviewError):
    default_code = 'NO_CANDIDATE'


class AlreadyInTeam(ReviewError):
    default_code = 'ALREADY_IN_TEAM'


class NotInTeam(ReviewError):
    default_code = 'NOT_IN_TEAM'
