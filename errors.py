class FinanceTrackerError(Exception):
    """Base error for the tracker. Carries the code and HTTP status the API reports."""

    code = 'error'
    status_code = 500
    default_message = 'Unexpected error.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class InvalidInput(FinanceTrackerError):
    code = 'invalid_input'
    status_code = 400
    default_message = 'Invalid input.'


class Unauthenticated(FinanceTrackerError):
    code = 'unauthenticated'
    status_code = 401
    default_message = 'Login required.'


class InvalidCredentials(FinanceTrackerError):
    code = 'invalid_credentials'
    status_code = 401
    default_message = 'Invalid credentials.'


class CategoryOwnershipMismatch(FinanceTrackerError):
    """Raised when a user references a category that belongs to someone else."""

    code = 'category_ownership_mismatch'
    status_code = 403
    default_message = 'Category does not belong to the current user.'


class NotFound(FinanceTrackerError):
    code = 'not_found'
    status_code = 404
    default_message = 'Not found.'


class CategoryNotFound(NotFound):
    code = 'category_not_found'
    default_message = 'Category not found.'


class DuplicateEmail(FinanceTrackerError):
    code = 'duplicate_email'
    status_code = 409
    default_message = 'Email already registered.'


class DuplicateName(FinanceTrackerError):
    code = 'duplicate_name'
    status_code = 409
    default_message = 'A category with that name already exists.'


class StoreUnavailable(FinanceTrackerError):
    """Transient database failure. Safe for the caller to retry."""

    code = 'store_unavailable'
    status_code = 503
    default_message = 'Storage is temporarily unavailable. Please retry.'
