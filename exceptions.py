class BusinessException(Exception):
    """Base class for errors that are reported to API clients as-is."""

    status_code = 400

    def __init__(self, message, errors=None, status_code=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}
        if status_code is not None:
            self.status_code = status_code


class ValidationException(BusinessException):
    status_code = 422


class ResourceNotFoundException(BusinessException):
    status_code = 404

    def __init__(self, resource='Resource'):
        super().__init__(f'{resource} not found')


class UnauthorizedException(BusinessException):
    status_code = 403

    def __init__(self, message='Unauthorized'):
        super().__init__(message)


class ServiceException(BusinessException):
    status_code = 503

    def __init__(self, message='Service temporarily unavailable'):
        super().__init__(message)
