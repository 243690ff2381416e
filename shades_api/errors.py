# shades_api/errors.py

class ApiError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    """Bad or missing field, unparseable number, rejected upload, malformed id."""

    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class InternalError(ApiError):
    """Storage or connection failure."""

    status_code = 500
