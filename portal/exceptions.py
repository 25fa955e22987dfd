"""
Application error types.

Services raise these; the handlers in exception_handlers.py turn them into
JSON responses, so route code does not need try/except blocks.

    raise NotFoundError("Article")               # 404: "Article not found"
    raise ConflictError("Category with this name already exists")
    raise InvalidInputError("categoryId is required")
"""


class AppException(Exception):
    """
    Base class for errors that map to an HTTP response.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code to return
        error_code: Machine-readable error code
        extra: Additional fields merged into the response body
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str | None = None,
        extra: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or f"ERR_{status_code}"
        self.extra = dict(extra or {})
        super().__init__(message)


class InvalidInputError(AppException):
    """Missing or malformed field, rejected upload (400)."""

    def __init__(self, message: str, extra: dict | None = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_INPUT",
            extra=extra,
        )


class UnauthorizedError(AppException):
    """Missing/invalid session or inactive user (401)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401, error_code="UNAUTHORIZED")


class NotFoundError(AppException):
    """Unknown id or slug (404)."""

    def __init__(self, resource: str = "Resource"):
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            error_code="NOT_FOUND",
        )


class ConflictError(AppException):
    """Uniqueness violation (409)."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=409, error_code="CONFLICT")


class DependencyFailureError(AppException):
    """Data store or object store failed for infrastructure reasons (502)."""

    def __init__(self, service: str, reason: str | None = None):
        message = f"{service} error"
        if reason:
            message = f"{service} error: {reason}"
        super().__init__(
            message=message,
            status_code=502,
            error_code="DEPENDENCY_FAILURE",
        )
