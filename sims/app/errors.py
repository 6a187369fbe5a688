"""
errors.py - AppError base class and error code registry.

Every error returned by the SIMS API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Never conflate 401 (unauthenticated) with 403 (unauthorized).
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input Errors (400) ─────────────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    NOT_FOUND                  = "NOT_FOUND"
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    SCHOOL_NOT_FOUND           = "SCHOOL_NOT_FOUND"
    STUDENT_NOT_FOUND          = "STUDENT_NOT_FOUND"
    TOKEN_NOT_FOUND            = "TOKEN_NOT_FOUND"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not allowed
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    UNAUTHENTICATED            = "UNAUTHENTICATED"        # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    RESET_PASSWORD_FAILED      = "RESET_PASSWORD_FAILED"  # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# Codes used for werkzeug HTTPExceptions that never pass through AppError
# (unknown route, wrong method, malformed JSON body).
HTTP_STATUS_CODES: dict[int, str] = {
    400: ErrorCode.INVALID_FIELD,
    401: ErrorCode.UNAUTHENTICATED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.NOT_FOUND,
}


def unauthenticated() -> AppError:
    """The single 401 used by the auth middleware for every failure mode."""
    return AppError(ErrorCode.UNAUTHENTICATED, "Please authenticate", 401)


def forbidden() -> AppError:
    return AppError(ErrorCode.FORBIDDEN, "Forbidden", 403)
