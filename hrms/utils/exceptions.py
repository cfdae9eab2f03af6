"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Pre-configured HTTPException subclasses for the error taxonomy. The
application's exception handlers render each as
``{"success": false, "message": detail}``.

Usage:
    from hrms.utils.exceptions import NotFoundError, ConflictError
    raise NotFoundError("User not found")
    raise ConflictError("Already checked in")
"""

from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 입력 또는 비즈니스 규칙 위반.

    Raised for malformed input or business-rule violations beyond what
    pydantic validation catches.
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(BadRequestError):
    """400 Conflict 예외 — 고유성/중복 위반.

    Uniqueness or overlap violation (duplicate email, open attendance
    session, overlapping leave). Reported as 400.
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(detail=detail)


class InvalidStateError(BadRequestError):
    """400 — 상태 전이 불가 (State-machine transition not allowed)."""

    def __init__(self, detail: str = "Invalid state transition") -> None:
        super().__init__(detail=detail)


class InsufficientBalanceError(BadRequestError):
    """400 — 휴가 잔여 부족 (Leave balance lower than requested days)."""

    def __init__(self, detail: str = "Insufficient leave balance") -> None:
        super().__init__(detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    Raised when authentication is missing, invalid, or expired
    (missing cookie, expired token, bad credentials, used refresh token).
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 역할, 테넌트, 정책 잠금 위반.

    Raised on role, tenant or policy-lock violations.
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 리소스가 없거나 다른 조직 소속.

    Raised when an entity is absent or outside the caller's organization.
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class NotificationError(HTTPException):
    """500 — 이메일 발송 실패 (Outbound email failed after commit)."""

    def __init__(self, detail: str = "Failed to send notification") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class ConfigurationError(RuntimeError):
    """필수 설정 누락 — 치명적 오류 (Missing required configuration; fatal)."""
