from typing import Any

from fastapi import HTTPException, status


class TerrinException(HTTPException):
    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.extra = extra or {}


class UnauthorizedError(TerrinException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail=detail, status_code=status.HTTP_401_UNAUTHORIZED)


class NotFoundError(TerrinException):
    def __init__(self, resource: str, resource_id: str | None = None):
        detail = f"{resource} not found"
        if resource_id:
            detail = f"{resource} '{resource_id}' not found"
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class PermissionDeniedError(TerrinException):
    def __init__(
        self,
        detail: str = "You do not have permission to perform this action",
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(detail=detail, status_code=status.HTTP_403_FORBIDDEN, extra=extra)


class BadRequestError(TerrinException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class ConflictError(TerrinException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_409_CONFLICT)


class PayloadTooLargeError(TerrinException):
    def __init__(self, detail: str):
        super().__init__(detail=detail, status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


class NotConfiguredError(TerrinException):
    def __init__(self, service: str):
        super().__init__(
            detail=f"{service} not configured", status_code=status.HTTP_501_NOT_IMPLEMENTED
        )


class ExternalServiceError(TerrinException):
    def __init__(self, service: str, detail: str | None = None):
        msg = f"External service error: {service}"
        if detail:
            msg += f" - {detail}"
        super().__init__(detail=msg, status_code=status.HTTP_502_BAD_GATEWAY)
