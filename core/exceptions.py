"""
Exception definitions and FastAPI handlers.

Usage:
- Raise subclasses of `BaseAPIException` from services/repositories/routers.
- Register `unified_api_exception_handler` + `generic_exception_handler` in FastAPI.
- Extend by creating new subclasses with `status_code`, `code`, `message`.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from core.logger import get_logger

logger = get_logger(__name__)


class BaseAPIException(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error."
    detail: str = ""

    def __init__(
        self,
        message: Optional[str] = None,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        if message:
            self.message = message
        if detail:
            self.detail = detail
        if status_code:
            self.status_code = status_code
        if code:
            self.code = code
        super().__init__(self.message)


# Service-level errors
class ServiceError(BaseAPIException):
    pass


class DBConfigError(ServiceError):
    status_code = 500
    code = "DB_CONFIG_ERROR"
    message = "Database configuration error."


class UnavailableError(ServiceError):
    """Downstream timeout or failure; the caller may retry."""

    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    message = "Service temporarily unavailable, please retry."


class SigningUnavailableError(ServiceError):
    """Token signing key missing or unusable. Not recoverable per request."""

    status_code = 500
    code = "SIGNING_UNAVAILABLE"
    message = "Server error."


# Credential / registration errors
class InvalidCredentialFormatError(BaseAPIException):
    status_code = 422
    code = "INVALID_CREDENTIAL_FORMAT"
    message = "手机号或密码格式错误。"


class CodeMismatchError(BaseAPIException):
    status_code = 422
    code = "CODE_MISMATCH"
    message = "验证码错误"


class AlreadyRegisteredError(BaseAPIException):
    status_code = 422
    code = "ALREADY_REGISTERED"
    message = "您已经注册过了"


class DuplicatePhoneError(AlreadyRegisteredError):
    """Unique constraint hit on create, i.e. lost a registration race."""

    code = "DUPLICATE_PHONE"
    message = "手机号已被注册。"


# Auth errors
class InvalidCredentialsError(BaseAPIException):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid phone or password."


class InvalidTokenError(BaseAPIException):
    status_code = 401
    code = "INVALID_TOKEN"
    message = "Token invalid or expired."


class ForbiddenError(BaseAPIException):
    status_code = 403
    code = "FORBIDDEN"
    message = "Not allowed to access this account."


class AccountNotFoundError(BaseAPIException):
    status_code = 404
    code = "ACCOUNT_NOT_FOUND"
    message = "用户不存在。"


# FastAPI handlers
async def unified_api_exception_handler(request: Request, exc: BaseAPIException):
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.detail or exc.message,
            exc_info=exc,
        )
        # internal detail stays in the logs
        detail = None
    else:
        detail = getattr(exc, "detail", None) or None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "message": exc.message,
            "detail": detail,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "code": "INTERNAL_SERVER_ERROR",
            "message": "Server error.",
            "detail": None,
        },
    )


__all__ = [
    "BaseAPIException",
    "ServiceError",
    "DBConfigError",
    "UnavailableError",
    "SigningUnavailableError",
    "InvalidCredentialFormatError",
    "CodeMismatchError",
    "AlreadyRegisteredError",
    "DuplicatePhoneError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "ForbiddenError",
    "AccountNotFoundError",
    "unified_api_exception_handler",
    "generic_exception_handler",
]
