"""Exception taxonomy and global exception handlers for the FastAPI application."""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message
from clipforge.utils.logger import get_logger

logger = get_logger(__name__)


class ClipforgeException(Exception):
    """Base exception for Clipforge API with unified message codes."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "message_code": self.message_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ClipforgeException):
    """Required credentials or settings are missing or invalid."""

    def __init__(self, description: str, **details):
        super().__init__(
            MessageCode.CONFIGURATION_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": description, **details},
        )


class InputValidationError(ClipforgeException):
    """A required request field is missing or unusable."""

    def __init__(self, description: str, field: str | None = None):
        details = {"description": description}
        if field:
            details["field"] = field
        super().__init__(
            MessageCode.VALIDATION_ERROR,
            status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class InvalidCreditAmountError(ClipforgeException):
    def __init__(self, amount):
        super().__init__(
            MessageCode.INVALID_CREDIT_AMOUNT,
            status.HTTP_400_BAD_REQUEST,
            details={"amount": repr(amount)},
        )


class InsufficientCreditError(ClipforgeException):
    def __init__(self, balance: int):
        super().__init__(
            MessageCode.INSUFFICIENT_CREDITS,
            status.HTTP_402_PAYMENT_REQUIRED,
            details={"balance": balance},
        )


class GenerationFailedError(ClipforgeException):
    """A generation job reached the Failed terminal state."""

    def __init__(self, failure_kind: str, detail: str | None, seed: int):
        super().__init__(
            MessageCode.GENERATION_FAILED,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={
                "failure_kind": failure_kind,
                "description": detail or "Generation failed",
                "seed": seed,
            },
        )
        self.failure_kind = failure_kind
        self.detail = detail
        self.seed = seed


class SignatureVerificationError(ClipforgeException):
    def __init__(self, description: str):
        super().__init__(
            MessageCode.INVALID_SIGNATURE,
            status.HTTP_400_BAD_REQUEST,
            details={"description": description},
        )


class LedgerInvariantViolation(ClipforgeException):
    """The storage layer returned a state its atomic primitives should forbid."""

    def __init__(self, user_id: str, balance: int):
        super().__init__(
            MessageCode.LEDGER_INVARIANT_VIOLATION,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"user_id": user_id, "balance": balance},
        )


class ExternalServiceError(ClipforgeException):
    def __init__(self, service: str, description: str):
        super().__init__(
            MessageCode.EXTERNAL_SERVICE_ERROR,
            status.HTTP_502_BAD_GATEWAY,
            details={"service": service, "description": description},
        )


def _error_response(
    status_code: int,
    message_code: MessageCode,
    details: dict,
    message: str | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "message_code": message_code,
            "message": message or get_default_message(message_code),
            "details": details,
        },
        headers=headers,
    )


def _serializable_errors(exc: RequestValidationError) -> list[dict]:
    serializable_errors = []
    for error in exc.errors():
        error_dict = dict(error)
        # ctx may hold exception instances
        error_dict.pop("ctx", None)
        if isinstance(error_dict.get("input"), bytes):
            error_dict["input"] = error_dict["input"].decode("utf-8", "replace")
        serializable_errors.append(error_dict)
    return serializable_errors


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure in the ``message_code``/``message``/``details`` shape."""

    @app.exception_handler(ClipforgeException)
    async def clipforge_exception_handler(
        request: Request, exc: ClipforgeException
    ) -> JSONResponse:
        if isinstance(exc, LedgerInvariantViolation):
            log = logger.critical
        elif exc.status_code >= 500:
            log = logger.error
        else:
            log = logger.warning
        log(
            "Clipforge exception",
            message_code=exc.message_code.value,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
            details=exc.details,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Routing errors (404/405) and any HTTPException raised by a route."""
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )

        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message_code = MessageCode.NOT_FOUND
        elif exc.status_code >= 500:
            message_code = MessageCode.INTERNAL_ERROR
        else:
            message_code = MessageCode.BAD_REQUEST
        return _error_response(
            exc.status_code,
            message_code,
            {"description": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "Request validation failed",
            path=request.url.path,
            method=request.method,
        )

        return _error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            MessageCode.INVALID_INPUT,
            {
                "description": "Request validation failed",
                "validation_errors": _serializable_errors(exc),
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Database failures outside the ledger's own handling."""
        logger.error(
            "Database error",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            error=str(exc),
        )

        if isinstance(exc, IntegrityError):
            return _error_response(
                status.HTTP_409_CONFLICT,
                MessageCode.BAD_REQUEST,
                {"database_error": "Constraint violation"},
                message="Data integrity constraint violated",
            )
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            MessageCode.INTERNAL_ERROR,
            {"database_error": "Internal database error"},
            message="Database error occurred",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )

        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            MessageCode.INTERNAL_ERROR,
            {"error_type": type(exc).__name__},
        )
