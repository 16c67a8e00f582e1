"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    CREATED = "CREATED"
    WEBHOOK_RECEIVED = "WEBHOOK_RECEIVED"

    # Authentication & Authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Credit management
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    INVALID_CREDIT_AMOUNT = "INVALID_CREDIT_AMOUNT"
    LEDGER_INVARIANT_VIOLATION = "LEDGER_INVARIANT_VIOLATION"

    # Generation
    GENERATION_FAILED = "GENERATION_FAILED"

    # Payments
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    # Service Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.CREATED: "Resource created successfully",
    MessageCode.WEBHOOK_RECEIVED: "Webhook received",
    # Authentication & Authorization
    MessageCode.AUTH_REQUIRED: "Authentication required",
    MessageCode.INVALID_TOKEN: "Invalid authentication token",
    # Credit management
    MessageCode.INSUFFICIENT_CREDITS: "Insufficient credits",
    MessageCode.INVALID_CREDIT_AMOUNT: "Credit amount must be a positive integer",
    MessageCode.LEDGER_INVARIANT_VIOLATION: "Credit ledger is in an inconsistent state",
    # Generation
    MessageCode.GENERATION_FAILED: "Video generation failed",
    # Payments
    MessageCode.INVALID_SIGNATURE: "Webhook signature verification failed",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    # Service Errors
    MessageCode.CONFIGURATION_ERROR: "Service is not configured correctly",
    MessageCode.EXTERNAL_SERVICE_ERROR: "External service error",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Success envelope; errors share the first two fields and carry ``details``."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or get_default_message(message_code),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
