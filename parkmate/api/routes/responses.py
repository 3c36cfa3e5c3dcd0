from __future__ import annotations

from fastapi.responses import JSONResponse

from parkmate.api.routes.models import ErrorResponse
from parkmate.messaging.errors import MessagingError, ScheduleValidationError, SubscriptionRequiredError
from parkmate.registry.errors import (
    RegistryError,
    VehicleLimitReachedError,
    VehicleNotFoundError,
    VillaAlreadyExistsError,
    VillaLimitReachedError,
    VillaNotFoundError,
)
from parkmate.subscriptions.errors import (
    ActivationCodeAlreadyUsedError,
    ActivationCodeExpiredError,
    ActivationCodeInvalidFormatError,
    ActivationCodeNotFoundError,
    ActivationCodeQuotaExceededError,
    CodeGenerationRequestError,
    SubscriptionError,
    TrialAlreadyUsedError,
)

INVALID_INPUT_MESSAGE = "Invalid input parameters"
PERSISTENCE_ERROR_MESSAGE = "Internal server error"


def error_response(status_code: int, *, error: str, code: str) -> JSONResponse:
    payload = ErrorResponse(error=error, code=code)
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(by_alias=True, mode="json"),
    )


def subscription_error_response(exc: SubscriptionError) -> JSONResponse:
    if isinstance(exc, ActivationCodeInvalidFormatError):
        return error_response(400, error="Invalid code format", code="E_INVALID_FORMAT")
    if isinstance(exc, ActivationCodeNotFoundError):
        return error_response(404, error="Invalid activation code", code="E_CODE_NOT_FOUND")
    if isinstance(exc, ActivationCodeExpiredError):
        return error_response(400, error="Activation code has expired", code="E_CODE_EXPIRED")
    if isinstance(exc, ActivationCodeQuotaExceededError):
        return error_response(
            400,
            error=f"This activation code has reached its villa limit ({exc.villa_count} villas)",
            code="E_QUOTA_EXCEEDED",
        )
    if isinstance(exc, ActivationCodeAlreadyUsedError):
        return error_response(400, error="This code has already been used", code="E_CODE_USED")
    if isinstance(exc, TrialAlreadyUsedError):
        return error_response(400, error=exc.reason, code="E_TRIAL_USED")
    if isinstance(exc, CodeGenerationRequestError):
        return error_response(400, error=str(exc), code="E_VALIDATION")
    raise exc


def registry_error_response(exc: RegistryError) -> JSONResponse:
    if isinstance(exc, VillaNotFoundError):
        return error_response(404, error="Villa not found", code="E_VILLA_NOT_FOUND")
    if isinstance(exc, VehicleNotFoundError):
        return error_response(404, error="Vehicle not found", code="E_VEHICLE_NOT_FOUND")
    if isinstance(exc, VillaAlreadyExistsError):
        return error_response(400, error="Villa already exists", code="E_VILLA_EXISTS")
    if isinstance(exc, VillaLimitReachedError):
        return error_response(
            400,
            error=f"Villa limit reached ({exc.limit} villas)",
            code="E_VILLA_LIMIT",
        )
    if isinstance(exc, VehicleLimitReachedError):
        return error_response(
            400,
            error=f"Vehicle limit reached ({exc.limit} vehicles per villa)",
            code="E_VEHICLE_LIMIT",
        )
    return error_response(400, error=str(exc) or INVALID_INPUT_MESSAGE, code="E_VALIDATION")


def messaging_error_response(exc: MessagingError) -> JSONResponse:
    if isinstance(exc, SubscriptionRequiredError):
        return error_response(
            402,
            error="An active subscription is required to send SMS",
            code="E_SUBSCRIPTION_REQUIRED",
        )
    if isinstance(exc, ScheduleValidationError):
        return error_response(400, error=str(exc), code="E_VALIDATION")
    raise exc
