"""Error taxonomy and FastAPI error handlers for the Lucky Drop API."""

from typing import Optional

import pydantic
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

from lucky_drop.monitoring.logger import log_response_info

# Explicit exports
__all__ = [
    "LuckyDropError",
    "NotFoundError",
    "DropNotFoundError",
    "NoResultsError",
    "ValidationError",
    "UnsupportedMediaTypeError",
    "UnknownGiftError",
    "InvalidRecipientDetailsError",
    "UpstreamFailure",
    "SearchAPIError",
    "SearchNotConfiguredError",
    "SuggestionFormatError",
    "LLMError",
    "MediaUploadError",
    "StoreError",
    "ConflictError",
    "DropAlreadyOpenedError",
    "GiftAlreadySelectedError",
    "GiftNotSelectedError",
    "RecipientDetailsAlreadySavedError",
    "InvalidTransitionError",
    "AuthenticationError",
    "NotDropOwnerError",
    "handle_broad_exceptions",
    "handle_lucky_drop_errors",
    "handle_pydantic_validation_errors",
]


class LuckyDropError(Exception):
    """Base class for every error the API maps to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Lucky Drop error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def error_type(self) -> str:
        return type(self).__name__


# 404
class NotFoundError(LuckyDropError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class DropNotFoundError(NotFoundError):
    def __init__(self, drop_id: str):
        self.drop_id = drop_id
        super().__init__(f"Gift drop '{drop_id}' not found")


class NoResultsError(NotFoundError):
    default_detail = "No gift products found"


# 422
class ValidationError(LuckyDropError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    default_detail = "Invalid input"


class UnsupportedMediaTypeError(ValidationError):
    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(f"Unsupported media type '{content_type}'. Upload an image, audio or video file.")


class UnknownGiftError(ValidationError):
    def __init__(self, drop_id: str, gift_id: str):
        self.drop_id = drop_id
        self.gift_id = gift_id
        super().__init__(f"Gift '{gift_id}' is not part of drop '{drop_id}'")


class InvalidRecipientDetailsError(ValidationError):
    default_detail = "Recipient details are invalid"


# 502
class UpstreamFailure(LuckyDropError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed"


class SearchAPIError(UpstreamFailure):
    default_detail = "Search API request failed"


class SearchNotConfiguredError(UpstreamFailure):
    default_detail = "Search API credentials are not configured"


class SuggestionFormatError(UpstreamFailure):
    default_detail = "Gift suggestions could not be formatted"


class LLMError(UpstreamFailure):
    default_detail = "Language model request failed"


class MediaUploadError(UpstreamFailure):
    default_detail = "Media upload failed"


class StoreError(UpstreamFailure):
    default_detail = "Drop store request failed"


# 409
class ConflictError(LuckyDropError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class DropAlreadyOpenedError(ConflictError):
    def __init__(self, drop_id: str):
        self.drop_id = drop_id
        super().__init__(f"Gift drop '{drop_id}' has already been opened and can no longer be edited")


class GiftAlreadySelectedError(ConflictError):
    def __init__(self, drop_id: str, selected_gift_id: str):
        self.drop_id = drop_id
        self.selected_gift_id = selected_gift_id
        super().__init__(f"A gift has already been selected for drop '{drop_id}'")


class GiftNotSelectedError(ConflictError):
    def __init__(self, drop_id: str):
        self.drop_id = drop_id
        super().__init__(f"No gift has been selected for drop '{drop_id}' yet")


class RecipientDetailsAlreadySavedError(ConflictError):
    def __init__(self, drop_id: str):
        self.drop_id = drop_id
        super().__init__(f"Recipient details for drop '{drop_id}' have already been saved")


class InvalidTransitionError(ConflictError):
    def __init__(self, stage: str, action: str):
        self.stage = stage
        self.action = action
        super().__init__(f"Cannot '{action}' while the drop is in stage '{stage}'")


# 401 / 403
class AuthenticationError(LuckyDropError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Missing or invalid authentication token"


class NotDropOwnerError(LuckyDropError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, drop_id: str):
        self.drop_id = drop_id
        super().__init__(f"You do not own gift drop '{drop_id}'")


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_response = {"detail": "Internal server error", "error_type": type(err).__name__}

        # Get request body from request state (set by RequestContextMiddleware)
        request_body = getattr(request.state, "request_body", None)

        logger.error(
            f"Unhandled exception: {type(err).__name__}: {str(err)}",
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=type(err).__name__,
            error_message=str(err),
            request_body=request_body,
            response_body=error_response,
            exc_info=True,
        )

        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised outside of request parsing."""
    errors = exc.errors()
    error_response = {
        "detail": [
            {
                "msg": error["msg"],
                "loc": [str(part) for part in error.get("loc", ())],
            }
            for error in errors
        ],
        "error_type": "ValidationError",
    }

    request_body = getattr(request.state, "request_body", None)

    logger.warning(
        f"Validation error: {len(errors)} validation errors",
        http_status=422,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="ValidationError",
        validation_errors=errors,
        request_body=request_body,
        response_body=error_response,
    )

    response = JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=error_response,
    )
    log_response_info(response)

    return response


async def handle_lucky_drop_errors(request: Request, exc: LuckyDropError) -> JSONResponse:
    """
    Convert domain errors into JSON responses.

    Status codes come from the exception class:
    - NotFoundError -> 404
    - ValidationError -> 422
    - ConflictError -> 409
    - UpstreamFailure -> 502
    - AuthenticationError -> 401, NotDropOwnerError -> 403

    Parameters
    ----------
    request : Request
        FastAPI request object
    exc : LuckyDropError
        Domain exception

    Returns
    -------
    JSONResponse
        HTTP response with the exception's status code and detail
    """
    error_response = {"detail": exc.detail, "error_type": exc.error_type}
    if isinstance(exc, GiftAlreadySelectedError):
        error_response["selected_gift_id"] = exc.selected_gift_id

    request_body = getattr(request.state, "request_body", None)

    log_kwargs = dict(
        http_status=exc.status_code,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=exc.error_type,
        error_message=exc.detail,
        request_body=request_body,
        response_body=error_response,
    )
    if isinstance(exc, UpstreamFailure):
        logger.opt(exception=exc).error(f"Upstream failure: {exc.error_type}: {exc.detail}", **log_kwargs)
    else:
        logger.warning(f"{exc.error_type}: {exc.detail}", **log_kwargs)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    response = JSONResponse(status_code=exc.status_code, content=error_response, headers=headers)
    log_response_info(response)
    return response
