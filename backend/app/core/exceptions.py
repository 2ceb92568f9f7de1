"""
Exception helpers for the REST layer.

Services raise the HTTPExceptions built here; the handlers registered in
`app.main` turn request validation failures into the same 400 shape.

Taxonomy:
- validation errors -> 400 with field-level `errors`
- not found         -> 404
- conflicts         -> 400 (duplicate names, insufficient stock, illegal status change)
- everything else   -> generic 500, details only in the log
"""
import logging

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BusinessError:
    """Business-domain exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", identifier=None) -> HTTPException:
        """
        404 for a missing record.

        Example:
            if not medicine:
                raise BusinessError.not_found("Medicine", medicine_id)
        """
        detail = f"{resource} with ID {identifier} not found" if identifier is not None else f"{resource} not found"
        logger.info(f"Not found: {detail}")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business logic errors.

        OK to include specific details here since the caller caused the issue.
        Examples: "Insufficient stock for Paracetamol", "No items"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        Uniqueness conflicts share the 400 status with validation errors.
        Example: "Medicine with this name already exists"
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return field-level validation errors as 400 so forms can show them inline."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    logger.info(f"Validation failed on {request.method} {request.url.path}: {len(errors)} error(s)")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": "Validation failed", "errors": errors}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything services did not raise as an HTTPException."""
    error = BusinessError.server_error(exc)
    logger.error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})
