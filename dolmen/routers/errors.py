"""Translation of service exceptions into HTTP errors."""
from fastapi import HTTPException, status

from dolmen.core.exceptions import AdminRequiredError, BackendError, DolmenError, RecordValidationError


def http_error(exc: DolmenError) -> HTTPException:
    if isinstance(exc, RecordValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": exc.message, "errors": exc.errors},
        )
    if isinstance(exc, AdminRequiredError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
    if isinstance(exc, BackendError) and exc.code == "23505":
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
