from fastapi import Request, status
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
