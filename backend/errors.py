import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from linkorm.errors import LinkORMError, RecordNotFoundError, ModelNotFoundError, DatabaseError

logger = logging.getLogger("LinkORM.api")


def register_error_handlers(app: FastAPI):
    """Map linkorm errors to JSON responses."""

    @app.exception_handler(LinkORMError)
    async def linkorm_error_handler(request: Request, exc: LinkORMError):
        error_mapping = {
            RecordNotFoundError: status.HTTP_404_NOT_FOUND,
            ModelNotFoundError: status.HTTP_500_INTERNAL_SERVER_ERROR,
            DatabaseError: status.HTTP_409_CONFLICT,
        }
        http_status = error_mapping.get(type(exc), status.HTTP_400_BAD_REQUEST)
        if http_status >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}")

        return JSONResponse(
            status_code=http_status,
            content={
                "status": "error",
                "code": exc.__class__.__name__,
                "message": exc.message,
            },
        )
