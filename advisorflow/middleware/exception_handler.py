"""Exception handlers turning domain and storage errors into JSON bodies.

Every error body has the same shape, ``{"error", "message", "details"}``,
so the editor can show InvalidTransition and GenerationFailed messages to
the user verbatim.
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import AdvisorFlowError, DatabaseError

logger = logging.getLogger(__name__)


async def advisorflow_exception_handler(request: Request, exc: AdvisorFlowError) -> JSONResponse:
    """
    Convert an AdvisorFlowError into its JSON body and status code.

    Client errors (rejected transitions, bad selections, conflicts) are
    logged at warning level; 5xx at error.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{request.method} {request.url.path} failed: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failures that escaped a service become a 500 DATABASE_ERROR.

    The driver message is logged, never returned to the caller.
    """
    logger.error(
        "Unhandled database error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method, "error_type": type(exc).__name__},
    )
    error = DatabaseError("Database operation failed")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
