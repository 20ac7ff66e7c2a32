import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskboard.core.database import engine, Base
from taskboard.core.errors import TaskboardError
from taskboard.core.logging_config import setup_logging
from taskboard.models import assignment, notification, sweep_lease, task, user  # noqa: F401 (tables)
from taskboard.routers import health, tasks, admin, sweeps

setup_logging()
logger = logging.getLogger("taskboard")

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Taskboard API",
    version="0.1.0"
)


@app.exception_handler(TaskboardError)
def taskboard_error_handler(request: Request, exc: TaskboardError):
    body = {"error": exc.kind, "detail": exc.detail}
    invalid = getattr(exc, "invalid", None)
    if invalid:
        body["invalid"] = invalid
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(SQLAlchemyError)
def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled store error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "dependency_failure", "detail": "Storage unavailable"}
    )


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(tasks.router)
app.include_router(admin.router)
app.include_router(sweeps.router)
