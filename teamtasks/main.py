# teamtasks/main.py
"""FastAPI application for the teamtasks backend."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teamtasks import settings
from teamtasks.database import create_db_and_tables
from teamtasks.errors import (
    InvalidShare,
    NotFound,
    TaskBoardError,
    Unauthenticated,
    UserNotFound,
    ValidationError,
)
from teamtasks.routes.auth import router as auth_router
from teamtasks.routes.tasks import router as tasks_router
from teamtasks.routes.teams import router as teams_router
from teamtasks.storage import MemoryStorage

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    InvalidShare: 400,
    Unauthenticated: 401,
    NotFound: 404,
    UserNotFound: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up the storage backend chosen by TASKS_STORAGE."""
    backend = settings.STORAGE_BACKEND
    if backend not in settings.STORAGE_BACKENDS:
        raise ValueError(
            f"TASKS_STORAGE must be one of {settings.STORAGE_BACKENDS}, got {backend!r}"
        )
    if backend == settings.STORAGE_DATABASE:
        create_db_and_tables()
    else:
        app.state.memory_storage = MemoryStorage()
    logger.info("Using %s storage", backend)
    yield


app = FastAPI(title="TeamTasks", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(teams_router)


@app.exception_handler(TaskBoardError)
async def task_board_error_handler(request: Request, exc: TaskBoardError):
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 400
    )
    content = {"message": exc.detail}
    if isinstance(exc, ValidationError):
        content["errors"] = [
            {"field": field, "message": exc.detail} for field in exc.fields
        ]
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "errors": errors},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "teamtasks-api",
        "storage": settings.STORAGE_BACKEND,
    }
