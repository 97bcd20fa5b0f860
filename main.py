import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import psycopg2
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, settings as default_settings
from converters import schema_to_task, task_to_schema, tasks_to_schemas
from db_context import Database
from errors import NotFoundError, StoreError, TaskError
from logging_setup import setup_logging
from repository import TaskRepository
from schemas import ErrorSchema, TaskCreatedSchema, TaskInSchema, TaskSchema
from services import TaskService

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Origin", "Content-Type", "Accept", "Authorization", "X-Requested-With"]

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

_errors = {
    400: {"model": ErrorSchema},
    404: {"model": ErrorSchema},
}


def get_service(request: Request) -> TaskService:
    return request.app.state.task_service


@router.get(
        '',
        response_model=List[TaskSchema],
        summary="List top-level tasks",
        description="Tasks without a parent, each with its full subtree",
        responses={500: {"model": ErrorSchema}})
def list_tasks(service: TaskService = Depends(get_service)):
    try:
        tasks = service.list_tasks()
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return tasks_to_schemas(tasks)


@router.get('/{id}',
         response_model=TaskSchema,
         summary="Get a task",
         description="A single task with its full subtree",
         responses=_errors)
def get_task(id: str, service: TaskService = Depends(get_service)):
    try:
        task = service.get_task(id)
    except TaskError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return task_to_schema(task)


@router.post('',
          response_model=TaskCreatedSchema,
          status_code=201,
          summary="Create a task",
          description="Creates a top-level task; missing priority, status and start date get defaults",
          responses=_errors)
def create_task(body: TaskInSchema, service: TaskService = Depends(get_service)):
    logger.debug("Received task creation request: %s", body)
    try:
        task = service.create_task(schema_to_task(body))
    except TaskError as exc:
        logger.info("Error creating task: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))
    return TaskCreatedSchema(status="success", task=task_to_schema(task))


@router.put('/{id}',
         response_model=TaskSchema,
         summary="Update a task",
         description="Overwrites every mutable field; the id comes from the path",
         responses=_errors)
def update_task(id: str, body: TaskInSchema, service: TaskService = Depends(get_service)):
    try:
        task = service.update_task(schema_to_task(body, task_id=id))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except TaskError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return task_to_schema(task)


@router.delete('/{id}',
            status_code=204,
            response_class=Response,
            summary="Delete a task",
            description="Deletes the task together with all of its descendants",
            responses={404: {"model": ErrorSchema}})
def delete_task(id: str, service: TaskService = Depends(get_service)):
    try:
        service.delete_task(id)
    except TaskError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=204)


@router.get('/{id}/subtasks',
         response_model=List[TaskSchema],
         summary="List subtasks",
         description="Direct children of the task, each with its full subtree",
         responses={404: {"model": ErrorSchema}})
def list_subtasks(id: str, service: TaskService = Depends(get_service)):
    try:
        subtasks = service.list_subtasks(id)
    except TaskError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return tasks_to_schemas(subtasks)


@router.post('/{id}/subtasks',
          response_model=TaskSchema,
          status_code=201,
          summary="Create a subtask",
          description="Creates a task under the given parent",
          responses={400: {"model": ErrorSchema}})
def create_subtask(id: str, body: TaskInSchema, service: TaskService = Depends(get_service)):
    try:
        subtask = service.create_subtask(id, schema_to_task(body))
    except TaskError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return task_to_schema(subtask)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed JSON and wrong field types are client errors, same as a failed rule
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse({"error": "; ".join(parts) or "invalid request body"}, status_code=400)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[TaskRepository] = None,
) -> FastAPI:
    """Build the application.

    With an injected `repository` the app never touches PostgreSQL; otherwise
    the lifespan opens the pool, creates the schema and closes the pool on
    shutdown.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = None
        if app.state.task_service is None:
            setup_logging(settings.LOG_LEVEL)
            if not settings.DATABASE_URL:
                raise RuntimeError("DATABASE_URL environment variable is not set")
            database = Database(
                settings.DATABASE_URL,
                minconn=settings.DB_POOL_MIN,
                maxconn=settings.DB_POOL_MAX,
                statement_timeout_ms=settings.DB_STATEMENT_TIMEOUT_MS,
                pool_timeout=settings.DB_POOL_TIMEOUT,
            )
            try:
                database.ping()
                database.initialize()
            except psycopg2.Error as exc:
                logger.exception("Failed to initialize database")
                database.close()
                raise RuntimeError(f"Database initialization failed: {exc}") from exc
            app.state.database = database
            app.state.task_service = TaskService(TaskRepository(database))
            logger.info("Successfully connected to database")
        try:
            yield
        finally:
            if database is not None:
                database.close()

    app = FastAPI(
        title="Tasks API",
        description="CRUD API for tasks with nested subtasks",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = None
    app.state.task_service = TaskService(repository) if repository is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=["Content-Length"],
    )
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    @app.get('/health', summary="Health check")
    def health(request: Request):
        database = request.app.state.database
        if database is not None:
            try:
                database.ping()
            except psycopg2.Error as exc:
                raise HTTPException(status_code=503, detail=f"database unavailable: {exc}")
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)
