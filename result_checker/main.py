"""Result Checker API — FastAPI application.

Routes:
  GET  /             banner
  GET  /health       MongoDB + Redis connectivity
  GET  /getStudents  all students
  POST /addStudent   new student
  GET  /result/{id}  result by student id (cache-aside)
  POST /addResult    new result (cached on write)

The store and cache are created once and kept on app.state; handlers reach
them through the dependency functions below.
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from result_checker import __version__
from result_checker.config import Settings, settings as default_settings
from result_checker.database import MongoStore
from result_checker.errors import (
    InvalidDataError,
    NotFoundError,
    ServiceError,
    StartupError,
    UnhealthyError,
)
from result_checker.schemas import (
    CreatedResponse,
    ErrorResponse,
    ResultPayload,
    StudentPayload,
    UnhealthyResponse,
    utc_timestamp,
)
from result_checker.services.cache import ResultCache, build_cache
from result_checker.services.health import HealthService
from result_checker.services.results import ResultService
from result_checker.services.students import StudentDirectory

logging.basicConfig(
    level=default_settings.log_level.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("result_checker")

BANNER = "Ostad Result Checker API is running"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def _json_body(request: Request):
    """Decoded JSON body, or None when the body is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


# ═══════════════ DEPENDENCIES ═══════════════

def get_result_service(request: Request) -> ResultService:
    return request.app.state.result_service


def get_student_directory(request: Request) -> StudentDirectory:
    return request.app.state.student_directory


def get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service


# ═══════════════ LIFESPAN ═══════════════

async def connect_dependencies(store: MongoStore, cache: ResultCache) -> None:
    """Connect the store, then the cache. Raises StartupError on failure."""
    logger.info("Connecting to MongoDB...")
    try:
        await store.connect()
        logger.info("Connecting to Redis...")
        await cache.connect()
    except ServiceError as e:
        logger.error("Database connection failed: %s", e)
        try:
            await close_dependencies(store, cache)
        except ServiceError as close_error:
            logger.warning("Cleanup after failed startup: %s", close_error)
        raise StartupError(str(e)) from e
    logger.info("All database connections established")


async def close_dependencies(store: MongoStore, cache: ResultCache) -> None:
    try:
        await store.close()
    finally:
        await cache.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_connections = app.state.owns_connections
    if owns_connections:
        await connect_dependencies(app.state.store, app.state.cache)
    yield
    if owns_connections:
        await close_dependencies(app.state.store, app.state.cache)
    logger.info("Result Checker API shutting down")


# ═══════════════ APP ═══════════════

def create_app(
    config: Settings | None = None,
    store: MongoStore | None = None,
    cache: ResultCache | None = None,
) -> FastAPI:
    """Build the application.

    When store and cache are passed in, the caller owns their connections
    (the process entry point, tests). Otherwise they are built from config
    and connected/closed by the lifespan.
    """
    config = config or default_settings

    app = FastAPI(
        title="Result Checker API",
        description="Student records and exam results",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.owns_connections = store is None and cache is None
    app.state.store = store or MongoStore(config.mongo_url, config.db_name)
    app.state.cache = cache or build_cache(config)
    app.state.result_service = ResultService(app.state.store, app.state.cache)
    app.state.student_directory = StudentDirectory(app.state.store)
    app.state.health_service = HealthService(app.state.store, app.state.cache)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        logger.info("%s %s | ip=%s | ua=%s", request.method, request.url.path,
                    request.client.host if request.client else "unknown",
                    request.headers.get("user-agent", "-"))
        response = await call_next(request)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("%s %s - %d | %dms", request.method, request.url.path,
                    response.status_code, elapsed_ms)
        return response

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error | %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")

    _register_routes(app)

    # Static frontend assets; API routes are matched first
    static_dir = Path(config.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


def _register_routes(app: FastAPI) -> None:

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        logger.info("Root endpoint accessed")
        return BANNER

    @app.get("/health")
    async def health(service: HealthService = Depends(get_health_service)):
        try:
            status = await service.check()
        except UnhealthyError as e:
            body = UnhealthyResponse(timestamp=utc_timestamp(), error=str(e))
            return JSONResponse(status_code=503, content=body.model_dump())
        logger.info("Health check passed")
        return status.model_dump()

    @app.get("/getStudents")
    async def get_students(directory: StudentDirectory = Depends(get_student_directory)):
        try:
            return await directory.list_all()
        except ServiceError as e:
            logger.error("Failed to fetch students: %s", e)
            return _error(500, "Failed to fetch students")

    @app.post("/addStudent", status_code=201)
    async def add_student(request: Request, directory: StudentDirectory = Depends(get_student_directory)):
        body = await _json_body(request)
        try:
            payload = StudentPayload.from_body(body)
        except InvalidDataError as e:
            logger.warning("Invalid student data provided: %s", body)
            return _error(400, str(e))

        try:
            inserted_id = await directory.add(payload)
        except ServiceError as e:
            logger.error("Failed to add student: %s", e)
            return _error(500, "Failed to add student")
        return CreatedResponse(message="Student added", id=inserted_id).model_dump()

    @app.get("/result/{student_id}")
    async def get_result(student_id: str, service: ResultService = Depends(get_result_service)):
        try:
            return await service.lookup(student_id)
        except NotFoundError as e:
            return _error(404, str(e))
        except ServiceError as e:
            logger.error("Failed to fetch result for student %s: %s", student_id, e)
            return _error(500, "Failed to fetch result")

    @app.post("/addResult", status_code=201)
    async def add_result(request: Request, service: ResultService = Depends(get_result_service)):
        body = await _json_body(request)
        try:
            payload = ResultPayload.from_body(body)
        except InvalidDataError as e:
            logger.warning("Invalid result data provided: %s", body)
            return _error(400, str(e))

        try:
            inserted_id = await service.ingest(payload)
        except ServiceError as e:
            logger.error("Failed to add result: %s", e)
            return _error(500, "Failed to add result")
        return CreatedResponse(message="Result added", id=inserted_id).model_dump()


app = create_app()
