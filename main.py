import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings, configure_logging, get_settings
from database import MongoDatabase
from errors import SERVER_ERROR_MESSAGE, StoreError, StoreUnavailable, register_exception_handlers
from schemas import (
    AdminCredentials,
    CreateProblemResponse,
    InitializeDbResponse,
    Problem,
    ProblemDetailsUpdate,
    ProblemOut,
    ProblemUpdate,
    SuccessResponse,
    UserStats,
    UserStatsOut,
    UserStatsUpdate,
)
from security import verify_admin_password
from stores import (
    InMemoryProblemStore,
    InMemoryStatsStore,
    MongoProblemStore,
    MongoStatsStore,
    ProblemStore,
    StatsStore,
)

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("Server is starting...")
    database = None
    if app.state.problem_store is None or app.state.stats_store is None:
        if settings.use_in_memory_backends:
            logger.info("Using in-memory backends")
            app.state.problem_store = InMemoryProblemStore()
            app.state.stats_store = InMemoryStatsStore()
        else:
            database = MongoDatabase(
                settings.mongodb_uri, settings.database_name, settings.mongodb_timeout_ms
            )
            db = database.connect()
            # An unreachable database is logged but does not stop the server.
            if database.ping():
                logger.info("MongoDB connected successfully")
            else:
                logger.error("MongoDB is unreachable, serving anyway")
            app.state.database = database
            app.state.problem_store = MongoProblemStore(db)
            app.state.stats_store = MongoStatsStore(db)
    yield
    if database is not None:
        database.close()
        app.state.database = None
        app.state.problem_store = None
        app.state.stats_store = None
    logger.info("Server has been stopped")


# -----------------------------
# Dependencies
# -----------------------------

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_problem_store(request: Request) -> ProblemStore:
    return request.app.state.problem_store


def get_stats_store(request: Request) -> StatsStore:
    return request.app.state.stats_store


def get_database(request: Request) -> Optional[MongoDatabase]:
    return request.app.state.database


router = APIRouter()


# -----------------------------
# Routes: Problems
# -----------------------------

@router.get("/problems", response_model=List[ProblemOut])
def list_problems(store: ProblemStore = Depends(get_problem_store)):
    try:
        return store.list()
    except StoreError:
        logger.exception("Error fetching problems")
        raise StoreUnavailable({"message": SERVER_ERROR_MESSAGE})


@router.post("/problems", response_model=CreateProblemResponse, status_code=status.HTTP_201_CREATED)
def create_problem(payload: Problem, store: ProblemStore = Depends(get_problem_store)):
    try:
        new_id = store.create(payload.model_dump(by_alias=True, exclude_none=True))
    except StoreError:
        logger.exception("Error adding problem")
        raise StoreUnavailable({"success": False, "id": None, "message": SERVER_ERROR_MESSAGE})
    logger.info(f"Created problem {new_id}")
    return CreateProblemResponse(id=new_id)


@router.put("/problems/{problem_id}", response_model=SuccessResponse)
def update_problem(problem_id: str, payload: ProblemUpdate, store: ProblemStore = Depends(get_problem_store)):
    # Not password-gated, unlike /details and DELETE.
    try:
        store.update(problem_id, payload.changes())
    except StoreError:
        logger.exception(f"Error updating problem {problem_id}")
        raise StoreUnavailable()
    return SuccessResponse()


@router.put("/problems/{problem_id}/details", response_model=SuccessResponse)
def update_problem_details(
    problem_id: str,
    payload: Optional[ProblemDetailsUpdate] = None,
    settings: Settings = Depends(get_app_settings),
    store: ProblemStore = Depends(get_problem_store),
):
    payload = payload or ProblemDetailsUpdate()
    verify_admin_password(payload.admin_password, settings.admin_password)
    try:
        store.update(problem_id, payload.changes())
    except StoreError:
        logger.exception(f"Error updating problem details {problem_id}")
        raise StoreUnavailable()
    return SuccessResponse()


@router.delete("/problems/{problem_id}", response_model=SuccessResponse)
def delete_problem(
    problem_id: str,
    credentials: Optional[AdminCredentials] = None,
    settings: Settings = Depends(get_app_settings),
    store: ProblemStore = Depends(get_problem_store),
):
    verify_admin_password(credentials.admin_password if credentials else None, settings.admin_password)
    try:
        store.delete(problem_id)
    except StoreError:
        logger.exception(f"Error deleting problem {problem_id}")
        raise StoreUnavailable()
    logger.info(f"Deleted problem {problem_id}")
    return SuccessResponse()


# -----------------------------
# Routes: User stats
# -----------------------------

@router.get("/user-stats", response_model=UserStatsOut)
def get_user_stats(store: StatsStore = Depends(get_stats_store)):
    try:
        return store.get()
    except StoreError:
        logger.exception("Error fetching user stats")
        raise StoreUnavailable({"message": SERVER_ERROR_MESSAGE})


@router.put("/user-stats", response_model=SuccessResponse)
def update_user_stats(payload: UserStatsUpdate, store: StatsStore = Depends(get_stats_store)):
    try:
        store.update(payload.changes())
    except StoreError:
        logger.exception("Error updating user stats")
        raise StoreUnavailable()
    return SuccessResponse()


# -----------------------------
# Routes: Database check
# -----------------------------

@router.get("/initialize-db", response_model=InitializeDbResponse)
def initialize_db(
    database: Optional[MongoDatabase] = Depends(get_database),
    problems: ProblemStore = Depends(get_problem_store),
    stats: StatsStore = Depends(get_stats_store),
):
    if database is not None and not database.ping():
        raise StoreUnavailable({"success": False, "message": "Failed to connect to database"})
    try:
        is_empty = problems.count() == 0 and stats.count() == 0
    except StoreError:
        logger.exception("Error checking database")
        raise StoreUnavailable({"success": False, "message": "Error checking database"})
    return InitializeDbResponse(message="Database check completed", is_empty=is_empty)


def create_app(settings: Settings = None, problem_store: ProblemStore = None, stats_store: StatsStore = None) -> FastAPI:
    """Build the application. Stores passed in are used as-is instead of
    connecting to MongoDB in the lifespan."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Practice Tracker API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = None
    app.state.problem_store = problem_store
    app.state.stats_store = stats_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": "Practice Tracker backend is running"}

    @app.get("/schema")
    def get_schema():
        return {
            "problem": Problem.model_json_schema(by_alias=True),
            "userstats": UserStats.model_json_schema(by_alias=True),
        }

    app.include_router(router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
