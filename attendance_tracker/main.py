"""Attendance Tracker - FastAPI entrypoint."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ServerSelectionTimeoutError

from attendance_tracker.api import attendance, departments, students, subjects
from attendance_tracker.config import settings
from attendance_tracker.db import BeanieStore
from attendance_tracker.errors import TrackerError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        app.state.store = await BeanieStore.connect(settings)
    except ServerSelectionTimeoutError as e:
        logger.error("MongoDB is not reachable at %s", settings.mongodb_url)
        raise RuntimeError("MongoDB connection failed. Check MONGODB_URL and that MongoDB is running.") from e
    yield
    app.state.store.close()


app = FastAPI(
    title=settings.app_name,
    description="Departments, subjects, students and daily per-subject attendance",
    version="0.1.0",
    lifespan=lifespan,
)


def _jsonable_errors(errors: list) -> list:
    # ctx may hold exception instances that JSON cannot carry
    return [{k: v for k, v in e.items() if k in ("loc", "msg", "type")} for e in errors]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"{field}: {first.get('msg', 'invalid value')}", "detail": _jsonable_errors(errors)},
    )


@app.exception_handler(TrackerError)
async def tracker_exception_handler(request: Request, exc: TrackerError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.middleware("http")
async def unhandled_error_middleware(request: Request, call_next):
    # registered before CORSMiddleware so error responses still carry CORS headers
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(departments.router, prefix="/api/departments", tags=["Departments"])
app.include_router(subjects.router, prefix="/api/subjects", tags=["Subjects"])
app.include_router(students.router, prefix="/api/students", tags=["Students"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name}
