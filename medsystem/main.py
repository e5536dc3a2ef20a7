import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - registers tables on Base
from .database import Base, engine, ping_database
from .domain.calendar.router import router as calendar_router
from .domain.files.router import router as files_router
from .domain.notes.router import router as notes_router
from .domain.notifications.router import router as push_tokens_router
from .domain.oncology.router import router as oncology_router
from .domain.patients.router import router as patients_router
from .domain.tasks.router import router as tasks_router
from .domain.traffic.router import router as traffic_router
from .domain.users.router import router as users_router
from .domain.whatsapp.router import router as whatsapp_router
from .routes.functions import FUNCTIONS_PREFIX
from .routes.functions import router as functions_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limiting will count in memory only: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="MedSystem API", version="1.0.0", lifespan=lifespan)


def _is_function_path(request: Request) -> bool:
    return request.url.path.startswith(FUNCTIONS_PREFIX + "/")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing Authorization header is a 401, everything else stays a 422"""
    for error in exc.errors():
        loc = error.get("loc", ())
        if len(loc) >= 2 and loc[0] == "header" and str(loc[1]).lower() == "authorization":
            return JSONResponse(status_code=401, content={"detail": "Não autenticado"})

    logger.warning(f"⚠️ Validation error on {request.method} {request.url.path}: {exc.errors()}")
    if _is_function_path(request):
        return JSONResponse(status_code=400, content={"error": "Dados inválidos"})
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]


@app.exception_handler(HTTPException)
async def function_http_exception_handler(request: Request, exc: HTTPException):
    """Function endpoints answer with {"error": ...} instead of {"detail": ...}"""
    if _is_function_path(request):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ {request.method} {request.url.path} - Unhandled error: {str(exc)}")
    if _is_function_path(request):
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return JSONResponse(
        status_code=500, content={"detail": "Erro interno. Tente novamente mais tarde."}
    )


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://medsystem.lovable.app,http://localhost:5173,http://localhost:8080",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(users_router)
app.include_router(patients_router)
app.include_router(tasks_router)
app.include_router(calendar_router)
app.include_router(notes_router)
app.include_router(files_router)
app.include_router(oncology_router)
app.include_router(whatsapp_router)
app.include_router(push_tokens_router)
app.include_router(traffic_router)
app.include_router(functions_router)


@app.get("/")
def root():
    return {"message": "MedSystem API is running"}


@app.get("/health")
def health():
    if not ping_database():
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "down"})
    return {"status": "healthy", "database": "up"}
