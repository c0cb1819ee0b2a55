from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import uvicorn
import logging
from dotenv import load_dotenv

# Load environment variables from .env file FIRST, before any other imports
load_dotenv()

# Set SQLAlchemy engine logging to WARNING level to reduce query log noise
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
# Keep our application logs at INFO level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

from config import settings
from app.api.endpoints import admin, auth, esas, guest, patients, screenings
from app.core.error_handling import (
    AppException,
    app_exception_handler,
    general_exception_handler,
    validation_exception_handler,
)
from app.core.middleware import RateLimitMiddleware
from app.core.monitoring import init_sentry
from app.services.esas import get_recommendation_table

logger = logging.getLogger(__name__)


def get_cors_origins():
    """Get CORS origins from settings, plus local development origins"""
    origins = [origin.strip() for origin in settings.BACKEND_CORS_ORIGINS.split(",") if origin.strip()]
    default_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    return list(dict.fromkeys(origins + default_origins))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} starting up ({settings.ENVIRONMENT})")

    if init_sentry():
        logger.info("Sentry monitoring enabled")

    # Refuse to serve with an incomplete recommendation table
    table = get_recommendation_table()
    logger.info(f"Recommendation table v{table.version} ready")

    yield

    logger.info(f"{settings.APP_NAME} shutting down")


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="ESAS palliative symptom screening API",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

cors_origins = get_cors_origins()
logger.info(f"CORS allowed origins: {', '.join(cors_origins)}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    max_age=3600,  # Cache preflight requests for 1 hour
)

app.add_middleware(RateLimitMiddleware)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render framework HTTP errors (unknown route, wrong method) in the API error shape"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": str(exc.detail),
                "type": "HTTPException",
                "details": {},
            }
        },
        headers=getattr(exc, "headers", None),
    )


# API Version 1 - All endpoints under /api/v1
API_V1_PREFIX = settings.API_V1_PREFIX

app.include_router(esas.router, prefix=API_V1_PREFIX)
app.include_router(guest.router, prefix=API_V1_PREFIX)
app.include_router(screenings.router, prefix=API_V1_PREFIX)
app.include_router(patients.router, prefix=API_V1_PREFIX)
app.include_router(auth.router, prefix=API_V1_PREFIX)
app.include_router(admin.router, prefix=API_V1_PREFIX)


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "healthy"}

@app.get("/health")
async def health_check_simple():
    """Simple health check endpoint for monitoring"""
    return {"status": "healthy"}

@app.get("/api/health")
async def health_check():
    """Detailed health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    }

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
