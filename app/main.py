"""
Student Job Marketplace - Main Application

FastAPI backend with:
- PostgreSQL for users, companies, jobs and applications
- MongoDB GridFS for uploaded resumes, avatars and logos
- JWT authentication

Run: uvicorn app.main:app --reload
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import api_router
from app.core.config import get_settings
from app.core.errors import MarketplaceError, ValidationFailed
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.db.postgres import init_schema, test_postgres_connection
from app.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
}

# Create FastAPI app
app = FastAPI(
    title="Student Job Marketplace",
    description="""
    A job marketplace connecting students with employers.

    ## Features
    - **Authentication**: JWT-based auth for students and employers
    - **Users**: Profiles, resume/avatar upload, saved and recommended jobs
    - **Companies**: One company per employer, provisioned on first posting
    - **Jobs**: Search, filter, sort and paginate postings
    - **Applications**: Apply, withdraw, review and statistics
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.error,
                     extra={"error_type": type(exc).__name__})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report every invalid field at once, in the same shape as business validation."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err["loc"] if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "body", "message": err["msg"]})
    failure = ValidationFailed(errors)
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": HTTP_ERROR_CODES.get(exc.status_code, "error")},
        headers=getattr(exc, "headers", None),
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create tables and MongoDB indexes on startup."""
    try:
        init_schema()
        logger.info("Database schema ready")
    except Exception as e:
        logger.warning("Schema initialization failed: %s", e, extra={"error_type": type(e).__name__})
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e, extra={"error_type": type(e).__name__})


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Student Job Marketplace"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
