"""
Lecture quiz portal API

Students upload lecture documents, get generated flashcards and quizzes,
chat with the material and track their scores; admins curate a course catalogue.
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from quizportal.config import settings
from quizportal.database import init_db
from quizportal.api import analytics, auth, courses, quizzes, share
from quizportal.services.cleanup_service import unverified_user_cleanup
from quizportal.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Paths that never count against a client's request budget
UNLIMITED_PATHS = frozenset({"/health", "/docs", "/openapi.json"})

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Turns lecture documents into flashcards, quizzes and study chat",
    docs_url="/docs",
    redoc_url=None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (auth, quizzes, share, analytics, courses):
    app.include_router(module.router)


@app.middleware("http")
async def enforce_rate_limits(request: Request, call_next):
    if request.url.path not in UNLIMITED_PATHS:
        try:
            await rate_limiter.check_rate_limit(request)
        except HTTPException as e:
            return JSONResponse(status_code=e.status_code, content=e.detail, headers=e.headers)

    return await call_next(request)


@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")
    return response


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    """Every HTTP error leaves as {error, message, status_code}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "message": exc.detail, "status_code": exc.status_code},
        headers=getattr(exc, "headers", None)
    )


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "cleanup_running": unverified_user_cleanup.running,
        "timestamp": time.time()
    }


@app.get("/")
async def index():
    return {"message": "Lecture Quiz Portal API", "version": settings.APP_VERSION, "docs": "/docs"}


@app.on_event("startup")
async def on_startup():
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialisation failed: {str(e)}")
        raise

    unverified_user_cleanup.start()


@app.on_event("shutdown")
async def on_shutdown():
    await unverified_user_cleanup.stop()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("quizportal.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
