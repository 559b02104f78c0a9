# backend/main.py
import logging
import os

from dotenv import load_dotenv

# .env next to backend/ or in the project root; real environment wins
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
for _p in (os.path.join(os.path.dirname(BASE_DIR), ".env"), os.path.join(BASE_DIR, ".env")):
    if os.path.exists(_p):
        load_dotenv(_p, override=False)

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import auth, interview, resumes, voice
from core.config import check_environment, settings
from core.errors import InterviewError
from core.logging import setup_json_logging
from core.rate_limit import RateLimitMiddleware, SlidingWindowCounter
from core.request_id import RequestIDMiddleware
from db.init_db import init_db

setup_json_logging(settings.log_level.upper())
log = logging.getLogger("app")

for _w in check_environment(settings):
    log.warning(_w)

app = FastAPI(title="AI Interview Coach API")

app.include_router(auth.router)
app.include_router(resumes.router)
app.include_router(interview.router)
app.include_router(voice.router)

init_db()

# last added runs first: request id -> rate limit -> CORS -> routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    RateLimitMiddleware,
    counter=SlidingWindowCounter(
        settings.rate_limit_requests,
        settings.rate_limit_window_seconds,
        max_keys=settings.rate_limit_max_clients,
    ),
    exempt_paths={"/health"},
)
app.add_middleware(RequestIDMiddleware)


# ---------- Error envelope ----------
def _error(status_code: int, message: str, details=None, headers=None) -> JSONResponse:
    body = {"success": False, "error": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(InterviewError)
async def interview_error_handler(request: Request, exc: InterviewError):
    ctx = {"path": request.url.path, "error_type": type(exc).__name__}
    if exc.status_code >= 500:
        log.error("%s", exc.message, extra=ctx)
        return _error(exc.status_code, exc.client_message)
    log.info("%s", exc.message, extra=ctx)
    return _error(exc.status_code, exc.client_message, exc.details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request", exc.errors())


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    log.error("Database error on %s", request.url.path, exc_info=exc)
    return _error(500, "A storage error occurred")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


@app.get("/health")
def health():
    return {
        "success": True,
        "data": {
            "status": "ok",
            "environment": settings.environment,
            "aiProvider": settings.ai_provider,
        },
    }
