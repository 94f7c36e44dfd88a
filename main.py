import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from database import init_db
from errors import TripMateError
from routes import (
    auth,
    trips,
    votes,
    notifications,
    health,
)
from utils.logger import configure_logging, setup_api_logger

configure_logging()
logger = logging.getLogger(__name__)

# file logger for API failures
api_logger = setup_api_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting TripMate API...")
    try:
        init_db()
    except Exception:
        logger.exception("Automatic table creation failed; you may need to create the schema manually.")
    yield
    logger.info("Shutting down TripMate API...")


app = FastAPI(title="TripMate API (Trips, Voting, Notifications)", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TripMateError)
async def tripmate_error_handler(request: Request, exc: TripMateError):
    api_logger.warning("%s on %s %s | status=%s | message=%s",
                       type(exc).__name__, request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    api_logger.warning("Invalid request on %s %s | errors=%s", request.method, request.url.path, errors)
    return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    api_logger.warning("HTTPException on %s %s | status=%s | detail=%s",
                       request.method, request.url.path, exc.status_code, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # detail stays in the log, never in the response
    api_logger.error("Unhandled exception on %s %s | error=%s\n%s",
                     request.method, request.url.path, str(exc),
                     "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal Server Error"})


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(trips.router)
app.include_router(votes.router)
app.include_router(notifications.router)
