from dotenv import load_dotenv

load_dotenv(".env")

import datetime
import time
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import models  # noqa: F401  registers every table on Base.metadata
from core.errors import MediationError, ValidationError
from database.database import Base, engine
from routes import cases, sessions
from utils.state import State

state = State()
Base.metadata.create_all(bind=engine)
started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    state.logger.info("Starting up...")
    yield
    state.logger.info("Shutting down...")


app = FastAPI(
    title="Mediation Platform API",
    description="Mediation case and session lifecycle management",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=False,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

logfire.instrument_fastapi(app, capture_headers=True)
logfire.instrument_sqlalchemy(engine=engine)


@app.exception_handler(MediationError)
async def mediation_error_handler(request: Request, exc: MediationError):
    if exc.status_code >= 500:
        state.logger.error(f"{request.method} {request.url.path} failed: {exc.__cause__!r}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(error["loc"][-1]) for error in exc.errors() if error.get("loc")})
    error = ValidationError(fields)
    state.logger.warning(f"{request.method} {request.url.path} rejected, invalid fields: {fields}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(cases.router, prefix="/api/cases", tags=["cases"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
        "uptime": time.monotonic() - started_at,
    }


@app.get("/api")
async def root():
    return {
        "message": "Mediation Platform API",
        "version": app.version,
        "endpoints": {
            "cases": "/api/cases",
            "sessions": "/api/sessions",
            "health": "/health",
        },
    }
