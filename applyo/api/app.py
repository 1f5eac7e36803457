"""
FastAPI application -- Applyo API server.

Run locally:
    applyo serve --reload
or
    uvicorn applyo.api.app:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from applyo import __version__
from applyo.api.routes import agents, auth, companies, email, templates, vectorize
from applyo.config import settings
from applyo.database import init_database
from applyo.exceptions import AgentError, ConfigurationError
from applyo.utils import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Initialise database schema
    init_database()
    logger.info(f"Applyo API started ({settings.environment})")
    yield
    logger.info("Applyo API stopped")


app = FastAPI(
    title="Applyo API",
    version=__version__,
    description="Lead enrichment -- companies, executives and verified emails for outreach",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AgentError)
async def agent_error_handler(request: Request, exc: AgentError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse({"error": str(exc)}, status_code=503)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        status_code=422,
    )


app.include_router(auth.router)
app.include_router(agents.router)
app.include_router(templates.router)
app.include_router(email.router)
app.include_router(vectorize.router)
app.include_router(companies.router)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}
