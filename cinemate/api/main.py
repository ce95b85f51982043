"""
FastAPI application entry point for the Cinemate recommendation API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cinemate import __version__
from cinemate.api.config import get_api_host, get_api_port, get_log_file, get_log_level
from cinemate.api.dependencies import close_clients, get_database_manager
from cinemate.api.routers import auth, users, ratings, watchlist, recommendations, system
from cinemate.core.errors import PipelineError
from cinemate.utils.logging_config import configure_api_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_api_logging(level=get_log_level(), log_file=get_log_file())
    get_database_manager().create_tables()
    logger.info("Cinemate API %s started", __version__)
    yield
    await close_clients()
    logger.info("Cinemate API stopped")


app = FastAPI(
    title="Cinemate API",
    description="AI-generated personalized movie recommendations",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(ratings.router)
app.include_router(watchlist.router)
app.include_router(recommendations.router)
app.include_router(system.router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Cinemate API",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cinemate.api.main:app", host=get_api_host(), port=get_api_port())
