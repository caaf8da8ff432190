"""
FastAPI application setup for the botracers web host.
"""

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from . import __version__ as WEB_VERSION
from .routes import engine_host, router

# Load .env file (if present) so BOTRACERS_URL and friends are available via os.environ
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await engine_host.start()
    try:
        yield
    finally:
        await engine_host.stop()


# App
app = FastAPI(
    title="botracers",
    description="Build, upload and manage BotRacers bot artifacts",
    version=WEB_VERSION,
    lifespan=lifespan,
)

# Include API routes
app.include_router(router)


@app.get("/")
async def index():
    """Point API clients at the view endpoint."""
    return {"name": "botracers", "version": WEB_VERSION, "view": "/api/view"}
