import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, transfers
from .config import settings
from .logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

API_TITLE = "Bridgeflow API"
API_DESCRIPTION = "Cross-chain transfer catalog, quoting and sponsorship lookup"
API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(_: FastAPI):
    if not settings.has_gateway:
        logger.warning("Gateway base URL not configured; catalog and quote endpoints will return 503")
    logger.info(
        "Bridgeflow started (sponsored chains: %s, paymaster: %s)",
        ", ".join(sorted(settings.sponsored_chain_set())) or "none",
        "configured" if settings.has_paymaster else "none",
    )
    yield


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(transfers.router, tags=["Transfers"])


@app.get("/")
async def root():
    """Service info"""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "description": API_DESCRIPTION,
        "docs": "/docs",
        "health": "/healthz",
        "transfers": "/transfers",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bridgeflow.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
