"""Gatekeeper check-in and food distribution service."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gatekeeper.core.config import settings
from gatekeeper.core.database import create_db_and_tables
from gatekeeper.core.errors import StorageFailure
from gatekeeper.routes import checkin, food, ledger

# Configure logging
log_dir = Path(settings.log_dir).expanduser()
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    logger.info("Starting Gatekeeper")
    create_db_and_tables()
    yield
    logger.info("Gatekeeper shut down")


app = FastAPI(
    title=settings.app_name,
    description="Exactly-once event check-in and canteen food eligibility with an append-only scan ledger",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for scanner devices
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(checkin.router)
app.include_router(food.router)
app.include_router(ledger.router)


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    """Surface failed writes to the scanner so it can retry."""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=503, content={"success": False, "detail": str(exc)})


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


def run():
    """Serve the app with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run("gatekeeper.main:app", host=settings.host, port=settings.port)
