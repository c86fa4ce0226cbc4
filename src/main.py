import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.api import api_router
from core.config import configs
from core.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

UPLOADS_DIR = Path(configs.MEDIA_ROOT) / "uploads"
UPLOADS_DIR.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🔧 Starting report worker...")
    app.state.report_lock = asyncio.Lock()
    logger.info(f"✅ Report worker ready (storage: {configs.STORAGE_TYPE}).")
    yield
    # Shutdown
    logger.info("🛑 Shutting down report worker...")

app = FastAPI(
    title=configs.PROJECT_NAME,
    description="Project report generation for field resources",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS (Allow all for development env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")
app.mount("/uploads", StaticFiles(directory=UPLOADS_DIR), name="uploads")
app.mount(f"/{configs.MEDIA_URL.strip('/')}", StaticFiles(directory=configs.MEDIA_ROOT), name="media")

@app.get("/")
async def root():
    return {"message": "Field Report Worker Running"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}
