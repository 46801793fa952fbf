import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import AppSettings, settings
from core.jobs.simulated_backend import SimulatedBackend
from core.jobs.simulated_runner import SimulatedJobRunner
from models.record import FileItem, Site
from storage.base import IngestBackend
from storage.file_store import LocalFileStorage
from storage.record_store import RecordStore
from storage.remote_backend import RemoteBackend

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def build_backends(app_settings: AppSettings) -> tuple[IngestBackend, IngestBackend]:
    """Returns (files, sites) backends for the configured mode."""
    mode = app_settings.backend.mode
    if mode == "remote":
        # Fails fast when RAG_API_BASE is missing
        base = app_settings.require("api_base")
        timeout = app_settings.backend.request_timeout
        return RemoteBackend(base, "files", timeout), RemoteBackend(base, "sites", timeout)

    if mode != "simulated":
        raise ValueError(f"Unknown backend mode: {mode!r}")

    storage = LocalFileStorage(app_settings.store.path)
    sim = app_settings.simulation
    runner = SimulatedJobRunner(
        latency_ms=(sim.latency_min_ms, sim.latency_max_ms),
        result_range=(sim.result_min, sim.result_max)
    )
    return (
        SimulatedBackend(RecordStore(storage, app_settings.store.files_key, FileItem), runner),
        SimulatedBackend(RecordStore(storage, app_settings.store.sites_key, Site), runner),
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    logger.info(f"Initializing record backends (mode={settings.backend.mode})...")

    files_backend, sites_backend = build_backends(settings)

    # Stored in app.state for dependency injection
    app.state.settings = settings
    app.state.files_backend = files_backend
    app.state.sites_backend = sites_backend
    # Chat components are built on first use so a missing key only disables chat
    app.state.chat_pipeline = None
    app.state.vector_store = None

    logger.info("Initialization complete. All systems ready.")

    yield

    logger.info("Shutting down RAG admin backend...")

# Create FastAPI instance
app = FastAPI(
    title="RAG Chat & Ingestion Admin API",
    description="RAG chat route plus file/site ingestion dashboards",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"], # Common frontend ports
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health Check Endpoint
@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok", "mode": settings.backend.mode}

from api.routes import files, sites, chat, chunks

app.include_router(files.router, prefix="/api", tags=["Files"])
app.include_router(sites.router, prefix="/api", tags=["Sites"])
app.include_router(chat.router, prefix="/api", tags=["Chat"])
app.include_router(chunks.router, prefix="/api", tags=["Chunks"])

@app.get("/", tags=["System"])
def root():
    return {"message": "RAG admin API is running."}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
