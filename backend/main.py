import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse

from config import TRIAL_DATA_FILE, load_trial_config
from routers.records import router as records_router
from routers.reports import router as reports_router
from services.snapshot_store import SnapshotStore
from services.trial_session import TrialSession, init_session

STATIC_DIR = Path(__file__).parent / "static"

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: load trial config and the stored snapshot
    print("Loading trial data...")
    config = load_trial_config()
    session = TrialSession(SnapshotStore(TRIAL_DATA_FILE), config)
    init_session(session)
    snap = session.snapshot
    print(f"Loaded {len(snap.animals)} animals, {len(snap.weighings)} weighings, "
          f"{len(snap.feed_records)} feed records, {len(snap.incidents)} incidents")
    yield


app = FastAPI(title="Feeding Trial Tracker", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(records_router)
app.include_router(reports_router)

# Serve built frontend if static/ directory exists
if STATIC_DIR.is_dir():
    app.mount("/assets", StaticFiles(directory=STATIC_DIR / "assets"), name="assets")

    @app.get("/{full_path:path}")
    async def serve_spa(full_path: str):
        """Catch-all: serve index.html for SPA client-side routing."""
        file_path = STATIC_DIR / full_path
        if file_path.is_file():
            return FileResponse(file_path)
        return FileResponse(STATIC_DIR / "index.html")
