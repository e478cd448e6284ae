"""
Gear Score Dashboard - FastAPI server showing the latest equipment scan.

The scanner publishes every ScanResult into a ScanResultStore; the endpoints
read from that store. Auto-detects an available port on startup.

Endpoints:
    GET /api/health               scanner/store status
    GET /api/scan                 latest result (404 before the first scan)
    GET /api/regions              names of the latest region images
    GET /api/regions/{name}.png   one region image as PNG
    GET /api/config               active scan configuration
"""
from __future__ import annotations

import logging
import socket
import threading
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import cv2
import numpy as np
from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel
import uvicorn

# Add project root to path
import sys
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from gearscan.result_display import scan_summary
from gearscan.scan_config import ScanConfig

logger = logging.getLogger(__name__)

_dashboard_port: int | None = None


# ============================================================================
# Result Store
# ============================================================================

class ScanResultStore:
    """
    Holds the latest scan result. Registered as a scanner publisher.

    publish() runs on the scanner thread, the getters on the server thread.
    """

    def __init__(self, config: ScanConfig | None = None):
        self.config = config
        self._lock = threading.Lock()
        self._latest: Any = None
        self._scan_count = 0

    def publish(self, result: Any) -> None:
        with self._lock:
            self._latest = result
            self._scan_count += 1

    @property
    def latest(self) -> Any:
        with self._lock:
            return self._latest

    @property
    def scan_count(self) -> int:
        with self._lock:
            return self._scan_count

    def region_image(self, name: str) -> np.ndarray | None:
        latest = self.latest
        if latest is None:
            return None
        return latest.region_images.get(name)


_store = ScanResultStore()


def set_result_store(store: ScanResultStore) -> None:
    """Called by gear_daemon.py to share the store the scanner publishes to."""
    global _store
    _store = store


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """Dashboard health response."""
    status: str
    scan_count: int
    last_scan: str | None


class StatResponse(BaseModel):
    type: str
    value: str
    roll_count: int


class GearScoreResponse(BaseModel):
    """Gear score display values (strings keep the display precision)."""
    per_stat: list[str]
    total: str
    total_classification: str
    total_color: str
    adjusted_total: str
    adjusted_classification: str
    adjusted_color: str


class ScanResponse(BaseModel):
    """Latest scan result."""
    timestamp: str
    rank: str
    stats: list[StatResponse]
    gear_score: GearScoreResponse
    raw_text: str
    regions: list[str]


# ============================================================================
# Helper Functions
# ============================================================================

def find_free_port() -> int:
    """Find a free port to bind to."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('', 0))
        s.listen(1)
        port = s.getsockname()[1]
    return port


def encode_png(image: np.ndarray) -> bytes:
    """PNG-encode a BGR/BGRA/grayscale image."""
    ok, encoded = cv2.imencode(".png", np.ascontiguousarray(image))
    if not ok:
        raise ValueError(f"PNG encoding failed for image of shape {image.shape}")
    return encoded.tobytes()


# ============================================================================
# FastAPI App
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(f"[DASHBOARD] Starting on port {_dashboard_port}")
    yield
    logger.info("[DASHBOARD] Shutting down")


app = FastAPI(
    title="Gear Score Dashboard",
    description="Latest equipment scan and gear score",
    lifespan=lifespan,
)


@app.get("/")
async def root() -> HTMLResponse:
    """Minimal page pointing at the JSON endpoints."""
    return HTMLResponse(
        content=(
            "<h1>Gear Score Dashboard</h1>"
            "<ul><li><a href='/api/scan'>/api/scan</a></li>"
            "<li><a href='/api/regions'>/api/regions</a></li>"
            "<li><a href='/api/config'>/api/config</a></li></ul>"
        )
    )


@app.get("/api/health", response_model=HealthResponse)
async def api_health() -> dict[str, Any]:
    latest = _store.latest
    return {
        "status": "ok",
        "scan_count": _store.scan_count,
        "last_scan": latest.timestamp.isoformat() if latest is not None else None,
    }


@app.get("/api/scan", response_model=ScanResponse)
async def api_scan() -> dict[str, Any]:
    """Latest scan: rank, stats, gear scores with classification colours."""
    latest = _store.latest
    if latest is None:
        raise HTTPException(status_code=404, detail="No scan yet")
    return scan_summary(latest)


@app.get("/api/regions")
async def api_regions() -> dict[str, Any]:
    latest = _store.latest
    names = sorted(latest.region_images) if latest is not None else []
    return {"regions": names}


@app.get("/api/regions/{name}.png")
async def api_region_image(name: str) -> Response:
    """One processed region image from the latest scan, PNG-encoded."""
    image = _store.region_image(name)
    if image is None:
        raise HTTPException(status_code=404, detail=f"Unknown region: {name}")
    return Response(content=encode_png(image), media_type="image/png")


@app.get("/api/config")
async def api_config() -> dict[str, Any]:
    """Active scan configuration."""
    if _store.config is None:
        raise HTTPException(status_code=503, detail="Scanner config not available")
    return _store.config.to_dict()


# ============================================================================
# Server Startup
# ============================================================================

def start_dashboard_server(store: ScanResultStore | None = None, port: int | None = None) -> int:
    """
    Start the dashboard server in a background thread.

    Args:
        store: Store the scanner publishes to
        port: Specific port to use, or None for auto-detect

    Returns:
        Port number the server is running on
    """
    global _dashboard_port

    if store is not None:
        set_result_store(store)

    if port is None:
        port = find_free_port()

    _dashboard_port = port

    def run_server():
        try:
            config = uvicorn.Config(
                app,
                host="127.0.0.1",
                port=port,
                log_level="warning",
                access_log=False,
                log_config=None,  # keep the daemon's logging setup
            )
            server = uvicorn.Server(config)
            server.run()
        except Exception:
            logger.exception("[DASHBOARD] Server crashed")

    thread = threading.Thread(target=run_server, daemon=True)
    thread.start()

    # Wait for server to start and verify
    time.sleep(1.5)

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        if s.connect_ex(('127.0.0.1', port)) == 0:
            logger.info(f"[DASHBOARD] Dashboard running at: http://localhost:{port}")
        else:
            logger.warning(f"[DASHBOARD] Server thread started but port {port} not listening!")

    return port


# ============================================================================
# Standalone Mode
# ============================================================================

if __name__ == "__main__":
    from config import DASHBOARD_PORT
    from gearscan.scan_config import load_scan_config

    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')
    set_result_store(ScanResultStore(load_scan_config()))
    port = DASHBOARD_PORT if DASHBOARD_PORT else find_free_port()
    print(f"Dashboard: http://localhost:{port}")
    uvicorn.run(app, host="127.0.0.1", port=port)
