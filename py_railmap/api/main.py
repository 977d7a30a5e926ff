"""FastAPI main application."""

import logging
import threading
from typing import List, Optional

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import text

from ..config import settings
from ..core.geometry import GridPosition, Segment
from ..core.placer import mapping_placer, placer_resolver, safe_placer
from ..core.render import build_markers
from ..core.scan import scan_region
from ..db.connection import db
from ..db.store import LineNotFoundError, SegmentStore

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Rail Map API",
    description="Detects rail lines from rail block scans and serves them as map polylines",
    version="0.1.0",
)

# Scans read and replace the whole line collection, so only one runs at a time
_scan_lock = threading.Lock()


# Request/Response models
class Position(BaseModel):
    """A rail block coordinate within the scanned region."""

    x: int
    y: int
    z: int


class PlacerRecord(Position):
    """Block history entry: who placed the rail at this position."""

    identity: str = Field(..., min_length=1)


class ScanRequest(BaseModel):
    """Rail blocks currently present in a region."""

    positions: List[Position] = Field(default_factory=list, description="All rail blocks in the region")
    placers: List[PlacerRecord] = Field(default_factory=list, description="Optional block placers")


class ScanResponse(BaseModel):
    """Outcome of a region scan."""

    region: str
    rail_blocks: int
    traced_lines: int
    kept: int
    dropped: int
    added: int
    skipped: int
    total_lines: int
    stored_lines: int
    player_placed_lines: int


class LineSummary(BaseModel):
    """A stored rail line."""

    id: str
    name: str
    color: str
    block_count: int
    created_by: Optional[str] = None
    active: bool
    created_at: int
    regions: List[str]
    bounding_box: Optional[List[int]] = None


class LineUpdate(BaseModel):
    """Editable line fields."""

    name: Optional[str] = None
    color: Optional[str] = Field(None, description="Hex color like #FF0000")
    active: Optional[bool] = None


class MarkerResponse(BaseModel):
    """Polyline marker for the map renderer."""

    id: str
    label: str
    region: str
    vertices: List[List[float]]
    color: str
    width: int
    opacity: float


def _line_summary(segment: Segment) -> LineSummary:
    box = segment.bounding_box()
    return LineSummary(
        id=segment.id,
        name=segment.name,
        color=segment.color,
        block_count=segment.block_count,
        created_by=segment.created_by,
        active=segment.active,
        created_at=segment.created_at,
        regions=sorted(segment.regions),
        bounding_box=list(box) if box else None,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Starting Rail Map API")
    db.initialize()
    logger.info("API startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Rail Map API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Rail Map API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    try:
        with db.get_session() as session:
            session.execute(text("SELECT 1"))

        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        raise HTTPException(status_code=503, detail="Service unhealthy")


@app.post("/regions/{region}/scan", response_model=ScanResponse)
def scan(region: str, request: ScanRequest):
    """
    Scan a region's rail blocks and merge the detected lines into storage.

    The request is the complete current set of rail blocks for the region;
    stored lines are validated against it.
    """
    candidates = {GridPosition(p.x, p.y, p.z, region) for p in request.positions}
    placements = {GridPosition(r.x, r.y, r.z, region): r.identity for r in request.placers}
    resolve = placer_resolver(safe_placer(mapping_placer(placements))) if placements else None

    logger.info("Scan requested", region=region, positions=len(candidates), placers=len(placements))

    with _scan_lock:
        with db.get_session() as session:
            store = SegmentStore(session)
            result = scan_region(
                candidates,
                region,
                store.list_segments(),
                store.generate_line_id,
                resolve_placer=resolve,
            )
            stored = store.replace_all_filtered(result.segments, settings.min_line_length)

    merge = result.merge
    return ScanResponse(
        region=region,
        rail_blocks=result.rail_blocks,
        traced_lines=len(result.traced),
        kept=len(merge.kept),
        dropped=len(merge.dropped),
        added=len(merge.added),
        skipped=len(merge.skipped),
        total_lines=len(result.segments),
        stored_lines=stored,
        player_placed_lines=result.player_placed,
    )


@app.get("/lines", response_model=List[LineSummary])
def list_lines(region: Optional[str] = None):
    """List stored lines, optionally only those touching a region."""
    with db.get_session() as session:
        segments = SegmentStore(session).list_segments()

    if region is not None:
        segments = [s for s in segments if s.in_region(region)]
    return [_line_summary(s) for s in segments]


@app.get("/lines/{line_id}", response_model=LineSummary)
def get_line(line_id: str):
    """Get one stored line."""
    try:
        with db.get_session() as session:
            segment = SegmentStore(session).get_segment(line_id)
    except LineNotFoundError:
        raise HTTPException(status_code=404, detail=f"Line not found: {line_id}")
    return _line_summary(segment)


@app.patch("/lines/{line_id}", response_model=LineSummary)
def update_line(line_id: str, update: LineUpdate):
    """Rename, recolor or (de)activate a line."""
    try:
        with db.get_session() as session:
            store = SegmentStore(session)
            segment = store.get_segment(line_id)
            if update.name is not None:
                segment = store.rename_segment(line_id, update.name)
            if update.color is not None:
                segment = store.recolor_segment(line_id, update.color)
            if update.active is not None:
                segment = store.set_active(line_id, update.active)
    except LineNotFoundError:
        raise HTTPException(status_code=404, detail=f"Line not found: {line_id}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Line updated", line_id=line_id)
    return _line_summary(segment)


@app.delete("/lines/{line_id}")
def delete_line(line_id: str):
    """Remove a line."""
    try:
        with db.get_session() as session:
            SegmentStore(session).remove_segment(line_id)
    except LineNotFoundError:
        raise HTTPException(status_code=404, detail=f"Line not found: {line_id}")
    return {"deleted": line_id}


@app.get("/markers", response_model=List[MarkerResponse])
def get_markers():
    """Polyline markers for every renderable line."""
    with db.get_session() as session:
        segments = SegmentStore(session).list_segments()

    return [
        MarkerResponse(
            id=marker.id,
            label=marker.label,
            region=marker.region,
            vertices=marker.vertices(),
            color=f"#{marker.color:06X}",
            width=marker.width,
            opacity=marker.opacity,
        )
        for marker in build_markers(segments, settings)
    ]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
