import logging
import time
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hafiz.application.service import MemorizationService
from hafiz.consts import VERSION
from hafiz.domain.errors import PersistenceError, ValidationError
from hafiz.domain.models import MemorizationStatus, UnitId

logger = logging.getLogger("hafiz.server")

_service: MemorizationService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"hafiz server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("hafiz server shutting down...")


app = FastAPI(
    title="hafiz",
    description="Memorization progress and review scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


async def get_service() -> MemorizationService:
    """Process-wide service, built from config on first use."""
    global _service
    if _service is None:
        from hafiz.application.config import resolve_config
        from hafiz.application.factory import build_service

        _service = build_service(resolve_config())
    await _service.initialize()
    return _service


ServiceDep = Annotated[MemorizationService, Depends(get_service)]


@app.exception_handler(ValidationError)
async def validation_error_handler(request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request, exc: PersistenceError):
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ProgressResponse(BaseModel):
    unit: str
    status: MemorizationStatus
    last_reviewed: str | None = None


class StatusUpdateRequest(BaseModel):
    status: str


class ReviewRequest(BaseModel):
    quality: float = Field(description="Recall quality, clamped to 0-5.")


class StatsResponse(BaseModel):
    total: int
    learning: int
    reviewing: int
    mastered: int


def _progress_response(unit_id: UnitId, progress) -> ProgressResponse:
    return ProgressResponse(
        unit=str(unit_id),
        status=progress.status,
        last_reviewed=progress.last_reviewed.isoformat() if progress.last_reviewed else None,
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/progress/{unit}", response_model=ProgressResponse)
async def read_progress(unit: str, service: ServiceDep):
    unit_id = UnitId.parse(unit)
    return _progress_response(unit_id, await service.get_progress(unit_id))


@app.put("/progress/{unit}", response_model=ProgressResponse)
async def write_progress(unit: str, req: StatusUpdateRequest, service: ServiceDep):
    unit_id = UnitId.parse(unit)
    return _progress_response(unit_id, await service.update_status(unit_id, req.status))


@app.delete("/progress")
async def clear_progress(service: ServiceDep):
    await service.clear_all()
    return {"cleared": True}


@app.get("/due", response_model=list[ProgressResponse])
async def list_due(service: ServiceDep):
    return [_progress_response(e.unit_id, e.progress) for e in await service.get_due_units()]


@app.get("/mastered", response_model=list[ProgressResponse])
async def list_mastered(service: ServiceDep):
    return [_progress_response(u, p) for u, p in await service.get_mastered_units()]


@app.post("/review/{unit}")
async def review_unit(unit: str, req: ReviewRequest, service: ServiceDep):
    unit_id = UnitId.parse(unit)
    try:
        outcome = await service.record_review(unit_id, req.quality)
    except (PersistenceError, ValidationError):
        raise
    except Exception as e:
        logger.error(f"Review of {unit_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    return outcome.to_dict()


@app.get("/stats", response_model=StatsResponse)
async def read_stats(service: ServiceDep):
    return StatsResponse(**(await service.get_stats()).to_dict())
