"""
HTTP API for the recruiting performance tracker.

Every endpoint except /health acts on behalf of the user named in the
actor header; what that user sees is decided by the access module, not here.
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .admin import router as admin_router
from .boards import router as boards_router
from .deps import current_actor
from .schemas import (
    DailyMetricsRequest,
    ForecastGoalsRequest,
    ForecastRequest,
    HealthResponse,
    ProfileUpdateRequest,
)
from ..core import dao, reports
from ..core.config import CORS_ORIGINS, VERSION, debug_enabled, forecast_defaults, validate_config
from ..core.db import health_check, init_db
from ..core.errors import (
    InvalidConfigurationError,
    MissingTeamError,
    NotFoundError,
    PermissionDeniedError,
    ReferentialIntegrityError,
    StoreWriteError,
)
from ..core.export import export_filename, yearly_tracking_csv
from ..core.schema import Actor
from ..util.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    for issue in validate_config():
        logger.warning(f"Configuration issue: {issue}")
    init_db()
    logger.info(f"PerfTrack API {VERSION} started")
    yield


app = FastAPI(
    title="PerfTrack API",
    version=VERSION,
    description="Recruiting performance tracking: daily activity, goals, pipeline and forecasting",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    db_health = health_check()
    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health
    )


@app.get("/me")
def get_me(actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    return actor.to_dict()


@app.patch("/me")
def update_me(request: ProfileUpdateRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    """Update the acting user's own name."""
    return dao.update_actor(actor.id, first_name=request.first_name, last_name=request.last_name).to_dict()


@app.get("/dashboard")
def dashboard_endpoint(
    year: Optional[int] = Query(None, description="Calendar year; defaults to the current one"),
    actor: Actor = Depends(current_actor)
) -> Dict[str, Any]:
    today = date.today()
    return reports.dashboard(actor, year or today.year, today)


@app.get("/daily-metrics")
def get_daily_metrics(
    day: Optional[date] = Query(None, alias="date", description="Day to show; defaults to today"),
    actor: Actor = Depends(current_actor)
) -> Dict[str, Any]:
    return reports.daily_metrics(actor, day or date.today())


@app.put("/daily-metrics")
def put_daily_metrics(request: DailyMetricsRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    """Create or overwrite the acting user's record for one day."""
    record = dao.upsert_daily_record(actor, request.date, request.counters(), request.notes)
    if record is None:
        raise HTTPException(status_code=500, detail="Daily metrics saved but could not be read back")
    return record.to_dict()


@app.get("/yearly-tracking")
def yearly_tracking_endpoint(
    year: Optional[int] = Query(None),
    team_id: Optional[str] = Query(None),
    actor: Actor = Depends(current_actor)
) -> Dict[str, Any]:
    return reports.yearly_tracking(actor, year or date.today().year, team_id)


@app.get("/yearly-tracking/export")
def yearly_tracking_export(
    year: Optional[int] = Query(None),
    team_id: Optional[str] = Query(None),
    actor: Actor = Depends(current_actor)
):
    """Yearly tracking table as CSV, one row per team and metric."""
    year = year or date.today().year
    tracking = reports.yearly_tracking(actor, year, team_id)
    logger.log_operation("export_yearly", "success", {"year": year, "teams": len(tracking["teams"])})
    return Response(
        content=yearly_tracking_csv(tracking["teams"]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(year)}"'}
    )


@app.get("/forecast/defaults")
def forecast_defaults_endpoint(actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    """Configured funnel inputs used to prefill the forecasting page."""
    return forecast_defaults()


@app.post("/forecast")
def forecast_endpoint(request: ForecastRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    """Required activity per funnel stage for a revenue target."""
    return reports.forecast_view(actor, request.target_revenue, request.avg_deal_size, request.ratios)


@app.post("/forecast/goals")
def save_forecast_goals(request: ForecastGoalsRequest, actor: Actor = Depends(current_actor)) -> Dict[str, Any]:
    """Save a forecast as company-wide monthly goals (admins only)."""
    goals = reports.save_forecast_as_goals(
        actor,
        request.target_revenue,
        request.avg_deal_size,
        request.year,
        request.month,
        request.ratios
    )
    return {"success": True, "goals": [g.to_dict() for g in goals]}


app.include_router(admin_router, tags=["admin"])
app.include_router(boards_router, tags=["boards"])


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request, exc):
    return _error(403, exc)


@app.exception_handler(NotFoundError)
async def not_found_handler(request, exc):
    return _error(404, exc)


@app.exception_handler(ReferentialIntegrityError)
async def integrity_handler(request, exc):
    return _error(409, exc)


@app.exception_handler(MissingTeamError)
async def missing_team_handler(request, exc):
    return _error(400, exc)


@app.exception_handler(InvalidConfigurationError)
async def invalid_configuration_handler(request, exc):
    return _error(422, exc)


@app.exception_handler(ValueError)
async def value_error_handler(request, exc):
    return _error(400, exc)


@app.exception_handler(StoreWriteError)
async def store_write_handler(request, exc):
    logger.log_operation("store_write", "failed", {"table": exc.table, "action": exc.action, "error": str(exc)})
    content = {"detail": "Could not save changes. Please try again."}
    if debug_enabled():
        content["debug"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    content = {"detail": "Internal server error"}
    if debug_enabled():
        content["debug"] = str(exc)
    return JSONResponse(status_code=500, content=content)
