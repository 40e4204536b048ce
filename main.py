"""
FastAPI Main Application

This script exposes the intervention governance engine over HTTP and runs the
FastAPI server on port 8000.

Every endpoint is a direct, on-demand call: nothing here schedules or
triggers interventions on its own.
"""

from fastapi import Depends, FastAPI, HTTPException
import uvicorn
import logging
from datetime import datetime
from typing import Optional

from utils import schemas
from governance.engine import GovernanceEngine
from governance.audit import NOT_FOUND_REASON
from governance.errors import DataUnavailable
from governance.registry import SupabaseRegistry

# Setup logging with timestamps
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

# Shown to the user when the registry cannot be read
UNAVAILABLE_MESSAGE = "We could not load your interventions right now. Nothing has been changed."

# Create FastAPI app instance
app = FastAPI(
    title="Intervention Governance API",
    description="Eligibility, audit and governance for user-authored interventions",
    version="1.0.0"
)


def get_engine() -> GovernanceEngine:
    """Engine backed by the Supabase registry. Overridden in tests."""
    return GovernanceEngine(SupabaseRegistry())


def _unavailable(endpoint: str, start_time: datetime, e: Exception) -> HTTPException:
    total_duration = (datetime.now() - start_time).total_seconds()
    logger.error(f"{endpoint} - DataUnavailable after {total_duration:.2f}s: {e}")
    return HTTPException(status_code=503, detail=UNAVAILABLE_MESSAGE)


@app.get("/")
async def root():
    """Root endpoint."""
    logger.info("GET / - Root endpoint called")
    return {"message": "Intervention Governance API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    logger.info("GET /health - Health check endpoint called")
    return {"status": "healthy"}


@app.get("/api/governance/{user_id}/audit", response_model=schemas.AuditReport)
def get_audit(
    user_id: str,
    local_time: Optional[datetime] = None,
    engine: GovernanceEngine = Depends(get_engine)
):
    """
    Explainable audit of every context for a user.
    
    Read-only: the response lists, per context, what is eligible (and which
    one would show first), what is blocked and why, and every active rule.
    """
    start_time = datetime.now()
    logger.info(f"GET /api/governance/{{user_id}}/audit - Endpoint called for user {user_id}")
    
    try:
        report = engine.compute_audit(user_id, now=local_time)
    except DataUnavailable as e:
        raise _unavailable("GET /api/governance/{user_id}/audit", start_time, e)
    
    total_duration = (datetime.now() - start_time).total_seconds()
    logger.info(f"GET /api/governance/{{user_id}}/audit - Completed in {total_duration:.2f}s")
    return report


@app.post("/api/governance/eligibility", response_model=schemas.EligibilityResult)
def check_eligibility(request: schemas.EligibilityRequest, engine: GovernanceEngine = Depends(get_engine)):
    """Eligible and blocked interventions for a context that just fired."""
    start_time = datetime.now()
    logger.info(f"POST /api/governance/eligibility - Endpoint called for user {request.user_id}")
    
    try:
        result = engine.compute_eligibility(request.user_id, request.context, now=request.local_time)
    except DataUnavailable as e:
        raise _unavailable("POST /api/governance/eligibility", start_time, e)
    
    total_duration = (datetime.now() - start_time).total_seconds()
    logger.info(f"POST /api/governance/eligibility - Completed in {total_duration:.2f}s")
    return result


@app.post("/api/governance/can-invoke", response_model=schemas.InvokeCheck)
def check_can_invoke(request: schemas.CanInvokeRequest, engine: GovernanceEngine = Depends(get_engine)):
    """
    Pre-check before showing an intervention.
    
    Always answers 200: a registry failure comes back as can_invoke=false with
    the reason 'could not verify status'.
    """
    logger.info(f"POST /api/governance/can-invoke - Endpoint called for user {request.user_id}")
    return engine.can_invoke(
        request.user_id,
        request.intervention_id,
        now=request.local_time,
        context=request.context
    )


@app.get("/api/governance/{user_id}/overview", response_model=schemas.GovernanceOverview)
def get_overview(user_id: str, engine: GovernanceEngine = Depends(get_engine)):
    """Status totals, category breakdown and soft-limit warnings."""
    start_time = datetime.now()
    logger.info(f"GET /api/governance/{{user_id}}/overview - Endpoint called for user {user_id}")
    
    try:
        return engine.compute_overview(user_id)
    except DataUnavailable as e:
        raise _unavailable("GET /api/governance/{user_id}/overview", start_time, e)


def _bulk_response(result: schemas.BulkActionResult) -> schemas.BulkActionResponse:
    return schemas.BulkActionResponse(
        action=result.action,
        affected_count=result.affected_count,
        affected_ids=result.affected_ids
    )


@app.post("/api/governance/pause-all", response_model=schemas.BulkActionResponse)
def pause_all(request: schemas.UserRequest, engine: GovernanceEngine = Depends(get_engine)):
    """Pause every intervention. Nothing is deleted."""
    start_time = datetime.now()
    logger.info(f"POST /api/governance/pause-all - Endpoint called for user {request.user_id}")
    
    try:
        return _bulk_response(engine.pause_all(request.user_id))
    except DataUnavailable as e:
        raise _unavailable("POST /api/governance/pause-all", start_time, e)


@app.post("/api/governance/pause-by-kind", response_model=schemas.BulkActionResponse)
def pause_by_kind(request: schemas.PauseByKindRequest, engine: GovernanceEngine = Depends(get_engine)):
    """Pause every intervention of one kind."""
    start_time = datetime.now()
    logger.info(f"POST /api/governance/pause-by-kind - Endpoint called for user {request.user_id} ({request.kind.value})")
    
    try:
        return _bulk_response(engine.pause_by_kind(request.user_id, request.kind))
    except DataUnavailable as e:
        raise _unavailable("POST /api/governance/pause-by-kind", start_time, e)


@app.post("/api/governance/pause-all-except-manual", response_model=schemas.BulkActionResponse)
def pause_all_except_manual(request: schemas.UserRequest, engine: GovernanceEngine = Depends(get_engine)):
    """Pause everything that can appear on its own; manual tools stay as they are."""
    start_time = datetime.now()
    logger.info(f"POST /api/governance/pause-all-except-manual - Endpoint called for user {request.user_id}")
    
    try:
        return _bulk_response(engine.pause_all_except_manual(request.user_id))
    except DataUnavailable as e:
        raise _unavailable("POST /api/governance/pause-all-except-manual", start_time, e)


@app.post("/api/governance/interventions/{intervention_id}/pause", response_model=schemas.StatusChangeResult)
def pause_intervention(
    intervention_id: str,
    request: schemas.UserRequest,
    engine: GovernanceEngine = Depends(get_engine)
):
    """Pause a single intervention."""
    start_time = datetime.now()
    logger.info(f"POST /api/governance/interventions/{{id}}/pause - Endpoint called for {intervention_id}")
    
    try:
        result = engine.pause_intervention(request.user_id, intervention_id)
    except DataUnavailable as e:
        raise _unavailable("POST /api/governance/interventions/{id}/pause", start_time, e)
    
    if result.reason == NOT_FOUND_REASON:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return result


@app.post("/api/governance/interventions/{intervention_id}/resume", response_model=schemas.StatusChangeResult)
def resume_intervention(
    intervention_id: str,
    request: schemas.UserRequest,
    engine: GovernanceEngine = Depends(get_engine)
):
    """Resume a paused or disabled intervention. Soft limits never prevent this."""
    start_time = datetime.now()
    logger.info(f"POST /api/governance/interventions/{{id}}/resume - Endpoint called for {intervention_id}")
    
    try:
        result = engine.resume_intervention(request.user_id, intervention_id)
    except DataUnavailable as e:
        raise _unavailable("POST /api/governance/interventions/{id}/resume", start_time, e)
    
    if result.reason == NOT_FOUND_REASON:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return result


if __name__ == "__main__":
    # Run the server on port 8000
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
