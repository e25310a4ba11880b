"""
Analysis routes. Submitting and reading a single analysis work for guests;
history, delete and stats need a logged-in user.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from access_policy import optional_identity, require_identity
from dependencies import Services, get_services
from schemas import AnalyzeRequest, Identity

analysis_router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@analysis_router.post("/analyze")
async def analyze_idea(
    request: AnalyzeRequest,
    identity: Optional[Identity] = Depends(optional_identity),
    services: Services = Depends(get_services),
):
    """Analyze a business idea as a guest or as the logged-in user"""
    result = await services.orchestrator.submit(request.business_idea, identity, request.session_id)
    return {
        "message": "Analysis completed successfully",
        "analysis": result.record["analysis"],
        "recordId": result.record["record_id"],
        # guests keep this to claim the analysis after signing up
        "sessionId": result.guest_session_id,
    }


@analysis_router.get("/history")
async def get_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
):
    return await services.orchestrator.history(identity.user_id, page, limit)


@analysis_router.get("/search/{record_id}")
async def get_search(
    record_id: str,
    identity: Optional[Identity] = Depends(optional_identity),
    services: Services = Depends(get_services),
):
    return {"record": await services.orchestrator.get_record(record_id, identity)}


@analysis_router.delete("/search/{record_id}")
async def delete_search(
    record_id: str,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
):
    await services.orchestrator.delete_record(record_id, identity.user_id)
    return {"ok": True, "message": "Search deleted successfully"}


@analysis_router.get("/dashboard/stats")
async def get_dashboard_stats(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
):
    return {"stats": await services.orchestrator.dashboard_stats(identity.user_id)}
