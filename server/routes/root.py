"""Root and health endpoints."""

from fastapi import APIRouter, Depends

import oracle

from ..state import AppState, get_state

router = APIRouter()


@router.get("/")
def root(state: AppState = Depends(get_state)):
    return {
        "name": "Oracle Recommendation API",
        "version": oracle.__version__,
        "worker": {
            "state": state.worker.state.value,
            "runId": state.worker.current_run_id,
        },
        "endpoints": {
            "config": ["/api/config"],
            "recommendations": [
                "/api/recommendations",
                "/api/recommendations/status",
                "/api/recommendations/compute",
            ],
        },
    }


@router.get("/api/health")
def health(state: AppState = Depends(get_state)):
    return {
        "status": "healthy",
        "worker": state.worker.state.value,
        "configSource": str(state.config.oracle_config_path) if state.config.oracle_config_path else "defaults",
    }
