"""Recommendation endpoints: submit to the background worker, poll status, compute synchronously."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from oracle.errors import InputValidationError
from oracle.models.messages import RecoWorkerFailure
from oracle.recommendation_engine import compute_recommendations

from ..state import AppState, get_state

router = APIRouter()


def _validation_detail(field: str, message: str) -> Dict[str, Any]:
    return {"kind": "validation", "field": field, "message": message}


@router.post("", status_code=202)
def submit_recommendations(
    payload: Dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
):
    """Start a background run; any run in flight is superseded."""
    try:
        run_id = state.worker.submit(payload)
    except InputValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e.field, e.message))
    return {"runId": run_id, "state": state.worker.state.value}


@router.get("/status")
def recommendation_status(state: AppState = Depends(get_state)):
    """Worker state, latest progress, and the latest delivered result or failure."""
    return state.status()


@router.post("/compute")
def compute(
    payload: Dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
):
    """Run the pipeline in the request thread pool and return the outcome message."""
    outcome = compute_recommendations(payload, state.oracle_config)
    if isinstance(outcome, RecoWorkerFailure):
        if outcome.kind == "validation":
            raise HTTPException(status_code=422, detail=_validation_detail(outcome.field, outcome.message))
        raise HTTPException(status_code=500, detail=f"Computation failed: {outcome.message}")
    return JSONResponse(content=outcome.model_dump(mode="json", by_alias=True))
