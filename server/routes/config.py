"""Configuration endpoint: effective engine config and computed parameters."""

from fastapi import APIRouter, Depends, Query

from oracle.computed_params import compute_parameters

from ..state import AppState, get_state

router = APIRouter()


@router.get("")
def get_engine_config(
    coverage: float = Query(1.0, ge=0.0, le=1.0, description="Embedding coverage for effective weights"),
    state: AppState = Depends(get_state),
):
    """Return the engine config and parameters derived from it."""
    return {
        "config": state.oracle_config.model_dump(),
        "computed": compute_parameters(state.oracle_config, coverage),
    }
