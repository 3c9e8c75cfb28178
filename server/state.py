"""Application state: engine config, the background worker, and delivered messages."""

import logging
import threading
from typing import Any, Dict, Optional, Union

from fastapi import Request

from oracle.models.config import OracleConfig
from oracle.models.messages import (
    RecoWorkerFailure,
    RecoWorkerMessage,
    RecoWorkerProgress,
    RecoWorkerResult,
)
from oracle.worker import RecoWorker

from .config import ServerConfig

logger = logging.getLogger(__name__)


def _dump(message) -> Optional[Dict[str, Any]]:
    return message.model_dump(mode="json", by_alias=True) if message is not None else None


class AppState:
    """Per-app state; one instance per create_app() call."""

    def __init__(self, config: ServerConfig, oracle_config: OracleConfig):
        self.config = config
        self.oracle_config = oracle_config
        self._lock = threading.Lock()
        self.progress: Optional[RecoWorkerProgress] = None
        self.outcome: Optional[Union[RecoWorkerResult, RecoWorkerFailure]] = None
        self.outcome_run_id: Optional[int] = None
        self.worker = RecoWorker(oracle_config, on_message=self._on_message)

    def _on_message(self, run_id: int, message: RecoWorkerMessage) -> None:
        with self._lock:
            if isinstance(message, RecoWorkerProgress):
                self.progress = message
                return
            self.outcome = message
            self.outcome_run_id = run_id
        logger.info("[server] OUTCOME_DELIVERED run_id=%d type=%s", run_id, message.type)

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "state": self.worker.state.value,
                "runId": self.worker.current_run_id,
                "progress": _dump(self.progress),
                "outcomeRunId": self.outcome_run_id,
                "outcome": _dump(self.outcome),
            }

    def close(self) -> None:
        self.worker.shutdown(wait=False)


def get_state(request: Request) -> AppState:
    return request.app.state.oracle
