"""
RecoWorker — runs the pipeline on a background thread and delivers messages.

States: Idle -> Running -> (Completed | Superseded | Failed). Submitting a new
input while a run is in flight supersedes it: the old run stops at its next
checkpoint, and even if it finishes first its result is dropped. Runs receive
a JSON-mode copy of the validated input, so no objects are shared with the
submitter while a run is in flight.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from oracle.errors import InputValidationError, PipelineError, RunSuperseded
from oracle.models.config import OracleConfig, resolve_config
from oracle.models.messages import (
    RecoWorkerFailure,
    RecoWorkerInput,
    RecoWorkerMessage,
    RecoWorkerProgress,
    RecoWorkerResult,
    parse_worker_input,
)
from oracle.stages.orchestrator import run_pipeline

logger = logging.getLogger(__name__)

MessageCallback = Callable[[int, RecoWorkerMessage], None]
Pipeline = Callable[..., RecoWorkerResult]

# Superseded runs may still be draining to their next checkpoint.
DEFAULT_MAX_THREADS = 2


class WorkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    FAILED = "failed"


class RecoWorker:
    """
    Background engine runner with supersession.

    on_message is called with (run_id, message) for progress, result and
    failure messages of the current run only. It is called while the worker
    lock is held, so a message is never delivered for a run that has already
    been superseded.
    """

    def __init__(
        self,
        config: Optional[OracleConfig] = None,
        on_message: Optional[MessageCallback] = None,
        pipeline: Pipeline = run_pipeline,
        max_threads: int = DEFAULT_MAX_THREADS,
    ):
        self.config = resolve_config(config)
        self.on_message = on_message
        self._pipeline = pipeline
        self._executor = ThreadPoolExecutor(max_workers=max_threads, thread_name_prefix="oracle-worker")
        self._lock = threading.RLock()
        self._done = threading.Event()
        self._done.set()
        self._generation = 0
        self._future: Optional[Future] = None
        self._run_states: Dict[int, WorkerState] = {}
        self.state = WorkerState.IDLE
        self.last_progress: Optional[RecoWorkerProgress] = None
        self.last_outcome: Optional[Union[RecoWorkerResult, RecoWorkerFailure]] = None

    @property
    def current_run_id(self) -> int:
        return self._generation

    def run_state(self, run_id: int) -> Optional[WorkerState]:
        with self._lock:
            return self._run_states.get(run_id)

    def submit(self, payload: Union[Mapping[str, Any], RecoWorkerInput]) -> int:
        """
        Validate and start a run, superseding any run in flight.

        Returns the run id. Malformed input fails the new run immediately with
        a validation failure and raises InputValidationError.
        """
        with self._lock:
            run_id = self._start_run()
            try:
                inp = parse_worker_input(payload)
            except InputValidationError as exc:
                logger.warning("[worker] INVALID_INPUT run_id=%d field=%s", run_id, exc.field)
                self._finish(run_id, RecoWorkerFailure(kind="validation", message=exc.message, field=exc.field))
                raise
            wire = inp.model_dump(mode="json", by_alias=True)
            self._future = self._executor.submit(self._run, run_id, wire)
            logger.info(
                "[worker] RUN_STARTED run_id=%d user_games=%d candidates=%d",
                run_id, len(inp.user_games), len(inp.candidates),
            )
            return run_id

    def wait(self, timeout: Optional[float] = None) -> Optional[Union[RecoWorkerResult, RecoWorkerFailure]]:
        """Block until the current run delivers (or timeout); returns the latest outcome."""
        self._done.wait(timeout)
        return self.last_outcome

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self.state == WorkerState.RUNNING:
                self._supersede(self._generation)
                self.state = WorkerState.IDLE
            self._generation += 1
            self._done.set()
        self._executor.shutdown(wait=wait)

    # -- internals --------------------------------------------------------

    def _start_run(self) -> int:
        if self.state == WorkerState.RUNNING:
            self._supersede(self._generation)
        self._generation += 1
        run_id = self._generation
        self._run_states[run_id] = WorkerState.RUNNING
        self.state = WorkerState.RUNNING
        self.last_progress = None
        self._done.clear()
        return run_id

    def _supersede(self, run_id: int) -> None:
        if self._run_states.get(run_id) == WorkerState.RUNNING:
            self._run_states[run_id] = WorkerState.SUPERSEDED
            logger.info("[worker] RUN_SUPERSEDED run_id=%d", run_id)

    def _check_cancelled(self, run_id: int) -> None:
        if run_id != self._generation:
            raise RunSuperseded(run_id)

    def _progress(self, run_id: int, stage: str, percent: int) -> None:
        with self._lock:
            if run_id != self._generation:
                return
            message = RecoWorkerProgress(stage=stage, percent=percent)
            self.last_progress = message
            self._emit(run_id, message)

    def _run(self, run_id: int, wire: Dict[str, Any]) -> None:
        try:
            result = self._pipeline(
                wire,
                config=self.config,
                progress=lambda stage, percent: self._progress(run_id, stage, percent),
                check_cancelled=lambda: self._check_cancelled(run_id),
            )
        except RunSuperseded:
            logger.debug("[worker] RUN_STOPPED run_id=%d", run_id)
            return
        except InputValidationError as exc:
            self._finish(run_id, RecoWorkerFailure(kind="validation", message=exc.message, field=exc.field))
            return
        except Exception as exc:
            error = PipelineError(f"{type(exc).__name__}: {exc}")
            logger.exception("[worker] RUN_FAILED run_id=%d error=%s", run_id, error)
            self._finish(run_id, RecoWorkerFailure(kind="internal", message=str(error)))
            return
        self._finish(run_id, result)

    def _finish(self, run_id: int, outcome: Union[RecoWorkerResult, RecoWorkerFailure]) -> bool:
        with self._lock:
            if run_id != self._generation:
                logger.info("[worker] RESULT_DISCARDED run_id=%d current=%d", run_id, self._generation)
                return False
            failed = isinstance(outcome, RecoWorkerFailure)
            self.state = WorkerState.FAILED if failed else WorkerState.COMPLETED
            self._run_states[run_id] = self.state
            self.last_outcome = outcome
            self._emit(run_id, outcome)
            if not failed:
                logger.info("[worker] RUN_COMPLETED run_id=%d compute_time_ms=%d", run_id, outcome.compute_time_ms)
                self.state = WorkerState.IDLE
            self._done.set()
            return True

    def _emit(self, run_id: int, message: RecoWorkerMessage) -> None:
        if self.on_message is not None:
            self.on_message(run_id, message)
