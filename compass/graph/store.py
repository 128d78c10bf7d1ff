"""In-memory run records: progress events, result and error per run."""

import logging
import threading
import uuid
from collections import OrderedDict
from datetime import UTC, datetime

from compass.exceptions import RunNotFoundError
from compass.exec.context import RunContext
from compass.models.itinerary import PlanResult
from compass.models.status import ProcessingStage, ProcessingStatus

logger = logging.getLogger(__name__)

MAX_RUNS = 200


class RunRecord:
    """State of one run.

    The pipeline thread is the only writer; status pollers read concurrently.
    """

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self.ctx = RunContext(run_id)
        self.created_at = datetime.now(UTC)
        self.result: PlanResult | None = None
        self.error: str | None = None
        self._events: list[ProcessingStatus] = [
            ProcessingStatus(
                stage=ProcessingStage.uploading,
                progress=0,
                message="Uploading screenshots...",
            )
        ]
        self._lock = threading.Lock()

    def append(self, status: ProcessingStatus) -> None:
        with self._lock:
            self._events.append(status)

    @property
    def latest(self) -> ProcessingStatus:
        with self._lock:
            return self._events[-1]

    def events_since(self, index: int) -> list[ProcessingStatus]:
        """Events at positions ``index`` and later, in emission order."""
        with self._lock:
            return list(self._events[index:])

    @property
    def done(self) -> bool:
        return self.latest.stage.terminal

    def complete(self, result: PlanResult) -> None:
        self.result = result

    def fail(self, message: str) -> None:
        self.error = message


class RunStore:
    """Process-local registry of runs; the oldest finished runs are evicted."""

    def __init__(self, max_runs: int = MAX_RUNS) -> None:
        self.max_runs = max_runs
        self._runs: OrderedDict[str, RunRecord] = OrderedDict()
        self._lock = threading.Lock()

    def create(self, run_id: str | None = None) -> RunRecord:
        record = RunRecord(run_id or str(uuid.uuid4()))
        with self._lock:
            self._runs[record.run_id] = record
            self._evict()
        return record

    def _evict(self) -> None:
        finished = [rid for rid, rec in self._runs.items() if rec.done]
        while len(self._runs) > self.max_runs and finished:
            del self._runs[finished.pop(0)]

    def get(self, run_id: str) -> RunRecord:
        """Look up a run.

        Raises:
            RunNotFoundError: If the id is unknown or was evicted.
        """
        with self._lock:
            record = self._runs.get(run_id)
        if record is None:
            raise RunNotFoundError(run_id)
        return record

    def list_events_since(self, run_id: str, index: int) -> list[ProcessingStatus]:
        return self.get(run_id).events_since(index)

    def cancel(self, run_id: str) -> None:
        record = self.get(run_id)
        record.ctx.cancel()
        logger.info("run_cancel_requested", extra={"run_id": run_id})

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)


_store: RunStore | None = None


def get_run_store() -> RunStore:
    """Get the process-wide run store."""
    global _store
    if _store is None:
        _store = RunStore()
    return _store
