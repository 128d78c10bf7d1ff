"""Plan API endpoints: upload, progress, streaming, result and export."""

import asyncio
import json
import logging
import time
from datetime import UTC, date, datetime
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError
from sse_starlette.sse import EventSourceResponse

from compass.api.deps import get_app_metrics, get_app_settings, get_collaborators, get_store
from compass.config import Settings
from compass.exceptions import RunNotFoundError, UploadValidationError
from compass.graph.runner import Collaborators, start_run
from compass.graph.state import Screenshot
from compass.graph.store import RunRecord, RunStore
from compass.metrics.registry import MetricsClient
from compass.models.intent import TripPreferences
from compass.models.itinerary import PlanResult
from compass.models.status import ProcessingStatus
from compass.synth.export import format_as_text, to_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plan", tags=["plan"])

EXPORT_FORMATS = {
    "json": ("application/json", "compass-itinerary.json"),
    "text": ("text/plain; charset=utf-8", "compass-itinerary.txt"),
}


class StartPlanResponse(BaseModel):
    """Response from starting a plan."""

    run_id: str
    message: str
    poll_endpoint: str


class CancelResponse(BaseModel):
    run_id: str
    message: str


def _record_or_404(store: RunStore, run_id: str) -> RunRecord:
    try:
        return store.get(run_id)
    except RunNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        ) from e


async def _read_screenshots(
    files: list[UploadFile], settings: Settings
) -> list[Screenshot]:
    """Read and validate uploads.

    Raises:
        UploadValidationError: On a bad count, type or size.
    """
    if not files:
        raise UploadValidationError("No screenshots uploaded")
    if len(files) > settings.max_upload_files:
        raise UploadValidationError(
            f"Too many screenshots (max {settings.max_upload_files})"
        )

    screenshots = []
    for upload in files:
        name = upload.filename or "screenshot"
        if not (upload.content_type or "").startswith("image/"):
            raise UploadValidationError(f"{name}: only image files are allowed")
        limit = settings.max_upload_bytes
        if upload.size is not None and upload.size > limit:
            raise UploadValidationError(f"{name}: file exceeds the size limit")
        # One byte past the limit is enough to reject without buffering it all.
        content = await upload.read(limit + 1)
        if len(content) > limit:
            raise UploadValidationError(f"{name}: file exceeds the size limit")
        if not content:
            raise UploadValidationError(f"{name}: file is empty")
        screenshots.append(Screenshot(filename=name, content=content))
    return screenshots


def _parse_preferences(
    budget: float,
    currency: str,
    companions: str,
    travel_style: str,
    start_date: date | None,
    end_date: date | None,
    start_time: str,
    end_time: str,
) -> TripPreferences:
    """Build preferences from form fields.

    Raises:
        UploadValidationError: When a field does not validate.
    """
    try:
        styles = json.loads(travel_style)
    except json.JSONDecodeError as e:
        raise UploadValidationError("travel_style must be a JSON list") from e
    if not isinstance(styles, list):
        raise UploadValidationError("travel_style must be a JSON list")

    try:
        return TripPreferences(
            daily_budget=budget,
            currency=currency,
            companion_type=companions,
            travel_styles=styles,
            start_date=start_date,
            end_date=end_date,
            day_start_time=start_time,
            day_end_time=end_time,
        )
    except ValidationError as e:
        raise UploadValidationError(f"Invalid preferences: {e.errors()[0]['msg']}") from e


@router.post(
    "", response_model=StartPlanResponse, status_code=status.HTTP_202_ACCEPTED
)
async def create_plan(
    screenshots: list[UploadFile] | None = File(None),
    budget: float = Form(500.0),
    currency: str = Form("USD"),
    companions: str = Form("solo"),
    travel_style: str = Form('["culture","food"]'),
    start_date: date | None = Form(None),
    end_date: date | None = Form(None),
    start_time: str = Form("09:00"),
    end_time: str = Form("21:00"),
    destination: str | None = Form(None),
    settings: Settings = Depends(get_app_settings),
    store: RunStore = Depends(get_store),
    collaborators: Collaborators = Depends(get_collaborators),
    metrics: MetricsClient = Depends(get_app_metrics),
) -> StartPlanResponse:
    """Start processing screenshots into an itinerary.

    Processing runs in the background; poll ``/plan/{run_id}/status`` or
    stream ``/plan/{run_id}/stream`` for progress.
    """
    try:
        images = await _read_screenshots(screenshots or [], settings)
        preferences = _parse_preferences(
            budget,
            currency,
            companions,
            travel_style,
            start_date,
            end_date,
            start_time,
            end_time,
        )
    except UploadValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    record = start_run(
        store,
        collaborators,
        images,
        preferences,
        settings,
        destination=(destination or "").strip() or None,
        metrics=metrics,
    )
    return StartPlanResponse(
        run_id=record.run_id,
        message="Processing started",
        poll_endpoint=f"/plan/{record.run_id}/status",
    )


@router.get("/{run_id}/status", response_model=ProcessingStatus)
def get_status(run_id: str, store: RunStore = Depends(get_store)) -> ProcessingStatus:
    return _record_or_404(store, run_id).latest


@router.get("/{run_id}/stream")
async def stream_plan(
    run_id: str, store: RunStore = Depends(get_store)
) -> EventSourceResponse:
    """Stream progress events via Server-Sent Events (SSE).

    Replays every event from the start of the run, sends a heartbeat after a
    second without events, and closes after the complete or error event.
    """
    record = _record_or_404(store, run_id)

    async def event_generator() -> Any:
        sent = 0
        last_heartbeat = time.time()
        while True:
            events = record.events_since(sent)
            for event in events:
                yield {"event": "status", "data": event.model_dump_json()}
                sent += 1
                if event.stage.terminal:
                    return
            now = time.time()
            if events:
                last_heartbeat = now
            elif now - last_heartbeat >= 1.0:
                yield {
                    "event": "heartbeat",
                    "data": json.dumps({"ts": datetime.now(UTC).isoformat()}),
                }
                last_heartbeat = now
            await asyncio.sleep(0.1)

    return EventSourceResponse(event_generator())


@router.get("/{run_id}/result", response_model=PlanResult)
def get_result(run_id: str, store: RunStore = Depends(get_store)) -> Any:
    """Final plan; 202 while processing, 422 if the run failed."""
    record = _record_or_404(store, run_id)
    if record.error is not None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=record.error
        )
    if record.result is None:
        latest = record.latest
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={
                "message": "Still processing",
                "stage": latest.stage.value,
                "progress": latest.progress,
            },
        )
    return record.result


@router.get("/{run_id}/export/{fmt}")
def export_plan(run_id: str, fmt: str, store: RunStore = Depends(get_store)) -> Response:
    """Download the itinerary as JSON or plain text."""
    record = _record_or_404(store, run_id)
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported format. Use json or text.",
        )
    if record.result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Itinerary not found"
        )

    itinerary = record.result.itinerary
    body = to_json(itinerary) if fmt == "json" else format_as_text(itinerary)
    media_type, filename = EXPORT_FORMATS[fmt]
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete(
    "/{run_id}", response_model=CancelResponse, status_code=status.HTTP_202_ACCEPTED
)
def cancel_plan(run_id: str, store: RunStore = Depends(get_store)) -> CancelResponse:
    """Ask a running plan to stop calling collaborators.

    Remaining collaborator calls fall back to their local estimates.
    """
    record = _record_or_404(store, run_id)
    store.cancel(run_id)
    return CancelResponse(run_id=record.run_id, message="Cancellation requested")
