from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from printqueue.api.schemas.job import PrintRequest
from printqueue.common.config import DEFAULT_REQUESTED_BY
from printqueue.common.errors import InvalidInput, PrintQueueError
from printqueue.common.logs import log_event

router = APIRouter()

ingest_requests = Counter(
    "printqueue_ingest_requests_total",
    "Ingestion requests by response status",
    ["status"],
)


def get_queue_service(request: Request):
    return request.app.state.queue_service


def default_batch_id(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"api-{now.strftime('%Y%m%d%H%M%S')}"


def plain_text(status: int, body: str) -> PlainTextResponse:
    ingest_requests.labels(status=str(status)).inc()
    return PlainTextResponse(body, status_code=status)


@router.post("/print")
async def submit_print(request: Request, service=Depends(get_queue_service)):
    try:
        raw = await request.body()
    except ClientDisconnect as e:
        return plain_text(400, f"Failed to read body: {e.__class__.__name__}")

    try:
        body = PrintRequest.model_validate_json(raw)
    except ValidationError as e:
        return plain_text(400, f"Invalid JSON: {e.errors()[0]['msg']}")

    try:
        payloads = body.payloads()
    except InvalidInput as e:
        return plain_text(400, str(e))

    batch_id = body.batch_id if body.batch_id is not None else default_batch_id()
    requested_by = body.requested_by if body.requested_by is not None else DEFAULT_REQUESTED_BY

    # Queue work runs inline on the server's loop, so requests are handled one
    # at a time and ids follow the order of the body.
    created = []
    for payload in payloads:
        try:
            created.append(service.create(batch_id, requested_by, payload, publish=False))
        except Exception as e:
            # Jobs created before the failure stay queued; the client re-lists.
            log_event("ingest_enqueue_failed", batch_id=batch_id, created=len(created), error=repr(e))
            reason = str(e) if isinstance(e, PrintQueueError) else e.__class__.__name__
            return plain_text(500, f"Failed to enqueue: {reason}")

    service.announce(created)
    log_event("ingest_accepted", batch_id=batch_id, requested_by=requested_by, jobs=len(created))
    ingest_requests.labels(status="200").inc()
    return JSONResponse([job.model_dump(mode="json") for job in created])
