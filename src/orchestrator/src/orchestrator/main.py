"""FastAPI service for Slack events and out-of-band thread transfers.

Verifies and acknowledges Slack event callbacks, answers them in the
background through the responder pipeline, and exposes health and
thread-transfer endpoints.
"""

from __future__ import annotations

import functools
import logging
from http import HTTPStatus
from typing import Annotated, Any

from dotenv import load_dotenv
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from pydantic import ValidationError

from orchestrator.config import AgentConfig
from orchestrator.events import HANDLED_EVENT_TYPES, handle_slack_event
from orchestrator.models import SlackEventEnvelope, TransferReply, TransferRequest
from orchestrator.services import Services, build_services

load_dotenv()
logging.basicConfig(level=AgentConfig.from_env().log_level)
logger = logging.getLogger("orchestrator")

app = FastAPI(title="Agent Dispatch Service", version="0.1.0")


@functools.cache
def get_services() -> Services:
    """Build the process-wide services on first use."""
    return build_services(AgentConfig.from_env())


ServicesDep = Annotated[Services, Depends(get_services)]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
async def health() -> dict[str, str]:
    """Return a basic health payload."""
    return {"status": "ok"}


@app.post("/slack/events")
async def slack_events(request: Request, background_tasks: BackgroundTasks, services: ServicesDep) -> dict[str, Any]:
    """Receive Slack Events API callbacks.

    Slack expects an acknowledgement within three seconds, so the answer is
    produced in a background task.
    """
    raw_body = (await request.body()).decode("utf-8")
    timestamp = request.headers.get("X-Slack-Request-Timestamp", "")
    signature = request.headers.get("X-Slack-Signature", "")
    if not services.chat.verify_signature(timestamp, raw_body, signature):
        logger.warning("Rejected Slack request with an invalid signature")
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Invalid request signature.")

    try:
        envelope = SlackEventEnvelope.model_validate_json(raw_body)
    except ValidationError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="Malformed event payload.") from exc

    if envelope.type == "url_verification":
        return {"challenge": envelope.challenge}
    if request.headers.get("X-Slack-Retry-Num"):
        logger.info("Ignoring Slack retry %s for %s", request.headers["X-Slack-Retry-Num"], envelope.event_id)
        return {"status": "ignored"}
    if envelope.type != "event_callback" or envelope.event is None or envelope.event.type not in HANDLED_EVENT_TYPES:
        return {"status": "ignored"}

    logger.info("Accepted %s event %s", envelope.event.type, envelope.event_id)
    background_tasks.add_task(handle_slack_event, envelope.event, services)
    return {"status": "accepted"}


@app.post("/threads/transfer", response_model=TransferReply)
async def transfer_thread(transfer_request: TransferRequest, services: ServicesDep) -> TransferReply:
    """Copy a thread between channels."""
    result = await services.transfer.transfer(transfer_request.source_link, transfer_request.destination_link)
    logger.info("Thread transfer success=%s: %s", result.success, result.message)
    return TransferReply(success=result.success, message=result.message, destination_ref=result.destination_ref)
