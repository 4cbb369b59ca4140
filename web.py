"""HTTP surface for Jonathan.

FastAPI app receiving Slack interactivity payloads.  Requests are checked
against the signing secret, message shortcuts are handed to
``localize_message_shortcut`` in a background task, and the HTTP response
(Slack's acknowledgement) goes out as soon as the handler acks or the ack
timeout passes.
"""

import asyncio
import hashlib
import hmac
import json
import logging
import time
from urllib.parse import parse_qs

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

import config
from channels import slack as slack_channel
from dateparse import DateParser
from shortcut import localize_message_shortcut
from slack_client import SlackClient
from telemetry import ErrorReporter

log = logging.getLogger(__name__)


def verify_signature(
    secret: str,
    timestamp: str | None,
    body: bytes,
    signature: str | None,
    *,
    now: float | None = None,
) -> bool:
    """Check Slack's ``X-Slack-Signature`` for a request body."""
    if not timestamp or not signature:
        return False
    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    now = time.time() if now is None else now
    if abs(now - sent_at) > config.SIGNATURE_MAX_AGE:
        return False

    basestring = b"v0:" + timestamp.encode() + b":" + body
    expected = "v0=" + hmac.new(secret.encode(), basestring, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def _decode_payload(body: bytes) -> dict:
    form = parse_qs(body.decode("utf-8", errors="replace"))
    raw = (form.get("payload") or ["{}"])[0]
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Ignoring interactivity request with malformed payload")
        return {}
    return payload if isinstance(payload, dict) else {}


def create_app(
    client: SlackClient | None = None,
    reporter: ErrorReporter | None = None,
    parser: DateParser | None = None,
) -> FastAPI:
    """Create the FastAPI app wired to a Slack client and error reporter."""
    app = FastAPI(title=config.ASSISTANT_NAME, docs_url=None, redoc_url=None)
    slack = client or SlackClient()
    reporter = reporter or ErrorReporter()
    running: set[asyncio.Task] = set()

    if not config.SLACK_SIGNING_SECRET:
        log.warning("SLACK_SIGNING_SECRET is empty; request signatures will not be verified")

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    @app.post("/slack/events")
    async def slack_events(request: Request):
        body = await request.body()
        if config.SLACK_SIGNING_SECRET and not verify_signature(
            config.SLACK_SIGNING_SECRET,
            request.headers.get("X-Slack-Request-Timestamp"),
            body,
            request.headers.get("X-Slack-Signature"),
        ):
            log.warning("Rejected Slack request with bad or stale signature")
            return Response(status_code=401)

        if request.headers.get("content-type", "").startswith("application/json"):
            # Events API URL verification handshake
            try:
                event = json.loads(body)
            except json.JSONDecodeError:
                return Response(status_code=400)
            if event.get("type") == "url_verification":
                return JSONResponse({"challenge": event.get("challenge", "")})
            return Response(status_code=200)

        payload = _decode_payload(body)
        if payload.get("type") != "message_action" or payload.get("callback_id") not in config.SHORTCUT_IDS:
            log.debug("Ignoring interactivity payload %s/%s", payload.get("type"), payload.get("callback_id"))
            return Response(status_code=200)

        invocation = slack_channel.normalize_inbound(payload)
        acked = asyncio.Event()

        async def ack() -> None:
            acked.set()

        task = asyncio.create_task(
            localize_message_shortcut(invocation, ack, client=slack, reporter=reporter, parser=parser)
        )
        running.add(task)
        task.add_done_callback(running.discard)

        try:
            await asyncio.wait_for(acked.wait(), timeout=config.ACK_TIMEOUT)
        except asyncio.TimeoutError:
            log.warning(
                "Shortcut %s still running after %.1fs; acknowledging now",
                invocation.callback_id, config.ACK_TIMEOUT,
            )
        return Response(status_code=200)

    return app
