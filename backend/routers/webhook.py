from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..event_log import log_event
from ..mailbox import ChatMessage, get_mailbox, new_message_id

router = APIRouter(tags=["webhook"])
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("text", "senderName", "timestamp")
INVALID_PAYLOAD = 'Invalid payload. "text", "senderName", and "timestamp" are required.'


@router.post("/api/webhook")
async def receive_message(request: Request):
    """Inbound messages pushed by the automation tool when WhatsApp replies arrive."""
    try:
        body = await request.json()
        log_event("WebhookAPI", "info", "Webhook received from automation tool.", body)

        if isinstance(body, dict) and all(body.get(k) for k in REQUIRED_FIELDS):
            message = ChatMessage(
                id=new_message_id(),
                text=str(body["text"]),
                sender="user",
                senderName=str(body["senderName"]),
                timestamp=body["timestamp"],
                status="delivered",
            )
            get_mailbox().append(message)
            return {"success": True, "message": "Message processed."}

        log_event("WebhookAPI", "error", "Invalid payload from automation tool.", body)
        return JSONResponse({"error": INVALID_PAYLOAD}, status_code=400)
    except Exception as e:
        logger.exception("Webhook processing failed")
        log_event("WebhookAPI", "error", "Error processing webhook.", {"error": str(e)})
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def _evolution_text(message: Dict[str, Any]) -> Optional[str]:
    return message.get("conversation") or (message.get("extendedTextMessage") or {}).get("text")


def evolution_to_messages(event: Dict[str, Any]) -> List[ChatMessage]:
    """Normalize an Evolution API MESSAGES_UPSERT event into mailbox messages.

    Messages sent by the vendor instance itself and non-text messages are skipped.
    """
    data = event.get("data")
    rows = data if isinstance(data, list) else [data] if isinstance(data, dict) else []
    out: List[ChatMessage] = []
    for row in rows:
        key = row.get("key") or {}
        if key.get("fromMe") or not key.get("id"):
            continue
        text = _evolution_text(row.get("message") or {})
        if not text:
            continue
        ts = row.get("messageTimestamp")
        try:
            ts_ms: Any = int(ts) * 1000
        except (TypeError, ValueError):
            ts_ms = ts or 0
        out.append(ChatMessage(
            id=str(key["id"]),
            text=text,
            sender="user",
            senderName=row.get("pushName") or (key.get("remoteJid") or "WhatsApp").split("@")[0],
            timestamp=ts_ms,
            status="delivered",
        ))
    return out


@router.post("/api/webhook/evolution")
async def receive_evolution_event(request: Request):
    try:
        event = await request.json()
    except ValueError:
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
    if not isinstance(event, dict):
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

    name = str(event.get("event") or "").lower().replace("_", ".")
    if name != "messages.upsert":
        return {"success": True, "status": "ignored"}

    try:
        messages = evolution_to_messages(event)
        mailbox = get_mailbox()
        for m in messages:
            mailbox.append(m)
    except Exception as e:
        logger.exception("Evolution webhook processing failed")
        log_event("WebhookAPI", "error", "Error processing Evolution event.", {"error": str(e)})
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    log_event("WebhookAPI", "info", "Evolution messages queued.", {"count": len(messages)})
    return {"success": True, "queued": len(messages)}
