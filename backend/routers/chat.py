from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from .. import ai_assist
from ..event_log import log_event
from ..mailbox import get_mailbox
from ..whatsapp_client import send_text

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)


class SendRequest(BaseModel):
    text: str = ""
    senderName: Optional[str] = None


class ReplyRequest(BaseModel):
    query: str
    # Widget transcript as [{"type": "sent"|"received", "text": "..."}]
    history: List[Dict[str, str]] = Field(default_factory=list)


def send_chat_message(text: str, sender_name: Optional[str] = None) -> Dict[str, Any]:
    text = (text or "").strip()
    if not text:
        log_event("sendChatMessageToWhatsApp", "error", "Message text is empty.")
        return {"success": False, "status": "error", "error": "Message text is empty."}
    full_message = f'Consulta desde el Chat Widget: "{text}"'
    log_event("sendChatMessageToWhatsApp", "info", "Sending chat message to WhatsApp.", {"text": full_message})
    result = send_text(full_message, sender_name, source="sendChatMessageToWhatsApp")
    out: Dict[str, Any] = {"success": result.success, "status": "sent" if result.success else "error"}
    if result.messageId:
        out["messageId"] = result.messageId
    if result.error:
        out["error"] = result.error
    return out


@router.post("/send")
def api_send(req: SendRequest):
    return send_chat_message(req.text, req.senderName)


@router.get("/messages")
def api_poll_messages():
    """Drain the mailbox. Each message is returned to exactly one poll."""
    try:
        messages = get_mailbox().drain()
    except Exception as e:
        logger.exception("Mailbox drain failed")
        log_event("fetchNewMessages", "error", "Error draining mailbox.", {"error": str(e)})
        return {"success": False, "messages": [], "error": "Failed to fetch messages."}
    if messages:
        log_event("fetchNewMessages", "info", "Delivering queued messages.", {"count": len(messages)})
    return {"success": True, "messages": [m.model_dump() for m in messages]}


@router.post("/reply")
def api_reply(req: ReplyRequest):
    history = ai_assist.format_history(req.history)
    return {"response": ai_assist.chat_reply(req.query, history)}
