from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx
from pydantic import BaseModel

from . import config
from .event_log import log_event

logger = logging.getLogger(__name__)

ERR_API = "Failed to send message via API."
ERR_NETWORK = "Network error or API is down."


class SendResult(BaseModel):
    success: bool
    messageId: Optional[str] = None
    error: Optional[str] = None


def _require(name: str, value: Optional[str]) -> str:
    if not value:
        raise RuntimeError(f"{name} is not set")
    return value


def automation_request(text: str, sender_name: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    url = _require("AUTOMATION_WEBHOOK_URL", config.AUTOMATION_WEBHOOK_URL)
    body = {
        "phoneNumber": config.VENDOR_WHATSAPP_NUMBER,
        "text": text,
        "senderName": sender_name,
    }
    return url, {"Content-Type": "application/json"}, body


def evolution_request(text: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    base = _require("EVOLUTION_API_URL", config.EVOLUTION_API_URL)
    instance = _require("EVOLUTION_INSTANCE", config.EVOLUTION_INSTANCE)
    headers = {
        "Content-Type": "application/json",
        "apikey": config.EVOLUTION_API_KEY,
    }
    body = {"number": config.VENDOR_WHATSAPP_NUMBER, "text": text}
    return f"{base}/message/sendText/{instance}", headers, body


def _message_id(data: Any) -> Optional[str]:
    """Pull a message id out of either transport's success body."""
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if not isinstance(data, dict):
        return None
    mid = data.get("messageId") or data.get("id") or (data.get("key") or {}).get("id")
    return str(mid) if mid else None


def _error_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return (resp.text or "").strip()


def send_text(text: str, sender_name: Optional[str] = None, source: str = "WhatsAppClient") -> SendResult:
    """POST one text message towards the vendor's WhatsApp number.

    Failures are never raised: they are logged and reported through
    ``SendResult.success``/``error``.
    """
    sender = sender_name or config.CHAT_SENDER_NAME
    try:
        if config.WHATSAPP_TRANSPORT == "evolution":
            url, headers, body = evolution_request(text)
        else:
            url, headers, body = automation_request(text, sender)
    except RuntimeError as e:
        log_event(source, "error", "WhatsApp relay is not configured.", {"error": str(e)})
        return SendResult(success=False, error=str(e))

    log_event(source, "info", "Sending request to WhatsApp relay.", {
        "url": url,
        "transport": config.WHATSAPP_TRANSPORT,
        "number": config.VENDOR_WHATSAPP_NUMBER,
    })
    try:
        with httpx.Client(timeout=config.WHATSAPP_TIMEOUT_SECS) as client:
            r = client.post(url, headers=headers, json=body)
    except httpx.RequestError as e:
        logger.warning(f"WhatsApp relay network error: {e}")
        log_event(source, "error", "Fetch error while contacting WhatsApp relay.", {"error": str(e)})
        return SendResult(success=False, error=ERR_NETWORK)

    if 200 <= r.status_code < 300:
        data: Any = None
        if r.content:
            try:
                data = r.json()
            except ValueError:
                data = None
        mid = _message_id(data)
        log_event(source, "success", "Message sent successfully.", {"messageId": mid})
        return SendResult(success=True, messageId=mid)

    log_event(source, "error", "WhatsApp relay error.", {"status": r.status_code, "errorData": _error_body(r)})
    return SendResult(success=False, error=ERR_API)
