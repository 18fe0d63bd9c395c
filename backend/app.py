# backend/app.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from . import config
from .event_log import log_event
from .mailbox import get_mailbox
from .routers.chat import router as chat_router
from .routers.dev import router as dev_router
from .routers.orders import router as orders_router
from .routers.webhook import router as webhook_router

logger = logging.getLogger("uvicorn")

INDEX_FILE = config.FRONTEND_DIR / "index.html"

# ============================================================
# FastAPI
# ============================================================
app = FastAPI(title="Trama Hogar")


# ============================================================
# API routes
# ============================================================
@app.get("/api/health")
def health():
    try:
        pending = get_mailbox().pending()
        mailbox_ok = True
    except Exception as e:
        logger.warning(f"Mailbox health check failed: {e}")
        pending, mailbox_ok = None, False
    return {
        "ok": mailbox_ok,
        "mailbox_backend": config.MAILBOX_BACKEND,
        "mailbox_pending": pending,
        "whatsapp_transport": config.WHATSAPP_TRANSPORT,
        "whatsapp_ready": bool(
            config.VENDOR_WHATSAPP_NUMBER
            and (config.EVOLUTION_API_URL if config.WHATSAPP_TRANSPORT == "evolution" else config.AUTOMATION_WEBHOOK_URL)
        ),
        "llm_enabled": bool(config.LLM_ENABLED),
        "llm_model": config.LLM_MODEL if config.LLM_ENABLED else None,
        "poll_interval_ms": config.POLL_INTERVAL_MS,
    }


@app.get("/api/config")
def public_config():
    """Settings the browser needs to drive the chat widget."""
    return {
        "poll_interval_ms": config.POLL_INTERVAL_MS,
        "shipping_cost": config.SHIPPING_COST,
        "dev_logger": config.DEV_LOGGER_ENABLED,
    }


app.include_router(webhook_router)
app.include_router(chat_router)
app.include_router(orders_router)
app.include_router(dev_router)


# ============================================================
# Startup
# ============================================================
@app.on_event("startup")
def startup_event():
    logger.info("=== App startup: preparing chat mailbox ===")
    get_mailbox()
    log_event("App", "info", "Server started.", {
        "mailbox": config.MAILBOX_BACKEND,
        "transport": config.WHATSAPP_TRANSPORT,
    })


# ============================================================
# Frontend routes (optional static storefront from /frontend)
# ============================================================
if INDEX_FILE.exists():
    @app.get("/")
    def root():
        return FileResponse(INDEX_FILE)

    # Mount ALL static assets at site root (keep AFTER API routes)
    app.mount("/", StaticFiles(directory=config.FRONTEND_DIR, html=True), name="frontend")
else:
    logger.info(f"No frontend found at {config.FRONTEND_DIR}; serving API only")


# ============================================================
# Local dev entrypoint
# ============================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("backend.app:app", host=config.HOST, port=config.PORT, reload=True)
