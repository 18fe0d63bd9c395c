from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env before reading any environment variables
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


HERE = Path(__file__).resolve().parent           # repo/backend/
REPO_ROOT = HERE.parent                          # repo/
FRONTEND_DIR = Path(os.getenv("FRONTEND_DIR", (REPO_ROOT / "frontend").as_posix()))

# Outbound WhatsApp relay: "automation" (n8n style webhook) or "evolution" (Evolution API)
WHATSAPP_TRANSPORT = os.getenv("WHATSAPP_TRANSPORT", "automation").strip().lower()
AUTOMATION_WEBHOOK_URL = os.getenv("AUTOMATION_WEBHOOK_URL") or os.getenv("N8N_WEBHOOK_URL")
VENDOR_WHATSAPP_NUMBER = os.getenv("VENDOR_WHATSAPP_NUMBER", "")
EVOLUTION_API_URL = (os.getenv("EVOLUTION_API_URL") or "").rstrip("/")
EVOLUTION_INSTANCE = os.getenv("EVOLUTION_INSTANCE", "")
EVOLUTION_API_KEY = os.getenv("EVOLUTION_API_KEY", "")
WHATSAPP_TIMEOUT_SECS = float(os.getenv("WHATSAPP_TIMEOUT_SECS", "10"))
CHAT_SENDER_NAME = os.getenv("CHAT_SENDER_NAME", "Chat Widget")

# Mailbox storage: memory | redis | sql
MAILBOX_BACKEND = os.getenv("MAILBOX_BACKEND", "memory").strip().lower()
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
MAILBOX_REDIS_KEY = os.getenv("MAILBOX_REDIS_KEY", "chat:mailbox")
DB_URL = os.getenv("DATABASE_URL") or os.getenv("DB_URL")
# SQLAlchemy requires the "postgresql://" scheme (not legacy "postgres://").
if DB_URL and DB_URL.startswith("postgres://"):
    DB_URL = "postgresql://" + DB_URL[len("postgres://"):]

# Optional LLM (OpenAI) client
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_ENABLED = _flag("LLM_ENABLED", "true") and bool(os.getenv("OPENAI_API_KEY"))
LLM_TIMEOUT_SECS = int(os.getenv("LLM_TIMEOUT_SECS", "20"))

DEV_LOGGER_ENABLED = _flag("DEV_LOGGER_ENABLED", "true")
POLL_INTERVAL_MS = int(os.getenv("POLL_INTERVAL_MS", "5000"))
SHIPPING_COST = int(os.getenv("SHIPPING_COST", "250"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
