from __future__ import annotations

import logging
import random
import threading
import time
from functools import lru_cache
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel

from . import config

logger = logging.getLogger(__name__)

MessageStatus = Literal["sending", "sent", "error", "delivered"]


class ChatMessage(BaseModel):
    id: str
    text: str
    sender: Literal["user", "agent"] = "user"
    senderName: str
    # Passed through unchanged from the inbound webhook
    timestamp: Any
    status: MessageStatus = "delivered"


def new_message_id() -> str:
    return f"msg_{int(time.time() * 1000)}_{random.random()}"


class MemoryMailbox:
    """Process-local mailbox. Not shared between workers or restarts."""

    def __init__(self) -> None:
        self._items: List[ChatMessage] = []
        self._lock = threading.Lock()

    def append(self, message: ChatMessage) -> None:
        with self._lock:
            self._items.append(message)

    def drain(self) -> List[ChatMessage]:
        with self._lock:
            if not self._items:
                return []
            out = self._items
            self._items = []
        return out

    def pending(self) -> int:
        with self._lock:
            return len(self._items)


class RedisMailbox:
    """Key-value list mailbox: RPUSH to append, LRANGE+DEL in one MULTI to drain."""

    def __init__(self, client: Any, key: str = "chat:mailbox") -> None:
        self.client = client
        self.key = key

    @classmethod
    def from_url(cls, url: str, key: str) -> "RedisMailbox":
        import redis
        return cls(redis.from_url(url, decode_responses=True), key)

    def append(self, message: ChatMessage) -> None:
        self.client.rpush(self.key, message.model_dump_json())

    def drain(self) -> List[ChatMessage]:
        pipe = self.client.pipeline(transaction=True)
        pipe.lrange(self.key, 0, -1)
        pipe.delete(self.key)
        raw, _ = pipe.execute()
        out: List[ChatMessage] = []
        for row in raw or []:
            try:
                out.append(ChatMessage.model_validate_json(row))
            except ValueError:
                logger.warning(f"Dropping unreadable mailbox entry: {row!r}")
        return out

    def pending(self) -> int:
        return int(self.client.llen(self.key))


class SqlMailbox:
    """Mailbox rows in a SQL table; drain selects and deletes in one transaction."""

    def __init__(self, db_url: str) -> None:
        from sqlalchemy import create_engine, text
        self.engine = create_engine(db_url, pool_pre_ping=True)
        with self.engine.begin() as conn:
            conn.execute(text(
                """
                CREATE TABLE IF NOT EXISTS chat_mailbox (
                  seq INTEGER PRIMARY KEY AUTOINCREMENT,
                  payload TEXT NOT NULL
                )
                """
                if self.engine.dialect.name == "sqlite" else
                """
                CREATE TABLE IF NOT EXISTS chat_mailbox (
                  seq BIGSERIAL PRIMARY KEY,
                  payload TEXT NOT NULL
                )
                """
            ))
        logger.info("DB initialized: chat_mailbox table ready")

    def append(self, message: ChatMessage) -> None:
        from sqlalchemy import text
        with self.engine.begin() as conn:
            conn.execute(text("INSERT INTO chat_mailbox (payload) VALUES (:p)"), {"p": message.model_dump_json()})

    def _select_rows(self, conn) -> List[Any]:
        from sqlalchemy import text
        return list(conn.execute(text("SELECT seq, payload FROM chat_mailbox ORDER BY seq")).fetchall())

    def _delete_rows(self, conn, seqs: List[int]) -> None:
        from sqlalchemy import bindparam, text
        # Only the rows this drain read; a lower seq committed late stays queued
        stmt = text("DELETE FROM chat_mailbox WHERE seq IN :seqs").bindparams(bindparam("seqs", expanding=True))
        conn.execute(stmt, {"seqs": seqs})

    def drain(self) -> List[ChatMessage]:
        with self.engine.begin() as conn:
            rows = self._select_rows(conn)
            if not rows:
                return []
            self._delete_rows(conn, [seq for seq, _ in rows])
        out: List[ChatMessage] = []
        for _, payload in rows:
            try:
                out.append(ChatMessage.model_validate_json(payload))
            except ValueError:
                logger.warning(f"Dropping unreadable mailbox row: {payload!r}")
        return out

    def pending(self) -> int:
        from sqlalchemy import text
        with self.engine.begin() as conn:
            return int(conn.execute(text("SELECT COUNT(*) FROM chat_mailbox")).scalar() or 0)


Mailbox = Union[MemoryMailbox, RedisMailbox, SqlMailbox]


def build_mailbox(backend: Optional[str] = None) -> Mailbox:
    kind = (backend or config.MAILBOX_BACKEND or "memory").lower()
    if kind == "redis":
        logger.info(f"Mailbox backend: redis ({config.MAILBOX_REDIS_KEY})")
        return RedisMailbox.from_url(config.REDIS_URL, config.MAILBOX_REDIS_KEY)
    if kind == "sql":
        if not config.DB_URL:
            raise RuntimeError("DATABASE_URL is not set")
        logger.info("Mailbox backend: sql")
        return SqlMailbox(config.DB_URL)
    if kind != "memory":
        raise RuntimeError(f"Unknown MAILBOX_BACKEND: {kind}")
    return MemoryMailbox()


@lru_cache(maxsize=1)
def get_mailbox() -> Mailbox:
    return build_mailbox()
