from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, List, Optional, Set

import httpx

from . import config
from .mailbox import ChatMessage

logger = logging.getLogger(__name__)

OnMessages = Callable[[List[ChatMessage]], None]


class MailboxPoller:
    """Client half of the relay: polls the mailbox endpoint on a fixed interval.

    The server drains on every read, so delivery is at-least-once from the
    client's point of view (a response lost in transit is gone, a retried one
    may repeat). Ids already handed to ``on_messages`` are remembered and
    skipped.
    """

    def __init__(
        self,
        base_url: str,
        on_messages: OnMessages,
        interval_ms: Optional[int] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.on_messages = on_messages
        self.interval_ms = interval_ms if interval_ms is not None else config.POLL_INTERVAL_MS
        self.client = client or httpx.Client(timeout=10.0)
        self.processed_ids: Set[str] = set()
        self._stop = threading.Event()

    def mark_processed(self, ids: Iterable[str]) -> None:
        """Record ids of messages the caller produced locally (sent, AI replies)."""
        self.processed_ids.update(ids)

    def fetch(self) -> List[ChatMessage]:
        try:
            r = self.client.get(f"{self.base_url}/api/chat/messages")
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Mailbox poll failed: {e}")
            return []
        if not isinstance(data, dict):
            logger.warning(f"Unexpected mailbox response: {data!r}")
            return []
        if not data.get("success"):
            logger.warning(f"Mailbox poll unsuccessful: {data.get('error')}")
            return []
        out: List[ChatMessage] = []
        rows = data.get("messages")
        for row in rows if isinstance(rows, list) else []:
            try:
                out.append(ChatMessage.model_validate(row))
            except ValueError:
                logger.warning(f"Skipping malformed message: {row!r}")
        return out

    def poll_once(self) -> List[ChatMessage]:
        fresh: List[ChatMessage] = []
        for msg in self.fetch():
            if msg.id in self.processed_ids:
                continue
            self.processed_ids.add(msg.id)
            fresh.append(msg)
        if fresh:
            self.on_messages(fresh)
        return fresh

    def run(self, max_polls: Optional[int] = None) -> None:
        """Poll immediately, then every ``interval_ms`` until ``stop()``."""
        polls = 0
        while not self._stop.is_set():
            self.poll_once()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            self._stop.wait(self.interval_ms / 1000.0)

    def stop(self) -> None:
        self._stop.set()

    def close(self) -> None:
        self.stop()
        self.client.close()
