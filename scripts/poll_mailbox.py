#!/usr/bin/env python3
"""
Follow the chat mailbox of a running server the way the chat widget does.

Polls immediately, then every interval, and prints each new inbound message
once.

Usage:
  python3 scripts/poll_mailbox.py
  python3 scripts/poll_mailbox.py --base http://localhost:8000 --interval 5000 --count 3
"""
from __future__ import annotations

import argparse
import logging
from datetime import datetime

from backend.relay_poller import MailboxPoller


def _print_messages(messages):
    for m in messages:
        stamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{stamp}] {m.senderName}: {m.text}  ({m.id}, {m.status})")


def main():
    ap = argparse.ArgumentParser(description="Poll the chat mailbox of a running server")
    ap.add_argument("--base", default="http://localhost:8000", help="Base URL of the running app")
    ap.add_argument("--interval", type=int, default=5000, help="Poll interval in milliseconds")
    ap.add_argument("--count", type=int, default=None, help="Stop after this many polls")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO)
    poller = MailboxPoller(args.base, _print_messages, interval_ms=args.interval)
    try:
        poller.run(max_polls=args.count)
    except KeyboardInterrupt:
        pass
    finally:
        poller.close()


if __name__ == "__main__":
    main()
