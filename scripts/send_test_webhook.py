#!/usr/bin/env python3
"""
Push a fake inbound WhatsApp message into the local mailbox, as the
automation tool would.

Usage:
  python3 scripts/send_test_webhook.py
  python3 scripts/send_test_webhook.py --base http://localhost:8000 --text "Hola" --sender "Vendedor"
"""
from __future__ import annotations

import argparse
import json
import sys
import time
import urllib.request
import urllib.error


def main():
    ap = argparse.ArgumentParser(description="Send a test webhook to the local API")
    ap.add_argument("--base", default="http://localhost:8000", help="Base URL of the running app")
    ap.add_argument("--text", default="¡Hola! Recibimos tu consulta.", help="Message text")
    ap.add_argument("--sender", default="Trama Hogar", help="senderName field")
    args = ap.parse_args()

    payload = json.dumps({
        "text": args.text,
        "senderName": args.sender,
        "timestamp": int(time.time() * 1000),
    }).encode("utf-8")

    req = urllib.request.Request(
        f"{args.base.rstrip('/')}/api/webhook",
        data=payload,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req) as r:
            print("Webhook response:", json.load(r))
    except urllib.error.HTTPError as e:
        print("HTTPError:", e.code)
        try:
            print(e.read().decode())
        except Exception:
            pass
        sys.exit(2)


if __name__ == "__main__":
    main()
