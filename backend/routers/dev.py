from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from .. import config
from ..event_log import EVENTS, MAX_PANEL_ENTRIES, entries_as_dicts

router = APIRouter(prefix="/api/dev", tags=["dev"])


def _require_enabled() -> None:
    if not config.DEV_LOGGER_ENABLED:
        raise HTTPException(status_code=404, detail="Not Found")


@router.get("/logs")
def api_logs(limit: int = Query(MAX_PANEL_ENTRIES, ge=1, le=MAX_PANEL_ENTRIES)):
    _require_enabled()
    return {"items": entries_as_dicts(limit)}


@router.delete("/logs")
def api_clear_logs():
    _require_enabled()
    EVENTS.clear()
    return {"ok": True}
