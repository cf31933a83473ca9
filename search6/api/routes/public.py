"""
search6.api.routes.public — Read-only lookup endpoints
========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from search6.api.deps import get_record_store, get_sync_cursor
from search6.constants import LevelInfo, avatar_url
from search6.engine.records import ParticipantRecord
from search6.errors import LookupFailure, NoId
from search6.services.record_store import RecordStore
from search6.services.sync_cursor import SyncCursor

router = APIRouter(tags=["public"])


def _record_dict(record: ParticipantRecord) -> dict:
    info = LevelInfo.from_xp(record.xp)
    return {
        **record.model_dump(),
        "avatar_url": avatar_url(record.id, record.avatar, record.discriminator),
        "level": info.level,
        "level_progress": info.progress,
    }


# ---------------------------------------------------------------------------
# GET /api?id=<id or name#discriminator>
# ---------------------------------------------------------------------------
@router.get("/api")
def lookup(
    id: str | None = None,
    userexists: bool = False,
    store: RecordStore = Depends(get_record_store),
):
    """Look a member up by snowflake or ``name#discriminator``.

    ``userexists=true`` is set after a login redirect; a miss then reports
    the member as unranked rather than unknown.
    """
    try:
        record = store.lookup(id, expect_present=userexists)
    except NoId as exc:
        raise HTTPException(400, str(exc))
    except LookupFailure as exc:
        raise HTTPException(404, str(exc))
    return _record_dict(record)


# ---------------------------------------------------------------------------
# GET /api/health/sync
# ---------------------------------------------------------------------------
@router.get("/api/health/sync")
def sync_health(cursor: SyncCursor = Depends(get_sync_cursor)):
    """Where the background sync currently is in the listing."""
    state = cursor.state()
    return {"page": state.page, "rank": state.rank}
