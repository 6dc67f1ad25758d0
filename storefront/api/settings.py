"""
Site-wide settings (the promo banner). A single row with id=1, created on demand.
"""

from typing import Optional, Tuple

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.auth import require_admin
from storefront.database import get_db
from storefront.logger import get_logger
from storefront.models import Setting
from storefront.oembed import fetch_youtube_meta
from storefront.schemas import SettingsOut, SettingsUpdate, dump

logger = get_logger("api.settings")

router = APIRouter(prefix="/api/settings", tags=["settings"])


def get_or_create_settings(db: Session) -> Setting:
    row = db.get(Setting, 1)
    if row is None:
        row = Setting(id=1, promo_enabled=False, promo_text="")
        db.add(row)
        db.commit()
    return row


@router.get("")
def get_settings(db: Session = Depends(get_db)):
    return dump(SettingsOut.model_validate(get_or_create_settings(db)))


def _apply_update(db: Session, request: SettingsUpdate, meta: Tuple[Optional[str], Optional[str]]) -> dict:
    row = get_or_create_settings(db)
    fields = request.model_fields_set
    if "promo_enabled" in fields and request.promo_enabled is not None:
        row.promo_enabled = request.promo_enabled
    if "promo_text" in fields:
        row.promo_text = request.promo_text or ""
    if "promo_youtube_url" in fields:
        url = (request.promo_youtube_url or "").strip()
        row.promo_youtube_url = url or None
        row.promo_youtube_title, row.promo_youtube_thumbnail = meta if url else (None, None)
    db.commit()
    logger.info("Updated site settings")
    return dump(SettingsOut.model_validate(row))


@router.put("", dependencies=[Depends(require_admin)])
async def update_settings(request: SettingsUpdate, db: Session = Depends(get_db)):
    meta = (None, None)
    if "promo_youtube_url" in request.model_fields_set:
        url = (request.promo_youtube_url or "").strip()
        if url:
            meta = await fetch_youtube_meta(url)
    # Session work stays off the event loop
    return await run_in_threadpool(_apply_update, db, request, meta)
