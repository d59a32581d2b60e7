"""
Shared router helpers: date windows and file downloads.
"""
import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException, Query, Response, status

from .. import export

logger = logging.getLogger(__name__)


def date_window(
    start: Optional[date], end: Optional[date], days: int
) -> Tuple[date, date]:
    """Fill a missing range bound; the default window is today .. today+days."""
    start = start or date.today()
    end = end or start + timedelta(days=days)
    if end < start:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="start must not be after end")
    return start, end


def download(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def not_found(what: str = "Not found"):
    return HTTPException(status.HTTP_404_NOT_FOUND, detail=what)


def export_format(fmt: str = Query("pdf", alias="format")) -> str:
    try:
        return export.check_format(fmt)
    except ValueError as e:
        logger.warning("export rejected: %s", e)
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(e))


def changes(payload, nullable=("notes",)) -> dict:
    """Fields set on a partial update; explicit nulls only clear nullable columns."""
    values = payload.model_dump(exclude_unset=True)
    return {k: v for k, v in values.items() if v is not None or k in nullable}
