import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import crud, export, models, schemas
from ..auth import current_user
from ..db import get_db
from .deps import changes, date_window, download, export_format, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["guests"])


@router.get("/guests", response_model=List[schemas.GuestCount])
def list_guest_counts(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=7)
    return crud.get_guest_counts(db, start, end)


@router.post("/guests", response_model=schemas.GuestCount, status_code=status.HTTP_201_CREATED)
def upsert_guest_count(
    payload: schemas.GuestCountCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    """One row per (date, meal): an existing row is updated in place."""
    existing = crud.get_guest_count_by_date_meal(db, payload.date, payload.meal)
    if existing:
        response.status_code = status.HTTP_200_OK
        return crud.update_guest_count(
            db,
            existing.id,
            payload.model_dump(include={"adults", "children", "notes"}),
        )
    return crud.create_guest_count(db, payload)


@router.put("/guests/{count_id}", response_model=schemas.GuestCount)
def update_guest_count(
    count_id: int,
    payload: schemas.GuestCountUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    count = crud.get_guest_count(db, count_id)
    if not count:
        raise not_found()
    values = changes(payload)
    day = values.get("date") or count.date
    meal = values.get("meal") or count.meal
    clash = crud.get_guest_count_by_date_meal(db, day, meal)
    if clash and clash.id != count.id:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="Guest count for this date and meal exists"
        )
    return crud.update_guest_count(db, count_id, values)


@router.delete("/guests/{count_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_guest_count(
    count_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_guest_count(db, count_id):
        raise not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/guests/export")
@router.get("/guest-counts/export")
def export_guest_counts(
    start: Optional[date] = None,
    end: Optional[date] = None,
    fmt: str = Depends(export_format),
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=30)
    counts = crud.get_guest_counts(db, start, end)
    filename = f"Gaestezahlen_{start.isoformat()}_{end.isoformat()}.{fmt}"
    if fmt == "xlsx":
        return download(export.guest_counts_xlsx(counts), export.XLSX_MEDIA_TYPE, filename)
    return download(export.guest_counts_pdf(counts, start, end), export.PDF_MEDIA_TYPE, filename)


# --- catering ------------------------------------------------------------


@router.get("/catering", response_model=List[schemas.CateringEvent])
def list_catering(db: Session = Depends(get_db), user: models.User = Depends(current_user)):
    return crud.get_catering_events(db)


@router.post("/catering", response_model=schemas.CateringEvent, status_code=status.HTTP_201_CREATED)
def create_catering(
    payload: schemas.CateringEventCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    return crud.create_catering_event(db, payload)


@router.get("/catering/{event_id}", response_model=schemas.CateringEvent)
def get_catering(
    event_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    event = crud.get_catering_event(db, event_id)
    if not event:
        raise not_found()
    return event


@router.put("/catering/{event_id}", response_model=schemas.CateringEvent)
def update_catering(
    event_id: int,
    payload: schemas.CateringEventUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    event = crud.update_catering_event(db, event_id, changes(payload))
    if not event:
        raise not_found()
    return event


@router.delete("/catering/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_catering(
    event_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_catering_event(db, event_id):
        raise not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
