import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from .. import crud, export, models, schemas
from ..auth import current_user
from ..config import get_settings
from ..db import get_db
from ..normalize import haccp_status
from .deps import changes, download, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["haccp"])


@router.get("/fridges", response_model=List[schemas.Fridge])
def list_fridges(db: Session = Depends(get_db), user: models.User = Depends(current_user)):
    return crud.get_fridges(db)


@router.post("/fridges", response_model=schemas.Fridge, status_code=status.HTTP_201_CREATED)
def create_fridge(
    payload: schemas.FridgeCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    return crud.create_fridge(db, payload)


@router.get("/fridges/{fridge_id}", response_model=schemas.Fridge)
def get_fridge(
    fridge_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    fridge = crud.get_fridge(db, fridge_id)
    if not fridge:
        raise not_found("Fridge not found")
    return fridge


@router.put("/fridges/{fridge_id}", response_model=schemas.Fridge)
def update_fridge(
    fridge_id: int,
    payload: schemas.FridgeUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    fridge = crud.get_fridge(db, fridge_id)
    if not fridge:
        raise not_found("Fridge not found")
    values = changes(payload)
    temp_min = values.get("temp_min", fridge.temp_min)
    temp_max = values.get("temp_max", fridge.temp_max)
    if temp_min > temp_max:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="tempMin must not exceed tempMax"
        )
    return crud.update_fridge(db, fridge_id, values)


@router.delete("/fridges/{fridge_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_fridge(
    fridge_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_fridge(db, fridge_id):
        raise not_found("Fridge not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/fridges/{fridge_id}/logs", response_model=List[schemas.HaccpLog])
def list_fridge_logs(
    fridge_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.get_fridge(db, fridge_id):
        raise not_found("Fridge not found")
    return crud.get_haccp_logs(db, fridge_id=fridge_id)


@router.get("/haccp-logs", response_model=List[schemas.HaccpLog])
def list_logs(
    fridge_id: Optional[int] = Query(None, alias="fridgeId"),
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    return crud.get_haccp_logs(db, fridge_id=fridge_id, start=start, end=end)


@router.post("/haccp-logs", response_model=schemas.HaccpLog, status_code=status.HTTP_201_CREATED)
def create_log(
    payload: schemas.HaccpLogCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    """Record a reading; status is derived from the fridge range unless given."""
    fridge = crud.get_fridge(db, payload.fridge_id)
    if not fridge:
        raise not_found("Fridge not found")
    log_status = payload.status or haccp_status(
        payload.temperature,
        fridge.temp_min,
        fridge.temp_max,
        get_settings().haccp_critical_margin,
    )
    log = crud.create_haccp_log(
        db,
        fridge_id=fridge.id,
        temperature=payload.temperature,
        timestamp=payload.timestamp,
        user=payload.user or user.name,
        status=log_status,
        notes=payload.notes,
    )
    if log_status != "OK":
        logger.warning(
            "%s reading on %s: %.1f°C outside %.1f..%.1f",
            log_status, fridge.name, payload.temperature, fridge.temp_min, fridge.temp_max,
        )
    return log


@router.get("/haccp-logs/export")
def export_logs(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    today = date.today()
    logs = crud.get_haccp_logs(db, start=start, end=end)
    content = export.haccp_pdf(crud.get_fridges(db), logs, generated_on=today)
    return download(content, export.PDF_MEDIA_TYPE, f"HACCP_Bericht_{today.isoformat()}.pdf")
