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

router = APIRouter(prefix="/api", tags=["schedule"])


# --- staff ---------------------------------------------------------------


@router.get("/staff", response_model=List[schemas.Staff])
def list_staff(db: Session = Depends(get_db), user: models.User = Depends(current_user)):
    return crud.get_staff(db)


@router.post("/staff", response_model=schemas.Staff, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: schemas.StaffCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    return crud.create_staff(db, payload)


@router.get("/staff/{staff_id}", response_model=schemas.Staff)
def get_staff(
    staff_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    member = crud.get_staff_member(db, staff_id)
    if not member:
        raise not_found()
    return member


@router.put("/staff/{staff_id}", response_model=schemas.Staff)
def update_staff(
    staff_id: int,
    payload: schemas.StaffUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    member = crud.update_staff(db, staff_id, changes(payload, nullable=("email", "phone")))
    if not member:
        raise not_found()
    return member


@router.delete("/staff/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staff(
    staff_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_staff(db, staff_id):
        raise not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- shift types ---------------------------------------------------------


@router.get("/shift-types", response_model=List[schemas.ShiftType])
def list_shift_types(db: Session = Depends(get_db), user: models.User = Depends(current_user)):
    return crud.get_shift_types(db)


@router.post("/shift-types", response_model=schemas.ShiftType, status_code=status.HTTP_201_CREATED)
def create_shift_type(
    payload: schemas.ShiftTypeCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    return crud.create_shift_type(db, payload)


@router.put("/shift-types/{shift_type_id}", response_model=schemas.ShiftType)
def update_shift_type(
    shift_type_id: int,
    payload: schemas.ShiftTypeUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    shift_type = crud.update_shift_type(db, shift_type_id, changes(payload, nullable=()))
    if not shift_type:
        raise not_found()
    return shift_type


@router.delete("/shift-types/{shift_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shift_type(
    shift_type_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_shift_type(db, shift_type_id):
        raise not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- schedule entries ----------------------------------------------------


def _check_refs(db: Session, staff_id: Optional[int], shift_type_id: Optional[int]):
    if staff_id is not None and not crud.get_staff_member(db, staff_id):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Unknown staff member")
    if shift_type_id is not None and not crud.get_shift_type(db, shift_type_id):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Unknown shift type")


@router.get("/schedule", response_model=List[schemas.ScheduleEntry])
def list_schedule(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=30)
    return crud.get_schedule_entries(db, start, end)


@router.post("/schedule", response_model=schemas.ScheduleEntry, status_code=status.HTTP_201_CREATED)
def create_schedule_entry(
    payload: schemas.ScheduleEntryCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    _check_refs(db, payload.staff_id, payload.shift_type_id)
    return crud.create_schedule_entry(db, payload)


@router.get("/schedule/export")
def export_schedule(
    start: Optional[date] = None,
    end: Optional[date] = None,
    fmt: str = Depends(export_format),
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=7)
    entries = crud.get_schedule_entries(db, start, end)
    filename = f"Dienstplan_{start.isoformat()}_{end.isoformat()}.{fmt}"
    if fmt == "xlsx":
        return download(export.schedule_xlsx(entries), export.XLSX_MEDIA_TYPE, filename)
    content = export.schedule_pdf(
        crud.get_staff(db), entries, crud.get_shift_types(db), start, end
    )
    return download(content, export.PDF_MEDIA_TYPE, filename)


@router.put("/schedule/{entry_id}", response_model=schemas.ScheduleEntry)
def update_schedule_entry(
    entry_id: int,
    payload: schemas.ScheduleEntryUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    values = changes(payload, nullable=("shift", "shift_type_id", "notes"))
    _check_refs(db, values.get("staff_id"), values.get("shift_type_id"))
    entry = crud.update_schedule_entry(db, entry_id, values)
    if not entry:
        raise not_found()
    return entry


@router.delete("/schedule/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule_entry(
    entry_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_schedule_entry(db, entry_id):
        raise not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
