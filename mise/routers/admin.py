import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth import ROLE_PERMISSIONS, require_admin
from ..db import get_db
from .deps import changes, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=List[schemas.User])
def list_users(db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    return crud.get_users(db)


@router.put("/users/{user_id}", response_model=schemas.User)
def update_user(
    user_id: str,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    values = changes(payload, nullable=())
    if "role" in values and values["role"] not in ROLE_PERMISSIONS:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Unbekannte Rolle")
    user = crud.update_user(db, user_id, values)
    if not user:
        raise not_found("Benutzer nicht gefunden")
    logger.info("%s updated user %s: %s", admin.email, user.email, values)
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    if user_id == admin.id:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="Sie können sich nicht selbst löschen"
        )
    if not crud.delete_user(db, user_id):
        raise not_found("Benutzer nicht gefunden")
    logger.info("%s deleted user %s", admin.email, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/settings")
def list_settings(
    db: Session = Depends(get_db), admin: models.User = Depends(require_admin)
) -> Dict[str, str]:
    return {s.key: s.value for s in crud.get_all_settings(db)}


@router.put("/settings/{key}", response_model=schemas.AppSetting)
def put_setting(
    key: str,
    payload: schemas.SettingValue,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    return crud.set_setting(db, key, payload.value)
