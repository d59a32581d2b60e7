import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth import KITCHEN_POSITIONS, current_user, hash_password, sign_in, sign_out, verify_password
from ..db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=schemas.RegisterResult,
    status_code=status.HTTP_201_CREATED,
)
def register(payload: schemas.RegisterUser, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, payload.email):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="E-Mail-Adresse bereits registriert"
        )
    user = crud.create_user(
        db,
        email=payload.email,
        password=hash_password(payload.password),
        name=payload.name.strip(),
        position=payload.position,
        role="guest",
        is_approved=False,
    )
    logger.info("registered %s, awaiting approval", user.email)
    return {
        "message": "Registrierung erfolgreich! Bitte warten Sie auf die Freischaltung "
        "durch den Administrator.",
        "user": user,
    }


@router.post("/login", response_model=schemas.User)
def login(payload: schemas.LoginUser, request: Request, db: Session = Depends(get_db)):
    user = crud.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Ungültige Anmeldedaten")
    if not user.is_approved:
        raise HTTPException(
            status.HTTP_403_FORBIDDEN,
            detail="Ihr Konto wurde noch nicht freigeschaltet. "
            "Bitte warten Sie auf die Freischaltung.",
        )
    sign_in(request, user)
    return user


@router.post("/logout", response_model=schemas.Message)
def logout(request: Request):
    sign_out(request)
    return {"message": "Erfolgreich abgemeldet"}


@router.get("/me", response_model=schemas.User)
def me(user: models.User = Depends(current_user)):
    return user


@router.get("/positions", response_model=List[str])
def positions():
    return KITCHEN_POSITIONS


@router.get("/check-setup")
def check_setup(db: Session = Depends(get_db)) -> Dict[str, bool]:
    return {"needsSetup": crud.count_users(db) == 0}


@router.post("/setup", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def setup(payload: schemas.SetupAdmin, request: Request, db: Session = Depends(get_db)):
    """Create the first, approved admin account and sign it in."""
    if crud.count_users(db) > 0:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Setup bereits abgeschlossen")
    user = crud.create_user(
        db,
        email=payload.email,
        password=hash_password(payload.password),
        name=payload.name.strip(),
        position="Küchenchef",
        role="admin",
        is_approved=True,
    )
    logger.info("setup created admin account %s", user.email)
    sign_in(request, user)
    return user
