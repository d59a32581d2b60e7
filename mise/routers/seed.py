from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, models
from ..auth import require_admin
from ..db import get_db
from ..seed import seed_base, seed_recipes

router = APIRouter(prefix="/api", tags=["seed"])


@router.post("/seed")
def seed(db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    if not seed_base(db):
        return {"message": "Data already seeded"}
    return {"message": "Seed data created successfully"}


@router.post("/seed-recipes")
def seed_bundled_recipes(
    db: Session = Depends(get_db), admin: models.User = Depends(require_admin)
):
    created = seed_recipes(db)
    if not created:
        return {"message": "Recipes already seeded", "count": crud.count_recipes(db)}
    return {"message": f"{created} Austrian recipes created successfully", "count": created}
