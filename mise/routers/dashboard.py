from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth import current_user
from ..db import get_db

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=schemas.Dashboard)
def dashboard(db: Session = Depends(get_db), user: models.User = Depends(current_user)):
    today = date.today()
    by_meal = {}
    for count in crud.get_guest_counts(db, today, today):
        by_meal[count.meal] = count.adults + count.children
    return {
        "recipe_count": crud.count_recipes(db),
        "fridge_count": len(crud.get_fridges(db)),
        "warning_count": crud.count_haccp_warnings(db),
        "latest_logs": crud.get_latest_logs(db),
        "guests_today": sum(by_meal.values()),
        "guests_today_by_meal": by_meal,
    }
