import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import crud, export, models, schemas
from ..auth import current_user
from ..db import get_db
from ..normalize import normalize_ingredient
from .deps import changes, date_window, download, export_format, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu-plans", tags=["menu"])


def shopping_list(plans: List[models.MenuPlan]) -> List[schemas.ShoppingListItem]:
    """Scale each planned recipe to the plan's portions and sum per ingredient.

    Ingredients are merged on (normalized name, unit); the first spelling
    seen is the one shown.
    """
    totals: Dict[Tuple[str, str], list] = {}
    for plan in plans:
        recipe = plan.recipe
        if recipe is None:
            continue
        factor = plan.portions / (recipe.portions or 1)
        for ing in recipe.ingredients:
            key = (normalize_ingredient(ing.name), ing.unit)
            entry = totals.setdefault(key, [ing.name, 0.0, ing.unit])
            entry[1] += ing.amount * factor
    items = [
        schemas.ShoppingListItem(name=name, amount=round(amount, 2), unit=unit)
        for name, amount, unit in totals.values()
    ]
    return sorted(items, key=lambda i: (i.name.lower(), i.unit))


def _check_recipe(db: Session, recipe_id: Optional[int]):
    if recipe_id is not None and not crud.get_recipe(db, recipe_id):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Recipe not found")


@router.get("", response_model=List[schemas.MenuPlan])
def list_menu_plans(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=7)
    return crud.get_menu_plans(db, start, end)


@router.post("", response_model=schemas.MenuPlan, status_code=status.HTTP_201_CREATED)
def create_menu_plan(
    payload: schemas.MenuPlanCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    _check_recipe(db, payload.recipe_id)
    return crud.create_menu_plan(db, payload)


@router.get("/shopping-list", response_model=List[schemas.ShoppingListItem])
def get_shopping_list(
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=7)
    return shopping_list(crud.get_menu_plans(db, start, end))


@router.get("/export")
def export_menu_plans(
    start: Optional[date] = None,
    end: Optional[date] = None,
    fmt: str = Depends(export_format),
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    start, end = date_window(start, end, days=7)
    plans = crud.get_menu_plans(db, start, end)
    filename = f"Menuplan_{start.isoformat()}_{end.isoformat()}.{fmt}"
    if fmt == "xlsx":
        return download(export.menu_plan_xlsx(plans), export.XLSX_MEDIA_TYPE, filename)
    return download(export.menu_plan_pdf(plans, start, end), export.PDF_MEDIA_TYPE, filename)


@router.get("/{plan_id}", response_model=schemas.MenuPlan)
def get_menu_plan(
    plan_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    plan = crud.get_menu_plan(db, plan_id)
    if not plan:
        raise not_found()
    return plan


@router.put("/{plan_id}", response_model=schemas.MenuPlan)
def update_menu_plan(
    plan_id: int,
    payload: schemas.MenuPlanUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(current_user),
):
    values = changes(payload, nullable=("recipe_id", "notes"))
    _check_recipe(db, values.get("recipe_id"))
    plan = crud.update_menu_plan(db, plan_id, values)
    if not plan:
        raise not_found()
    return plan


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_plan(
    plan_id: int, db: Session = Depends(get_db), user: models.User = Depends(current_user)
):
    if not crud.delete_menu_plan(db, plan_id):
        raise not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
