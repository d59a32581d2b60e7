from datetime import date, datetime, time
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models, schemas
from .normalize import normalize_allergens


def _apply(obj, values: dict):
    for key, value in values.items():
        setattr(obj, key, value)
    return obj


def _save(db: Session, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def _delete(db: Session, obj) -> bool:
    if obj is None:
        return False
    db.delete(obj)
    db.commit()
    return True


# --- users & settings ----------------------------------------------------


def get_user(db: Session, user_id: str):
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str):
    email = (email or "").strip().lower()
    return db.query(models.User).filter(models.User.username == email).first()


def get_users(db: Session):
    return db.query(models.User).order_by(models.User.created_at).all()


def count_users(db: Session) -> int:
    return db.query(func.count(models.User.id)).scalar()


def create_user(db: Session, **fields):
    email = fields["email"].strip().lower()
    fields.update(email=email, username=email)
    return _save(db, models.User(**fields))


def update_user(db: Session, user_id: str, values: dict):
    user = get_user(db, user_id)
    if not user:
        return None
    return _save(db, _apply(user, values))


def delete_user(db: Session, user_id: str) -> bool:
    return _delete(db, get_user(db, user_id))


def get_all_settings(db: Session):
    return db.query(models.AppSetting).order_by(models.AppSetting.key).all()


def get_setting(db: Session, key: str):
    return db.query(models.AppSetting).filter(models.AppSetting.key == key).first()


def set_setting(db: Session, key: str, value: str):
    setting = get_setting(db, key) or models.AppSetting(key=key)
    setting.value = value
    return _save(db, setting)


# --- recipes -------------------------------------------------------------


def get_recipe(db: Session, recipe_id: int):
    return db.get(models.Recipe, recipe_id)


def _recipe_query(
    db: Session,
    q: Optional[str] = None,
    category: Optional[str] = None,
):
    query = db.query(models.Recipe)
    if q:
        query = query.filter(models.Recipe.name.ilike(f"%{q}%"))
    if category:
        query = query.filter(models.Recipe.category == category)
    return query.order_by(models.Recipe.name, models.Recipe.id)


def get_recipes(
    db: Session,
    skip: int = 0,
    limit: Optional[int] = None,
    q: Optional[str] = None,
    category: Optional[str] = None,
    exclude_allergens: Iterable[str] = (),
):
    """Filtered recipe list and the total match count before paging."""
    recipes = _recipe_query(db, q=q, category=category).all()
    excluded = set(normalize_allergens(exclude_allergens))
    if excluded:
        # allergen lists are JSON columns, filtered here to stay dialect neutral
        recipes = [r for r in recipes if not excluded & set(r.allergens or [])]
    total = len(recipes)
    end = None if limit is None else skip + limit
    return recipes[skip:end], total


def _ingredient_rows(items: Iterable[schemas.IngredientCreate]):
    return [
        models.Ingredient(
            name=i.name,
            amount=i.amount,
            unit=i.unit,
            allergens=list(i.allergens or []),
        )
        for i in items
    ]


def _aggregate_allergens(recipe: models.Recipe) -> List[str]:
    codes = []
    for ing in recipe.ingredients:
        codes.extend(ing.allergens or [])
    return normalize_allergens(codes)


def create_recipe(db: Session, recipe: schemas.RecipeCreate):
    values = recipe.model_dump(exclude={"ingredients_list", "allergens"})
    db_recipe = models.Recipe(**values)
    db_recipe.ingredients = _ingredient_rows(recipe.ingredients_list or [])
    if recipe.allergens is None:
        db_recipe.allergens = _aggregate_allergens(db_recipe)
    else:
        db_recipe.allergens = list(recipe.allergens)
    return _save(db, db_recipe)


def update_recipe(db: Session, recipe_id: int, recipe: schemas.RecipeUpdate):
    db_recipe = get_recipe(db, recipe_id)
    if not db_recipe:
        return None
    values = recipe.model_dump(exclude_unset=True, exclude={"ingredients_list"})
    # only image and source_url may be cleared with an explicit null
    values = {
        k: v for k, v in values.items() if v is not None or k in ("image", "source_url")
    }
    _apply(db_recipe, values)
    if recipe.ingredients_list is not None:
        return replace_ingredients(
            db, db_recipe, recipe.ingredients_list, keep_allergens="allergens" in values
        )
    return _save(db, db_recipe)


def replace_ingredients(
    db: Session,
    db_recipe: models.Recipe,
    items: Iterable[schemas.IngredientCreate],
    keep_allergens: bool = False,
):
    db_recipe.ingredients = _ingredient_rows(items)
    if not keep_allergens:
        db_recipe.allergens = _aggregate_allergens(db_recipe)
    return _save(db, db_recipe)


def delete_recipe(db: Session, recipe_id: int) -> bool:
    return _delete(db, get_recipe(db, recipe_id))


def get_ingredients(db: Session, recipe_id: int):
    return (
        db.query(models.Ingredient)
        .filter(models.Ingredient.recipe_id == recipe_id)
        .order_by(models.Ingredient.id)
        .all()
    )


def count_recipes(db: Session) -> int:
    return db.query(func.count(models.Recipe.id)).scalar()


# --- fridges & haccp -----------------------------------------------------


def get_fridges(db: Session):
    return db.query(models.Fridge).order_by(models.Fridge.id).all()


def get_fridge(db: Session, fridge_id: int):
    return db.get(models.Fridge, fridge_id)


def create_fridge(db: Session, fridge: schemas.FridgeCreate):
    return _save(db, models.Fridge(**fridge.model_dump()))


def update_fridge(db: Session, fridge_id: int, values: dict):
    fridge = get_fridge(db, fridge_id)
    if not fridge:
        return None
    return _save(db, _apply(fridge, values))


def delete_fridge(db: Session, fridge_id: int) -> bool:
    return _delete(db, get_fridge(db, fridge_id))


def get_haccp_logs(
    db: Session,
    fridge_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
):
    """Logs newest first; ``end`` is inclusive of the whole day."""
    query = db.query(models.HaccpLog)
    if fridge_id is not None:
        query = query.filter(models.HaccpLog.fridge_id == fridge_id)
    if start is not None:
        query = query.filter(models.HaccpLog.timestamp >= datetime.combine(start, time.min))
    if end is not None:
        query = query.filter(models.HaccpLog.timestamp <= datetime.combine(end, time.max))
    return query.order_by(models.HaccpLog.timestamp.desc(), models.HaccpLog.id.desc()).all()


def create_haccp_log(db: Session, **fields):
    if fields.get("timestamp") is None:
        fields.pop("timestamp", None)
    return _save(db, models.HaccpLog(**fields))


def count_haccp_warnings(db: Session) -> int:
    return (
        db.query(func.count(models.HaccpLog.id))
        .filter(models.HaccpLog.status.in_(("WARNING", "CRITICAL")))
        .scalar()
    )


def get_latest_logs(db: Session):
    latest = []
    for fridge in get_fridges(db):
        log = (
            db.query(models.HaccpLog)
            .filter(models.HaccpLog.fridge_id == fridge.id)
            .order_by(models.HaccpLog.timestamp.desc(), models.HaccpLog.id.desc())
            .first()
        )
        if log:
            latest.append(log)
    return latest


# --- guests & catering ---------------------------------------------------


def get_guest_counts(db: Session, start: date, end: date):
    return (
        db.query(models.GuestCount)
        .filter(models.GuestCount.date >= start, models.GuestCount.date <= end)
        .order_by(models.GuestCount.date, models.GuestCount.id)
        .all()
    )


def get_guest_count(db: Session, count_id: int):
    return db.get(models.GuestCount, count_id)


def get_guest_count_by_date_meal(db: Session, day: date, meal: str):
    return (
        db.query(models.GuestCount)
        .filter(models.GuestCount.date == day, models.GuestCount.meal == meal)
        .first()
    )


def create_guest_count(db: Session, count: schemas.GuestCountCreate):
    return _save(db, models.GuestCount(**count.model_dump()))


def update_guest_count(db: Session, count_id: int, values: dict):
    count = get_guest_count(db, count_id)
    if not count:
        return None
    return _save(db, _apply(count, values))


def delete_guest_count(db: Session, count_id: int) -> bool:
    return _delete(db, get_guest_count(db, count_id))


def get_catering_events(db: Session):
    return (
        db.query(models.CateringEvent)
        .order_by(models.CateringEvent.date, models.CateringEvent.time)
        .all()
    )


def get_catering_event(db: Session, event_id: int):
    return db.get(models.CateringEvent, event_id)


def create_catering_event(db: Session, event: schemas.CateringEventCreate):
    return _save(db, models.CateringEvent(**event.model_dump()))


def update_catering_event(db: Session, event_id: int, values: dict):
    event = get_catering_event(db, event_id)
    if not event:
        return None
    return _save(db, _apply(event, values))


def delete_catering_event(db: Session, event_id: int) -> bool:
    return _delete(db, get_catering_event(db, event_id))


# --- staff & schedule ----------------------------------------------------


def get_staff(db: Session):
    return db.query(models.Staff).order_by(models.Staff.id).all()


def get_staff_member(db: Session, staff_id: int):
    return db.get(models.Staff, staff_id)


def create_staff(db: Session, staff: schemas.StaffCreate):
    return _save(db, models.Staff(**staff.model_dump()))


def update_staff(db: Session, staff_id: int, values: dict):
    member = get_staff_member(db, staff_id)
    if not member:
        return None
    return _save(db, _apply(member, values))


def delete_staff(db: Session, staff_id: int) -> bool:
    return _delete(db, get_staff_member(db, staff_id))


def get_shift_types(db: Session):
    return db.query(models.ShiftType).order_by(models.ShiftType.start_time).all()


def get_shift_type(db: Session, shift_type_id: int):
    return db.get(models.ShiftType, shift_type_id)


def create_shift_type(db: Session, shift_type: schemas.ShiftTypeCreate):
    return _save(db, models.ShiftType(**shift_type.model_dump()))


def update_shift_type(db: Session, shift_type_id: int, values: dict):
    shift_type = get_shift_type(db, shift_type_id)
    if not shift_type:
        return None
    return _save(db, _apply(shift_type, values))


def delete_shift_type(db: Session, shift_type_id: int) -> bool:
    return _delete(db, get_shift_type(db, shift_type_id))


def get_schedule_entries(db: Session, start: date, end: date):
    return (
        db.query(models.ScheduleEntry)
        .filter(models.ScheduleEntry.date >= start, models.ScheduleEntry.date <= end)
        .order_by(models.ScheduleEntry.date, models.ScheduleEntry.staff_id)
        .all()
    )


def get_schedule_entry(db: Session, entry_id: int):
    return db.get(models.ScheduleEntry, entry_id)


def create_schedule_entry(db: Session, entry: schemas.ScheduleEntryCreate):
    return _save(db, models.ScheduleEntry(**entry.model_dump()))


def update_schedule_entry(db: Session, entry_id: int, values: dict):
    entry = get_schedule_entry(db, entry_id)
    if not entry:
        return None
    return _save(db, _apply(entry, values))


def delete_schedule_entry(db: Session, entry_id: int) -> bool:
    return _delete(db, get_schedule_entry(db, entry_id))


# --- menu plans ----------------------------------------------------------


def get_menu_plans(db: Session, start: date, end: date):
    return (
        db.query(models.MenuPlan)
        .filter(models.MenuPlan.date >= start, models.MenuPlan.date <= end)
        .order_by(models.MenuPlan.date, models.MenuPlan.id)
        .all()
    )


def get_menu_plan(db: Session, plan_id: int):
    return db.get(models.MenuPlan, plan_id)


def create_menu_plan(db: Session, plan: schemas.MenuPlanCreate):
    return _save(db, models.MenuPlan(**plan.model_dump()))


def update_menu_plan(db: Session, plan_id: int, values: dict):
    plan = get_menu_plan(db, plan_id)
    if not plan:
        return None
    return _save(db, _apply(plan, values))


def delete_menu_plan(db: Session, plan_id: int) -> bool:
    return _delete(db, get_menu_plan(db, plan_id))
