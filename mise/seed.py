"""Initial data for a fresh kitchen: fridges, shift types, staff and recipes."""
import logging
from typing import Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .normalize import parse_ingredient_line
from .recipes import load_recipes

logger = logging.getLogger(__name__)

FRIDGES = [
    {"name": "Kühlraum", "temp_min": 0, "temp_max": 4},
    {"name": "Tiefkühler", "temp_min": -22, "temp_max": -18},
    {"name": "Vorbereitungskühlschrank", "temp_min": 0, "temp_max": 5},
]

SHIFT_TYPES = [
    {"name": "Frühstück", "start_time": "06:00", "end_time": "14:30", "color": "#22c55e"},
    {"name": "Kochen Mittag", "start_time": "07:00", "end_time": "15:30", "color": "#3b82f6"},
    {"name": "Kochen Mittag 2", "start_time": "08:00", "end_time": "16:30", "color": "#8b5cf6"},
    {"name": "Abwasch", "start_time": "08:00", "end_time": "16:30", "color": "#f59e0b"},
    {"name": "Kochen Abend", "start_time": "13:00", "end_time": "21:30", "color": "#ef4444"},
]

STAFF = [
    ("Moscher, Gerald", "#3b82f6"),
    ("Glanzer, Patrick", "#22c55e"),
    ("Cayli, Bugra", "#f59e0b"),
    ("Stindl, Michael", "#8b5cf6"),
    ("Deyab, Mona", "#ec4899"),
    ("Enoma, Helen", "#06b6d4"),
    ("Kononenko, Alina", "#84cc16"),
    ("Nsiah-Youngman, Ma", "#ef4444"),
]


def seed_base(db: Session) -> bool:
    """Create fridges, shift types and staff; False when fridges already exist."""
    if crud.get_fridges(db):
        return False
    for fridge in FRIDGES:
        crud.create_fridge(db, schemas.FridgeCreate(**fridge))
    if not crud.get_shift_types(db):
        for shift_type in SHIFT_TYPES:
            crud.create_shift_type(db, schemas.ShiftTypeCreate(**shift_type))
    if not crud.get_staff(db):
        for name, color in STAFF:
            crud.create_staff(db, schemas.StaffCreate(name=name, role="Koch", color=color))
    logger.info("seeded %d fridges, shift types and staff", len(FRIDGES))
    return True


def _ingredients(raw) -> list:
    items = []
    for item in raw or []:
        if isinstance(item, str):
            parsed = parse_ingredient_line(item)
            if parsed.name:
                items.append(schemas.IngredientCreate(**parsed._asdict()))
        else:
            items.append(schemas.IngredientCreate.model_validate(item))
    return items


def recipe_from_record(record: dict) -> schemas.RecipeCreate:
    return schemas.RecipeCreate(
        name=record["name"],
        category=record.get("category") or "Mains",
        portions=record.get("portions") or 1,
        prep_time=record.get("prep_time", record.get("prepTime")) or 0,
        image=record.get("image"),
        source_url=record.get("source_url"),
        steps=record.get("steps") or [],
        allergens=record.get("allergens"),
        ingredients_list=_ingredients(record.get("ingredients")),
    )


def seed_recipes(db: Session, records: Optional[Iterable[dict]] = None) -> int:
    """Insert recipes whose name is not stored yet; returns the number added."""
    if records is None:
        records = load_recipes()
    existing = {name for (name,) in db.query(models.Recipe.name).all()}
    added = 0
    for record in records:
        name = (record.get("name") or "").strip()
        if not name or name in existing:
            continue
        try:
            recipe = recipe_from_record(record)
        except (KeyError, ValidationError) as e:
            logger.warning("skipping recipe %r: %s", name, e)
            continue
        crud.create_recipe(db, recipe)
        existing.add(name)
        added += 1
    logger.info("seeded %d recipes", added)
    return added
