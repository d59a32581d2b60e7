import datetime as dt
import re
from typing import Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .normalize import MAX_COUNT, is_http_url
from .translate import ALLERGENS

Meal = Literal["breakfast", "lunch", "dinner"]
Course = Literal["soup", "main_meat", "side1", "side2", "main_veg", "dessert", "main"]
EntryType = Literal["shift", "vacation", "sick", "off", "wor"]
ShiftName = Literal["early", "late", "night"]
HaccpStatus = Literal["OK", "WARNING", "CRITICAL"]

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    """Base for API payloads: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        allow_inf_nan=False,
    )


def _check_allergens(codes):
    if codes is None:
        return None
    cleaned = []
    for code in codes:
        c = str(code).strip().upper()
        if c not in ALLERGENS:
            raise ValueError(f"unknown allergen code: {code}")
        if c not in cleaned:
            cleaned.append(c)
    return sorted(cleaned)


def _check_link(value):
    if value is None or value == "":
        return None
    if not is_http_url(value):
        raise ValueError("must be an http or https URL")
    return value.strip()


# --- recipes -------------------------------------------------------------


class IngredientBase(CamelModel):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Mehl"})
    amount: float = Field(..., ge=0, json_schema_extra={"example": 250})
    unit: str = Field(..., min_length=1, json_schema_extra={"example": "g"})
    allergens: List[str] = Field(default_factory=list)

    check_allergens = field_validator("allergens")(_check_allergens)


class IngredientCreate(IngredientBase):
    pass


class Ingredient(IngredientBase):
    id: int
    recipe_id: int


class RecipeBase(CamelModel):
    name: str = Field(
        ..., min_length=1, json_schema_extra={"example": "Wiener Schnitzel"}
    )
    category: str = Field(..., min_length=1, json_schema_extra={"example": "Mains"})
    portions: int = Field(1, ge=1, le=MAX_COUNT)
    prep_time: int = Field(0, ge=0, le=MAX_COUNT)
    image: Optional[str] = None
    source_url: Optional[str] = None
    steps: List[str] = Field(default_factory=list)


class RecipeCreate(RecipeBase):
    # None: derived from the ingredients
    allergens: Optional[List[str]] = None
    ingredients_list: Optional[List[IngredientCreate]] = None

    check_allergens = field_validator("allergens")(_check_allergens)
    check_links = field_validator("image", "source_url")(_check_link)


class RecipeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    portions: Optional[int] = Field(None, ge=1, le=MAX_COUNT)
    prep_time: Optional[int] = Field(None, ge=0, le=MAX_COUNT)
    image: Optional[str] = None
    source_url: Optional[str] = None
    steps: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    ingredients_list: Optional[List[IngredientCreate]] = None

    check_allergens = field_validator("allergens")(_check_allergens)
    check_links = field_validator("image", "source_url")(_check_link)


class Recipe(RecipeBase):
    id: int
    allergens: List[str] = Field(default_factory=list)


class RecipeDetail(Recipe):
    ingredients_list: List[Ingredient] = Field(default_factory=list)


class RecipeImport(CamelModel):
    url: Optional[str] = None
    category: Optional[str] = None


# --- haccp ---------------------------------------------------------------


class FridgeBase(CamelModel):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Kühlraum"})
    temp_min: float
    temp_max: float

    @model_validator(mode="after")
    def check_range(self):
        if self.temp_min > self.temp_max:
            raise ValueError("tempMin must not exceed tempMax")
        return self


class FridgeCreate(FridgeBase):
    pass


class FridgeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None


class Fridge(FridgeBase):
    id: int


class HaccpLogCreate(CamelModel):
    fridge_id: int
    temperature: float
    timestamp: Optional[dt.datetime] = None
    # filled from the signed-in user when omitted
    user: Optional[str] = None
    # computed from the fridge range when omitted
    status: Optional[HaccpStatus] = None
    notes: Optional[str] = None


class HaccpLog(CamelModel):
    id: int
    fridge_id: int
    temperature: float
    timestamp: dt.datetime
    user: str
    status: HaccpStatus
    notes: Optional[str] = None


# --- guests & catering ---------------------------------------------------


class GuestCountBase(CamelModel):
    date: dt.date
    meal: Meal
    adults: int = Field(0, ge=0)
    children: int = Field(0, ge=0)
    notes: Optional[str] = None


class GuestCountCreate(GuestCountBase):
    pass


class GuestCountUpdate(CamelModel):
    date: Optional[dt.date] = None
    meal: Optional[Meal] = None
    adults: Optional[int] = Field(None, ge=0)
    children: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class GuestCount(GuestCountBase):
    id: int

    @computed_field
    @property
    def total(self) -> int:
        return self.adults + self.children


class CateringEventBase(CamelModel):
    client_name: str = Field(..., min_length=1)
    event_name: str = Field(..., min_length=1)
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN)
    person_count: int = Field(..., ge=1)
    dishes: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class CateringEventCreate(CateringEventBase):
    pass


class CateringEventUpdate(CamelModel):
    client_name: Optional[str] = Field(None, min_length=1)
    event_name: Optional[str] = Field(None, min_length=1)
    date: Optional[dt.date] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    person_count: Optional[int] = Field(None, ge=1)
    dishes: Optional[List[str]] = None
    notes: Optional[str] = None


class CateringEvent(CateringEventBase):
    id: int


# --- staff & schedule ----------------------------------------------------


class StaffBase(CamelModel):
    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    color: str = "#3b82f6"
    email: Optional[str] = None
    phone: Optional[str] = None


class StaffCreate(StaffBase):
    pass


class StaffUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    role: Optional[str] = Field(None, min_length=1)
    color: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Staff(StaffBase):
    id: int


class ShiftTypeBase(CamelModel):
    name: str = Field(..., min_length=1)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    color: str = "#3b82f6"


class ShiftTypeCreate(ShiftTypeBase):
    pass


class ShiftTypeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    color: Optional[str] = None


class ShiftType(ShiftTypeBase):
    id: int


class ScheduleEntryBase(CamelModel):
    staff_id: int
    date: dt.date
    type: EntryType
    shift: Optional[ShiftName] = None
    shift_type_id: Optional[int] = None
    notes: Optional[str] = None


class ScheduleEntryCreate(ScheduleEntryBase):
    pass


class ScheduleEntryUpdate(CamelModel):
    staff_id: Optional[int] = None
    date: Optional[dt.date] = None
    type: Optional[EntryType] = None
    shift: Optional[ShiftName] = None
    shift_type_id: Optional[int] = None
    notes: Optional[str] = None


class ScheduleEntry(ScheduleEntryBase):
    id: int


# --- menu plans ----------------------------------------------------------


class MenuPlanBase(CamelModel):
    date: dt.date
    meal: Meal
    course: Course = "main"
    recipe_id: Optional[int] = None
    portions: int = Field(1, ge=1)
    notes: Optional[str] = None


class MenuPlanCreate(MenuPlanBase):
    pass


class MenuPlanUpdate(CamelModel):
    date: Optional[dt.date] = None
    meal: Optional[Meal] = None
    course: Optional[Course] = None
    recipe_id: Optional[int] = None
    portions: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None


class MenuPlan(MenuPlanBase):
    id: int


class ShoppingListItem(CamelModel):
    name: str
    amount: float
    unit: str


# --- users & auth --------------------------------------------------------


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Ungültige E-Mail-Adresse")
    return value


class RegisterUser(CamelModel):
    name: str = Field(..., min_length=2)
    email: str
    password: str = Field(..., min_length=6)
    position: str = Field(..., min_length=1)

    check_email = field_validator("email")(_check_email)


class LoginUser(CamelModel):
    email: str
    password: str = Field(..., min_length=1)

    check_email = field_validator("email")(_check_email)


class SetupAdmin(CamelModel):
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6)

    check_email = field_validator("email")(_check_email)


class User(CamelModel):
    id: str
    name: str
    email: str
    position: str
    role: str
    is_approved: bool
    created_at: Optional[dt.datetime] = None


class UserUpdate(CamelModel):
    role: Optional[str] = None
    is_approved: Optional[bool] = None
    position: Optional[str] = None


class SettingValue(CamelModel):
    value: str


class AppSetting(CamelModel):
    key: str
    value: str


class Message(CamelModel):
    message: str


class RegisterResult(Message):
    user: User


# --- dashboard -----------------------------------------------------------


class Dashboard(CamelModel):
    recipe_count: int
    fridge_count: int
    warning_count: int
    latest_logs: List[HaccpLog]
    guests_today: int
    guests_today_by_meal: Dict[str, int]
