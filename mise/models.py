import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_uuid)
    username = Column(String(320), unique=True, index=True, nullable=False)
    password = Column(String(512), nullable=False)
    name = Column(String(200), nullable=False, default="")
    email = Column(String(320), nullable=False, default="")
    position = Column(String(100), nullable=False, default="Koch")
    role = Column(String(32), nullable=False, default="guest")
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class AppSetting(Base):
    __tablename__ = "app_settings"
    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(120), unique=True, nullable=False)
    value = Column(Text, nullable=False)


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(300), index=True, nullable=False)
    category = Column(String(100), nullable=False)
    portions = Column(Integer, nullable=False, default=1)
    prep_time = Column(Integer, nullable=False, default=0)  # minutes
    image = Column(Text, nullable=True)
    source_url = Column(Text, nullable=True)
    steps = Column(JSON, nullable=False, default=list)
    allergens = Column(JSON, nullable=False, default=list)

    ingredients = relationship(
        "Ingredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="Ingredient.id",
    )
    # no delete cascade: plans keep their slot with recipe_id set to NULL
    menu_plans = relationship("MenuPlan", back_populates="recipe")


class Ingredient(Base):
    __tablename__ = "ingredients"
    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(300), nullable=False)
    amount = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    allergens = Column(JSON, nullable=False, default=list)

    recipe = relationship("Recipe", back_populates="ingredients")


class Fridge(Base):
    __tablename__ = "fridges"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    temp_min = Column(Float, nullable=False)
    temp_max = Column(Float, nullable=False)

    logs = relationship(
        "HaccpLog", back_populates="fridge", cascade="all, delete-orphan"
    )


class HaccpLog(Base):
    __tablename__ = "haccp_logs"
    id = Column(Integer, primary_key=True, index=True)
    fridge_id = Column(
        Integer, ForeignKey("fridges.id", ondelete="CASCADE"), nullable=False
    )
    temperature = Column(Float, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    user = Column(String(200), nullable=False)
    status = Column(String(16), nullable=False)  # OK, WARNING, CRITICAL
    notes = Column(Text, nullable=True)

    fridge = relationship("Fridge", back_populates="logs")


class GuestCount(Base):
    __tablename__ = "guest_counts"
    __table_args__ = (
        UniqueConstraint("date", "meal", name="uq_guest_counts_date_meal"),
    )
    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    meal = Column(String(16), nullable=False)  # breakfast, lunch, dinner
    adults = Column(Integer, nullable=False, default=0)
    children = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)


class CateringEvent(Base):
    __tablename__ = "catering_events"
    id = Column(Integer, primary_key=True, index=True)
    client_name = Column(String(200), nullable=False)
    event_name = Column(String(200), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)  # HH:MM
    person_count = Column(Integer, nullable=False)
    dishes = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)


class Staff(Base):
    __tablename__ = "staff"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    role = Column(String(100), nullable=False)
    color = Column(String(16), nullable=False, default="#3b82f6")
    email = Column(String(320), nullable=True)
    phone = Column(String(50), nullable=True)

    entries = relationship(
        "ScheduleEntry", back_populates="staff", cascade="all, delete-orphan"
    )


class ShiftType(Base):
    __tablename__ = "shift_types"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    color = Column(String(16), nullable=False, default="#3b82f6")

    entries = relationship("ScheduleEntry", back_populates="shift_type")


class ScheduleEntry(Base):
    __tablename__ = "schedule_entries"
    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(
        Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False, index=True)
    type = Column(String(16), nullable=False)  # shift, vacation, sick, off, wor
    shift = Column(String(16), nullable=True)  # early, late, night
    shift_type_id = Column(
        Integer, ForeignKey("shift_types.id", ondelete="SET NULL"), nullable=True
    )
    notes = Column(Text, nullable=True)

    staff = relationship("Staff", back_populates="entries")
    shift_type = relationship("ShiftType", back_populates="entries")


class MenuPlan(Base):
    __tablename__ = "menu_plans"
    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    meal = Column(String(16), nullable=False)
    course = Column(String(16), nullable=False, default="main")
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    portions = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)

    recipe = relationship("Recipe", back_populates="menu_plans")
