"""SQLAlchemy declarative base and ORM models for owners, ledger and catalog."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class OwnerModel(Base):
    """ORM model for inventory owners (one record per authenticated user)."""

    __tablename__ = "owners"

    owner_id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, default="")
    display_name: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    entries: Mapped[list["InventoryEntryModel"]] = relationship(
        "InventoryEntryModel",
        back_populates="owner",
        cascade="all, delete-orphan",
    )


class InventoryEntryModel(Base):
    """ORM model for ledger entries. A zero quantity is never stored."""

    __tablename__ = "inventory_entries"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_inventory_quantity_positive"),
    )

    owner_id: Mapped[str] = mapped_column(
        String, ForeignKey("owners.owner_id", ondelete="CASCADE"), primary_key=True
    )
    material_id: Mapped[str] = mapped_column(String, primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    owner: Mapped["OwnerModel"] = relationship("OwnerModel", back_populates="entries")


class MaterialModel(Base):
    """ORM model for the read-only material catalog."""

    __tablename__ = "materials"

    material_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    lore: Mapped[str] = mapped_column(Text, default="")
    level: Mapped[int] = mapped_column(Integer, default=1)
    stat_points: Mapped[int] = mapped_column(Integer, default=0)
    effect_points: Mapped[int] = mapped_column(Integer, default=0)
    elemental_chance_points: Mapped[int] = mapped_column(Integer, default=0)
    elemental_distribution: Mapped[list] = mapped_column(JSON, default=list)
