from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ratebook.database import Base, JSONType


class RoomType(Base):
    __tablename__ = "room_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    base_occupancy: Mapped[int] = mapped_column(Integer, default=2)
    max_occupancy: Mapped[int] = mapped_column(Integer, default=4)
    # Per person per night; null or 0 falls back to the configured charge
    extra_adult_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    extra_child_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class RatePlan(Base):
    __tablename__ = "rate_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    room_type_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("room_types.id"), index=True)
    modifier_type: Mapped[str] = mapped_column(String(20), default="fixed")
    modifier_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    min_stay: Mapped[int] = mapped_column(Integer, default=1)
    max_stay: Mapped[int] = mapped_column(Integer, default=0)  # 0 = unlimited
    priority: Mapped[int] = mapped_column(Integer, default=0)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    valid_from: Mapped[date | None] = mapped_column(Date)
    valid_to: Mapped[date | None] = mapped_column(Date)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class SeasonalRate(Base):
    __tablename__ = "seasonal_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    room_type_id: Mapped[int | None] = mapped_column(Integer, index=True)
    rate_plan_id: Mapped[int | None] = mapped_column(Integer)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_of_week: Mapped[list | None] = mapped_column(JSONType, default=list)  # ISO 1=Mon..7=Sun
    modifier_type: Mapped[str] = mapped_column(String(20), default="percentage")
    modifier_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0)
    min_stay: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class DowRule(Base):
    __tablename__ = "dow_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_type_id: Mapped[int | None] = mapped_column(Integer, index=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 0=Sun..6=Sat
    modifier_type: Mapped[str] = mapped_column(String(20), default="percentage")
    modifier_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class OccupancyRule(Base):
    __tablename__ = "occupancy_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_type_id: Mapped[int | None] = mapped_column(Integer, index=True)
    threshold_percent: Mapped[int] = mapped_column(Integer, default=70)
    modifier_type: Mapped[str] = mapped_column(String(20), default="percentage")
    modifier_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    priority: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class RateRestriction(Base):
    """A booking restriction on a room type (and optionally one rate plan) over a date range."""

    __tablename__ = "rate_restrictions"
    __table_args__ = (
        Index("idx_rate_restrictions_dates", "date_from", "date_to"),
        Index("idx_rate_restrictions_type_status", "restriction_type", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_type_id: Mapped[int] = mapped_column(Integer, ForeignKey("room_types.id"), nullable=False, index=True)
    rate_plan_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("rate_plans.id"))
    restriction_type: Mapped[str] = mapped_column(String(30), nullable=False)
    value: Mapped[int | None] = mapped_column(Integer)  # nights, for min_stay / max_stay
    channel: Mapped[str | None] = mapped_column(String(50))
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)
    days_of_week: Mapped[list | None] = mapped_column(JSONType, default=list)  # ISO 1=Mon..7=Sun
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class EventOverride(Base):
    __tablename__ = "event_overrides"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    room_type_id: Mapped[int | None] = mapped_column(Integer, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    modifier_type: Mapped[str] = mapped_column(String(20), default="percentage")
    modifier_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), default=Decimal("0"))
    priority: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
