import datetime as dt

from sqlalchemy import Date, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from restaurant.app.db.base import Base


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


RESERVATION_STATUSES = ("pending", "confirmed", "cancelled", "completed")
CATERING_STATUSES = ("inquiry", "pending", "confirmed", "in_progress", "quoted", "cancelled", "completed")


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("idx_reservations_date_time", "reservation_date", "reservation_time"),
        Index("idx_reservations_email", "customer_email"),
        Index("idx_reservations_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_name: Mapped[str] = mapped_column(String(100))
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[str] = mapped_column(String(20))
    reservation_date: Mapped[dt.date] = mapped_column(Date)
    reservation_time: Mapped[str] = mapped_column(String(5))  # "HH:MM"
    party_size: Mapped[int] = mapped_column(Integer)
    special_occasion: Mapped[str | None] = mapped_column(String(50), nullable=True)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    dietary_restrictions: Mapped[str | None] = mapped_column(Text, nullable=True)
    confirmation_code: Mapped[str] = mapped_column(String(12), unique=True)
    preferred_language: Mapped[str] = mapped_column(String(10), default="en")
    status: Mapped[str] = mapped_column(String(20), default="pending")  # see RESERVATION_STATUSES
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class CateringInquiry(Base):
    __tablename__ = "catering_inquiries"
    __table_args__ = (
        Index("idx_catering_event_date", "event_date"),
        Index("idx_catering_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_name: Mapped[str] = mapped_column(String(100))
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[str] = mapped_column(String(20))
    organization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_type: Mapped[str] = mapped_column(String(50))
    event_date: Mapped[dt.date] = mapped_column(Date)
    event_end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    event_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    guest_count: Mapped[int] = mapped_column(Integer)
    venue_option: Mapped[str] = mapped_column(String(50))
    venue_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    venue_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    menu_preferences: Mapped[str | None] = mapped_column(Text, nullable=True)
    dietary_restrictions: Mapped[str | None] = mapped_column(Text, nullable=True)
    service_style: Mapped[str | None] = mapped_column(String(50), nullable=True)
    special_equipment_needed: Mapped[str | None] = mapped_column(Text, nullable=True)
    detailed_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget_range: Mapped[str | None] = mapped_column(String(50), nullable=True)
    quote_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    confirmation_code: Mapped[str] = mapped_column(String(24), unique=True)
    preferred_language: Mapped[str] = mapped_column(String(10), default="en")
    status: Mapped[str] = mapped_column(String(20), default="inquiry")  # see CATERING_STATUSES
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Feedback(Base):
    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    food_rating: Mapped[int] = mapped_column(Integer)
    service_rating: Mapped[int] = mapped_column(Integer)
    ambiance_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    overall_rating: Mapped[int] = mapped_column(Integer)
    feedback_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggestions: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class TableAvailability(Base):
    """Remaining tables for one bookable slot."""
    __tablename__ = "table_availability"
    __table_args__ = (
        UniqueConstraint("date", "time_slot", name="uq_table_availability_slot"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date)
    time_slot: Mapped[str] = mapped_column(String(5))
    available_tables: Mapped[int] = mapped_column(Integer)
    total_tables: Mapped[int] = mapped_column(Integer)
