"""Response and admin request schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReservationResponse(BaseModel):
    """Schema for a stored reservation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_email: str
    customer_phone: str
    reservation_date: date
    reservation_time: str
    party_size: int
    special_occasion: Optional[str] = None
    special_requests: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    confirmation_code: str
    preferred_language: str
    status: str
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CateringInquiryResponse(BaseModel):
    """Schema for a stored catering inquiry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_email: str
    customer_phone: str
    organization: Optional[str] = None
    event_type: str
    event_date: date
    event_end_date: Optional[date] = None
    event_time: Optional[str] = None
    guest_count: int
    venue_option: str
    venue_address: Optional[str] = None
    venue_details: Optional[str] = None
    menu_preferences: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    service_style: Optional[str] = None
    special_equipment_needed: Optional[str] = None
    detailed_requirements: Optional[str] = None
    budget_range: Optional[str] = None
    quote_amount: Optional[float] = None
    confirmation_code: str
    preferred_language: str
    status: str
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class StatusUpdate(BaseModel):
    """Admin status change for a reservation or catering inquiry."""

    status: Optional[str] = None
    admin_notes: Optional[str] = Field(None, max_length=2000)
    quote_amount: Optional[float] = Field(None, ge=0)


def dump_reservation(reservation) -> dict:
    return ReservationResponse.model_validate(reservation).model_dump(mode="json")


def dump_catering(inquiry) -> dict:
    return CateringInquiryResponse.model_validate(inquiry).model_dump(mode="json")
