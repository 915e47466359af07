"""CRUD operations package.

- reservation.py: Reservation lookups, listing, updates and statistics
- catering.py: Catering inquiry operations
- feedback.py: Feedback submissions
- availability.py: Per-slot table capacity
"""

from restaurant.app.db.crud.availability import (
    adjust_available_tables,
    get_or_create_slot,
    get_slot,
    list_slots_for_date,
)
from restaurant.app.db.crud.catering import (
    booked_guests_on,
    count_catering_inquiries,
    create_catering_inquiry,
    delete_catering_inquiry,
    get_catering_inquiry_by_id,
    list_catering_inquiries,
    update_catering_inquiry,
)
from restaurant.app.db.crud.feedback import (
    average_overall_rating,
    create_feedback,
)
from restaurant.app.db.crud.reservation import (
    average_party_size,
    count_reservations,
    count_unique_customers,
    create_reservation,
    delete_reservation,
    get_reservation_by_code,
    get_reservation_by_id,
    list_reservations,
    list_reservations_by_email,
    popular_time_slots,
    recent_reservations,
    update_reservation,
)

__all__ = [
    # Availability
    "adjust_available_tables",
    "get_or_create_slot",
    "get_slot",
    "list_slots_for_date",
    # Catering
    "booked_guests_on",
    "count_catering_inquiries",
    "create_catering_inquiry",
    "delete_catering_inquiry",
    "get_catering_inquiry_by_id",
    "list_catering_inquiries",
    "update_catering_inquiry",
    # Feedback
    "average_overall_rating",
    "create_feedback",
    # Reservations
    "average_party_size",
    "count_reservations",
    "count_unique_customers",
    "create_reservation",
    "delete_reservation",
    "get_reservation_by_code",
    "get_reservation_by_id",
    "list_reservations",
    "list_reservations_by_email",
    "popular_time_slots",
    "recent_reservations",
    "update_reservation",
]
