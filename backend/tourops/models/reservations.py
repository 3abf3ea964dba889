from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


RESERVATION_STATUSES = ("planning", "confirmed", "booked", "completed", "canceled", "archived")

# Statuses that make a reservation show up as an upcoming arrival/departure.
ACTIVE_RESERVATION_STATUSES = ("confirmed", "booked")


class ReservationSubmission(db.Model):
    """
    A client's booking request, referred to as a "client" throughout the API.

    arrival_date / departure_date are stored as strings. Rows imported from the
    public booking form may hold blank or malformed values, so every reader
    parses them defensively (see calendar_service).
    """
    __tablename__ = "reservation_submissions"
    __table_args__ = (
        db.Index("ix_reservations_arrival", "arrival_date"),
        db.Index("ix_reservations_departure", "departure_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    passport = db.Column(db.String(64), nullable=True)
    tour_name = db.Column(db.String(255), nullable=True)

    arrival_date = db.Column(db.String(32), nullable=True)
    departure_date = db.Column(db.String(32), nullable=True)
    flight_details = db.Column(db.Text, nullable=True)

    adults = db.Column(db.Integer, nullable=True, default=0)
    children = db.Column(db.Integer, nullable=True, default=0)

    partner_details = db.Column(db.Text, nullable=True)
    special_requirements = db.Column(db.Text, nullable=True)
    next_of_kin = db.Column(db.String(255), nullable=True)
    next_of_kin_email = db.Column(db.String(255), nullable=True)
    additional_info = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="planning", index=True)
    processed = db.Column(db.Boolean, nullable=False, default=False)
    submission_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def total_guests(self) -> int:
        return (self.adults or 0) + (self.children or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "passport": self.passport,
            "tourName": self.tour_name,
            "arrivalDate": self.arrival_date,
            "departureDate": self.departure_date,
            "flightDetails": self.flight_details,
            "adults": self.adults or 0,
            "children": self.children or 0,
            "totalGuests": self.total_guests,
            "partnerDetails": self.partner_details,
            "specialRequirements": self.special_requirements,
            "nextOfKin": self.next_of_kin,
            "nextOfKinEmail": self.next_of_kin_email,
            "additionalInfo": self.additional_info,
            "status": self.status,
            "processed": bool(self.processed),
            "submissionDate": to_utc_z(self.submission_date),
        }
