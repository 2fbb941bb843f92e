"""Domain error codes for the booking engine."""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    SCHEDULING_CONFLICT = "SCHEDULING_CONFLICT"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"


class BookingError(Exception):
    """Base domain error with code and user-safe message."""

    code = ErrorCode.INVALID_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(BookingError):
    """Raised for malformed or non-positive numeric fields."""

    code = ErrorCode.INVALID_INPUT


class CapacityExceededError(BookingError):
    """Raised when a venue is too small for an event."""

    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, venue_capacity: int, required_capacity: int) -> None:
        super().__init__(
            f"Venue holds {venue_capacity} but the event needs {required_capacity}"
        )
        self.venue_capacity = venue_capacity
        self.required_capacity = required_capacity


class SchedulingConflictError(BookingError):
    """Raised when a confirmed booking already occupies the requested slot."""

    code = ErrorCode.SCHEDULING_CONFLICT

    def __init__(self, venue_id: int, conflicting_ids) -> None:
        ids = ", ".join(f"#{i}" for i in conflicting_ids)
        super().__init__(f"Venue #{venue_id} is already booked at that time ({ids})")
        self.venue_id = venue_id
        self.conflicting_ids = list(conflicting_ids)


class EventAlreadyBookedError(SchedulingConflictError):
    """Raised when an event already holds a pending or confirmed booking."""

    def __init__(self, event_id: int, booking_ids) -> None:
        ids = ", ".join(f"#{i}" for i in booking_ids)
        BookingError.__init__(self, f"Event #{event_id} is already booked ({ids})")
        self.venue_id = None
        self.event_id = event_id
        self.conflicting_ids = list(booking_ids)


class AlreadyCancelledError(BookingError):
    """Raised when acting on a booking that is already cancelled."""

    code = ErrorCode.ALREADY_CANCELLED

    def __init__(self, booking_id: int) -> None:
        super().__init__(f"Booking #{booking_id} is already cancelled")
        self.booking_id = booking_id


class NotFoundError(BookingError):
    """Raised when a referenced venue, event, client or booking is missing."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity.capitalize()} #{entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(BookingError):
    """Raised for a status change the booking lifecycle does not allow."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, booking_id: int, current, target) -> None:
        super().__init__(
            f"Booking #{booking_id} cannot move from {current.value} to {target.value}"
        )
        self.booking_id = booking_id
        self.current = current
        self.target = target
