"""Domain errors raised by the availability and booking services.

Every error is recoverable by the caller. ``status_code`` is the HTTP status
the API layer renders it with.
"""


class BookingEngineError(Exception):
    """Base class for all domain errors"""

    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BookingEngineError):
    """Malformed interval or missing required field; raised before any write"""


class OverlapError(BookingEngineError):
    """Proposed slots intersect existing slots on the same day"""

    def __init__(self, message: str = "Overlapping time slot", **details):
        super().__init__(message, **details)


class NotFoundError(BookingEngineError):
    status_code = 404


class SlotUnavailableError(BookingEngineError):
    """Slot missing or already occupied (deliberately not distinguished)"""

    status_code = 409


class PaymentRequiredError(BookingEngineError):
    status_code = 402

    def __init__(self, message: str = "Payment required for private hospital", **details):
        super().__init__(message, **details)


class PaymentFailedError(BookingEngineError):
    status_code = 402

    def __init__(self, message: str = "Payment not completed", **details):
        super().__init__(message, **details)


class ConflictError(BookingEngineError):
    """Operation blocked by current state (occupied dependents, terminal booking)"""

    status_code = 409


class NotAuthorizedError(BookingEngineError):
    status_code = 403

    def __init__(self, message: str = "Not authorized", **details):
        super().__init__(message, **details)


class PaymentProviderError(BookingEngineError):
    """Transport failure or timeout talking to the payment provider"""

    status_code = 502
