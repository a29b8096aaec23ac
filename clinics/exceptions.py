# clinics/exceptions.py


class ClinicError(Exception):
    """Base class for errors raised by the clinic's business operations."""
    status_code = 400
    default_message = "The operation could not be completed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ClinicError):
    status_code = 404
    default_message = "The requested record does not exist."


class InsufficientStock(ClinicError):
    status_code = 409
    default_message = "Not enough stock to complete the sale."


class InsufficientPoints(ClinicError):
    status_code = 409
    default_message = "The patient does not have enough loyalty points."


class InvalidSchedule(ClinicError):
    status_code = 400
    default_message = "The doctor's schedule is not valid."


class GatewayFailure(ClinicError):
    """Wraps a database error raised while reading or writing records."""
    status_code = 503
    default_message = "A database error occurred. Please try again."
