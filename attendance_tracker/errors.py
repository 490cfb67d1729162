"""Error taxonomy shared by the services and mapped to HTTP responses in main."""


class TrackerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TrackerError):
    """Missing or malformed input: bad date, bad status, empty field."""

    status_code = 400


class NotFoundError(TrackerError):
    status_code = 404


class InvalidReferenceError(NotFoundError):
    """A write referenced a record that does not exist."""

    status_code = 400


class ConflictError(TrackerError):
    """Unique-constraint violation."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None, value=None):
        super().__init__(message)
        self.field = field
        self.value = value
