"""Domain errors raised by the lifecycle services.

Every error carries the HTTP status it maps to and an optional payload that
is merged into the JSON error body, so a client can render a message without
parsing strings.
"""


class EwasteError(Exception):
    status_code = 400

    def __init__(self, message: str, **extra) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"detail": self.message}
        body.update(self.extra)
        return body


class NotFound(EwasteError):
    """A request, pickup person or user does not exist."""

    status_code = 404


class InvalidInput(EwasteError):
    """Malformed status token, timestamp or missing required field."""

    status_code = 400


class InvalidOtp(EwasteError):
    status_code = 400

    def __init__(self, message: str = "Invalid OTP", **extra) -> None:
        super().__init__(message, **extra)


class NotQualified(EwasteError):
    status_code = 400

    def __init__(self, current: int, required: int) -> None:
        super().__init__(
            f"You do not qualify for a certificate yet. You need {required} "
            f"completed/collected submissions. You have {current}.",
            current=current,
            required=required,
        )
        self.current = current
        self.required = required


class Unauthorized(EwasteError):
    """The acting user may not touch the target record."""

    status_code = 403


class Conflict(EwasteError):
    """A concurrent write to the same request won."""

    status_code = 409
