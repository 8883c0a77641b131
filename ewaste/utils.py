from datetime import datetime, timedelta, timezone

from jose import jwt

from .config import settings
from .errors import InvalidInput


def utcnow() -> datetime:
    # Stored naive, always UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_jwt(data: dict, expires_minutes: int = None) -> str:
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt(token: str) -> dict:
    """Raises ``jose.JWTError`` on a bad signature or an expired token."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 pickup time into a naive UTC datetime.

    Accepts ``datetime`` objects as-is (converted to UTC when aware) and
    strings such as ``2025-03-01T10:30:00Z``. Anything else is InvalidInput.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInput(f"Invalid pickup time: {value}")
    else:
        raise InvalidInput(f"Invalid pickup time: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def readable_time(value: datetime) -> str:
    """``01 Mar 2025, 10:30 AM`` style rendering used in job notices."""
    return value.strftime("%d %b %Y, %I:%M %p")
