"""Verification codes handed to the customer and read back by the pickup person.

One ``OtpStore`` instance is owned by the process (see ``deps.get_otp_store``).
Entries expire after a TTL and are discarded after too many wrong guesses.
"""

import abc
import logging
import secrets
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional


def generate_code() -> str:
    """Six ASCII digits, uniform over 000000-999999."""
    return f"{secrets.randbelow(1_000_000):06d}"


@dataclass
class OtpEntry:
    code: str
    created_at: float
    expires_at: float
    attempts: int = 0


class OtpStore(abc.ABC):
    @abc.abstractmethod
    def put(self, key: int, code: str) -> OtpEntry:
        """Store ``code`` for ``key``, replacing any previous entry."""

    @abc.abstractmethod
    def get(self, key: int) -> Optional[OtpEntry]:
        """Return the live entry for ``key`` or None."""

    @abc.abstractmethod
    def delete(self, key: int) -> None:
        ...

    @abc.abstractmethod
    def consume(self, key: int, submitted: str) -> bool:
        """Atomically check ``submitted`` and delete the entry on a match."""


class InMemoryOtpStore(OtpStore):
    def __init__(self, ttl: float = 600, max_attempts: int = 5,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._max_attempts = max_attempts
        self._clock = clock
        self._lock = Lock()
        self._entries: Dict[int, OtpEntry] = {}

    def put(self, key: int, code: str) -> OtpEntry:
        now = self._clock()
        entry = OtpEntry(code=code, created_at=now, expires_at=now + self._ttl)
        with self._lock:
            self._entries[key] = entry
        return entry

    def get(self, key: int) -> Optional[OtpEntry]:
        with self._lock:
            return self._live(key)

    def delete(self, key: int) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def consume(self, key: int, submitted: str) -> bool:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return False

            if secrets.compare_digest(entry.code.encode(), (submitted or "").encode()):
                del self._entries[key]
                return True

            entry.attempts += 1
            if entry.attempts >= self._max_attempts:
                logging.warning("OTP for request %s discarded after %s failed attempts", key, entry.attempts)
                del self._entries[key]
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live(self, key: int) -> Optional[OtpEntry]:
        # caller holds the lock
        entry = self._entries.get(key)
        if entry is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry
