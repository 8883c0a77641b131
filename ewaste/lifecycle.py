"""Request lifecycle: submission and status transitions.

Each status is reachable through exactly one path::

    admin review   PENDING      -> APPROVED | REJECTED
    scheduling     any          -> SCHEDULED        (assignment.py)
    verification   non-terminal -> COMPLETED        (verification.py)
    collection     non-terminal -> COLLECTED        (pickups.py)

Scheduling accepts a request in any state, including one that was never
approved.
"""

import enum
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .errors import InvalidInput
from .models import RequestStatus
from .notifications import Notifier, defer
from .repository import RequestRepository
from .utils import utcnow


class Path(str, enum.Enum):
    REVIEW = "review"
    SCHEDULING = "scheduling"
    VERIFICATION = "verification"
    COLLECTION = "collection"


TERMINAL = frozenset({RequestStatus.REJECTED, RequestStatus.COMPLETED, RequestStatus.COLLECTED})

_TARGETS: Dict[Path, frozenset] = {
    Path.REVIEW: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    Path.SCHEDULING: frozenset({RequestStatus.SCHEDULED}),
    Path.VERIFICATION: frozenset({RequestStatus.COMPLETED}),
    Path.COLLECTION: frozenset({RequestStatus.COLLECTED}),
}

REJECTION_REASON_MIN = 5
REJECTION_REASON_MAX = 500


def parse_status(token) -> RequestStatus:
    """Exact, case-sensitive match against the status names."""
    if isinstance(token, RequestStatus):
        return token
    if not isinstance(token, str):
        raise InvalidInput(f"Invalid status: {token!r}")
    try:
        return RequestStatus(token)
    except ValueError:
        raise InvalidInput(
            f"Invalid status: {token}",
            allowed=[s.value for s in RequestStatus],
        )


def check_transition(req: models.EwasteRequest, target: RequestStatus, path: Path) -> None:
    if target not in _TARGETS[path]:
        raise InvalidInput(f"Status {target.value} cannot be set through {path.value}")
    if path is Path.REVIEW:
        allowed = req.status is RequestStatus.PENDING
    else:
        allowed = path is Path.SCHEDULING or req.status not in TERMINAL
    if not allowed:
        raise InvalidInput(f"Illegal transition: {req.status.value} -> {target.value}")


def apply_transition(req: models.EwasteRequest, target: RequestStatus, path: Path) -> None:
    """Validate and apply ``target`` in memory. The caller persists."""
    check_transition(req, target, path)
    previous = req.status
    req.status = target
    if target is RequestStatus.COMPLETED:
        req.completed_date = utcnow()
    logging.info("Request %s: %s -> %s via %s", req.id, previous.value, target.value, path.value)


class LifecycleEngine:
    def __init__(self, db: Session, notifier: Notifier) -> None:
        self.db = db
        self.requests = RequestRepository(db)
        self.notifier = notifier

    def submit(self, user: models.User, payload: schemas.RequestCreate) -> models.EwasteRequest:
        req = models.EwasteRequest(
            user_id=user.id,
            device_type=payload.device_type,
            brand=payload.brand,
            model=payload.model,
            condition=payload.condition,
            quantity=payload.quantity,
            pickup_address=payload.pickup_address,
            remarks=payload.remarks,
            image_urls=list(payload.image_urls),
            status=RequestStatus.PENDING,
        )
        req = self.requests.save(req)
        logging.info("Request %s submitted by user %s", req.id, user.id)
        return req

    def set_status(self, request_id: int, new_status, reason: Optional[str] = None) -> models.EwasteRequest:
        req = self.requests.find_by_id(request_id)
        target = parse_status(new_status)
        check_transition(req, target, Path.REVIEW)

        if reason is not None:
            if not reason.strip():
                raise InvalidInput("Rejection reason must not be blank")
            req.rejection_reason = reason.strip()

        apply_transition(req, target, Path.REVIEW)

        if target is RequestStatus.APPROVED:
            self._queue_approval(req)
        return self.requests.save(req)

    def reject(self, request_id: int, reason: str) -> models.EwasteRequest:
        """Rejection with a mandatory, length-checked reason."""
        reason = (reason or "").strip()
        if not REJECTION_REASON_MIN <= len(reason) <= REJECTION_REASON_MAX:
            raise InvalidInput(
                f"Reason must be between {REJECTION_REASON_MIN} and {REJECTION_REASON_MAX} characters"
            )
        req = self.requests.find_by_id(request_id)
        check_transition(req, RequestStatus.REJECTED, Path.REVIEW)
        req.rejection_reason = reason
        apply_transition(req, RequestStatus.REJECTED, Path.REVIEW)
        return self.requests.save(req)

    def _queue_approval(self, req: models.EwasteRequest) -> None:
        customer = req.user
        defer(
            self.db,
            self.notifier.send_approval,
            customer.contact_address,
            customer.name,
            req.id,
            req.device_type,
        )
