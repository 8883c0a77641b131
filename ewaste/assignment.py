import logging
from typing import Optional

from sqlalchemy.orm import Session

from . import models
from .lifecycle import Path, apply_transition
from .models import RequestStatus
from .notifications import Notifier, defer
from .repository import PickupPersonRepository, RequestRepository
from .utils import parse_timestamp, readable_time


class AssignmentService:
    """Binds requests to pickup persons and records the pickup time."""

    def __init__(self, db: Session, notifier: Notifier) -> None:
        self.db = db
        self.requests = RequestRepository(db)
        self.pickup_persons = PickupPersonRepository(db)
        self.notifier = notifier

    def schedule(self, request_id: int, pickup_time=None,
                 pickup_person_id: Optional[int] = None) -> models.EwasteRequest:
        req = self.requests.find_by_id(request_id)

        when = parse_timestamp(pickup_time) if pickup_time is not None else None
        person = self.pickup_persons.find_by_id(pickup_person_id) if pickup_person_id is not None else None

        if when is not None:
            req.scheduled_pickup_date = when

        if person is None:
            # Time only; status untouched.
            return self.requests.save(req)

        req.assigned_pickup_person_id = person.id
        req.assigned_pickup_person = person
        apply_transition(req, RequestStatus.SCHEDULED, Path.SCHEDULING)
        self._queue_assignment(req, person)
        req = self.requests.save(req)
        logging.info("Request %s assigned to pickup person %s", req.id, person.id)
        return req

    def _queue_assignment(self, req: models.EwasteRequest, person: models.PickupPerson) -> None:
        agent = person.user
        customer = req.user
        when = readable_time(req.scheduled_pickup_date) if req.scheduled_pickup_date else "To be confirmed"
        defer(
            self.db,
            self.notifier.send_assignment,
            agent.contact_address,
            agent.name,
            req.id,
            req.device_type,
            customer.name,
            customer.phone_number,
            req.pickup_address,
            when,
            phone=agent.phone_number,
        )
