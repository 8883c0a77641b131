"""What a pickup person sees and does in the field."""

import logging
from typing import List

from sqlalchemy.orm import Session

from . import models
from .errors import InvalidInput, Unauthorized
from .lifecycle import Path, apply_transition, parse_status
from .models import RequestStatus
from .repository import PickupPersonRepository, RequestRepository

# Placeholder origin for route stops; no geocoding is done.
BASE_LAT = 40.7128
BASE_LNG = -74.0060


class PickupService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.requests = RequestRepository(db)
        self.pickup_persons = PickupPersonRepository(db)

    def profile_for(self, user: models.User) -> models.PickupPerson:
        return self.pickup_persons.find_by_user(user.id)

    def assigned_requests(self, user: models.User) -> List[models.EwasteRequest]:
        return self.requests.find_by_assignee(self.profile_for(user).id)

    def route_data(self, user: models.User) -> dict:
        stops = [
            route_stop(req)
            for req in self.assigned_requests(user)
            if req.status is RequestStatus.SCHEDULED
        ]
        return {"stops": stops, "total_stops": len(stops)}

    def update_status(self, request_id: int, new_status, user: models.User) -> models.EwasteRequest:
        """Mark an assigned request COLLECTED. No other target is accepted."""
        target = parse_status(new_status)
        person = self.profile_for(user)
        req = self.requests.find_by_id(request_id)

        if req.assigned_pickup_person_id != person.id:
            logging.warning("Pickup person %s tried to update request %s assigned to %s",
                            person.id, req.id, req.assigned_pickup_person_id)
            raise Unauthorized("Access Denied: This request is not assigned to you.")

        if target is not RequestStatus.COLLECTED:
            raise InvalidInput("Invalid status update. Only 'COLLECTED' is allowed.")

        apply_transition(req, target, Path.COLLECTION)
        return self.requests.save(req)


def route_stop(req: models.EwasteRequest) -> dict:
    offset = (req.id % 100) * 0.01
    customer = req.user.name if req.user is not None and req.user.name else "Customer"
    device = "%s - %s %s" % (req.device_type or "Device", req.brand or "", req.model or "")
    return {
        "id": req.id,
        "address": req.pickup_address or "Address not available",
        "customer": customer,
        "device": device,
        "scheduled_time": req.scheduled_pickup_date.isoformat() if req.scheduled_pickup_date else "N/A",
        "coordinates": {"lat": BASE_LAT + offset, "lng": BASE_LNG + offset},
        "status": "UPCOMING",
    }
