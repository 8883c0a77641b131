"""Thin repositories over the SQLAlchemy session.

The services never touch the session directly: they load through these
classes, mutate the returned entity and hand it back to ``save``, which is
the single commit point for a transition.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from . import models
from .errors import Conflict, InvalidInput, NotFound, Unauthorized
from .utils import utcnow


class RequestRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, request_id: int) -> models.EwasteRequest:
        req = self.db.get(models.EwasteRequest, request_id)
        if req is None:
            raise NotFound("Request not found", request_id=request_id)
        return req

    def find_owned(self, request_id: int, user_id: int) -> models.EwasteRequest:
        req = self.find_by_id(request_id)
        if req.user_id != user_id:
            raise Unauthorized("Access Denied")
        return req

    def find_visible(self, request_id: int, user: models.User) -> models.EwasteRequest:
        """Owner, admin or the assigned pickup person may read a request."""
        req = self.find_by_id(request_id)
        if user.role is models.Role.ADMIN or req.user_id == user.id:
            return req
        profile = user.pickup_profile
        if profile is not None and req.assigned_pickup_person_id == profile.id:
            return req
        raise Unauthorized("Access Denied")

    def find_by_user(self, user_id: int) -> List[models.EwasteRequest]:
        return (
            self.db.query(models.EwasteRequest)
            .filter(models.EwasteRequest.user_id == user_id)
            .order_by(models.EwasteRequest.created_at.desc(), models.EwasteRequest.id.desc())
            .all()
        )

    def find_by_assignee(self, pickup_person_id: int) -> List[models.EwasteRequest]:
        return (
            self.db.query(models.EwasteRequest)
            .filter(models.EwasteRequest.assigned_pickup_person_id == pickup_person_id)
            .order_by(models.EwasteRequest.id)
            .all()
        )

    def find_all(self, status: Optional[models.RequestStatus] = None) -> List[models.EwasteRequest]:
        query = self.db.query(models.EwasteRequest)
        if status is not None:
            query = query.filter(models.EwasteRequest.status == status)
        return query.order_by(models.EwasteRequest.created_at.desc(), models.EwasteRequest.id.desc()).all()

    def save(self, req: models.EwasteRequest) -> models.EwasteRequest:
        req.updated_at = utcnow()
        self.db.add(req)
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logging.warning("Concurrent update lost on request %s", req.id)
            raise Conflict("Request was modified concurrently, reload and retry")
        self.db.refresh(req)
        return req

    def count_by_user_and_status(self, user_id: int, status: models.RequestStatus) -> int:
        return (
            self.db.query(func.count(models.EwasteRequest.id))
            .filter(
                models.EwasteRequest.user_id == user_id,
                models.EwasteRequest.status == status,
            )
            .scalar()
        )

    def count_by_status(self, user_id: Optional[int] = None) -> Dict[models.RequestStatus, int]:
        query = self.db.query(models.EwasteRequest.status, func.count(models.EwasteRequest.id))
        if user_id is not None:
            query = query.filter(models.EwasteRequest.user_id == user_id)
        return {status: count for status, count in query.group_by(models.EwasteRequest.status).all()}

    def count_by_device_type(self) -> Dict[str, int]:
        rows = (
            self.db.query(models.EwasteRequest.device_type, func.count(models.EwasteRequest.id))
            .group_by(models.EwasteRequest.device_type)
            .all()
        )
        stats: Dict[str, int] = {}
        for device, count in rows:
            key = device if device else "Unknown"
            stats[key] = stats.get(key, 0) + count
        return stats


class PickupPersonRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, person_id: int) -> models.PickupPerson:
        person = self.db.get(models.PickupPerson, person_id)
        if person is None:
            raise NotFound("Pickup person not found", pickup_person_id=person_id)
        return person

    def find_by_user(self, user_id: int) -> models.PickupPerson:
        person = (
            self.db.query(models.PickupPerson)
            .filter(models.PickupPerson.user_id == user_id)
            .first()
        )
        if person is None:
            raise NotFound("Pickup person profile not found")
        return person

    def find_all(self, available: Optional[bool] = None) -> List[models.PickupPerson]:
        query = self.db.query(models.PickupPerson)
        if available is not None:
            query = query.filter(models.PickupPerson.is_available == available)
        return query.order_by(models.PickupPerson.id).all()

    def create(self, user: models.User, vehicle_number: Optional[str] = None) -> models.PickupPerson:
        """Attach a pickup profile to an existing USER account."""
        if user.role is not models.Role.USER or user.pickup_profile is not None:
            raise InvalidInput("Only a plain user account can be registered as a pickup person")
        user.role = models.Role.PICKUP_PERSON
        person = models.PickupPerson(user=user, vehicle_number=vehicle_number, is_available=True)
        self.db.add(person)
        self.db.commit()
        self.db.refresh(person)
        logging.info("User %s registered as pickup person %s", user.id, person.id)
        return person


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_email(self, email: str) -> models.User:
        user = self.db.query(models.User).filter(models.User.email == email).first()
        if user is None:
            raise NotFound("User not found")
        return user
