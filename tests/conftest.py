"""Shared fixtures: an in-memory database, model factories and a recording notifier."""

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ewaste import models
from ewaste.database import Base
from ewaste.models import ConditionStatus, RequestStatus, Role


class RecordingNotifier:
    """Stands in for the mail/SMS notifier; optionally fails every call."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, *args, **kwargs) -> None:
        with self._lock:
            self.calls.append((kind, args, kwargs))
        if self.fail:
            raise RuntimeError("mail server unreachable")

    def send_otp(self, address, code, name, phone=None):
        self._record("otp", address, code, name, phone=phone)

    def send_approval(self, address, name, request_id, device_type):
        self._record("approval", address, name, request_id, device_type)

    def send_assignment(self, address, name, request_id, device_type, customer_name,
                        customer_phone, pickup_address, readable_time, phone=None):
        self._record("assignment", address, name, request_id, device_type, customer_name,
                     customer_phone, pickup_address, readable_time, phone=phone)

    def of(self, kind: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == kind]

    def last_code(self) -> str:
        return self.of("otp")[-1][1][1]


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def make_user(db, name: str = "Asha Nakato", email: str = "asha@example.com",
              role: Role = Role.USER, phone: str = "+256700000001") -> models.User:
    user = models.User(name=name, email=email, role=role, phone_number=phone, address="Plot 4, Kampala Rd")
    db.add(user)
    db.commit()
    return user


def make_pickup_person(db, name: str = "Okello Driver", email: str = "okello@example.com",
                       vehicle: str = "UBA 123X") -> models.PickupPerson:
    user = make_user(db, name=name, email=email, role=Role.PICKUP_PERSON, phone="+256700000099")
    person = models.PickupPerson(user_id=user.id, vehicle_number=vehicle)
    db.add(person)
    db.commit()
    return person


def make_request(db, user: models.User, status: RequestStatus = RequestStatus.PENDING,
                 device_type: str = "Laptop", assignee: models.PickupPerson = None) -> models.EwasteRequest:
    req = models.EwasteRequest(
        user_id=user.id,
        device_type=device_type,
        brand="Dell",
        model="Latitude 5400",
        condition=ConditionStatus.DAMAGED,
        quantity=1,
        image_urls=[],
        pickup_address="Plot 4, Kampala Rd",
        status=status,
        assigned_pickup_person_id=assignee.id if assignee is not None else None,
    )
    db.add(req)
    db.commit()
    return req
