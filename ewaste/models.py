import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base
from .utils import utcnow


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    COLLECTED = "COLLECTED"


class ConditionStatus(str, enum.Enum):
    WORKING = "WORKING"
    DAMAGED = "DAMAGED"
    DEAD = "DEAD"
    BROKEN = "BROKEN"
    FOR_PARTS = "FOR_PARTS"


class Role(str, enum.Enum):
    USER = "USER"
    PICKUP_PERSON = "PICKUP_PERSON"
    ADMIN = "ADMIN"


# Requests in these states count towards the appreciation certificate.
QUALIFYING_STATUSES = (RequestStatus.COMPLETED, RequestStatus.COLLECTED)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone_number = Column(String, nullable=True)
    address = Column(String, nullable=True)
    role = Column(Enum(Role), default=Role.USER, nullable=False)
    status = Column(String, default="ACTIVE", nullable=False)  # ACTIVE / INACTIVE
    created_at = Column(DateTime, default=utcnow, nullable=False)

    pickup_profile = relationship("PickupPerson", back_populates="user", uselist=False)

    @property
    def contact_address(self):
        """Where OTPs and job notices are mailed."""
        return self.email or None


class PickupPerson(Base):
    __tablename__ = "pickup_persons"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    vehicle_number = Column(String, nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="pickup_profile", lazy="joined")


class EwasteRequest(Base):
    __tablename__ = "ewaste_requests"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    device_type = Column(String, nullable=False)
    brand = Column(String, nullable=True)
    model = Column(String, nullable=True)
    condition = Column(Enum(ConditionStatus), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    image_urls = Column(JSON, default=list, nullable=False)
    pickup_address = Column(String, nullable=False)
    remarks = Column(Text, nullable=True)

    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, index=True, nullable=False)
    rejection_reason = Column(Text, nullable=True)
    scheduled_pickup_date = Column(DateTime, nullable=True)
    completed_date = Column(DateTime, nullable=True)
    assigned_pickup_person_id = Column(Integer, ForeignKey("pickup_persons.id"), index=True, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    version_id = Column(Integer, nullable=False)

    user = relationship("User", lazy="joined")
    assigned_pickup_person = relationship("PickupPerson", lazy="joined")

    __mapper_args__ = {"version_id_col": version_id}
