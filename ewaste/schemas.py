from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .models import ConditionStatus, RequestStatus


class RequestCreate(BaseModel):
    device_type: str = Field(min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    condition: ConditionStatus
    quantity: int = Field(default=1, ge=1)
    pickup_address: str = Field(min_length=1)
    remarks: Optional[str] = None
    image_urls: List[str] = []


class RequestOut(BaseModel):
    id: int
    user_id: int
    device_type: str
    brand: Optional[str]
    model: Optional[str]
    condition: ConditionStatus
    quantity: int
    pickup_address: str
    remarks: Optional[str]
    image_urls: List[str]
    status: RequestStatus
    rejection_reason: Optional[str]
    scheduled_pickup_date: Optional[datetime]
    completed_date: Optional[datetime]
    assigned_pickup_person_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    # Kept as a raw token so unknown values surface as InvalidInput, not 422.
    status: str
    rejection_reason: Optional[str] = None


class RejectPayload(BaseModel):
    rejection_reason: str = Field(min_length=5, max_length=500)


class SchedulePayload(BaseModel):
    pickup_date: Optional[str] = None
    pickup_person_id: Optional[int] = None


class Coordinates(BaseModel):
    lat: float
    lng: float


class RouteStop(BaseModel):
    id: int
    address: str
    customer: str
    device: str
    scheduled_time: str
    coordinates: Coordinates
    status: str = "UPCOMING"


class RouteData(BaseModel):
    stops: List[RouteStop]
    total_stops: int


class Eligibility(BaseModel):
    total_qualified: int
    required: int
    is_eligible: bool
    recipient_name: str


class StatusCount(BaseModel):
    status: RequestStatus
    count: int


class DeviceStats(BaseModel):
    device_type_stats: Dict[str, int]


class Message(BaseModel):
    message: str


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    phone_number: Optional[str]

    class Config:
        from_attributes = True


class PickupPersonCreate(BaseModel):
    email: str = Field(min_length=3)
    vehicle_number: Optional[str] = None


class PickupPersonOut(BaseModel):
    id: int
    vehicle_number: Optional[str]
    is_available: bool
    user: UserSummary

    class Config:
        from_attributes = True
