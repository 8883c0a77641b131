from typing import List

from fastapi import APIRouter, Depends

from .. import models, schemas
from ..deps import get_pickups, get_verification, require_role
from ..pickups import PickupService
from ..verification import VerificationService

router = APIRouter(prefix="/pickup", tags=["Pickup"])

pickup_only = require_role(models.Role.PICKUP_PERSON)


@router.get("/my-assigned-requests", response_model=List[schemas.RequestOut])
def get_assigned_requests(user: models.User = Depends(pickup_only),
                          pickups: PickupService = Depends(get_pickups)):
    return pickups.assigned_requests(user)


@router.get("/route-data", response_model=schemas.RouteData)
def get_route_data(user: models.User = Depends(pickup_only),
                   pickups: PickupService = Depends(get_pickups)):
    return pickups.route_data(user)


@router.post("/request/{request_id}/initiate-verification", response_model=schemas.Message)
def initiate_verification(request_id: int,
                          _: models.User = Depends(pickup_only),
                          verification: VerificationService = Depends(get_verification)):
    verification.initiate_verification(request_id)
    return {"message": "OTP sent to customer"}


@router.post("/request/{request_id}/verify-complete", response_model=schemas.Message)
def verify_and_complete(request_id: int, otp: str,
                        _: models.User = Depends(pickup_only),
                        verification: VerificationService = Depends(get_verification)):
    verification.complete_verification(request_id, otp)
    return {"message": "Request verified and completed"}


@router.post("/request/{request_id}/update-status", response_model=schemas.Message)
def update_status(request_id: int, status: str,
                  user: models.User = Depends(pickup_only),
                  pickups: PickupService = Depends(get_pickups)):
    pickups.update_status(request_id, status, user)
    return {"message": "Status updated successfully"}
