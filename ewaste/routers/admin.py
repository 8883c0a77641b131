from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..deps import require_role
from ..repository import PickupPersonRepository, UserRepository

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = require_role(models.Role.ADMIN)


@router.get("/pickup-persons", response_model=List[schemas.PickupPersonOut])
def get_pickup_persons(available: Optional[bool] = None,
                       _: models.User = Depends(admin_only),
                       db: Session = Depends(get_db)):
    return PickupPersonRepository(db).find_all(available)


@router.post("/register-pickup-person", response_model=schemas.PickupPersonOut)
def register_pickup_person(payload: schemas.PickupPersonCreate,
                           _: models.User = Depends(admin_only),
                           db: Session = Depends(get_db)):
    user = UserRepository(db).find_by_email(payload.email)
    return PickupPersonRepository(db).create(user, payload.vehicle_number)
