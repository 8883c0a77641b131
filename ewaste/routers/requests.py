from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import models, schemas
from ..assignment import AssignmentService
from ..database import get_db
from ..deps import get_assignment, get_current_user, get_lifecycle, require_role
from ..documents import render_report
from ..lifecycle import LifecycleEngine, parse_status
from ..repository import RequestRepository

router = APIRouter(prefix="/requests", tags=["Requests"])

admin_only = require_role(models.Role.ADMIN)


@router.post("/", response_model=schemas.RequestOut)
def create_request(req: schemas.RequestCreate,
                   user: models.User = Depends(get_current_user),
                   lifecycle: LifecycleEngine = Depends(get_lifecycle)):
    return lifecycle.submit(user, req)


@router.get("/user", response_model=List[schemas.RequestOut])
def get_user_requests(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return RequestRepository(db).find_by_user(user.id)


@router.get("/", response_model=List[schemas.RequestOut])
def get_requests(status: Optional[str] = None,
                 _: models.User = Depends(admin_only),
                 db: Session = Depends(get_db)):
    wanted = parse_status(status) if status else None
    return RequestRepository(db).find_all(wanted)


@router.get("/dashboard/stats", response_model=schemas.DeviceStats)
def get_dashboard_stats(_: models.User = Depends(admin_only), db: Session = Depends(get_db)):
    return {"device_type_stats": RequestRepository(db).count_by_device_type()}


@router.get("/stats/status", response_model=List[schemas.StatusCount])
def get_status_stats(_: models.User = Depends(admin_only), db: Session = Depends(get_db)):
    counts = RequestRepository(db).count_by_status()
    return [{"status": s, "count": c} for s, c in counts.items()]


@router.get("/stats/mine", response_model=List[schemas.StatusCount])
def get_my_status_stats(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    counts = RequestRepository(db).count_by_status(user_id=user.id)
    return [{"status": s, "count": c} for s, c in counts.items()]


@router.get("/{request_id}", response_model=schemas.RequestOut)
def get_request(request_id: int, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return RequestRepository(db).find_visible(request_id, user)


@router.get("/{request_id}/report")
def get_request_report(request_id: int, user: models.User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    req = RequestRepository(db).find_owned(request_id, user.id)
    return Response(
        content=render_report(req),
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=request_{req.id}.pdf"},
    )


@router.put("/{request_id}/status", response_model=schemas.RequestOut)
def update_status(request_id: int, payload: schemas.StatusUpdate,
                  _: models.User = Depends(admin_only),
                  lifecycle: LifecycleEngine = Depends(get_lifecycle)):
    return lifecycle.set_status(request_id, payload.status, payload.rejection_reason)


@router.put("/{request_id}/reject", response_model=schemas.RequestOut)
def reject_request(request_id: int, payload: schemas.RejectPayload,
                   _: models.User = Depends(admin_only),
                   lifecycle: LifecycleEngine = Depends(get_lifecycle)):
    return lifecycle.reject(request_id, payload.rejection_reason)


@router.put("/{request_id}/schedule", response_model=schemas.RequestOut)
def schedule_pickup(request_id: int, payload: schemas.SchedulePayload,
                    _: models.User = Depends(admin_only),
                    assignment: AssignmentService = Depends(get_assignment)):
    return assignment.schedule(request_id, payload.pickup_date, payload.pickup_person_id)
