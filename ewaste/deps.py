"""FastAPI dependencies: the caller's identity and the wired services."""

from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from . import models
from .assignment import AssignmentService
from .certificates import CertificateService
from .config import settings
from .database import get_db
from .documents import render_certificate
from .lifecycle import LifecycleEngine
from .notifications import Notifier
from .otp_store import InMemoryOtpStore, OtpStore
from .pickups import PickupService
from .utils import decode_jwt
from .verification import VerificationService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ────────────────────────────── SINGLETONS ──────────────────────────────

@lru_cache(maxsize=None)
def get_otp_store() -> OtpStore:
    return InMemoryOtpStore(ttl=settings.OTP_TTL_SECONDS, max_attempts=settings.OTP_MAX_ATTEMPTS)


@lru_cache(maxsize=None)
def get_notifier() -> Notifier:
    return Notifier()


# ────────────────────────────── IDENTITY ──────────────────────────────

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.User:
    try:
        payload = decode_jwt(token)
        email = payload.get("sub")
        if email is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if user.status != "ACTIVE":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


def require_role(*roles: models.Role):
    def checker(user: models.User = Depends(get_current_user)) -> models.User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this role")
        return user
    return checker


# ────────────────────────────── SERVICES ──────────────────────────────

def get_lifecycle(db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)) -> LifecycleEngine:
    return LifecycleEngine(db, notifier)


def get_assignment(db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)) -> AssignmentService:
    return AssignmentService(db, notifier)


def get_verification(db: Session = Depends(get_db),
                     store: OtpStore = Depends(get_otp_store),
                     notifier: Notifier = Depends(get_notifier)) -> VerificationService:
    return VerificationService(db, store, notifier)


def get_pickups(db: Session = Depends(get_db)) -> PickupService:
    return PickupService(db)


def get_certificates(db: Session = Depends(get_db)) -> CertificateService:
    return CertificateService(db, render_certificate)
