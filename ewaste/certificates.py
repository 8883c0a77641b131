from sqlalchemy.orm import Session

from .errors import NotQualified
from .models import QUALIFYING_STATUSES
from .repository import RequestRepository, UserRepository

REQUIRED_SUBMISSIONS = 10


class CertificateService:
    def __init__(self, db: Session, renderer) -> None:
        self.users = UserRepository(db)
        self.requests = RequestRepository(db)
        self.renderer = renderer

    def _qualified(self, user) -> int:
        return sum(self.requests.count_by_user_and_status(user.id, s) for s in QUALIFYING_STATUSES)

    def eligibility(self, email: str) -> dict:
        user = self.users.find_by_email(email)
        total = self._qualified(user)
        return {
            "total_qualified": total,
            "required": REQUIRED_SUBMISSIONS,
            "is_eligible": total >= REQUIRED_SUBMISSIONS,
            "recipient_name": user.name,
        }

    def generate(self, email: str) -> bytes:
        """Render the appreciation certificate, counting again so a stale
        eligibility check cannot unlock it."""
        user = self.users.find_by_email(email)
        total = self._qualified(user)
        if total < REQUIRED_SUBMISSIONS:
            raise NotQualified(current=total, required=REQUIRED_SUBMISSIONS)
        return self.renderer(user.name)
