"""In-person completion: the customer reads the OTP to the pickup person."""

import logging

from sqlalchemy.orm import Session

from . import models
from .errors import InvalidOtp, NotFound
from .lifecycle import Path, apply_transition, check_transition
from .models import RequestStatus
from .notifications import Notifier, dispatch
from .otp_store import OtpStore, generate_code
from .repository import RequestRepository


class VerificationService:
    def __init__(self, db: Session, store: OtpStore, notifier: Notifier) -> None:
        self.db = db
        self.requests = RequestRepository(db)
        self.store = store
        self.notifier = notifier

    def initiate_verification(self, request_id: int) -> None:
        """Issue a fresh code for ``request_id`` and send it to the customer.

        Any code issued earlier for the same request stops working.
        """
        req = self.requests.find_by_id(request_id)
        customer = req.user
        if customer is None or not customer.contact_address:
            raise NotFound("Customer email not found", request_id=request_id)
        check_transition(req, RequestStatus.COMPLETED, Path.VERIFICATION)

        code = generate_code()
        self.store.put(req.id, code)
        logging.info("OTP issued for request %s", req.id)

        # Nothing to commit here, so the notice goes straight to dispatch.
        dispatch(self.notifier.send_otp, customer.contact_address, code, customer.name,
                 phone=customer.phone_number)

    def complete_verification(self, request_id: int, submitted_code: str) -> models.EwasteRequest:
        if not self.store.consume(request_id, submitted_code):
            raise InvalidOtp()

        req = self.requests.find_by_id(request_id)
        apply_transition(req, RequestStatus.COMPLETED, Path.VERIFICATION)
        return self.requests.save(req)
