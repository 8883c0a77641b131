"""Customer and pickup-person notices.

Every notice is mailed to the account's contact address; the OTP and the job
notice are also sent by SMS when a phone number is on file.

Notices are side effects of a state change. Services queue them on the
database session with ``defer``; they are dispatched only after the session
commits and are dropped if it rolls back. Each dispatch is bounded by
``NOTIFY_TIMEOUT_SECONDS`` and a failure is logged, never raised.
"""

import logging
import smtplib
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from email.message import EmailMessage
from typing import Optional

import africastalking
from sqlalchemy import event
from sqlalchemy.orm import Session

from .config import settings

_OUTBOX_KEY = "ewaste.outbox"

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="notify")

SIGNATURE = "Regards,\nSmart e-Waste Collection Team"


class NotificationError(Exception):
    pass


# ────────────────────────────── TRANSPORTS ──────────────────────────────

def send_email(to: str, subject: str, body: str) -> bool:
    """Mail one message. Returns False when no SMTP host is configured."""
    if not settings.SMTP_HOST:
        logging.warning("SMTP not configured; mail to %s not sent: %s\n%s", to, subject, body)
        return False

    msg = EmailMessage()
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.NOTIFY_TIMEOUT_SECONDS) as smtp:
            smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationError(f"Mail to {to} failed: {e}") from e
    logging.info("Mail sent to %s: %s", to, subject)
    return True


def send_sms_via_africastalking(phone: str, message: str) -> bool:
    """Send one SMS. Returns False when the provider is not configured."""
    username = settings.AT_USERNAME
    api_key = settings.AT_API_KEY

    if not username or not api_key:
        logging.warning("Africa's Talking credentials missing; SMS to %s not sent", phone)
        return False

    africastalking.initialize(username, api_key)
    kwargs = {"message": message, "recipients": [phone]}
    if settings.AT_FROM:
        kwargs["sender_id"] = settings.AT_FROM
    try:
        response = africastalking.SMS.send(**kwargs)
    except Exception as e:
        raise NotificationError(f"Africa's Talking rejected SMS to {phone}: {e}") from e
    logging.info("Africa's Talking SMS sent: %s", response)
    return True


# ────────────────────────────── NOTICES ──────────────────────────────

class Notifier:
    """Formats the three notices the lifecycle emits and hands them to the transports."""

    def __init__(self, mailer=send_email, sms=send_sms_via_africastalking) -> None:
        self._mailer = mailer
        self._sms = sms

    def send_otp(self, address: str, code: str, name: str, phone: Optional[str] = None) -> None:
        self._mailer(
            address,
            "Pickup Verification OTP - Smart e-Waste",
            f"Hello {name},\n\n"
            f"Your e-waste pickup verification code is: {code}\n\n"
            "Please share this code with the pickup person to complete the request.\n"
            "If you did not request this, please ignore this email.\n\n"
            f"{SIGNATURE}",
        )
        if phone:
            self._sms(phone, f"Your Smart e-Waste pickup code is {code}")

    def send_approval(self, address: str, name: str, request_id: int, device_type: str) -> None:
        self._mailer(
            address,
            f"Request Approved - Smart e-Waste (ID: #{request_id})",
            f"Hello {name},\n\n"
            f"Good news! Your e-waste collection request for '{device_type}' "
            f"(ID: #{request_id}) has been APPROVED by our admin team.\n\n"
            "Next Steps:\n"
            "1. Our team will assign a pickup agent shortly.\n"
            "2. You will receive another notification once the pickup is scheduled.\n"
            "3. You can track the status in your dashboard.\n\n"
            "Thank you for contributing to a greener planet!\n\n"
            f"{SIGNATURE}",
        )

    def send_assignment(self, address: str, name: str, request_id: int, device_type: str,
                        customer_name: str, customer_phone: Optional[str],
                        pickup_address: str, readable_time: str,
                        phone: Optional[str] = None) -> None:
        self._mailer(
            address,
            f"New Pickup Assignment - Smart e-Waste (ID: #{request_id})",
            f"Hello {name},\n\n"
            "You have been assigned a new e-waste pickup job.\n\n"
            "--- JOB DETAILS ---\n"
            f"Request ID: #{request_id}\n"
            f"Device: {device_type}\n"
            f"Scheduled Time: {readable_time}\n\n"
            "--- CUSTOMER DETAILS ---\n"
            f"Name: {customer_name}\n"
            f"Phone: {customer_phone or 'N/A'}\n"
            f"Address: {pickup_address}\n\n"
            "Please verify the item upon arrival and ask the customer for the OTP to complete the job.\n\n"
            f"{SIGNATURE}",
        )
        if phone:
            self._sms(phone, f"New pickup job #{request_id} ({device_type}) at {pickup_address}, {readable_time}")


# ────────────────────────────── DISPATCH ──────────────────────────────

def dispatch(fn, *args, timeout: Optional[float] = None, **kwargs) -> bool:
    """Run one notification call, waiting at most ``timeout`` seconds.

    Returns True when the call finished without raising. Failures and
    timeouts are logged; the caller's operation has already committed.
    """
    if timeout is None:
        timeout = settings.NOTIFY_TIMEOUT_SECONDS
    name = getattr(fn, "__name__", repr(fn))
    future = _executor.submit(fn, *args, **kwargs)
    try:
        future.result(timeout=timeout)
    except FutureTimeout:
        logging.warning("Notification %s timed out after %ss", name, timeout)
        return False
    except Exception:
        logging.exception("Notification %s failed", name)
        return False
    return True


def defer(db: Session, fn, *args, **kwargs) -> None:
    """Queue ``fn(*args, **kwargs)`` to run after ``db`` next commits."""
    db.info.setdefault(_OUTBOX_KEY, []).append((fn, args, kwargs))


@event.listens_for(Session, "after_commit")
def _flush_outbox(session):
    pending = session.info.pop(_OUTBOX_KEY, [])
    for fn, args, kwargs in pending:
        dispatch(fn, *args, **kwargs)


@event.listens_for(Session, "after_soft_rollback")
def _discard_outbox(session, previous_transaction):
    dropped = session.info.pop(_OUTBOX_KEY, [])
    if dropped:
        logging.info("Dropped %s queued notification(s) after rollback", len(dropped))
