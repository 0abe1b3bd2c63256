"""Phone OTP issue/verify rules.

OTPs are six digits, valid for ``OTP_EXPIRY_SECONDS`` and tied to a
(phone, purpose) pair. An unexpired OTP that is not locked out is reused
instead of issuing a new one, and a phone may request at most
``OTP_RATE_LIMIT_PER_HOUR`` OTPs per hour.
"""

import logging
import re
import secrets
import string
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .models import OtpVerification
from .sms import send_otp_sms

logger = logging.getLogger(__name__)

PURPOSES = {choice for choice, _ in OtpVerification.PURPOSE_CHOICES}
OTP_RE = re.compile(r"^\d{6}$")


class OtpError(Exception):
    """Base class; ``flag`` names the boolean key set in the JSON error."""

    flag = None
    status = 400


class OtpValidationError(OtpError):
    flag = "validation_error"


class OtpRateLimited(OtpError):
    flag = "rate_limited"
    status = 429


class OtpInvalid(OtpError):
    flag = "invalid_otp"


class OtpAttemptsExceeded(OtpError):
    flag = "max_attempts_exceeded"
    status = 429


def expiry_seconds() -> int:
    return getattr(settings, "OTP_EXPIRY_SECONDS", 300)


def development_mode() -> bool:
    return getattr(settings, "OTP_DEVELOPMENT_MODE", False)


def gen_otp(n=6):
    return "".join(secrets.choice(string.digits) for _ in range(n))


def normalize_phone(phone) -> str:
    digits = re.sub(r"\D", "", str(phone or ""))
    if len(digits) < 10:
        raise OtpValidationError("Please enter a valid phone number")
    return f"+91{digits[-10:]}"


def _check_purpose(purpose):
    if purpose not in PURPOSES:
        raise OtpValidationError("Invalid purpose")


def _open_otps(phone, purpose):
    return OtpVerification.objects.filter(
        phone=phone, purpose=purpose, verified=False, expires_at__gt=timezone.now()
    ).order_by("-created_at")


def _remaining(otp) -> int:
    return max(0, int((otp.expires_at - timezone.now()).total_seconds()))


def _result(message, otp):
    data = {"success": True, "message": message, "expires_in": _remaining(otp)}
    if development_mode():
        data["development_otp"] = otp.otp
    return data


def _deliver(otp):
    if development_mode():
        logger.info("Development mode: OTP for %s not sent by SMS", otp.phone)
        return
    send_otp_sms(otp.phone, otp.otp)


def issue_otp(phone, purpose, *, force_new=False) -> dict:
    """Create (or reuse) an OTP for ``phone``/``purpose`` and text it.

    Raises SmsError when the SMS gateway fails for a fresh OTP; the OTP row is
    removed again so it does not count as sent.
    """
    _check_purpose(purpose)
    phone = normalize_phone(phone)

    # a locked OTP is never handed out again
    existing = _open_otps(phone, purpose).filter(attempts__lte=F("max_attempts")).first()
    if existing is not None:
        if not force_new:
            return _result("OTP already sent. Please check your messages.", existing)
        _deliver(existing)
        return _result("OTP resent successfully", existing)

    since = timezone.now() - timedelta(hours=1)
    limit = getattr(settings, "OTP_RATE_LIMIT_PER_HOUR", 15)
    if OtpVerification.objects.filter(phone=phone, created_at__gte=since).count() >= limit:
        logger.warning("OTP rate limit hit for %s", phone)
        raise OtpRateLimited("Too many OTP requests. Please try again after some time.")

    otp = OtpVerification.objects.create(
        phone=phone,
        otp=gen_otp(),
        purpose=purpose,
        expires_at=timezone.now() + timedelta(seconds=expiry_seconds()),
        max_attempts=getattr(settings, "OTP_MAX_ATTEMPTS", 3),
    )
    try:
        _deliver(otp)
    except Exception:
        otp.delete()
        raise
    return _result("OTP sent successfully", otp)


def verify_otp(phone, code, purpose) -> dict:
    _check_purpose(purpose)
    phone = normalize_phone(phone)
    code = str(code or "").strip()
    if not OTP_RE.match(code):
        raise OtpValidationError("OTP must be 6 digits")

    # errors are raised after the block so the attempts bump is committed
    with transaction.atomic():
        match = _open_otps(phone, purpose).select_for_update().filter(otp=code).first()
        if match is None:
            locked = False
            latest = _open_otps(phone, purpose).select_for_update().first()
            if latest is not None:
                OtpVerification.objects.filter(pk=latest.pk).update(attempts=F("attempts") + 1)
                latest.refresh_from_db(fields=["attempts"])
                locked = latest.is_locked
        elif not match.is_locked:
            match.verified = True
            match.verified_at = timezone.now()
            match.save(update_fields=["verified", "verified_at"])
            OtpVerification.objects.filter(phone=phone, purpose=purpose).exclude(pk=match.pk).delete()

    if match is None:
        if locked:
            raise OtpAttemptsExceeded("Maximum attempts exceeded. Please request a new OTP.")
        raise OtpInvalid("Invalid or expired OTP")
    if not match.verified:
        raise OtpAttemptsExceeded("Maximum attempts exceeded. Please request a new OTP.")

    return {"success": True, "message": "Phone number verified successfully", "verified": True}


def is_recently_verified(phone, purpose, *, within=timedelta(hours=1)) -> bool:
    try:
        phone = normalize_phone(phone)
    except OtpValidationError:
        return False
    return OtpVerification.objects.filter(
        phone=phone, purpose=purpose, verified=True, verified_at__gte=timezone.now() - within
    ).exists()
