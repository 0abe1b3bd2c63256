import logging
from typing import List

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import IntegrityError, transaction
from django.template.loader import render_to_string
from django.utils import timezone

from .models import EmailNotification

logger = logging.getLogger(__name__)

OUTCOME_TEMPLATES = {
    EmailNotification.OUTCOME_SUCCESS: {
        "admin_subject": "{brand} Booking Success: {txn}",
        "customer_subject": "Your Booking is Confirmed: {txn}",
        "admin_template": "emails/transaction_success_admin",
        "customer_template": "emails/transaction_success_customer",
    },
    EmailNotification.OUTCOME_FAILURE: {
        "admin_subject": "{brand} Booking Failure: {txn}",
        "customer_subject": "Your Booking Failed: {txn}",
        "admin_template": "emails/transaction_failure_admin",
        "customer_template": "emails/transaction_failure_customer",
    },
}


def _fail_silently() -> bool:
    return getattr(settings, "EMAIL_FAIL_SILENTLY", True)


def _from_email():
    return getattr(settings, "DEFAULT_FROM_EMAIL", None) or getattr(settings, "EMAIL_HOST_USER", None)


def _brand() -> str:
    return getattr(settings, "EMAIL_SUBJECT_PREFIX_BRAND", "[KineticEV]")


def admin_recipients(setting_name="BOOKING_ADMIN_EMAILS") -> List[str]:
    raw = getattr(settings, setting_name, None) or ""
    if isinstance(raw, (list, tuple)):
        raw = ",".join(raw)
    emails = [e.strip() for e in raw.split(",") if e and e.strip()]
    # Deduplicate while preserving order
    seen = set()
    uniq: List[str] = []
    for e in emails:
        if e.lower() not in seen:
            seen.add(e.lower())
            uniq.append(e)
    return uniq


def send_templated(subject, template_base, context, to) -> bool:
    """Render ``<template_base>.txt``/``.html`` and send one message to ``to``."""
    text = render_to_string(f"{template_base}.txt", context)
    html = render_to_string(f"{template_base}.html", context)
    msg = EmailMultiAlternatives(subject, text, _from_email(), [to])
    msg.attach_alternative(html, "text/html")
    return bool(msg.send(fail_silently=_fail_silently()))


def _send_set(*, subject_admin, subject_customer, admin_template, customer_template, context, customer_email):
    """Send one message per admin recipient, then the customer copy. Returns delivered addresses."""
    delivered = []
    for admin_email in admin_recipients():
        try:
            if send_templated(subject_admin, admin_template, context, admin_email):
                delivered.append(admin_email)
        except Exception:
            logger.exception("Failed to send admin email to %s", admin_email)

    if customer_email:
        try:
            if send_templated(subject_customer, customer_template, context, customer_email):
                delivered.append(customer_email)
        except Exception:
            logger.exception("Failed to send customer email to %s", customer_email)
    return delivered


def transaction_context(txn) -> dict:
    return {
        "txn": txn,
        "transaction_id": txn.transaction_id,
        "name": txn.firstname,
        "amount": txn.amount_display,
        "variant": txn.get_variant_display(),
        "color": txn.get_color_display(),
        "status": txn.status,
    }


def session_key(transaction_id, outcome) -> str:
    return f"email_sent_{transaction_id}_{outcome}"


def _claim(transaction_id, outcome):
    try:
        with transaction.atomic():
            return EmailNotification.objects.create(
                transaction_id=transaction_id,
                outcome=outcome,
                email_type="transaction",
            )
    except IntegrityError:
        return None


def notify_transaction_outcome(txn, outcome, session=None) -> bool:
    """Send the outcome emails for ``txn`` once.

    The session entry only short-circuits repeat page loads; the
    EmailNotification row is what decides. Returns True when emails went out
    on this call.
    """
    entry = OUTCOME_TEMPLATES.get(outcome)
    if entry is None:
        return False

    key = session_key(txn.transaction_id, outcome)
    if session is not None and session.get(key):
        logger.info("Emails for %s/%s already sent in this session", txn.transaction_id, outcome)
        return False

    claim = _claim(txn.transaction_id, outcome)
    if claim is None:
        logger.info("Emails for %s/%s already sent, skipping", txn.transaction_id, outcome)
        if session is not None:
            session[key] = True
        return False

    subject_args = {"brand": _brand(), "txn": txn.transaction_id}
    delivered = _send_set(
        subject_admin=entry["admin_subject"].format(**subject_args),
        subject_customer=entry["customer_subject"].format(**subject_args),
        admin_template=entry["admin_template"],
        customer_template=entry["customer_template"],
        context=transaction_context(txn),
        customer_email=txn.email,
    )

    if not delivered:
        logger.error("No %s email could be sent for %s; releasing claim", outcome, txn.transaction_id)
        claim.delete()
        return False

    claim.recipients = delivered
    claim.sent_at = timezone.now()
    claim.save(update_fields=["recipients", "sent_at"])
    if session is not None:
        session[key] = claim.sent_at.isoformat()
    return True


def send_booking_failure_emails(transaction_id, details: dict) -> int:
    """Best effort mail when a booking could not even be stored. Not deduplicated."""
    context = {
        "transaction_id": transaction_id,
        "name": details.get("firstname", ""),
        "amount": details.get("amount", ""),
        "variant": details.get("variant", ""),
        "color": details.get("color", ""),
        "status": "FAILED",
        "error": details.get("error", ""),
    }
    entry = OUTCOME_TEMPLATES[EmailNotification.OUTCOME_FAILURE]
    subject_args = {"brand": _brand(), "txn": transaction_id}
    delivered = _send_set(
        subject_admin=entry["admin_subject"].format(**subject_args),
        subject_customer=entry["customer_subject"].format(**subject_args),
        admin_template=entry["admin_template"],
        customer_template=entry["customer_template"],
        context=context,
        customer_email=details.get("email", ""),
    )
    return len(delivered)
