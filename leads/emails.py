import logging

from django.conf import settings

from payments.emails import admin_recipients, send_templated

logger = logging.getLogger(__name__)


def send_test_ride_emails(test_drive) -> int:
    """Notify each test-ride admin separately and confirm to the customer."""
    ctx = {"ride": test_drive, "name": test_drive.full_name, "reference": test_drive.reference}
    brand = getattr(settings, "EMAIL_SUBJECT_PREFIX_BRAND", "[KineticEV]")
    sent = 0

    for admin_email in admin_recipients("TEST_RIDE_ADMIN_EMAILS"):
        try:
            if send_templated(
                f"{brand} New Test Ride Request: {test_drive.full_name}",
                "emails/test_ride_admin",
                ctx,
                admin_email,
            ):
                sent += 1
        except Exception:
            logger.exception("Failed to send test ride admin email to %s", admin_email)

    try:
        if send_templated("Your KineticEV Test Ride Request", "emails/test_ride_customer", ctx, test_drive.email):
            sent += 1
    except Exception:
        logger.exception("Failed to send test ride confirmation to %s", test_drive.email)
    return sent


def send_contact_emails(contact) -> int:
    """Notify each contact admin and acknowledge the enquiry to the customer."""
    ctx = {
        "contact": contact,
        "name": contact.full_name,
        "reference": contact.reference,
        "concern": contact.get_help_type_display(),
    }
    brand = getattr(settings, "EMAIL_SUBJECT_PREFIX_BRAND", "[KineticEV]")
    sent = 0

    for admin_email in admin_recipients("CONTACT_ADMIN_EMAILS"):
        try:
            if send_templated(
                f"{brand} New Contact Request: {contact.help_type.capitalize()}",
                "emails/contact_admin",
                ctx,
                admin_email,
            ):
                sent += 1
        except Exception:
            logger.exception("Failed to send contact admin email to %s", admin_email)

    try:
        if send_templated("Thank you for contacting KineticEV", "emails/contact_customer", ctx, contact.email):
            sent += 1
    except Exception:
        logger.exception("Failed to send contact acknowledgement to %s", contact.email)
    return sent
