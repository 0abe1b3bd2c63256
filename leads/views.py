import json
import logging

from django.db import DatabaseError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from crm.services import CrmForwarder
from verification.services import is_recently_verified

from .emails import send_contact_emails, send_test_ride_emails
from .forms import ContactForm, TestDriveForm
from .models import ContactSubmission, TestDrive

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Thank you for your test ride request. Please check your email for confirmation."
FAILURE_MESSAGE = "Sorry, there was an error processing your test ride request. Please try again later."
INVALID_MESSAGE = "Please correct the errors below and try again."


def _payload(request):
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body.decode("utf-8") or "{}")
        except (ValueError, UnicodeDecodeError):
            return None
        return data if isinstance(data, dict) else None
    return request.POST


@csrf_exempt
@require_POST
def submit_test_drive(request):
    data = _payload(request)
    if data is None:
        return JsonResponse({"success": False, "message": "Invalid request body"}, status=400)

    form = TestDriveForm(data)
    if not form.is_valid():
        return JsonResponse(
            {
                "success": False,
                "message": INVALID_MESSAGE,
                "errors": form.field_errors(),
            },
            status=400,
        )

    cleaned = form.cleaned_data
    try:
        ride = TestDrive.objects.create(
            full_name=cleaned["full_name"],
            phone=cleaned["phone"],
            email=cleaned["email"],
            pincode=cleaned["pincode"],
            message=cleaned.get("message") or "",
            date=cleaned.get("date"),
            phone_verified=is_recently_verified(cleaned["phone"], "test_ride"),
        )
    except DatabaseError:
        logger.exception("Could not store test ride for %s", cleaned["email"])
        return JsonResponse({"success": False, "message": FAILURE_MESSAGE}, status=500)

    try:
        CrmForwarder.from_settings().forward_lead(ride.as_lead(), "test_ride", reference=ride.reference)
    except Exception:
        logger.exception("CRM forwarding crashed for test ride %s", ride.reference)

    send_test_ride_emails(ride)
    logger.info("Test ride %s stored for %s", ride.reference, ride.email)
    return JsonResponse({"success": True, "message": SUCCESS_MESSAGE, "reference": ride.reference})


@csrf_exempt
@require_POST
def save_contact(request):
    data = _payload(request)
    if data is None:
        return JsonResponse({"success": False, "message": "Invalid request body"}, status=400)

    form = ContactForm(data)
    if not form.is_valid():
        return JsonResponse(
            {"success": False, "message": INVALID_MESSAGE, "errors": form.field_errors()},
            status=400,
        )

    cleaned = form.cleaned_data
    try:
        contact = ContactSubmission.objects.create(
            full_name=cleaned["name"],
            phone=cleaned["phone"],
            email=cleaned["email"],
            help_type=cleaned["help"],
            message=cleaned.get("message") or "",
            phone_verified=is_recently_verified(cleaned["phone"], "contact_form"),
            ip_address=request.META.get("REMOTE_ADDR") or None,
            user_agent=request.META.get("HTTP_USER_AGENT", "")[:255],
        )
    except DatabaseError:
        logger.exception("Could not store contact request for %s", cleaned["email"])
        return JsonResponse(
            {"success": False, "error": "Internal server error. Please try again later."},
            status=500,
        )

    try:
        CrmForwarder.from_settings().forward_lead(contact.as_lead(), "contact", reference=contact.reference)
    except Exception:
        logger.exception("CRM forwarding crashed for contact %s", contact.reference)

    send_contact_emails(contact)
    logger.info("Contact %s (%s) stored for %s", contact.reference, contact.help_type, contact.email)
    return JsonResponse(
        {
            "success": True,
            "message": "Contact saved successfully",
            "contact_id": contact.reference,
            "data": {
                "reference_id": contact.reference,
                "submitted_at": contact.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            },
        },
        status=201,
    )
