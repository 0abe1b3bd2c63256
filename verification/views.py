import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .services import OtpError, issue_otp, verify_otp
from .sms import SmsError

logger = logging.getLogger(__name__)


def _payload(request):
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body.decode("utf-8") or "{}")
        except (ValueError, UnicodeDecodeError):
            return None
        return data if isinstance(data, dict) else None
    return request.POST.dict()


def _error(e: OtpError):
    body = {"success": False, "error": str(e)}
    if e.flag:
        body[e.flag] = True
    return JsonResponse(body, status=e.status)


def _truthy(value) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@csrf_exempt
@require_POST
def generate_otp(request):
    data = _payload(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid request body", "validation_error": True}, status=400)
    if not data.get("phone"):
        return JsonResponse({"success": False, "error": "Phone number is required", "validation_error": True}, status=400)

    try:
        result = issue_otp(
            data.get("phone"),
            (data.get("purpose") or "").strip(),
            force_new=_truthy(data.get("force_new", False)),
        )
    except OtpError as e:
        return _error(e)
    except SmsError:
        logger.exception("OTP SMS failed")
        return JsonResponse({"success": False, "error": "Failed to send OTP. Please try again."}, status=502)
    return JsonResponse(result)


@csrf_exempt
@require_POST
def verify_otp_view(request):
    data = _payload(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid request body", "validation_error": True}, status=400)
    if not data.get("phone") or not data.get("otp"):
        return JsonResponse(
            {"success": False, "error": "Phone number and OTP are required", "validation_error": True},
            status=400,
        )

    try:
        result = verify_otp(data.get("phone"), data.get("otp"), (data.get("purpose") or "").strip())
    except OtpError as e:
        return _error(e)
    return JsonResponse(result)
