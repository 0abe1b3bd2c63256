import logging

import requests
from requests import RequestException
from django.conf import settings

logger = logging.getLogger(__name__)


class SmsError(Exception):
    pass


def _conf(key, default=None):
    return getattr(settings, "SMS", {}).get(key, default)


def send_otp_sms(phone_e164: str, otp: str) -> dict:
    """Send ``otp`` through the HTTP SMS gateway using the registered DLT template."""
    mobile = phone_e164[3:] if phone_e164.startswith("+91") else phone_e164.lstrip("+")
    params = {
        "username": _conf("USERNAME", ""),
        "apikey": _conf("API_KEY", ""),
        "apirequest": "Text",
        "sender": _conf("SENDER", ""),
        "route": _conf("ROUTE", ""),
        "mobile": mobile,
        "message": _conf("TEMPLATE", "{#var#}").replace("{#var#}", otp),
        "TemplateID": _conf("TEMPLATE_ID", ""),
        "format": "JSON",
    }
    try:
        resp = requests.post(_conf("URL"), data=params, timeout=_conf("TIMEOUT", 30))
    except RequestException as e:
        raise SmsError(f"SMS request failed: {e}")
    if resp.status_code != 200:
        raise SmsError(f"SMS gateway returned HTTP {resp.status_code}")
    try:
        data = resp.json()
    except ValueError:
        data = {"raw": resp.text}
    if isinstance(data, dict) and str(data.get("status", "")).lower() in ("error", "failed"):
        raise SmsError(f"SMS gateway rejected message: {data}")
    logger.info("OTP SMS sent to %s", mobile[-4:].rjust(len(mobile), "*"))
    return data
