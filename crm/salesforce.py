"""Salesforce Web-to-Lead mapping and submission."""

import logging
from datetime import date

import requests
from requests import RequestException
from django.conf import settings

logger = logging.getLogger(__name__)

ELIGIBLE_HELP_TYPES = {"enquiry", "dealership"}
ELIGIBLE_FORM_TYPES = {"book_now", "test_ride"}
DEFAULT_BOOKING_AMOUNT = "1000"
DEFAULT_PAYMENT_METHOD = "UPI"


class SalesforceError(Exception):
    def __init__(self, message, *, status_code=None, body=""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _conf(key, default=None):
    return getattr(settings, "SALESFORCE", {}).get(key, default)


def normalize_submission_type(status) -> str:
    s = str(status or "").strip().lower()
    if s in ("completed", "success"):
        return "success"
    if s in ("failed", "failure"):
        return "failed"
    return "pending"


def is_eligible(form_data: dict, form_type: str) -> bool:
    help_type = (form_data.get("help_type") or "").strip().lower()
    return help_type in ELIGIBLE_HELP_TYPES or form_type in ELIGIBLE_FORM_TYPES


def split_name(full_name: str):
    full_name = (full_name or "").strip()
    if " " in full_name:
        first, last = full_name.split(" ", 1)
        return first, last.strip()
    return full_name, ""


def _map_value(field: str, value):
    mapping = _conf("VALUE_MAPPINGS", {}).get(field, {})
    return mapping.get(value, value)


def _payment_method(payment_details):
    details = (payment_details or {}).get("paymentDetails") if isinstance(payment_details, dict) else None
    if isinstance(details, list) and details:
        first = details[0] if isinstance(details[0], dict) else {}
        return first.get("paymentMode") or ""
    return ""


def _logical_values(form_data: dict, form_type: str, today: date) -> dict:
    phone = form_data.get("phone", "")
    variant = form_data.get("variant_id") or form_data.get("variant") or ""
    color = form_data.get("color_name") or form_data.get("color") or ""
    values = {
        "pincode": form_data.get("pincode", ""),
        "whatsapp_number": phone,
        "address": form_data.get("address_1") or form_data.get("address") or "",
        "message": form_data.get("message", ""),
        "variant": _map_value("variant", variant) if variant else "",
        "color": color,
        "transaction_id": form_data.get("transaction_id", ""),
        "concern": _map_value("concern", form_data.get("help_type", "")) if form_data.get("help_type") else "",
    }
    if variant:
        values["product_variant"] = f"{_map_value('variant', variant)} {color}".strip()

    if form_type == "test_ride":
        values["test_ride_date"] = today.strftime("%d-%m-%Y")
        values["test_ride_date_web"] = today.strftime("%d-%m-%Y")

    if form_type == "book_now":
        payment_date = form_data.get("payment_date") or today
        if isinstance(payment_date, date):
            payment_date = payment_date.strftime("%d-%m-%Y")
        values["booking_amount"] = str(form_data.get("amount") or DEFAULT_BOOKING_AMOUNT)
        values["payment_method"] = _payment_method(form_data.get("payment_details")) or DEFAULT_PAYMENT_METHOD
        values["payment_date"] = payment_date
        values["payment_date_web"] = payment_date

    if form_data.get("payment_status"):
        values["payment_status"] = _map_value(
            "payment_status", normalize_submission_type(form_data["payment_status"])
        )
    return values


def build_lead_payload(form_data: dict, form_type: str, *, payment_update=False, today=None) -> dict:
    """Map a form/transaction dict onto Web-to-Lead field names.

    ``payment_update`` marks a payment-status push; those never carry a
    ``retURL``. Empty values are dropped.
    """
    today = today or date.today()
    help_type = (form_data.get("help_type") or "").strip().lower()
    record_type = _conf("DEALERSHIP_RECORD_TYPE") if help_type == "dealership" else _conf("RETAIL_RECORD_TYPE")

    first, last = split_name(form_data.get("full_name") or "")
    if not first:
        first = form_data.get("firstname", "")
        last = form_data.get("lastname", last)

    payload = {
        "oid": _conf("OID", ""),
        "recordType": record_type,
        "status": _conf("LEAD_STATUS", ""),
        "lead_source": _conf("LEAD_SOURCE", ""),
        "encoding": "UTF-8",
        "first_name": first,
        "last_name": last,
        "email": form_data.get("email", ""),
        "phone": form_data.get("phone", ""),
    }

    logical = _logical_values(form_data, form_type, today)
    for sf_field, name in _conf("CUSTOM_FIELDS", {}).items():
        payload[sf_field] = logical.get(name, "")

    if not payment_update and _conf("RET_URL"):
        payload["retURL"] = _conf("RET_URL")

    return {k: v for k, v in payload.items() if v not in (None, "")}


def submit_lead(payload: dict) -> dict:
    """POST ``payload`` to Web-to-Lead. 2xx and 3xx count as accepted."""
    try:
        resp = requests.post(
            _conf("URL"),
            data=payload,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=_conf("TIMEOUT", 30),
            allow_redirects=False,
        )
    except RequestException as e:
        raise SalesforceError(f"Salesforce request failed: {e}")

    if 200 <= resp.status_code < 400:
        logger.info("Salesforce accepted lead (HTTP %s)", resp.status_code)
        return {"ok": True, "status_code": resp.status_code, "body": resp.text[:1000]}
    raise SalesforceError(
        f"Salesforce rejected lead: HTTP {resp.status_code}",
        status_code=resp.status_code,
        body=resp.text[:1000],
    )
