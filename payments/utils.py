import re
import secrets
import time

from django.shortcuts import render

from .integrations.phonepe import (
    GatewayAuthError,
    GatewayConnectionError,
    GatewayDataError,
    GatewayResponseError,
)


def generate_txn_id(prefix="TXN"):
    # e.g. TXN17134567891234
    return f"{prefix}{int(time.time())}{1000 + secrets.randbelow(9000)}"


def sanitize_txn_id(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]", "", value or "")[:100]


BOOK_NOW = "/book-now"

ERROR_PAGES = {
    "database": {
        "title": "Database Error",
        "message": "We could not save your booking details. No amount has been charged.",
        "retry_url": BOOK_NOW,
        "status": 500,
    },
    "gateway_auth": {
        "title": "Payment Gateway Error",
        "message": "Unable to connect to the payment gateway. Please try again in a few minutes.",
        "retry_url": BOOK_NOW,
        "status": 502,
    },
    "gateway_token": {
        "title": "Payment Gateway Error",
        "message": "We faced a technical issue while connecting to our payment gateway. Please try again.",
        "retry_url": BOOK_NOW,
        "status": 502,
    },
    "gateway_connection": {
        "title": "Connection Error",
        "message": "We could not reach the payment gateway. Please check your connection and try again.",
        "retry_url": BOOK_NOW,
        "status": 504,
    },
    "gateway_unavailable": {
        "title": "Payment Gateway Unavailable",
        "message": "The payment gateway is temporarily unavailable.",
        "detail": "Your booking data has been saved and no amount has been charged.",
        "retry_url": BOOK_NOW,
        "status": 503,
    },
    "gateway_rejected": {
        "title": "Payment Request Rejected",
        "message": "The payment gateway could not process this request. Please try again.",
        "retry_url": BOOK_NOW,
        "status": 502,
    },
    "gateway_data": {
        "title": "Payment Data Error",
        "message": "We received an unexpected response from the payment gateway. Please try again.",
        "retry_url": BOOK_NOW,
        "status": 502,
    },
    "missing_txn": {
        "title": "Invalid Request",
        "message": "No transaction id was provided.",
        "retry_url": "/",
        "retry_label": "Return to home",
        "status": 400,
    },
    "status_auth": {
        "title": "Status Check Failed",
        "message": "We could not authenticate with the payment gateway to confirm your payment.",
        "detail": "If money was debited, your booking will be confirmed once the payment is verified.",
        "status": 502,
    },
    "status_connection": {
        "title": "Status Check Failed",
        "message": "We could not reach the payment gateway to confirm your payment.",
        "detail": "If money was debited, your booking will be confirmed once the payment is verified.",
        "status": 504,
    },
    "status_http": {
        "title": "Status Check Failed",
        "message": "The payment gateway returned an error while confirming your payment.",
        "status": 502,
    },
    "status_parse": {
        "title": "Status Check Failed",
        "message": "We could not read the payment status returned by the gateway.",
        "status": 502,
    },
}


def initiation_error_kind(exc) -> str:
    if isinstance(exc, GatewayConnectionError):
        return "gateway_connection"
    if isinstance(exc, GatewayAuthError):
        return "gateway_token" if exc.status_code == 200 else "gateway_auth"
    if isinstance(exc, GatewayResponseError):
        return "gateway_unavailable" if exc.is_unavailable else "gateway_rejected"
    if isinstance(exc, GatewayDataError):
        return "gateway_data"
    return "gateway_rejected"


def status_error_kind(exc) -> str:
    if isinstance(exc, GatewayConnectionError):
        return "status_connection"
    if isinstance(exc, GatewayAuthError):
        return "status_auth"
    if isinstance(exc, GatewayDataError):
        return "status_parse"
    return "status_http"


def render_error_page(request, kind, *, retry_url=None):
    page = dict(ERROR_PAGES[kind])
    status = page.pop("status")
    if retry_url:
        page["retry_url"] = retry_url
    page["kind"] = kind
    return render(request, "error_page.html", page, status=status)
