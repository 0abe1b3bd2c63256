"""Thin HTTP client for the PhonePe PG checkout API.

Three calls are used: the OAuth client-credentials token endpoint, the
checkout (``/pay``) endpoint and the order status endpoint. Configuration is
read from ``settings.PHONEPE`` on every call.
"""

import json
import logging

import requests
from requests import RequestException, Timeout
from django.conf import settings

logger = logging.getLogger(__name__)


class PhonePeError(Exception):
    """Base error for anything that went wrong talking to the gateway."""

    def __init__(self, message, *, status_code=None, data=None):
        super().__init__(message)
        self.status_code = status_code
        self.data = data


class GatewayConnectionError(PhonePeError):
    """Network failure or timeout before a response arrived."""


class GatewayAuthError(PhonePeError):
    """OAuth token could not be obtained."""


class GatewayResponseError(PhonePeError):
    """The gateway answered with a non-200 status."""

    @property
    def is_unavailable(self) -> bool:
        return self.status_code == 522


class GatewayDataError(PhonePeError):
    """The gateway answered 200 but the body is unusable."""


def _conf(key, default=None):
    return getattr(settings, "PHONEPE", {}).get(key, default)


def _timeout():
    return (_conf("CONNECT_TIMEOUT", 10), _conf("READ_TIMEOUT", 30))


def _decode(resp):
    try:
        return resp.json()
    except ValueError:
        raise GatewayDataError(
            f"Invalid JSON from gateway: {resp.text[:300]}",
            status_code=resp.status_code,
            data={"raw": resp.text},
        )


def _hint(status_code):
    if status_code == 401:
        return "Unauthorized, check client id/secret or token"
    if status_code == 400:
        return "Bad request, check merchantOrderId/amount/redirectUrl"
    if status_code == 522:
        return "Gateway temporarily unavailable"
    if status_code in (404, 500):
        return f"Gateway error {status_code}"
    return f"HTTP {status_code}"


def fetch_access_token() -> str:
    """Exchange client credentials for an ``O-Bearer`` access token."""
    client_id = _conf("CLIENT_ID")
    client_secret = _conf("CLIENT_SECRET")
    if not client_id or not client_secret:
        logger.error("PHONEPE CLIENT_ID/CLIENT_SECRET are not configured")
        raise GatewayAuthError("Gateway credentials are not configured")

    form = {
        "client_id": client_id,
        "client_version": _conf("CLIENT_VERSION", "1"),
        "client_secret": client_secret,
        "grant_type": "client_credentials",
    }
    try:
        resp = requests.post(
            _conf("AUTH_URL"),
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=_timeout(),
        )
    except Timeout as e:
        raise GatewayConnectionError(f"Token request timed out: {e}")
    except RequestException as e:
        raise GatewayConnectionError(f"Token request failed: {e}")

    if resp.status_code != 200:
        logger.error("PhonePe OAuth failed: HTTP %s %s", resp.status_code, resp.text[:300])
        raise GatewayAuthError(
            f"OAuth failed: {_hint(resp.status_code)}",
            status_code=resp.status_code,
            data={"raw": resp.text},
        )
    data = _decode(resp)
    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise GatewayAuthError("OAuth response has no access_token", status_code=resp.status_code, data=data)
    return token


def _headers(token: str) -> dict:
    return {
        "Content-Type": "application/json",
        "Authorization": f"O-Bearer {token}",
    }


def build_checkout_payload(transaction, *, message="Payment for invoice") -> dict:
    redirect_url = _conf("REDIRECT_URL", "")
    sep = "&" if "?" in redirect_url else "?"
    return {
        "merchantOrderId": transaction.transaction_id,
        "amount": transaction.amount_minor_units,
        "metaInfo": {
            "udf1": transaction.firstname,
            "udf2": transaction.phone,
            "udf3": transaction.email,
            "udf4": transaction.variant,
            "udf5": transaction.color,
        },
        "paymentFlow": {
            "type": "PG_CHECKOUT",
            "message": message,
            "merchantUrls": {
                "redirectUrl": f"{redirect_url}{sep}txnid={transaction.transaction_id}",
            },
        },
    }


def create_order(token: str, transaction) -> dict:
    """Open a hosted checkout for ``transaction``.

    Returns ``{"ok": True, "order_id": ..., "redirect_url": ..., "data": ...}``.
    """
    payload = build_checkout_payload(transaction)
    try:
        resp = requests.post(
            _conf("CHECKOUT_URL"),
            headers=_headers(token),
            data=json.dumps(payload),
            timeout=_timeout(),
        )
    except Timeout as e:
        raise GatewayConnectionError(f"Checkout request timed out: {e}")
    except RequestException as e:
        raise GatewayConnectionError(f"Checkout request failed: {e}")

    if resp.status_code != 200:
        try:
            data = resp.json()
        except ValueError:
            data = {"raw": resp.text}
        raise GatewayResponseError(
            f"Create order failed: {_hint(resp.status_code)}. Response: {json.dumps(data)[:800]}",
            status_code=resp.status_code,
            data=data,
        )

    data = _decode(resp)
    order_id = data.get("orderId") if isinstance(data, dict) else None
    redirect_url = data.get("redirectUrl") if isinstance(data, dict) else None
    if not order_id or not redirect_url:
        raise GatewayDataError("Checkout response is missing orderId/redirectUrl", status_code=200, data=data)
    return {"ok": True, "order_id": order_id, "redirect_url": redirect_url, "data": data}


def get_order_status(token: str, merchant_order_id: str) -> dict:
    url = _conf("STATUS_URL", "").format(merchant_order_id=merchant_order_id)
    try:
        resp = requests.get(url, headers=_headers(token), timeout=_timeout())
    except Timeout as e:
        raise GatewayConnectionError(f"Status request timed out: {e}")
    except RequestException as e:
        raise GatewayConnectionError(f"Status request failed: {e}")

    if resp.status_code != 200:
        raise GatewayResponseError(
            f"Order status failed: {_hint(resp.status_code)}",
            status_code=resp.status_code,
            data={"raw": resp.text},
        )
    data = _decode(resp)
    if not isinstance(data, dict):
        raise GatewayDataError("Order status response is not an object", status_code=200, data={"raw": data})
    return {"ok": True, "status_code": 200, "data": data}
