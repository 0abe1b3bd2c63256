import logging

from django.db import DatabaseError, transaction

from crm.services import CrmForwarder
from .emails import notify_transaction_outcome
from .integrations.phonepe import fetch_access_token, get_order_status
from .models import EmailNotification, Transaction

logger = logging.getLogger(__name__)

# Order matters: first non-empty wins.
TXN_ID_PARAMS = (
    "txnid",
    "transactionId",
    "merchantOrderId",
    "orderId",
    "merchant_order_id",
    "transaction_id",
)
STATE_KEYS = ("state", "status", "transaction_status")


def extract_txn_id(*sources) -> str:
    """Return the first transaction id found in the given QueryDicts/dicts."""
    for source in sources:
        for name in TXN_ID_PARAMS:
            value = (source.get(name) or "").strip() if source is not None else ""
            if value:
                return value
    return ""


def map_gateway_state(data: dict) -> str:
    """Collapse the gateway's reported state into PENDING/COMPLETED/FAILED."""
    reported = None
    for key in STATE_KEYS:
        if data.get(key):
            reported = str(data[key]).strip().upper()
            break
    if reported is None:
        logger.error("Gateway status has no state field; assuming PENDING. Fields: %s", sorted(data.keys()))
        return Transaction.STATUS_PENDING
    if reported in Transaction.TERMINAL_STATUSES:
        return reported
    return Transaction.STATUS_PENDING


def apply_gateway_status(transaction_id: str, status: str, payload: dict):
    """Persist a gateway result; a terminal row is never changed again.

    Returns the (possibly unchanged) Transaction, or None if it is unknown.
    """
    with transaction.atomic():
        txn = Transaction.objects.select_for_update().filter(transaction_id=transaction_id).first()
        if txn is None:
            logger.error("Status update for unknown transaction %s", transaction_id)
            return None
        if txn.is_terminal:
            if status != txn.status:
                logger.warning(
                    "Ignoring %s for %s: already %s", status, transaction_id, txn.status
                )
            return txn

        txn.status = status
        txn.payment_details = payload
        fields = ["status", "payment_details", "updated_at"]
        gateway_order_id = payload.get("orderId") if isinstance(payload, dict) else None
        if gateway_order_id and not txn.gateway_order_id:
            txn.gateway_order_id = gateway_order_id
            fields.append("gateway_order_id")
        txn.save(update_fields=fields)
        return txn


def _run_side_effects(txn, *, session=None, forwarder=None):
    forwarder = forwarder or CrmForwarder.from_settings()

    if txn.status == Transaction.STATUS_COMPLETED:
        crm_status, outcome = "success", EmailNotification.OUTCOME_SUCCESS
    elif txn.status == Transaction.STATUS_FAILED:
        crm_status, outcome = "failed", EmailNotification.OUTCOME_FAILURE
    else:
        crm_status, outcome = "pending", None

    try:
        forwarder.forward_transaction(txn, crm_status)
    except Exception:
        logger.exception("CRM forwarding crashed for %s", txn.transaction_id)

    if outcome:
        try:
            notify_transaction_outcome(txn, outcome, session=session)
        except Exception:
            logger.exception("Outcome emails crashed for %s", txn.transaction_id)


def resolve_transaction(transaction_id: str, *, session=None, forwarder=None) -> dict:
    """Ask the gateway for the order's state and fan out the result.

    Gateway problems raise PhonePeError subclasses. Persistence, CRM and email
    problems are logged only. The returned ``status`` is the stored one when
    the row is already terminal.
    """
    token = fetch_access_token()
    data = get_order_status(token, transaction_id)["data"]
    status = map_gateway_state(data)
    logger.info("Gateway reports %s for %s", status, transaction_id)

    try:
        txn = apply_gateway_status(transaction_id, status, data)
    except DatabaseError:
        logger.exception("Could not persist status %s for %s", status, transaction_id)
        txn = Transaction.objects.filter(transaction_id=transaction_id).first()

    if txn is not None:
        status = txn.status if txn.is_terminal else status
        _run_side_effects(txn, session=session, forwarder=forwarder)

    return {"transaction_id": transaction_id, "status": status, "transaction": txn, "data": data}
