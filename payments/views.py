import logging
from urllib.parse import urlencode

from django.shortcuts import redirect, render
from django.views.decorators.csrf import csrf_exempt

from .integrations.phonepe import PhonePeError
from .models import Transaction
from .services import extract_txn_id, resolve_transaction
from .utils import render_error_page, status_error_kind

logger = logging.getLogger(__name__)


@csrf_exempt
def check_status(request):
    """Gateway return URL and manual "check again" target."""
    txn_id = extract_txn_id(request.GET, request.POST)
    if not txn_id:
        return render_error_page(request, "missing_txn")

    try:
        result = resolve_transaction(txn_id, session=request.session)
    except PhonePeError as e:
        logger.error("Status check for %s failed: %s", txn_id, e)
        recheck = f"{request.path}?{urlencode({'txnid': txn_id})}"
        return render_error_page(request, status_error_kind(e), retry_url=recheck)

    status = result["status"]
    if status == Transaction.STATUS_COMPLETED:
        return redirect(f"/thank-you?{urlencode({'txnid': txn_id})}")
    if status == Transaction.STATUS_FAILED:
        return redirect("/")

    ctx = {
        "transaction_id": txn_id,
        "txn": result["transaction"],
        "recheck_url": f"{request.path}?{urlencode({'txnid': txn_id})}",
    }
    return render(request, "payments/pending.html", ctx)
