import logging
from urllib.parse import urlencode

from django.conf import settings
from django.db import DatabaseError, transaction
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_POST

from payments.emails import send_booking_failure_emails
from payments.integrations.phonepe import PhonePeError, create_order, fetch_access_token
from payments.models import Transaction
from payments.utils import generate_txn_id, initiation_error_kind, render_error_page, sanitize_txn_id

from .forms import BookingForm

logger = logging.getLogger(__name__)


@require_GET
def book_now(request):
    ctx = {
        "error": request.GET.get("error", ""),
        "form": BookingForm(),
        "booking_amount": settings.BOOKING_AMOUNT,
    }
    return render(request, "bookings/book_now.html", ctx)


@require_POST
def process_payment(request):
    form = BookingForm(request.POST)
    if not form.is_valid():
        logger.info("Booking form rejected: %s", form.errors.as_json())
        return redirect(f"/book-now?{urlencode({'error': form.error_summary()})}")

    data = form.cleaned_data
    txn_id = sanitize_txn_id(data.get("txnid")) or generate_txn_id()
    amount = data.get("amount") or settings.BOOKING_AMOUNT

    try:
        with transaction.atomic():
            txn = Transaction.objects.create(
                transaction_id=txn_id,
                firstname=data["firstname"],
                phone=data["phone"],
                email=data["email"],
                address=data["address"],
                city=data["city"],
                state=data["state"],
                pincode=data["pincode"],
                owned_before=data.get("ownedBefore", False),
                variant=data["variant"],
                color=data["color"],
                terms=data["terms"],
                productinfo=f"KineticEV {data['variant']} booking",
                amount=amount,
            )
    except DatabaseError as e:
        logger.exception("Could not store booking %s", txn_id)
        try:
            send_booking_failure_emails(txn_id, {**data, "amount": f"{amount:.2f}", "error": str(e)})
        except Exception:
            logger.exception("Booking failure emails crashed for %s", txn_id)
        return render_error_page(request, "database")

    try:
        token = fetch_access_token()
        order = create_order(token, txn)
    except PhonePeError as e:
        logger.error("Payment initiation failed for %s: %s", txn_id, e)
        return render_error_page(request, initiation_error_kind(e))

    txn.gateway_order_id = order["order_id"]
    txn.save(update_fields=["gateway_order_id", "updated_at"])
    logger.info("Checkout opened for %s (gateway order %s)", txn_id, order["order_id"])

    ctx = {
        "transaction_id": txn_id,
        "redirect_url": order["redirect_url"],
        "checkout_script_url": settings.PHONEPE.get("CHECKOUT_SCRIPT_URL", ""),
    }
    return render(request, "payments/checkout_redirect.html", ctx)


@require_GET
def thank_you(request):
    txn_id = (request.GET.get("txnid") or "").strip()
    txn = Transaction.objects.filter(transaction_id=txn_id).first() if txn_id else None
    return render(request, "bookings/thank_you.html", {"txn": txn, "transaction_id": txn_id})
